"""Shared fixtures for bug analytics tests."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from bug_analytics import parse_csv_data
from helpers import make_csv


# ── Small realistic export ──


def _sample_rows() -> list[dict]:
    return [
        {"#": "101", "Project": "Core", "Status": "New", "Priority": "High",
         "Assignee": "alice", "Created": "08/15/2025", "Updated": "08/16/2025",
         "Customer Name": "Acme", "Sub-System/Module": "Billing",
         "Owner Team": "Payments", "Bug Classification": "Functional"},
        {"#": "102", "Project": "Core", "Status": "Closed", "Priority": "High",
         "Assignee": "bob", "Created": "07/01/2025", "Updated": "08/20/2025",
         "Closed": "08/20/2025", "Sub-System/Module": "Billing",
         "Owner Team": "Payments", "Bug Classification": "Functional"},
        {"#": "103", "Project": "Web", "Status": "Assigned", "Priority": "Normal",
         "Assignee": "carol", "Created": "2025-03-02", "Updated": "2025-09-01",
         "Sub-System/Module": "UI", "Owner Team": "Frontend",
         "Bug Classification": "Cosmetic"},
        {"#": "104", "Project": "Web", "Status": "New", "Priority": "Urgent",
         "Assignee": "alice", "Created": "12/20/2025", "Customer Name": "Globex",
         "Sub-System/Module": "UI", "Owner Team": "Frontend"},
        {"#": "105", "Project": "Core", "Status": "Rejected", "Priority": "Low",
         "Assignee": "bob", "Created": "01/10/2024", "Updated": "02/01/2024",
         "Closed": "02/01/2024", "Sub-System/Module": "Billing",
         "Owner Team": "Payments"},
    ]


@pytest.fixture()
def sample_csv() -> str:
    """CSV text for a five-bug export (three open, two closed)."""
    return make_csv(_sample_rows())


@pytest.fixture()
def sample_records(sample_csv):
    return parse_csv_data(sample_csv)


@pytest.fixture()
def csv_file(tmp_path, sample_csv):
    path = tmp_path / "bugs.csv"
    path.write_text(sample_csv, encoding="utf-8")
    return path


@pytest.fixture()
def client(sample_records):
    """TestClient for app.py with the sample records pre-loaded.

    Patches load_records so no CSV file is needed and resets the
    module-level cache between tests.
    """
    import app as app_module

    with patch.object(
        app_module, "_cache", {"records": None, "loaded_at": 0.0, "source": None}
    ):
        with patch("app.load_records", return_value=sample_records):
            with TestClient(app_module.app) as tc:
                yield tc
