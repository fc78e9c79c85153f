"""Shared test helpers for bug analytics tests.

Regular functions (not fixtures) that can be imported by any test module.
"""

from __future__ import annotations

import csv
import io
from datetime import date
from types import MappingProxyType

TODAY = date(2026, 1, 15)

HEADER = [
    "#", "Project", "Status", "Priority", "Assignee", "Created", "Updated",
    "Closed", "Customer Name", "Sub-System/Module", "Owner Team",
    "Bug Classification",
]


def make_record(**fields: str) -> MappingProxyType:
    """Build a parsed-record lookalike with every header column present.

    Keyword names use underscores for spaces (``Owner_Team``) and the
    special ``Sub_System`` maps to "Sub-System/Module".
    """
    row = {name: "" for name in HEADER}
    for key, value in fields.items():
        if key == "Sub_System":
            name = "Sub-System/Module"
        else:
            name = key.replace("_", " ")
        row[name] = value
    return MappingProxyType(row)


def make_csv(rows: list[dict[str, str]], header: list[str] | None = None) -> str:
    """Render dict rows as CSV text under *header* (default ``HEADER``)."""
    header = header or HEADER
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=header, restval="", lineterminator="\n")
    writer.writeheader()
    writer.writerows(rows)
    return buf.getvalue()
