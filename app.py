"""FastAPI service for the Bug Analytics Dashboard.

Serves a Chart.js dashboard over a CSV export of issue-tracker records.
Parsed records are cached (1-hour TTL since the export only changes when a
new file is dropped in or uploaded); aggregations run per request so the
filters stay live.

Deployment: uvicorn app:app --host 127.0.0.1 --port 8204
"""

from __future__ import annotations

import json
import os
import threading
import time
from pathlib import Path
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse

from bug_analytics import (
    DashboardConfig,
    FilterCriteria,
    ParseError,
    Record,
    build_dashboard_payload,
    load_records,
    parse_csv_data,
)

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------
CSV_PATH = Path(os.environ.get("BUG_DASHBOARD_CSV", Path(__file__).parent / "bugs.csv"))
TEMPLATE_PATH = Path(__file__).parent / "dashboard_template.html"
CACHE_TTL_SECONDS = 3600  # 1 hour
CONFIG = DashboardConfig.from_env()

# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Bug Analytics Dashboard",
    root_path=os.environ.get("BUG_DASHBOARD_ROOT_PATH", ""),
)

# ---------------------------------------------------------------------------
# Thread-safe cache
# ---------------------------------------------------------------------------
_cache_lock = threading.Lock()
_cache: dict[str, Any] = {
    "records": None,
    "loaded_at": 0.0,
    "source": None,
}


def _store_records(records: list[Record], source: str) -> None:
    with _cache_lock:
        _cache["records"] = records
        _cache["loaded_at"] = time.monotonic()
        _cache["source"] = source


def _get_cached_records(force_refresh: bool = False) -> list[Record]:
    """Return cached records, re-reading the CSV if stale or forced.

    File data expires after CACHE_TTL_SECONDS.  Uploaded data never expires;
    only a forced refresh or another upload replaces it.

    Raises:
        HTTPException: 503 if the CSV file is missing, 422 if it cannot
            be parsed.
    """
    now = time.monotonic()
    with _cache_lock:
        if (
            not force_refresh
            and _cache["records"] is not None
            and (
                _cache["source"] == "upload"
                or (now - _cache["loaded_at"]) < CACHE_TTL_SECONDS
            )
        ):
            return _cache["records"]

    try:
        records = load_records(str(CSV_PATH))
    except FileNotFoundError:
        raise HTTPException(status_code=503, detail="Data file not found")
    except ParseError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    _store_records(records, str(CSV_PATH))
    return records


def _build_payload(
    tab: str,
    status: str | None = None,
    priority: str | None = None,
    project: str | None = None,
    owner_team: str | None = None,
    assignee: str | None = None,
    sub_system: str | None = None,
    aging_sub_system: str | None = None,
) -> dict[str, Any]:
    if tab not in ("all", "customer"):
        raise HTTPException(status_code=400, detail=f"Unknown tab: {tab}")
    criteria = FilterCriteria(
        status=status,
        priority=priority,
        project=project,
        owner_team=owner_team,
        assignee=assignee,
        sub_system=sub_system,
    )
    return build_dashboard_payload(
        _get_cached_records(),
        criteria=criteria,
        tab=tab,
        aging_sub_system=aging_sub_system,
        config=CONFIG,
    )


def _render_dashboard(tab: str) -> HTMLResponse:
    if not TEMPLATE_PATH.exists():
        raise HTTPException(status_code=500, detail="Template not found")

    # A missing or unreadable export still serves the page so the upload
    # control stays reachable.
    try:
        records = _get_cached_records()
        load_error = None
    except HTTPException as exc:
        records = []
        load_error = exc.detail

    data = build_dashboard_payload(records, tab=tab, config=CONFIG)
    data["load_error"] = load_error
    template = TEMPLATE_PATH.read_text(encoding="utf-8")
    data_json = json.dumps(data, ensure_ascii=False)
    data_json = data_json.replace("</", r"<\/")
    html = template.replace(
        "const DASHBOARD_DATA = {};",
        f"const DASHBOARD_DATA = {data_json};",
    )
    return HTMLResponse(content=html)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@app.get("/health")
@app.get("/healthz")
def healthz():
    return {"status": "ok"}


@app.get("/", response_class=HTMLResponse)
def dashboard_html():
    """Serve the All Bugs dashboard with injected data."""
    return _render_dashboard("all")


@app.get("/customers", response_class=HTMLResponse)
def customer_dashboard_html():
    """Serve the Customer Bugs dashboard with injected data."""
    return _render_dashboard("customer")


@app.get("/api/data")
def api_data(
    tab: str = "all",
    status: str | None = None,
    priority: str | None = None,
    project: str | None = None,
    owner_team: str | None = None,
    assignee: str | None = None,
    sub_system: str | None = None,
    aging_sub_system: str | None = None,
):
    """Return the dashboard JSON payload for the given filters."""
    return _build_payload(
        tab,
        status=status,
        priority=priority,
        project=project,
        owner_team=owner_team,
        assignee=assignee,
        sub_system=sub_system,
        aging_sub_system=aging_sub_system,
    )


@app.get("/api/refresh")
def api_refresh():
    """Force a re-read of the CSV file."""
    records = _get_cached_records(force_refresh=True)
    return {
        "status": "refreshed",
        "record_count": len(records),
        "source": str(CSV_PATH),
    }


@app.post("/api/upload")
async def api_upload(request: Request):
    """Replace the cached records with CSV text sent as the request body."""
    body = await request.body()
    try:
        text = body.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=422, detail="CSV upload must be UTF-8 text")

    try:
        records = await run_in_threadpool(parse_csv_data, text)
    except ParseError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    _store_records(records, "upload")
    return {"status": "uploaded", "record_count": len(records)}
