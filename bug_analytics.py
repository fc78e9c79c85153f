"""Core data processing for issue-tracker bug analytics.

Parses a CSV export of bug records and computes the metrics, distributions,
trends and aging matrix shown on the dashboard.
Used by both the CLI (bug_summary.py) and the web dashboard (app.py).
"""

from __future__ import annotations

import calendar
import csv
import io
import json
import logging
import math
import os
import re
from collections import Counter
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Sequence

from dateutil import parser as dtparser

logger = logging.getLogger(__name__)

Record = Mapping[str, str]

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------
STATUS_FIELD = "Status"
PRIORITY_FIELD = "Priority"
CREATED_FIELD = "Created"
UPDATED_FIELD = "Updated"
CLOSED_FIELD = "Closed"
SUB_SYSTEM_FIELD = "Sub-System/Module"
OWNER_TEAM_FIELD = "Owner Team"
ASSIGNEE_FIELD = "Assignee"
CUSTOMER_FIELD = "Customer Name"
PROJECT_FIELD = "Project"
CLASSIFICATION_FIELD = "Bug Classification"

CLOSED_STATUSES = ("Closed", "Duplicated", "Rejected", "Verified", "Released")
HIGH_PRIORITIES = ("High", "Urgent")
AGING_PRIORITIES = ("Critical", "High", "Normal", "Low")

# (label, lower bound inclusive, upper bound exclusive) in months
AGING_BUCKETS = (
    ("0-1 Month", 0, 1),
    ("1-2 Months", 1, 2),
    ("2-3 Months", 2, 3),
    ("3-4 Months", 3, 4),
    ("4-6 Months", 4, 6),
    ("6+ Months", 6, math.inf),
)
AGING_BUCKET_LABELS = tuple(b[0] for b in AGING_BUCKETS)

AGING_HEALTHY_BUCKETS = {
    "Critical": frozenset(AGING_BUCKET_LABELS[:1]),
    "High": frozenset(AGING_BUCKET_LABELS[:2]),
    "Normal": frozenset(AGING_BUCKET_LABELS[:4]),
    "Low": frozenset(AGING_BUCKET_LABELS[:5]),
}

TOTAL_LABEL = "Total"
UNKNOWN_LABEL = "Unknown"
ALL_VALUE = "All"
DAYS_PER_MONTH = 30.44
MIN_DATE = date(2020, 1, 1)
MAX_YEARS_AHEAD = 5

DEFAULT_CUTOFF_DATE = date(2025, 8, 1)
DEFAULT_COLOR = "#6b7280"

STATUS_COLORS = {
    "New": "#ef4444",
    "Opened": "#f97316",
    "Assigned": "#eab308",
    "Approved": "#3b82f6",
    "Closed": "#22c55e",
    "Resolved": "#16a34a",
}

PRIORITY_COLORS = {
    "Low": "#22c55e",
    "Normal": "#3b82f6",
    "High": "#f59e0b",
    "Urgent": "#ef4444",
}

_SLASH_DATE_RE = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")


class ParseError(ValueError):
    """Raised when a CSV export is structurally unusable."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class DashboardConfig:
    """Tunables for the dashboard aggregations."""

    cutoff_date: date = DEFAULT_CUTOFF_DATE
    status_colors: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType(dict(STATUS_COLORS))
    )
    priority_colors: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType(dict(PRIORITY_COLORS))
    )
    default_color: str = DEFAULT_COLOR
    trend_window: int = 12
    owner_team_limit: int = 10
    sub_system_limit: int = 8

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> DashboardConfig:
        """Build a config, honouring ``BUG_DASHBOARD_CUTOFF`` if set.

        Raises:
            ValueError: If the cutoff is not an ISO ``YYYY-MM-DD`` date.
        """
        env = os.environ if environ is None else environ
        raw = (env.get("BUG_DASHBOARD_CUTOFF") or "").strip()
        if not raw:
            return cls()
        return cls(cutoff_date=date.fromisoformat(raw))


@dataclass(frozen=True)
class FilterCriteria:
    """Optional per-field constraints; unset, empty or "All" means no constraint."""

    status: str | None = None
    priority: str | None = None
    project: str | None = None
    owner_team: str | None = None
    assignee: str | None = None
    sub_system: str | None = None

    def constraints(self) -> list[tuple[str, str]]:
        """Return (column name, required value) pairs for every set criterion."""
        pairs = []
        for attr, column in _FILTER_COLUMNS:
            value = getattr(self, attr)
            if value and value != ALL_VALUE:
                pairs.append((column, value))
        return pairs

    def is_empty(self) -> bool:
        return not self.constraints()


_FILTER_COLUMNS = (
    ("status", STATUS_FIELD),
    ("priority", PRIORITY_FIELD),
    ("project", PROJECT_FIELD),
    ("owner_team", OWNER_TEAM_FIELD),
    ("assignee", ASSIGNEE_FIELD),
    ("sub_system", SUB_SYSTEM_FIELD),
)


@dataclass(frozen=True)
class ChartDatum:
    name: str
    value: int
    color: str | None = None


@dataclass(frozen=True)
class DashboardMetrics:
    open_bugs: int = 0
    incoming_bugs: int = 0
    outgoing_bugs: int = 0
    high_priority_bugs: int = 0


@dataclass(frozen=True)
class AgingRow:
    """One priority row of the aging matrix.

    ``buckets`` and ``highlights`` are aligned with ``AGING_BUCKET_LABELS``.
    """

    priority: str
    buckets: tuple[int, ...]
    total: int
    highlights: tuple[str | None, ...] = ()

    def as_dict(self) -> dict[str, Any]:
        row: dict[str, Any] = {"priority": self.priority}
        row.update(zip(AGING_BUCKET_LABELS, self.buckets))
        row[TOTAL_LABEL] = self.total
        row["highlights"] = list(self.highlights)
        return row


@dataclass(frozen=True)
class AggregationResult:
    """Outcome of one aggregation: the value, or a default plus the reason."""

    value: Any
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------
def _dedupe_headers(names: list[str]) -> list[str]:
    """Suffix repeated header names with _1, _2, ... so every column survives."""
    seen: Counter = Counter()
    result = []
    for name in names:
        if name in seen:
            candidate = f"{name}_{seen[name]}"
            while candidate in seen:
                seen[name] += 1
                candidate = f"{name}_{seen[name]}"
            seen[name] += 1
            seen[candidate] += 1
            result.append(candidate)
        else:
            seen[name] += 1
            result.append(name)
    return result


def parse_csv_data(text: str) -> list[Record]:
    """Parse CSV text into an ordered list of immutable records.

    The first non-blank row is the header.  Header names and cell values
    are whitespace-trimmed, short rows are padded with empty strings and
    entirely blank rows are skipped.

    Args:
        text: Raw CSV document content.

    Returns:
        List of read-only mappings, one per data row, each keyed by every
        header column.

    Raises:
        ParseError: If no header can be determined, the file has no data
            rows, or the CSV structure itself is malformed.
    """
    if text.startswith("\ufeff"):
        text = text[1:]

    reader = csv.reader(io.StringIO(text), delimiter=",", strict=True)
    header: list[str] | None = None
    records: list[Record] = []
    overlong_rows = 0

    try:
        for row in reader:
            cells = [c.strip() for c in row]
            if not any(cells):
                continue
            if header is None:
                header = _dedupe_headers(cells)
                continue
            if len(cells) > len(header):
                overlong_rows += 1
                cells = cells[: len(header)]
            cells.extend([""] * (len(header) - len(cells)))
            records.append(MappingProxyType(dict(zip(header, cells))))
    except csv.Error as exc:
        raise ParseError(f"CSV parsing error: {exc}") from exc

    if header is None:
        raise ParseError("Unable to determine CSV header")
    if not records:
        raise ParseError("No data found in CSV file")

    if overlong_rows:
        logger.warning(
            "%d rows had more fields than the %d header columns; extra cells were dropped.",
            overlong_rows,
            len(header),
        )
    return records


def load_records(path: str) -> list[Record]:
    """Load and parse a CSV export from disk.

    Raises:
        FileNotFoundError: If the file at *path* does not exist.
        ParseError: If the file is not a usable CSV export.
    """
    with open(path, "r", encoding="utf-8-sig", newline="") as f:
        return parse_csv_data(f.read())


def field_value(record: Record, name: str) -> str:
    """Return the trimmed value of *name*, or "" when the column is missing."""
    value = record.get(name)
    if not value:
        return ""
    return str(value).strip()


def _in_window(value: date, today: date) -> bool:
    return MIN_DATE <= value <= date(today.year + MAX_YEARS_AHEAD, 12, 31)


def parse_date(value: str | None, today: date | None = None) -> date | None:
    """Best-effort conversion of a spreadsheet date string to a calendar date.

    Accepts ``M/D/YYYY`` and ISO-8601 strings.  Values before 2020-01-01 or
    after December 31 five years from now are treated as corrupt.

    Args:
        value: Raw cell content; may be None or blank.
        today: Reference date for the upper bound.  Defaults to today.

    Returns:
        The parsed date, or None if the value is blank, malformed, or
        outside the accepted window.
    """
    if not value or not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    today = today or date.today()

    if "/" in text:
        match = _SLASH_DATE_RE.search(text)
        if match:
            month, day, year = (int(g) for g in match.groups())
            try:
                parsed = date(year, month, day)
            except ValueError:
                parsed = None
            if parsed is not None and _in_window(parsed, today):
                return parsed

    try:
        parsed_dt = dtparser.isoparse(text)
    except (ValueError, OverflowError):
        return None
    parsed = parsed_dt.date() if isinstance(parsed_dt, datetime) else parsed_dt
    return parsed if _in_window(parsed, today) else None


def is_closed_status(status: str | None) -> bool:
    """Return True if *status* is one of the closed/non-active statuses."""
    return (status or "").strip() in CLOSED_STATUSES


def get_open_bugs_only(records: Iterable[Record]) -> list[Record]:
    return [r for r in records if not is_closed_status(field_value(r, STATUS_FIELD))]


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------
def filter_data(records: Sequence[Record], criteria: FilterCriteria | None) -> list[Record]:
    """Keep records whose fields exactly match every set criterion.

    Args:
        records: Parsed records in file order.
        criteria: Field constraints.  None or empty criteria keep everything.

    Returns:
        New list of the matching records in their original order.
    """
    if criteria is None or criteria.is_empty():
        return list(records)
    constraints = criteria.constraints()
    return [
        r
        for r in records
        if all(field_value(r, column) == wanted for column, wanted in constraints)
    ]


def customer_bugs_only(records: Iterable[Record]) -> list[Record]:
    """Return records that name a customer (the "Customer Bugs" tab)."""
    return [r for r in records if field_value(r, CUSTOMER_FIELD)]


def get_unique_values(records: Iterable[Record], name: str) -> list[str]:
    """Return the sorted distinct non-empty values of column *name*."""
    return sorted({v for v in (field_value(r, name) for r in records) if v})


def get_filter_options(records: Sequence[Record]) -> dict[str, list[str]]:
    """Distinct values for every drop-down filter."""
    return {key: get_unique_values(records, column) for key, column in _FILTER_COLUMNS}


def compute_tab_counts(records: Sequence[Record]) -> dict[str, int]:
    """Count open bugs for the "All Bugs" and "Customer Bugs" tabs."""
    open_bugs = get_open_bugs_only(records)
    return {
        "all_open_bugs": len(open_bugs),
        "customer_open_bugs": len(customer_bugs_only(open_bugs)),
    }


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------
def calculate_metrics(
    records: Sequence[Record],
    cutoff: date = DEFAULT_CUTOFF_DATE,
    today: date | None = None,
) -> DashboardMetrics:
    """Compute the four headline counters.

    Args:
        records: Records to count over (already filtered by the caller).
        cutoff: Incoming/outgoing bugs are those dated on or after this day.
        today: Reference date for date normalization.

    Returns:
        DashboardMetrics with open, incoming, outgoing and high-priority
        open bug counts.
    """
    open_bugs = incoming = outgoing = high_priority = 0
    for r in records:
        closed = is_closed_status(field_value(r, STATUS_FIELD))
        if not closed:
            open_bugs += 1
            if field_value(r, PRIORITY_FIELD) in HIGH_PRIORITIES:
                high_priority += 1

        created = parse_date(field_value(r, CREATED_FIELD), today)
        if created is not None and created >= cutoff:
            incoming += 1

        if closed:
            updated = parse_date(field_value(r, UPDATED_FIELD), today)
            if updated is not None and updated >= cutoff:
                outgoing += 1

    return DashboardMetrics(
        open_bugs=open_bugs,
        incoming_bugs=incoming,
        outgoing_bugs=outgoing,
        high_priority_bugs=high_priority,
    )


# ---------------------------------------------------------------------------
# Distributions
# ---------------------------------------------------------------------------
def create_distribution(
    records: Sequence[Record],
    extractor: Callable[[Record], str | None],
    colors: Mapping[str, str] | None = None,
    limit: int | None = None,
    default_color: str = DEFAULT_COLOR,
) -> list[ChartDatum]:
    """Count open bugs per category for pie and bar charts.

    Args:
        records: Records to aggregate; closed bugs are ignored.
        extractor: Returns the category value for a record.  Blank values
            are labelled "Unknown".
        colors: Optional fixed color per category name.
        limit: Keep only the first *limit* categories after sorting.
        default_color: Color for categories missing from *colors*.

    Returns:
        ChartDatum list sorted by count descending; equal counts keep the
        order in which the category was first seen.
    """
    counts: Counter = Counter()
    for r in get_open_bugs_only(records):
        label = (extractor(r) or "").strip() or UNKNOWN_LABEL
        counts[label] += 1

    ordered = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
    if limit and len(ordered) > limit:
        ordered = ordered[:limit]

    colors = colors or {}
    return [ChartDatum(name, value, colors.get(name, default_color)) for name, value in ordered]


def _column(name: str) -> Callable[[Record], str]:
    return lambda r: field_value(r, name)


def get_status_distribution(
    records: Sequence[Record], config: DashboardConfig | None = None
) -> list[ChartDatum]:
    config = config or DashboardConfig()
    return create_distribution(
        records, _column(STATUS_FIELD), config.status_colors, default_color=config.default_color
    )


def get_priority_distribution(
    records: Sequence[Record], config: DashboardConfig | None = None
) -> list[ChartDatum]:
    config = config or DashboardConfig()
    return create_distribution(
        records, _column(PRIORITY_FIELD), config.priority_colors, default_color=config.default_color
    )


def get_owner_team_distribution(
    records: Sequence[Record], config: DashboardConfig | None = None
) -> list[ChartDatum]:
    config = config or DashboardConfig()
    return create_distribution(
        records,
        _column(OWNER_TEAM_FIELD),
        limit=config.owner_team_limit,
        default_color=config.default_color,
    )


def get_bug_classification_distribution(
    records: Sequence[Record], config: DashboardConfig | None = None
) -> list[ChartDatum]:
    config = config or DashboardConfig()
    return create_distribution(
        records, _column(CLASSIFICATION_FIELD), default_color=config.default_color
    )


def get_sub_system_distribution(
    records: Sequence[Record], config: DashboardConfig | None = None
) -> list[ChartDatum]:
    config = config or DashboardConfig()
    return create_distribution(
        records,
        _column(SUB_SYSTEM_FIELD),
        limit=config.sub_system_limit,
        default_color=config.default_color,
    )


# ---------------------------------------------------------------------------
# Trends
# ---------------------------------------------------------------------------
def _month_label(year: int, month: int) -> str:
    return f"{calendar.month_abbr[month]} {year}"


def get_cumulative_open_bug_trend(
    records: Sequence[Record],
    window: int = 12,
    today: date | None = None,
) -> list[ChartDatum]:
    """Running count of open bugs at the end of each active month.

    Each record adds one in the month it was created and, if it is in a
    closed status with a valid Closed date, subtracts one in the month it
    was closed.  The running total never drops below zero.

    Args:
        records: All records, open and closed.
        window: Number of trailing months to return.
        today: Reference date for date normalization.

    Returns:
        Chronological ChartDatum list labelled like "Aug 2025", holding at
        most *window* points.
    """
    deltas: Counter = Counter()
    closed_before_created = 0
    for r in records:
        created = parse_date(field_value(r, CREATED_FIELD), today)
        if created is not None:
            deltas[(created.year, created.month)] += 1

        if not is_closed_status(field_value(r, STATUS_FIELD)):
            continue
        closed = parse_date(field_value(r, CLOSED_FIELD), today)
        if closed is not None:
            deltas[(closed.year, closed.month)] -= 1
            if created is not None and closed < created:
                closed_before_created += 1

    if closed_before_created:
        logger.warning(
            "%d closed bugs have a Closed date earlier than their Created date; "
            "the cumulative trend counts them as closed in that earlier month.",
            closed_before_created,
        )

    points: list[ChartDatum] = []
    running = 0
    for year, month in sorted(deltas):
        running = max(0, running + deltas[(year, month)])
        points.append(ChartDatum(_month_label(year, month), running))

    return points[-window:] if window > 0 else points


def get_monthly_trend(
    records: Sequence[Record],
    window: int = 12,
    today: date | None = None,
) -> list[ChartDatum]:
    """Open bugs grouped by the month they were created, trailing *window* months."""
    counts: Counter = Counter()
    for r in get_open_bugs_only(records):
        created = parse_date(field_value(r, CREATED_FIELD), today)
        if created is not None:
            counts[(created.year, created.month)] += 1

    points = [ChartDatum(_month_label(y, m), counts[(y, m)]) for y, m in sorted(counts)]
    return points[-window:] if window > 0 else points


# ---------------------------------------------------------------------------
# Aging matrix
# ---------------------------------------------------------------------------
def age_in_months(created: date, today: date) -> int:
    """Whole months elapsed since *created*, using 30.44-day months."""
    return math.floor((today - created).days / DAYS_PER_MONTH)


def aging_bucket(months: int) -> str:
    for label, _lo, hi in AGING_BUCKETS:
        if months < hi:
            return label
    return AGING_BUCKET_LABELS[-1]


def aging_cell_highlight(priority: str, bucket: str) -> str | None:
    """Return "healthy" or "overdue" for a matrix cell, or None if unrated.

    Higher priorities tolerate less age: Critical is healthy only in the
    first month, High up to two months, Normal up to four, Low up to six.
    """
    healthy = AGING_HEALTHY_BUCKETS.get(priority)
    if healthy is None:
        return None
    return "healthy" if bucket in healthy else "overdue"


def calculate_aging_matrix(
    records: Sequence[Record],
    sub_system: str | None = None,
    today: date | None = None,
) -> list[AgingRow]:
    """Build the aging-vs-priority matrix for open bugs.

    Args:
        records: Records to bucket; closed bugs are ignored.
        sub_system: Restrict to this Sub-System/Module.  None or "All"
            applies no restriction.
        today: The date ages are measured to.  Defaults to today.

    Returns:
        One AgingRow per priority in ``AGING_PRIORITIES`` followed by a
        "Total" row.  Bugs without a usable Created date are left out of
        every bucket and every total.
    """
    today = today or date.today()
    open_bugs = get_open_bugs_only(records)
    if sub_system and sub_system != ALL_VALUE:
        open_bugs = [r for r in open_bugs if field_value(r, SUB_SYSTEM_FIELD) == sub_system]

    index = {label: i for i, label in enumerate(AGING_BUCKET_LABELS)}
    counts = {p: [0] * len(AGING_BUCKETS) for p in AGING_PRIORITIES}
    for r in open_bugs:
        priority = field_value(r, PRIORITY_FIELD)
        if priority not in counts:
            continue
        created = parse_date(field_value(r, CREATED_FIELD), today)
        if created is None:
            continue
        counts[priority][index[aging_bucket(age_in_months(created, today))]] += 1

    rows = [
        AgingRow(
            priority=p,
            buckets=tuple(counts[p]),
            total=sum(counts[p]),
            highlights=tuple(aging_cell_highlight(p, b) for b in AGING_BUCKET_LABELS),
        )
        for p in AGING_PRIORITIES
    ]
    column_totals = tuple(sum(col) for col in zip(*(row.buckets for row in rows)))
    rows.append(
        AgingRow(
            priority=TOTAL_LABEL,
            buckets=column_totals,
            total=sum(row.total for row in rows),
            highlights=(None,) * len(AGING_BUCKETS),
        )
    )
    return rows


# ---------------------------------------------------------------------------
# Dashboard payload
# ---------------------------------------------------------------------------
def run_aggregation(
    name: str,
    func: Callable[..., Any],
    default: Any,
    *args: Any,
    **kwargs: Any,
) -> AggregationResult:
    """Run one aggregation, degrading to *default* instead of raising.

    Args:
        name: Aggregation name used in the log message.
        func: The aggregation callable.
        default: Value to return when *func* raises.

    Returns:
        AggregationResult holding the computed value, or *default* together
        with the error text.
    """
    try:
        return AggregationResult(func(*args, **kwargs))
    except Exception as exc:
        logger.exception("Aggregation %s failed; showing an empty result", name)
        return AggregationResult(default, error=f"{type(exc).__name__}: {exc}")


def _chart_json(data: list[ChartDatum]) -> list[dict]:
    return [asdict(d) for d in data]


def build_dashboard_payload(
    records: Sequence[Record],
    criteria: FilterCriteria | None = None,
    tab: str = "all",
    aging_sub_system: str | None = None,
    config: DashboardConfig | None = None,
    today: date | None = None,
) -> dict[str, Any]:
    """One-call entry point: filter records and compute everything the dashboard shows.

    Args:
        records: All parsed records.
        criteria: Drop-down filter selections.
        tab: "all" for every bug, "customer" for bugs naming a customer.
        aging_sub_system: Sub-System/Module restriction for the aging matrix.
        config: Dashboard tunables.  Defaults to ``DashboardConfig()``.
        today: Reference date for ages and date windows.

    Returns:
        JSON-serialisable dict with keys: generated_at, record_count,
        filtered_count, tab, filters, cutoff_date, filter_options,
        tab_counts, metrics, charts, aging, errors.  ``errors`` maps the
        name of every aggregation that failed to its error text.
    """
    config = config or DashboardConfig()
    criteria = criteria or FilterCriteria()

    filtered = filter_data(records, criteria)
    if tab == "customer":
        filtered = customer_bugs_only(filtered)

    results = {
        "metrics": run_aggregation(
            "metrics", calculate_metrics, DashboardMetrics(), filtered, config.cutoff_date, today
        ),
        "status": run_aggregation("status", get_status_distribution, [], filtered, config),
        "priority": run_aggregation("priority", get_priority_distribution, [], filtered, config),
        "owner_team": run_aggregation("owner_team", get_owner_team_distribution, [], filtered, config),
        "bug_classification": run_aggregation(
            "bug_classification", get_bug_classification_distribution, [], filtered, config
        ),
        "sub_system": run_aggregation("sub_system", get_sub_system_distribution, [], filtered, config),
        "cumulative_trend": run_aggregation(
            "cumulative_trend", get_cumulative_open_bug_trend, [], filtered, config.trend_window, today
        ),
        "monthly_trend": run_aggregation(
            "monthly_trend", get_monthly_trend, [], filtered, config.trend_window, today
        ),
        "aging": run_aggregation(
            "aging", calculate_aging_matrix, [], filtered, aging_sub_system, today
        ),
        "filter_options": run_aggregation(
            "filter_options", get_filter_options, {key: [] for key, _ in _FILTER_COLUMNS}, records
        ),
        "tab_counts": run_aggregation(
            "tab_counts", compute_tab_counts, {"all_open_bugs": 0, "customer_open_bugs": 0}, records
        ),
    }

    chart_keys = ("status", "priority", "owner_team", "bug_classification",
                  "sub_system", "cumulative_trend", "monthly_trend")

    return {
        "generated_at": datetime.now().isoformat(),
        "record_count": len(records),
        "filtered_count": len(filtered),
        "tab": tab,
        "filters": {k: v for k, v in asdict(criteria).items() if v and v != ALL_VALUE},
        "cutoff_date": config.cutoff_date.isoformat(),
        "filter_options": results["filter_options"].value,
        "tab_counts": results["tab_counts"].value,
        "metrics": asdict(results["metrics"].value),
        "charts": {k: _chart_json(results[k].value) for k in chart_keys},
        "aging": {
            "sub_system": aging_sub_system if aging_sub_system and aging_sub_system != ALL_VALUE else None,
            "buckets": list(AGING_BUCKET_LABELS),
            "rows": [row.as_dict() for row in results["aging"].value],
        },
        "errors": {k: r.error for k, r in results.items() if not r.ok},
    }


# ---------------------------------------------------------------------------
# CLI helpers (used by bug_summary.py)
# ---------------------------------------------------------------------------
CHART_FILES = {
    "status": "status_distribution.csv",
    "priority": "priority_distribution.csv",
    "owner_team": "owner_team_distribution.csv",
    "bug_classification": "bug_classification_distribution.csv",
    "sub_system": "sub_system_distribution.csv",
    "cumulative_trend": "cumulative_trend.csv",
    "monthly_trend": "monthly_trend.csv",
}


def save_analytics_files(payload: dict[str, Any], output_dir: str = "bug_analytics") -> None:
    """Write JSON/CSV analytics files to output_dir.

    Creates the output directory if it doesn't exist and writes:
    dashboard.json, metrics.json, one CSV per chart (see ``CHART_FILES``)
    and aging_matrix.csv.

    Args:
        payload: Dict returned by ``build_dashboard_payload``.
        output_dir: Directory path for output files.
    """
    os.makedirs(output_dir, exist_ok=True)

    with open(f"{output_dir}/dashboard.json", "w") as f:
        json.dump(payload, f, indent=2)

    with open(f"{output_dir}/metrics.json", "w") as f:
        json.dump(payload["metrics"], f, indent=2)

    for key, filename in CHART_FILES.items():
        with open(f"{output_dir}/{filename}", "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=["name", "value", "color"])
            writer.writeheader()
            writer.writerows(payload["charts"][key])

    with open(f"{output_dir}/aging_matrix.csv", "w", newline="") as f:
        writer = csv.DictWriter(
            f,
            fieldnames=["priority", *AGING_BUCKET_LABELS, TOTAL_LABEL],
            extrasaction="ignore",
        )
        writer.writeheader()
        writer.writerows(payload["aging"]["rows"])


def print_summary_report(payload: dict[str, Any], output_dir: str = "bug_analytics") -> None:
    """Print the CLI summary report to stdout.

    Args:
        payload: Dict returned by ``build_dashboard_payload``.
        output_dir: Directory the analytics files were written to.
    """
    metrics = payload["metrics"]
    print(f"\n{'=' * 60}")
    print("Bug Analytics Summary")
    print(f"{'=' * 60}")
    print(f"Records: {payload['record_count']:,} ({payload['filtered_count']:,} after filters)")
    print(f"Open Bugs: {metrics['open_bugs']:,}")
    print(f"Incoming since {payload['cutoff_date']}: {metrics['incoming_bugs']:,}")
    print(f"Outgoing since {payload['cutoff_date']}: {metrics['outgoing_bugs']:,}")
    print(f"High Priority Open: {metrics['high_priority_bugs']:,}")

    for key, title in (("status", "Status"), ("priority", "Priority"), ("owner_team", "Owner Teams")):
        entries = payload["charts"][key]
        if entries:
            print(f"\n{title}:")
            for entry in entries:
                print(f"  {entry['name']}: {entry['value']:,}")

    rows = payload["aging"]["rows"]
    if rows:
        print(f"\n{'=' * 60}")
        print("Aging vs Priority")
        print(f"{'=' * 60}")
        header = "".join(f"{label:>12}" for label in (*AGING_BUCKET_LABELS, TOTAL_LABEL))
        print(f"{'Priority':<10}{header}")
        print(f"{'-' * (10 + 12 * (len(AGING_BUCKET_LABELS) + 1))}")
        for row in rows:
            cells = "".join(f"{row[label]:>12}" for label in (*AGING_BUCKET_LABELS, TOTAL_LABEL))
            print(f"{row['priority']:<10}{cells}")

    if payload["errors"]:
        print("\nSome sections could not be computed:")
        for name, error in payload["errors"].items():
            print(f"  {name}: {error}")

    print(f"{'=' * 60}")
    print(f"\nAnalytics data has been saved to the '{output_dir}' directory:")
    print("1. dashboard.json - Full dashboard payload")
    print("2. metrics.json - Headline counters")
    print("3. *_distribution.csv, *_trend.csv - Chart series")
    print("4. aging_matrix.csv - Aging vs priority matrix")
