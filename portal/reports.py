"""
Report summaries for the admin report pages – counts, breakdowns and periods.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from portal.config import REPORT_PERIODS

MAX_CATEGORY_UNIQUE = 10

PERIOD_LENGTHS = {
    "daily": timedelta(days=1),
    "weekly": timedelta(weeks=1),
    "monthly": timedelta(days=30),
    "annually": timedelta(days=365),
}

# Columns that identify people; never broken down in a summary.
IDENTIFYING_COLUMNS = {"_id", "id", "username", "name", "nic", "patientId", "employee_number",
                       "employeeNumber", "password", "email", "phone"}


def parse_period(value: Optional[str]) -> str:
    period = (value or "daily").strip().lower()
    if period not in REPORT_PERIODS:
        raise ValueError(
            f"Unknown report period '{value}'. Use one of: {', '.join(REPORT_PERIODS)}."
        )
    return period


def to_frame(rows: Iterable[Dict[str, Any]]) -> pd.DataFrame:
    """Flatten backend records into a DataFrame (nested dicts become dotted columns)."""
    rows = [r for r in (rows or []) if isinstance(r, dict)]
    if not rows:
        return pd.DataFrame()
    return pd.json_normalize(rows)


def categorical_counts(df: pd.DataFrame) -> Dict[str, Dict[str, int]]:
    """Value counts for every small categorical column."""
    counts: Dict[str, Dict[str, int]] = {}
    if df.empty:
        return counts

    for col in df.columns:
        name = col.split(".")[-1]
        if name in IDENTIFYING_COLUMNS or name.endswith(("_at", "At")) or "date" in name.lower():
            continue
        if df[col].dtype != "object" and not str(df[col].dtype).startswith(("category", "str")):
            continue
        vals = df[col].dropna()
        vals = vals[vals.map(lambda v: isinstance(v, str))]
        n_unique = vals.nunique()
        if 0 < n_unique <= MAX_CATEGORY_UNIQUE:
            counts[col] = {str(k): int(v) for k, v in vals.value_counts().items()}
    return counts


def rows_in_period(df: pd.DataFrame, column: str, period: str,
                   now: Optional[datetime] = None) -> int:
    """Count rows whose *column* timestamp falls inside the reporting period."""
    if df.empty or column not in df.columns:
        return 0
    now = now or datetime.now(timezone.utc)
    stamps = pd.to_datetime(df[column], errors="coerce", utc=True)
    since = pd.Timestamp(now) - PERIOD_LENGTHS[period]
    if since.tzinfo is None:
        since = since.tz_localize("UTC")
    return int((stamps >= since).sum())


def summarize_staff(rows: List[Dict[str, Any]], period: str,
                    now: Optional[datetime] = None) -> Dict[str, Any]:
    df = to_frame(rows)
    if df.empty:
        return {"period": period, "total": 0, "registered_in_period": 0,
                "active_in_period": 0, "breakdown": {}}

    by_position = {}
    if "position" in df.columns:
        positions = df["position"].dropna().astype(str).str.strip().str.capitalize()
        by_position = {k: int(v) for k, v in positions.value_counts().items()}

    breakdown = categorical_counts(df.drop(columns=["position"], errors="ignore"))
    breakdown["position"] = by_position
    return {
        "period": period,
        "total": int(len(df)),
        "registered_in_period": rows_in_period(df, "created_at", period, now),
        "active_in_period": rows_in_period(df, "lastLoginAt", period, now),
        "breakdown": breakdown,
    }


def summarize_patients(rows: List[Dict[str, Any]], period: str,
                       now: Optional[datetime] = None) -> Dict[str, Any]:
    df = to_frame(rows)
    if df.empty:
        return {"period": period, "total": 0, "registered_in_period": 0, "breakdown": {}}

    created_col = "createdAt" if "createdAt" in df.columns else "created_at"
    return {
        "period": period,
        "total": int(len(df)),
        "registered_in_period": rows_in_period(df, created_col, period, now),
        "breakdown": categorical_counts(df),
    }
