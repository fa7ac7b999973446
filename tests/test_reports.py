"""
Unit tests for the admin report summaries.
"""

from datetime import datetime, timezone

import pandas as pd
import pytest

from portal.reports import (
    categorical_counts,
    parse_period,
    rows_in_period,
    summarize_patients,
    summarize_staff,
)

NOW = datetime(2025, 6, 30, 12, 0, tzinfo=timezone.utc)


# ── Tests: parse_period ──────────────────────────────────────────────

def test_parse_period_defaults_to_daily():
    assert parse_period(None) == "daily"
    assert parse_period(" Weekly ") == "weekly"


def test_parse_period_rejects_unknown():
    with pytest.raises(ValueError, match="Unknown report period"):
        parse_period("hourly")


# ── Tests: categorical_counts ────────────────────────────────────────

def test_categorical_counts_empty_df():
    assert categorical_counts(pd.DataFrame()) == {}


def test_categorical_counts_skips_identifying_columns():
    df = pd.DataFrame({
        "username": ["a", "b", "c"],
        "status": ["accepted", "pending", "accepted"],
    })
    counts = categorical_counts(df)
    assert "username" not in counts
    assert counts["status"] == {"accepted": 2, "pending": 1}


# ── Tests: rows_in_period ────────────────────────────────────────────

def test_rows_in_period_counts_recent_rows():
    df = pd.DataFrame({"created_at": [
        "2025-06-30T08:00:00Z",   # same day
        "2025-06-25T08:00:00Z",   # this week
        "2025-01-01T08:00:00Z",   # this year
        "not a date",
    ]})
    assert rows_in_period(df, "created_at", "daily", NOW) == 1
    assert rows_in_period(df, "created_at", "weekly", NOW) == 2
    assert rows_in_period(df, "created_at", "annually", NOW) == 3


def test_rows_in_period_missing_column():
    assert rows_in_period(pd.DataFrame({"x": [1]}), "created_at", "daily", NOW) == 0


# ── Tests: summaries ─────────────────────────────────────────────────

def test_summarize_staff_breaks_down_by_position():
    rows = [
        {"username": "a", "position": "doctor", "status": "accepted",
         "created_at": "2025-06-30T01:00:00Z"},
        {"username": "b", "position": "Doctor", "status": "pending",
         "created_at": "2024-01-01T01:00:00Z"},
        {"username": "c", "position": "Nurse", "status": "accepted",
         "created_at": "2025-06-29T20:00:00Z"},
    ]
    summary = summarize_staff(rows, "daily", NOW)
    assert summary["total"] == 3
    assert summary["registered_in_period"] == 2
    assert summary["breakdown"]["position"] == {"Doctor": 2, "Nurse": 1}
    assert summary["breakdown"]["status"] == {"accepted": 2, "pending": 1}


def test_summarize_staff_no_rows():
    summary = summarize_staff([], "monthly", NOW)
    assert summary == {"period": "monthly", "total": 0, "registered_in_period": 0,
                       "active_in_period": 0, "breakdown": {}}


def test_summarize_patients_flattens_nested_tabs():
    rows = [
        {"patientId": "P1", "tab1": {"name": "A", "gender": "Female"}, "createdAt": "2025-06-30T00:00:00Z"},
        {"patientId": "P2", "tab1": {"name": "B", "gender": "Male"}, "createdAt": "2025-03-01T00:00:00Z"},
    ]
    summary = summarize_patients(rows, "monthly", NOW)
    assert summary["total"] == 2
    assert summary["registered_in_period"] == 1
    assert summary["breakdown"]["tab1.gender"] == {"Female": 1, "Male": 1}
    assert "tab1.name" not in summary["breakdown"]
