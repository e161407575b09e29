"""Tests for window parsing and range selection."""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone

import pytest

from healthcoach.core.storage.models import HealthRecord
from healthcoach.domains.health.domain_logic.window import (
    MAX_WINDOW_DAYS,
    parse_window_days,
    select_window,
    window_bounds,
)

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def _at(recorded_at: datetime, primary: float = 120.0) -> HealthRecord:
    return HealthRecord(
        id="",
        subject_id="alice",
        recorded_at=recorded_at,
        kind="blood_pressure",
        primary_value=primary,
        secondary_value=80.0,
    )


class TestParseWindowDays:
    @pytest.mark.parametrize(
        "raw",
        [None, True, False, "", "abc", "7 days", 0, -3, "-1", 366, 10**400, -(10**400), math.nan, math.inf, [7]],
    )
    def test_unusable_values_fall_back(self, raw):
        assert parse_window_days(raw, 7) == 7

    def test_numbers_and_numeric_strings(self):
        assert parse_window_days(14, 7) == 14
        assert parse_window_days("30", 7) == 30
        assert parse_window_days(" 3 ", 7) == 3
        assert parse_window_days(MAX_WINDOW_DAYS, 7) == MAX_WINDOW_DAYS

    def test_whole_floats_become_int(self):
        days = parse_window_days(7.0, 30)
        assert days == 7
        assert isinstance(days, int)

    def test_fractional_days_are_kept(self):
        assert parse_window_days("1.5", 7) == 1.5

    def test_custom_maximum(self):
        assert parse_window_days(91, 30, max_days=90) == 30
        assert parse_window_days(90, 30, max_days=90) == 90


class TestSelectWindow:
    def test_bounds(self):
        start, end = window_bounds(7, NOW)
        assert end == NOW
        assert start == NOW - timedelta(days=7)

    def test_both_bounds_inclusive(self):
        start = NOW - timedelta(days=7)
        records = [
            _at(start - timedelta(microseconds=1), 100.0),
            _at(start, 110.0),
            _at(NOW - timedelta(days=3), 120.0),
            _at(NOW, 130.0),
            _at(NOW + timedelta(seconds=1), 140.0),
        ]
        window = select_window(records, 7, now=NOW)
        assert [r.primary_value for r in window.records] == [110.0, 120.0, 130.0]
        assert window.start == start
        assert window.end == NOW
        assert window.days == 7

    def test_input_order_is_preserved(self):
        records = [_at(NOW - timedelta(days=1), 1.0), _at(NOW - timedelta(days=5), 2.0)]
        window = select_window(records, 7, now=NOW)
        assert [r.primary_value for r in window.records] == [1.0, 2.0]

    def test_fractional_window(self):
        records = [_at(NOW - timedelta(hours=30)), _at(NOW - timedelta(hours=40))]
        assert len(select_window(records, 1.5, now=NOW).records) == 1

    def test_naive_now_is_utc(self):
        naive = NOW.replace(tzinfo=None)
        window = select_window([_at(NOW - timedelta(days=1))], 7, now=naive)
        assert window.end == NOW
        assert len(window.records) == 1
