"""Tests for sleep, exercise, stress and state groupings."""

from __future__ import annotations

from datetime import datetime, timezone

from healthcoach.core.storage.models import HealthRecord
from healthcoach.domains.health.domain_logic.grouping import (
    UNKNOWN_STATE,
    group_by_exercise,
    group_by_sleep,
    group_by_state,
    group_by_stress,
    lifestyle_groups,
)


def _bp(primary: float = 120.0, secondary: float = 80.0, **covariates) -> HealthRecord:
    return HealthRecord(
        id="",
        subject_id="alice",
        recorded_at=datetime(2026, 3, 14, tzinfo=timezone.utc),
        kind="blood_pressure",
        primary_value=primary,
        secondary_value=secondary,
        **covariates,
    )


class TestSleep:
    def test_missing_sleep_lands_in_no_group(self):
        records = [_bp(135.0, sleep_hours=5.0) for _ in range(3)] + [_bp(110.0) for _ in range(2)]
        groups = group_by_sleep(records)
        assert groups["short"].count == 3
        assert groups["short"].avg_primary == 135.0
        assert groups["enough"].count == 0
        assert groups["enough"].avg_primary is None

    def test_six_hours_is_enough(self):
        groups = group_by_sleep([_bp(sleep_hours=6.0), _bp(sleep_hours=5.9)])
        assert groups["enough"].count == 1
        assert groups["short"].count == 1

    def test_partition_counts_sum_to_present_values(self):
        records = [_bp(sleep_hours=h) for h in (4.0, 5.5, 6.0, 7.5, 9.0)] + [_bp()]
        groups = group_by_sleep(records)
        assert sum(g.count for g in groups.values()) == 5


class TestExercise:
    def test_tri_state(self):
        records = [_bp(did_exercise=True), _bp(did_exercise=False), _bp(did_exercise=None)]
        groups = group_by_exercise(records)
        assert groups["yes"].count == 1
        assert groups["no"].count == 1
        assert sum(g.count for g in groups.values()) == 2


class TestStress:
    def test_tiers(self):
        records = [_bp(stress_level=level) for level in (1, 2, 3, 4, 5)]
        groups = group_by_stress(records)
        assert [groups[k].count for k in ("low", "mid", "high")] == [2, 1, 2]

    def test_out_of_range_and_missing_excluded(self):
        records = [_bp(stress_level=0), _bp(stress_level=6), _bp(), _bp(stress_level=3)]
        groups = group_by_stress(records)
        assert sum(g.count for g in groups.values()) == 1


class TestState:
    def test_unlabeled_records_are_unknown_and_keys_sorted(self):
        records = [
            _bp(state_label="rest"),
            _bp(),
            _bp(state_label="after_meal"),
            _bp(state_label="  "),
            _bp(state_label="rest"),
        ]
        groups = group_by_state(records)
        assert list(groups) == ["after_meal", "rest", UNKNOWN_STATE]
        assert groups["rest"].count == 2
        assert groups[UNKNOWN_STATE].count == 2

    def test_every_record_is_counted_once(self):
        records = [_bp(state_label=s) for s in ("morning", "stress", None, "morning")]
        assert sum(g.count for g in group_by_state(records).values()) == 4


class TestLifestyleGroups:
    def test_fixed_order(self):
        groups = lifestyle_groups([_bp(sleep_hours=7.0, did_exercise=True, stress_level=2)])
        assert list(groups) == ["sleep", "exercise", "stress"]
        assert list(groups["sleep"]) == ["short", "enough"]
        assert list(groups["exercise"]) == ["yes", "no"]
        assert list(groups["stress"]) == ["low", "mid", "high"]
        assert groups["stress"]["low"].count == 1
