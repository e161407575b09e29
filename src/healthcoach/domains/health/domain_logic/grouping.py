"""Grouping policy: the named partitions each analysis compares.

Every partition is built by explicit predicates on present values, so a
record whose covariate is ``None`` (or out of range) lands in no group
instead of a default one. Callers pass blood-pressure records only.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence

from healthcoach.core.storage.models import HealthRecord
from healthcoach.domains.health.domain_logic.aggregator import GroupStats, compute_stats

SHORT_SLEEP_HOURS = 6
UNKNOWN_STATE = "unknown"

Predicate = Callable[[HealthRecord], bool]

SLEEP_GROUPS: dict[str, Predicate] = {
    "short": lambda r: r.sleep_hours is not None and r.sleep_hours < SHORT_SLEEP_HOURS,
    "enough": lambda r: r.sleep_hours is not None and r.sleep_hours >= SHORT_SLEEP_HOURS,
}

EXERCISE_GROUPS: dict[str, Predicate] = {
    "yes": lambda r: r.did_exercise is True,
    "no": lambda r: r.did_exercise is False,
}

STRESS_GROUPS: dict[str, Predicate] = {
    "low": lambda r: r.stress_level is not None and 1 <= r.stress_level <= 2,
    "mid": lambda r: r.stress_level is not None and r.stress_level == 3,
    "high": lambda r: r.stress_level is not None and 4 <= r.stress_level <= 5,
}

# Fixed covariate order used by the lifestyle payload and narrative.
LIFESTYLE_POLICIES: dict[str, dict[str, Predicate]] = {
    "sleep": SLEEP_GROUPS,
    "exercise": EXERCISE_GROUPS,
    "stress": STRESS_GROUPS,
}


def partition(
    records: Iterable[HealthRecord], policy: dict[str, Predicate]
) -> dict[str, GroupStats]:
    """Aggregate each named group of ``policy``, keeping the policy's key order."""
    group = list(records)
    return {
        name: compute_stats(r for r in group if matches(r))
        for name, matches in policy.items()
    }


def group_by_sleep(records: Iterable[HealthRecord]) -> dict[str, GroupStats]:
    return partition(records, SLEEP_GROUPS)


def group_by_exercise(records: Iterable[HealthRecord]) -> dict[str, GroupStats]:
    return partition(records, EXERCISE_GROUPS)


def group_by_stress(records: Iterable[HealthRecord]) -> dict[str, GroupStats]:
    return partition(records, STRESS_GROUPS)


def lifestyle_groups(records: Sequence[HealthRecord]) -> dict[str, dict[str, GroupStats]]:
    """Sleep, exercise and stress groupings, in that order."""
    return {name: partition(records, policy) for name, policy in LIFESTYLE_POLICIES.items()}


def group_by_state(records: Iterable[HealthRecord]) -> dict[str, GroupStats]:
    """One group per distinct state label, keys sorted lexicographically.

    Unlabeled records (``None`` or blank) are grouped under ``"unknown"``.
    """
    buckets: dict[str, list[HealthRecord]] = {}
    for record in records:
        key = record.state_label if record.state_label and record.state_label.strip() else UNKNOWN_STATE
        buckets.setdefault(key, []).append(record)
    return {key: compute_stats(buckets[key]) for key in sorted(buckets)}
