"""Arithmetic-mean aggregation over groups of health records."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from healthcoach.core.storage.models import HealthRecord


def average(values: Sequence[float]) -> float | None:
    """Arithmetic mean, or ``None`` for an empty sequence."""
    if not values:
        return None
    return sum(values) / len(values)


@dataclass(frozen=True)
class GroupStats:
    """Count and per-metric means of one group of records.

    An average is ``None`` exactly when no value of that metric was present.
    """

    count: int
    avg_primary: float | None
    avg_secondary: float | None

    @classmethod
    def empty(cls) -> GroupStats:
        return cls(count=0, avg_primary=None, avg_secondary=None)

    @property
    def has_averages(self) -> bool:
        return self.count > 0 and self.avg_primary is not None

    def as_dict(self) -> dict[str, float | int | None]:
        return {
            "count": self.count,
            "avg_primary": self.avg_primary,
            "avg_secondary": self.avg_secondary,
        }


def compute_stats(records: Iterable[HealthRecord]) -> GroupStats:
    """Aggregate a group.

    Records without a secondary value are left out of that mean's
    denominator rather than counted as zero.
    """
    group = list(records)
    if not group:
        return GroupStats.empty()
    return GroupStats(
        count=len(group),
        avg_primary=average([r.primary_value for r in group]),
        avg_secondary=average(
            [r.secondary_value for r in group if r.secondary_value is not None]
        ),
    )
