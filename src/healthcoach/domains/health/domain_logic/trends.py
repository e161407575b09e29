"""Deviation detection: flag groups whose mean departs from the overall mean."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal

from healthcoach.domains.health.domain_logic.aggregator import GroupStats

DEFAULT_MIN_COUNT = 3
DEFAULT_MIN_DELTA = 5.0
STRESS_MIN_DELTA = 3.0
STRESS_STATE = "stress"


@dataclass(frozen=True)
class TrendSignal:
    """A threshold-gated deviation of one group from the overall mean."""

    label: str
    direction: Literal["higher", "lower"]
    magnitude: int  # rounded absolute delta
    delta: float

    def as_dict(self) -> dict[str, object]:
        return {
            "label": self.label,
            "direction": self.direction,
            "magnitude": self.magnitude,
            "delta": self.delta,
        }


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def detect_deviation(
    group: GroupStats,
    overall_avg_primary: float | None,
    *,
    label: str,
    min_count: int = DEFAULT_MIN_COUNT,
    min_delta_abs: float = DEFAULT_MIN_DELTA,
) -> TrendSignal | None:
    """Compare a group's primary mean against the overall mean.

    Returns ``None`` (not an error) when the group is smaller than
    ``min_count``, when either mean is missing, or when the absolute
    difference is below ``min_delta_abs``.
    """
    if group.count < min_count:
        return None
    if group.avg_primary is None or overall_avg_primary is None:
        return None

    delta = group.avg_primary - overall_avg_primary
    if abs(delta) < min_delta_abs:
        return None
    return TrendSignal(
        label=label,
        direction="higher" if delta > 0 else "lower",
        magnitude=_round_half_up(abs(delta)),
        delta=delta,
    )


def detect_state_deviations(
    state_groups: dict[str, GroupStats],
    overall_avg_primary: float | None,
    *,
    min_count: int = DEFAULT_MIN_COUNT,
    min_delta_abs: float = DEFAULT_MIN_DELTA,
) -> list[TrendSignal]:
    """Run :func:`detect_deviation` over every state group, in key order."""
    signals = []
    for state, stats in state_groups.items():
        signal = detect_deviation(
            stats,
            overall_avg_primary,
            label=state,
            min_count=min_count,
            min_delta_abs=min_delta_abs,
        )
        if signal is not None:
            signals.append(signal)
    return signals


def detect_stress_deviation(
    state_groups: dict[str, GroupStats],
    overall_avg_primary: float | None,
    *,
    min_count: int = DEFAULT_MIN_COUNT,
    min_delta_abs: float = STRESS_MIN_DELTA,
) -> TrendSignal | None:
    """The stricter comparison for readings explicitly labelled as stressful."""
    stats = state_groups.get(STRESS_STATE)
    if stats is None:
        return None
    return detect_deviation(
        stats,
        overall_avg_primary,
        label=STRESS_STATE,
        min_count=min_count,
        min_delta_abs=min_delta_abs,
    )
