"""Synthetic blood pressure history for the demo subject."""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone

from healthcoach.core.storage.models import HealthRecord

DEMO_STATES = ("morning", "after_meal", "rest", "stress", "exercise")

# (systolic, diastolic) offsets from a 125/80 baseline per measurement state
_STATE_OFFSETS = {
    "stress": (8, 5),
    "exercise": (5, 3),
    "morning": (-3, -2),
}
_BASE_PRIMARY = 125
_BASE_SECONDARY = 80

_MEMOS = (
    "Felt better than yesterday",
    "Slight headache",
    "More coffee than usual",
    "A fairly stressful day",
    "Took a light walk",
    "Ate a lot of salty food",
    "A relatively relaxed day",
    "Measured after working late",
)

# Hour ranges cycled through the readings of one day.
_SLOTS = ((7, 9), (12, 14), (18, 21), (22, 23))


def generate_demo_records(
    subject_id: str,
    *,
    days: int = 14,
    per_day: int = 5,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> list[HealthRecord]:
    """Generate ``days * per_day`` blood pressure readings ending at ``now``.

    Readings carry a measurement state that shifts their baseline, plus
    lifestyle covariates (sleep, exercise, stress) so every grouping has
    something to show. No reading lies in the future.
    """
    rng = rng or random.Random()
    now = now or datetime.now(timezone.utc)
    records = []

    for day in range(days):
        day_start = (now - timedelta(days=day)).replace(hour=0, minute=0, second=0, microsecond=0)
        for i in range(per_day):
            low, high = _SLOTS[i % len(_SLOTS)]
            recorded_at = day_start + timedelta(hours=rng.randint(low, high), minutes=rng.randint(0, 59))
            if recorded_at > now:
                recorded_at = now - timedelta(minutes=per_day - i)

            state = rng.choice(DEMO_STATES)
            d_primary, d_secondary = _STATE_OFFSETS.get(state, (0, 0))
            base_primary = _BASE_PRIMARY + d_primary
            base_secondary = _BASE_SECONDARY + d_secondary

            records.append(
                HealthRecord(
                    id="",
                    subject_id=subject_id,
                    recorded_at=recorded_at,
                    kind="blood_pressure",
                    primary_value=float(rng.randint(base_primary - 5, base_primary + 5)),
                    secondary_value=float(rng.randint(base_secondary - 4, base_secondary + 4)),
                    pulse=float(rng.randint(60, 85)),
                    state_label=state,
                    memo=rng.choice(_MEMOS),
                    sleep_hours=rng.randint(4, 9) + rng.choice((0.0, 0.5)),
                    did_exercise=rng.random() < 0.4,
                    stress_level=rng.randint(1, 5),
                )
            )
    return records
