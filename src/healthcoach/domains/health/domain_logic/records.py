"""Input checks for record and target-profile writes.

Only type checks: a value is accepted when it has the right shape, with no
plausibility ranges beyond what the grouping tiers need (sleep > 0, stress
1 to 5). Booleans are rejected wherever a number is expected.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any

from healthcoach.core.errors import ValidationError
from healthcoach.core.storage.models import RECORD_KINDS, HealthRecord, TargetProfile


def _number(name: str, value: Any, *, required: bool = False) -> float | None:
    if value is None:
        if required:
            raise ValidationError(f"{name} is required")
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number, got {type(value).__name__}")
    if not math.isfinite(value):
        raise ValidationError(f"{name} must be a finite number")
    return float(value)


def _text(name: str, value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be a string")
    return value.strip() or None


def parse_timestamp(value: Any, *, now: datetime | None = None) -> datetime:
    """Accept a datetime or an ISO 8601 string; ``None`` means "now".

    Naive values are taken as UTC. The result is always UTC-aware.
    """
    if value is None:
        return now or datetime.now(timezone.utc)
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(f"Invalid timestamp: {value!r}") from None
    else:
        raise ValidationError("recorded_at must be an ISO 8601 string")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def build_record(
    subject_id: str,
    *,
    kind: Any,
    primary_value: Any,
    secondary_value: Any = None,
    recorded_at: Any = None,
    pulse: Any = None,
    state_label: Any = None,
    memo: Any = None,
    sleep_hours: Any = None,
    did_exercise: Any = None,
    stress_level: Any = None,
    record_id: str = "",
    now: datetime | None = None,
) -> HealthRecord:
    """Validate raw input and build a :class:`HealthRecord`.

    Raises:
        ValidationError: On the first malformed field.
    """
    if kind not in RECORD_KINDS:
        raise ValidationError(f"kind must be one of {', '.join(RECORD_KINDS)}")

    primary = _number("primary_value", primary_value, required=True)
    if kind == "blood_pressure":
        secondary = _number("secondary_value", secondary_value, required=True)
    else:
        if secondary_value is not None:
            raise ValidationError("secondary_value is only allowed for blood_pressure records")
        secondary = None

    sleep = _number("sleep_hours", sleep_hours)
    if sleep is not None and sleep <= 0:
        raise ValidationError("sleep_hours must be greater than 0")

    if did_exercise is not None and not isinstance(did_exercise, bool):
        raise ValidationError("did_exercise must be true, false or null")

    stress: int | None = None
    if stress_level is not None:
        if isinstance(stress_level, bool) or not isinstance(stress_level, int):
            raise ValidationError("stress_level must be an integer from 1 to 5")
        if not 1 <= stress_level <= 5:
            raise ValidationError("stress_level must be between 1 and 5")
        stress = stress_level

    return HealthRecord(
        id=record_id,
        subject_id=subject_id,
        recorded_at=parse_timestamp(recorded_at, now=now),
        kind=kind,
        primary_value=primary,
        secondary_value=secondary,
        pulse=_number("pulse", pulse),
        state_label=_text("state_label", state_label),
        memo=_text("memo", memo),
        sleep_hours=sleep,
        did_exercise=did_exercise,
        stress_level=stress,
    )


def build_target_profile(
    subject_id: str, target_primary: Any, target_secondary: Any
) -> TargetProfile:
    """Both target values are required numbers."""
    return TargetProfile(
        subject_id=subject_id,
        target_primary=_number("target_primary", target_primary, required=True),
        target_secondary=_number("target_secondary", target_secondary, required=True),
    )
