"""Data models for the health coach persistence layer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

RecordKind = Literal["blood_pressure", "blood_sugar"]
RECORD_KINDS: tuple[str, ...] = ("blood_pressure", "blood_sugar")

CoachLogKind = Literal["coach", "lifestyle"]


@dataclass
class Subject:
    """An identity that owns records, a target profile and coach logs."""

    id: str
    display_name: str = ""
    created_at: str = ""


@dataclass
class HealthRecord:
    """One measurement event.

    ``primary_value`` is systolic pressure or glucose depending on ``kind``;
    ``secondary_value`` is the diastolic pressure and is only meaningful for
    blood pressure. Lifestyle covariates are explicit optionals: ``None``
    means "not recorded" and is never folded into a group.
    """

    id: str
    subject_id: str
    recorded_at: datetime  # timezone-aware, UTC
    kind: RecordKind
    primary_value: float
    secondary_value: float | None = None
    pulse: float | None = None
    state_label: str | None = None
    memo: str | None = None  # encrypted at rest
    sleep_hours: float | None = None
    did_exercise: bool | None = None
    stress_level: int | None = None
    created_at: str = ""

    def to_dict(self) -> dict:
        """Return a JSON-friendly dict (timestamps as ISO 8601)."""
        return {
            "id": self.id,
            "subject_id": self.subject_id,
            "recorded_at": self.recorded_at.isoformat(),
            "kind": self.kind,
            "primary_value": self.primary_value,
            "secondary_value": self.secondary_value,
            "pulse": self.pulse,
            "state_label": self.state_label,
            "memo": self.memo,
            "sleep_hours": self.sleep_hours,
            "did_exercise": self.did_exercise,
            "stress_level": self.stress_level,
            "created_at": self.created_at,
        }


@dataclass
class TargetProfile:
    """Per-subject goal values. At most one per subject."""

    subject_id: str
    target_primary: float
    target_secondary: float
    updated_at: str = ""

    def to_dict(self) -> dict:
        return {
            "subject_id": self.subject_id,
            "target_primary": self.target_primary,
            "target_secondary": self.target_secondary,
            "updated_at": self.updated_at,
        }


@dataclass
class CoachLog:
    """Write-once audit record of a generated narrative."""

    subject_id: str
    kind: CoachLogKind
    window_days: int
    generated_text: str
    source: str = ""  # 'bp_summary' | 'lifestyle_stats'
    user_note: str | None = None  # encrypted at rest
    id: str = ""
    created_at: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "subject_id": self.subject_id,
            "kind": self.kind,
            "window_days": self.window_days,
            "user_note": self.user_note,
            "source": self.source,
            "generated_text": self.generated_text,
            "created_at": self.created_at,
        }
