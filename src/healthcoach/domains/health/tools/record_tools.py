"""MCP tools for blood pressure and blood sugar records.

Records are owned by a subject; every tool takes the ``subject_id`` whose
records it reads or writes. Memos are encrypted at rest by the repository.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from healthcoach.core.errors import HealthCoachError, ValidationError
from healthcoach.domains.health.domain_logic.records import build_record, parse_timestamp
from healthcoach.domains.health.tools.responses import error_response, ok_response

if TYPE_CHECKING:
    from healthcoach.core.storage.repository import HealthRepository

logger = logging.getLogger(__name__)

MAX_LIST_LIMIT = 500


def register_record_tools(mcp: FastMCP, repository: HealthRepository) -> None:
    """Register record CRUD tools on the MCP server."""

    @mcp.tool
    async def add_health_record(
        ctx: Context,
        subject_id: str,
        kind: str,
        primary_value: float,
        secondary_value: float | None = None,
        recorded_at: str | None = None,
        pulse: float | None = None,
        state_label: str | None = None,
        memo: str | None = None,
        sleep_hours: float | None = None,
        did_exercise: bool | None = None,
        stress_level: int | None = None,
    ) -> str:
        """Record one blood pressure or blood sugar measurement.

        Args:
            subject_id: Owner of the record.
            kind: 'blood_pressure' or 'blood_sugar'.
            primary_value: Systolic pressure (mmHg) or glucose (mg/dL).
            secondary_value: Diastolic pressure. Required for blood pressure, not allowed for blood sugar.
            recorded_at: Measurement time (ISO 8601). Defaults to now.
            pulse: Pulse in BPM.
            state_label: Measurement state (e.g. 'morning', 'after_meal', 'rest', 'stress', 'exercise').
            memo: Free-text note (stored encrypted).
            sleep_hours: Hours slept the night before.
            did_exercise: Whether the subject exercised that day.
            stress_level: Self-rated stress from 1 (low) to 5 (high).
        """
        try:
            record = build_record(
                subject_id,
                kind=kind,
                primary_value=primary_value,
                secondary_value=secondary_value,
                recorded_at=recorded_at,
                pulse=pulse,
                state_label=state_label,
                memo=memo,
                sleep_hours=sleep_hours,
                did_exercise=did_exercise,
                stress_level=stress_level,
            )
            stored = repository.add_record(record)
        except HealthCoachError as exc:
            return error_response(exc)
        return ok_response({"record": stored.to_dict()}, status="saved")

    @mcp.tool
    async def get_health_record(ctx: Context, subject_id: str, record_id: str) -> str:
        """Fetch a single record by id.

        Args:
            subject_id: Owner of the record.
            record_id: The record's UUID.
        """
        try:
            record = repository.get_record(subject_id, record_id)
        except HealthCoachError as exc:
            return error_response(exc)
        return ok_response({"record": record.to_dict()})

    @mcp.tool
    async def list_health_records(
        ctx: Context,
        subject_id: str,
        kind: str | None = None,
        since: str | None = None,
        until: str | None = None,
        limit: int = 100,
    ) -> str:
        """List a subject's records, newest first.

        Args:
            subject_id: Owner of the records.
            kind: Optional 'blood_pressure' / 'blood_sugar' filter.
            since: Optional inclusive lower bound (ISO 8601).
            until: Optional inclusive upper bound (ISO 8601).
            limit: Maximum records to return (default 100, max 500).
        """
        try:
            repository.require_subject(subject_id)
            if limit < 1:
                raise ValidationError("limit must be at least 1")
            records = repository.query_records(
                subject_id,
                kind=kind or None,
                since=parse_timestamp(since) if since else None,
                until=parse_timestamp(until) if until else None,
                order="desc",
                limit=min(limit, MAX_LIST_LIMIT),
            )
        except HealthCoachError as exc:
            return error_response(exc)
        return ok_response({
            "count": len(records),
            "records": [r.to_dict() for r in records],
        })

    @mcp.tool
    async def update_health_record(
        ctx: Context,
        subject_id: str,
        record_id: str,
        kind: str,
        primary_value: float,
        secondary_value: float | None = None,
        recorded_at: str | None = None,
        pulse: float | None = None,
        state_label: str | None = None,
        memo: str | None = None,
        sleep_hours: float | None = None,
        did_exercise: bool | None = None,
        stress_level: int | None = None,
    ) -> str:
        """Replace every field of an existing record.

        Fields left out are cleared, except ``recorded_at`` which keeps its
        stored value when omitted.

        Args:
            subject_id: Owner of the record.
            record_id: The record to replace.
            kind: 'blood_pressure' or 'blood_sugar'.
            primary_value: Systolic pressure (mmHg) or glucose (mg/dL).
            secondary_value: Diastolic pressure (blood pressure only).
            recorded_at: Measurement time (ISO 8601).
            pulse: Pulse in BPM.
            state_label: Measurement state.
            memo: Free-text note (stored encrypted).
            sleep_hours: Hours slept the night before.
            did_exercise: Whether the subject exercised that day.
            stress_level: Self-rated stress from 1 to 5.
        """
        try:
            existing = repository.get_record(subject_id, record_id)
            record = build_record(
                subject_id,
                kind=kind,
                primary_value=primary_value,
                secondary_value=secondary_value,
                recorded_at=recorded_at or existing.recorded_at,
                pulse=pulse,
                state_label=state_label,
                memo=memo,
                sleep_hours=sleep_hours,
                did_exercise=did_exercise,
                stress_level=stress_level,
                record_id=record_id,
            )
            stored = repository.replace_record(record)
        except HealthCoachError as exc:
            return error_response(exc)
        return ok_response({"record": stored.to_dict()}, status="updated")

    @mcp.tool
    async def delete_health_record(ctx: Context, subject_id: str, record_id: str) -> str:
        """Permanently delete one record.

        Args:
            subject_id: Owner of the record.
            record_id: The record to delete.
        """
        try:
            repository.delete_record(subject_id, record_id)
        except HealthCoachError as exc:
            return error_response(exc)
        return ok_response({"record_id": record_id}, status="deleted")
