"""MCP tools for subjects and their target blood pressure."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from healthcoach.core.errors import HealthCoachError
from healthcoach.domains.health.domain_logic.records import build_target_profile
from healthcoach.domains.health.tools.responses import error_response, ok_response

if TYPE_CHECKING:
    from healthcoach.core.storage.repository import HealthRepository

logger = logging.getLogger(__name__)


def register_account_tools(mcp: FastMCP, repository: HealthRepository) -> None:
    """Register subject and target profile tools on the MCP server."""

    @mcp.tool
    async def create_subject(ctx: Context, subject_id: str, display_name: str = "") -> str:
        """Register a new subject that records and coaching belong to.

        Args:
            subject_id: Unique identifier chosen by the caller.
            display_name: Optional human-readable name.
        """
        try:
            subject = repository.create_subject(subject_id, display_name)
        except HealthCoachError as exc:
            return error_response(exc)
        return ok_response(
            {"subject_id": subject.id, "display_name": subject.display_name, "created_at": subject.created_at},
            status="created",
        )

    @mcp.tool
    async def delete_subject(ctx: Context, subject_id: str) -> str:
        """Delete a subject together with all of its records, target and coaching history.

        This cannot be undone.

        Args:
            subject_id: The subject to delete.
        """
        try:
            removed = repository.delete_subject(subject_id)
        except HealthCoachError as exc:
            return error_response(exc)
        return ok_response({"subject_id": subject_id, "removed": removed}, status="deleted")

    @mcp.tool
    async def get_target_profile(ctx: Context, subject_id: str) -> str:
        """Show the subject's target blood pressure, if one has been set.

        Args:
            subject_id: Whose target to show.
        """
        try:
            repository.require_subject(subject_id)
            profile = repository.get_target_profile(subject_id)
        except HealthCoachError as exc:
            return error_response(exc)
        return ok_response({"profile": profile.to_dict() if profile else None})

    @mcp.tool
    async def save_target_profile(
        ctx: Context,
        subject_id: str,
        target_primary: float,
        target_secondary: float,
    ) -> str:
        """Set or replace the subject's target blood pressure.

        Args:
            subject_id: Whose target to set.
            target_primary: Target systolic pressure (mmHg).
            target_secondary: Target diastolic pressure (mmHg).
        """
        try:
            profile = repository.upsert_target_profile(
                build_target_profile(subject_id, target_primary, target_secondary)
            )
        except HealthCoachError as exc:
            return error_response(exc)
        return ok_response({"profile": profile.to_dict()}, status="saved")
