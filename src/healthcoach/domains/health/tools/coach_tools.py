"""MCP tools for AI coaching comments and their history.

Each generated comment (or the fallback message when generation fails) is
written to the coach log before it is returned.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from healthcoach.core.errors import HealthCoachError
from healthcoach.domains.health.tools.responses import error_response, ok_response

if TYPE_CHECKING:
    from healthcoach.domains.health.domain_logic.coach_service import HealthCoachService

logger = logging.getLogger(__name__)


def register_coach_tools(mcp: FastMCP, service: HealthCoachService) -> None:
    """Register coaching tools on the MCP server."""

    @mcp.tool
    async def ai_coach(
        ctx: Context,
        subject_id: str,
        window_days: float | str | None = None,
        user_note: str | None = None,
    ) -> str:
        """Get a short coaching comment on recent blood pressure and blood sugar.

        Args:
            subject_id: Whose records to coach on.
            window_days: Look-back window in days (default 7, max 365).
            user_note: Optional note or question for the coach.
        """
        try:
            result = await service.generate_coaching(subject_id, window_days, user_note)
        except HealthCoachError as exc:
            return error_response(exc)
        return ok_response(result.to_dict())

    @mcp.tool
    async def ai_lifestyle_insight(
        ctx: Context,
        subject_id: str,
        window_days: float | str | None = None,
    ) -> str:
        """Get a careful description of how sleep, exercise and stress relate to blood pressure.

        Args:
            subject_id: Whose records to analyse.
            window_days: Look-back window in days (default 30, longer windows are cut to 90).
        """
        try:
            result = await service.generate_lifestyle(subject_id, window_days)
        except HealthCoachError as exc:
            return error_response(exc)
        return ok_response(result.to_dict())

    @mcp.tool
    async def coach_history(
        ctx: Context,
        subject_id: str,
        limit: int | None = None,
        offset: int = 0,
        kind: str | None = None,
    ) -> str:
        """List past coaching comments, newest first.

        Args:
            subject_id: Whose history to show.
            limit: Page size (default 20, max 100).
            offset: Number of newer entries to skip.
            kind: Optional 'coach' / 'lifestyle' filter.
        """
        try:
            entries = service.coach_history(subject_id, limit=limit, offset=offset, kind=kind)
        except HealthCoachError as exc:
            return error_response(exc)
        return ok_response({
            "count": len(entries),
            "entries": [e.to_dict() for e in entries],
        })
