"""MCP tools for windowed blood pressure and blood sugar statistics.

Window lengths accept numbers or numeric strings; anything unusable falls
back to the tool's default window.
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


def register_stats_tools(mcp: FastMCP, service: HealthCoachService) -> None:
    """Register statistics tools on the MCP server."""

    @mcp.tool
    async def summary_stats(
        ctx: Context,
        subject_id: str,
        window_days: float | str | None = None,
    ) -> str:
        """Count and average blood pressure and blood sugar over the last N days.

        Args:
            subject_id: Whose records to summarise.
            window_days: Look-back window in days (default 7, max 365).
        """
        try:
            report = service.compute_summary_stats(subject_id, window_days)
        except HealthCoachError as exc:
            return error_response(exc)
        return ok_response(report.to_dict())

    @mcp.tool
    async def state_stats(
        ctx: Context,
        subject_id: str,
        window_days: float | str | None = None,
    ) -> str:
        """Blood pressure averages per measurement state (morning, rest, stress, ...).

        Readings without a state are grouped under 'unknown'.

        Args:
            subject_id: Whose records to summarise.
            window_days: Look-back window in days (default 14, max 365).
        """
        try:
            report = service.compute_state_stats(subject_id, window_days)
        except HealthCoachError as exc:
            return error_response(exc)
        return ok_response(report.to_dict())

    @mcp.tool
    async def lifestyle_stats(
        ctx: Context,
        subject_id: str,
        window_days: float | str | None = None,
    ) -> str:
        """Blood pressure averages grouped by sleep, exercise and stress level.

        Args:
            subject_id: Whose records to summarise.
            window_days: Look-back window in days (default 30, longer windows are cut to 90).
        """
        try:
            report = service.compute_lifestyle_stats(subject_id, window_days)
        except HealthCoachError as exc:
            return error_response(exc)
        return ok_response(report.to_dict())

    @mcp.tool
    async def state_insight(
        ctx: Context,
        subject_id: str,
        window_days: float | str | None = None,
    ) -> str:
        """Plain-language tips on how each measurement state compares with the overall average.

        Rule based: no text generation is involved.

        Args:
            subject_id: Whose records to analyse.
            window_days: Look-back window in days (default 14, max 365).
        """
        try:
            insight = service.build_state_insight(subject_id, window_days)
        except HealthCoachError as exc:
            return error_response(exc)
        return ok_response(insight.to_dict())
