"""Demo-only tools: seed and clear synthetic records for the demo subject.

Registered only when ``ENABLE_DEMO_TOOLS`` is set, and hard-wired to the
configured demo subject so they can never touch anyone else's data.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from healthcoach.core.errors import HealthCoachError, ValidationError
from healthcoach.domains.health.domain_logic.seed import generate_demo_records
from healthcoach.domains.health.tools.responses import error_response, ok_response

if TYPE_CHECKING:
    from healthcoach.core.storage.repository import HealthRepository

logger = logging.getLogger(__name__)

MAX_SEED_DAYS = 90
MAX_SEED_PER_DAY = 24


def register_demo_tools(
    mcp: FastMCP,
    repository: HealthRepository,
    demo_subject_id: str,
) -> None:
    """Register demo data tools bound to ``demo_subject_id``."""

    @mcp.tool
    async def seed_demo_records(ctx: Context, days: int = 14, per_day: int = 5) -> str:
        """Generate synthetic blood pressure readings for the demo subject.

        Args:
            days: Number of past days to fill (default 14, max 90).
            per_day: Readings per day (default 5, max 24).
        """
        try:
            if not 1 <= days <= MAX_SEED_DAYS:
                raise ValidationError(f"days must be between 1 and {MAX_SEED_DAYS}")
            if not 1 <= per_day <= MAX_SEED_PER_DAY:
                raise ValidationError(f"per_day must be between 1 and {MAX_SEED_PER_DAY}")
            repository.ensure_subject(demo_subject_id, "Demo subject")
            created = repository.add_records(
                generate_demo_records(demo_subject_id, days=days, per_day=per_day)
            )
        except HealthCoachError as exc:
            return error_response(exc)
        logger.info("Seeded %d demo records", created)
        return ok_response({"subject_id": demo_subject_id, "created_count": created}, status="seeded")

    @mcp.tool
    async def clear_demo_records(ctx: Context) -> str:
        """Delete every record of the demo subject."""
        try:
            deleted = repository.delete_records_for_subject(demo_subject_id)
        except HealthCoachError as exc:
            return error_response(exc)
        return ok_response({"subject_id": demo_subject_id, "deleted": deleted}, status="cleared")
