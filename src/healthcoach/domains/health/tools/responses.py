"""JSON payload helpers shared by the health coach tools."""

from __future__ import annotations

import json
import logging
from typing import Any

from healthcoach.core.errors import HealthCoachError

logger = logging.getLogger(__name__)


def ok_response(payload: dict[str, Any], status: str = "ok") -> str:
    return json.dumps({"status": status, **payload}, indent=2)


def error_response(exc: HealthCoachError) -> str:
    """Translate a core error into the tool error payload."""
    logger.info("Tool request rejected (%s): %s", exc.error_type, exc)
    return json.dumps({
        "status": "error",
        "error_type": exc.error_type,
        "message": str(exc),
    })
