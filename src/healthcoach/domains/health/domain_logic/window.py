"""Range selection: resolve a look-back window and filter records into it."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from healthcoach.core.storage.models import HealthRecord

# Call-site defaults for the look-back window, in days.
COACH_WINDOW_DAYS = 7
SUMMARY_WINDOW_DAYS = 7
STATE_WINDOW_DAYS = 14
LIFESTYLE_WINDOW_DAYS = 30
LIFESTYLE_MAX_WINDOW_DAYS = 90
MAX_WINDOW_DAYS = 365


@dataclass
class Window:
    """Records that fall inside ``[start, end]``, in their original order."""

    records: list[HealthRecord]
    start: datetime
    end: datetime
    days: float


def parse_window_days(raw: Any, default: int, max_days: int = MAX_WINDOW_DAYS) -> int | float:
    """Resolve a caller-supplied window length.

    Numbers and numeric strings are accepted. Anything else (``None``,
    booleans, non-numeric text, non-finite values, ``<= 0`` or
    ``> max_days``) falls back to ``default``. Whole numbers come back as
    ``int``.
    """
    if raw is None or isinstance(raw, bool):
        return default
    if not isinstance(raw, (int, float, str)):
        return default
    try:
        days = float(raw.strip() if isinstance(raw, str) else raw)
    except (ValueError, OverflowError):
        return default

    if not math.isfinite(days) or days <= 0 or days > max_days:
        return default
    return int(days) if days.is_integer() else days


def window_bounds(days: float, now: datetime | None = None) -> tuple[datetime, datetime]:
    """Return ``(now - days, now)`` as timezone-aware UTC datetimes."""
    end = now or datetime.now(timezone.utc)
    if end.tzinfo is None:
        end = end.replace(tzinfo=timezone.utc)
    return end - timedelta(seconds=days * 86400), end


def select_window(
    records: Sequence[HealthRecord],
    days: float,
    now: datetime | None = None,
) -> Window:
    """Keep the records measured within the last ``days`` days.

    Both bounds are inclusive. Input order is preserved; sorting is left to
    the caller.
    """
    start, end = window_bounds(days, now)
    kept = [r for r in records if start <= r.recorded_at <= end]
    return Window(records=kept, start=start, end=end, days=days)
