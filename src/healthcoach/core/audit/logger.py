"""Coach log: append-only audit trail of generated narratives.

Every successful narrative generation (including the ones that fell back to
the placeholder message) writes exactly one entry. Entries are never
updated; they disappear only when their subject is deleted. The user's free
text note is encrypted at rest like record memos.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from healthcoach.core.storage.database import HealthDatabase
from healthcoach.core.storage.encryption import FieldEncryptor
from healthcoach.core.storage.models import CoachLog
from healthcoach.core.storage.repository import to_db_timestamp

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 20
MAX_HISTORY_LIMIT = 100


def clamp_history_limit(raw: Any) -> int:
    """Parse a page size: numeric input is capped at 100, anything else gives 20."""
    if isinstance(raw, bool):
        return DEFAULT_HISTORY_LIMIT
    try:
        limit = int(raw)
    except (TypeError, ValueError):
        return DEFAULT_HISTORY_LIMIT
    if limit < 1:
        return DEFAULT_HISTORY_LIMIT
    return min(limit, MAX_HISTORY_LIMIT)


class CoachLogWriter:
    """Records coach log entries to the ``coach_logs`` SQLite table.

    Writes are fire-and-forget from the caller's point of view: a failed
    insert is logged and reported as an empty id, never raised.

    Usage::

        writer = CoachLogWriter(health_db, encryptor)
        log_id = writer.append(CoachLog(
            subject_id="alice",
            kind="coach",
            window_days=7,
            generated_text="...",
            source="bp_summary",
        ))
        writer.history("alice", limit=20)
    """

    def __init__(self, database: HealthDatabase, encryptor: FieldEncryptor) -> None:
        self._db = database
        self._enc = encryptor

    # ---------------------------------------------------------------
    # Write
    # ---------------------------------------------------------------

    def append(self, entry: CoachLog) -> str:
        """Insert a coach log entry and return its UUID ("" if the write was lost)."""
        entry_id = str(uuid.uuid4())
        created_at = to_db_timestamp(datetime.now(timezone.utc))

        try:
            conn = self._db.connection
            conn.execute(
                """INSERT INTO coach_logs
                   (id, subject_id, kind, window_days, user_note_enc, source,
                    generated_text, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    entry_id,
                    entry.subject_id,
                    entry.kind,
                    entry.window_days,
                    self._enc.encrypt_text(entry.user_note),
                    entry.source or None,
                    entry.generated_text,
                    created_at,
                ),
            )
            conn.commit()
        except Exception:
            logger.exception("Failed to write coach log for subject %s, entry lost", entry.subject_id)
            return ""

        entry.id = entry_id
        entry.created_at = created_at
        logger.info("Coach log %s written (kind=%s, window=%dd)", entry_id, entry.kind, entry.window_days)
        return entry_id

    # ---------------------------------------------------------------
    # Read
    # ---------------------------------------------------------------

    def history(
        self,
        subject_id: str,
        *,
        kind: str | None = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
        offset: int = 0,
    ) -> list[CoachLog]:
        """Return a page of a subject's coach logs, newest first.

        Args:
            subject_id: Owning subject.
            kind: Optional 'coach' / 'lifestyle' filter.
            limit: Page size (capped at 100).
            offset: Number of newer entries to skip.
        """
        conditions = ["subject_id = ?"]
        params: list[Any] = [subject_id]
        if kind:
            conditions.append("kind = ?")
            params.append(kind)

        query = (
            "SELECT * FROM coach_logs WHERE "
            + " AND ".join(conditions)
            + " ORDER BY created_at DESC, rowid DESC LIMIT ? OFFSET ?"
        )
        params.extend([clamp_history_limit(limit), max(offset, 0)])

        rows = self._db.connection.execute(query, params).fetchall()
        return [
            CoachLog(
                id=row["id"],
                subject_id=row["subject_id"],
                kind=row["kind"],
                window_days=row["window_days"],
                user_note=self._enc.decrypt_text(row["user_note_enc"]),
                source=row["source"] or "",
                generated_text=row["generated_text"],
                created_at=row["created_at"],
            )
            for row in rows
        ]

    def count(self, subject_id: str) -> int:
        """Count a subject's coach log entries."""
        row = self._db.connection.execute(
            "SELECT COUNT(*) FROM coach_logs WHERE subject_id = ?", (subject_id,)
        ).fetchone()
        return row[0]
