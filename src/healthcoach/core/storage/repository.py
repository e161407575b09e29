"""Health record repository: CRUD over subjects, records and target profiles.

The repository mediates between domain objects (HealthRecord, etc.) and the
SQLite database, using FieldEncryptor for the free-text memo column. Every
``sqlite3.Error`` is re-raised as :class:`PersistenceError` so callers only
ever see the shared error taxonomy.
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

from healthcoach.core.errors import NotFoundError, PersistenceError, ValidationError
from healthcoach.core.storage.database import HealthDatabase
from healthcoach.core.storage.encryption import FieldEncryptor
from healthcoach.core.storage.models import (
    RECORD_KINDS,
    HealthRecord,
    Subject,
    TargetProfile,
)

logger = logging.getLogger(__name__)

# Fixed-width UTC format so lexicographic order in SQLite equals time order.
_TS_FORMAT = "%Y-%m-%dT%H:%M:%S.%f+00:00"


def to_db_timestamp(value: datetime) -> str:
    """Serialize a datetime as a fixed-width UTC string (naive = UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(_TS_FORMAT)


def from_db_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class HealthRepository:
    """CRUD repository for subjects, health records and target profiles.

    Usage::

        db = HealthDatabase(":memory:")
        db.initialize()
        repo = HealthRepository(db, FieldEncryptor(key))

        repo.ensure_subject("alice")
        repo.add_record(record)
        records = repo.query_records("alice", kind="blood_pressure", since=start)
    """

    def __init__(self, database: HealthDatabase, encryptor: FieldEncryptor) -> None:
        self._db = database
        self._enc = encryptor

    @staticmethod
    def _new_id() -> str:
        return str(uuid.uuid4())

    @staticmethod
    def _now_iso() -> str:
        return to_db_timestamp(datetime.now(timezone.utc))

    @contextmanager
    def _guard(self, action: str) -> Iterator[sqlite3.Connection]:
        conn = self._db.connection
        try:
            yield conn
        except sqlite3.Error as exc:
            conn.rollback()
            raise PersistenceError(f"Failed to {action}: {exc}") from exc

    # ------------------------------------------------------------------
    # Subjects
    # ------------------------------------------------------------------

    def create_subject(self, subject_id: str, display_name: str = "") -> Subject:
        """Register a new subject.

        Raises:
            ValidationError: If the id is blank or already registered.
        """
        if not subject_id or not subject_id.strip():
            raise ValidationError("subject_id must not be empty")
        if self.get_subject(subject_id) is not None:
            raise ValidationError(f"Subject already exists: {subject_id!r}")

        now = self._now_iso()
        with self._guard("create subject") as conn:
            conn.execute(
                "INSERT INTO subjects (id, display_name, created_at) VALUES (?, ?, ?)",
                (subject_id, display_name, now),
            )
            conn.commit()
        logger.info("Created subject %s", subject_id)
        return Subject(id=subject_id, display_name=display_name, created_at=now)

    def ensure_subject(self, subject_id: str, display_name: str = "") -> Subject:
        """Return the subject, creating it first if it does not exist."""
        existing = self.get_subject(subject_id)
        if existing is not None:
            return existing
        return self.create_subject(subject_id, display_name)

    def get_subject(self, subject_id: str) -> Subject | None:
        with self._guard("read subject") as conn:
            row = conn.execute(
                "SELECT * FROM subjects WHERE id = ?", (subject_id,)
            ).fetchone()
        if row is None:
            return None
        return Subject(
            id=row["id"],
            display_name=row["display_name"],
            created_at=row["created_at"],
        )

    def require_subject(self, subject_id: str) -> Subject:
        """Like :meth:`get_subject` but raises NotFoundError when absent."""
        subject = self.get_subject(subject_id)
        if subject is None:
            raise NotFoundError(f"Unknown subject: {subject_id!r}")
        return subject

    def delete_subject(self, subject_id: str) -> dict[str, int]:
        """Delete a subject and cascade to records, profile and coach logs.

        Returns:
            Row counts removed per table.
        """
        self.require_subject(subject_id)
        with self._guard("delete subject") as conn:
            counts = {
                table: conn.execute(
                    f"SELECT COUNT(*) FROM {table} WHERE subject_id = ?", (subject_id,)
                ).fetchone()[0]
                for table in ("health_records", "target_profiles", "coach_logs")
            }
            conn.execute("DELETE FROM subjects WHERE id = ?", (subject_id,))
            conn.commit()
        logger.warning("Deleted subject %s and all owned data: %s", subject_id, counts)
        return counts

    # ------------------------------------------------------------------
    # Health records
    # ------------------------------------------------------------------

    def add_record(self, record: HealthRecord) -> HealthRecord:
        """Persist a record. An empty ``record.id`` gets a fresh UUID.

        Returns:
            The stored record (with ``id`` and ``created_at`` filled in).
        """
        self.require_subject(record.subject_id)
        stored = self._with_identity(record)
        with self._guard("insert health record") as conn:
            conn.execute(self._INSERT_SQL, self._record_params(stored))
            conn.commit()
        logger.info("Saved %s record %s", stored.kind, stored.id)
        return stored

    def add_records(self, records: Iterable[HealthRecord]) -> int:
        """Bulk insert (used by the demo seed pathway). Returns rows written."""
        batch = [self._with_identity(r) for r in records]
        if not batch:
            return 0
        for subject_id in {r.subject_id for r in batch}:
            self.require_subject(subject_id)
        with self._guard("bulk insert health records") as conn:
            conn.executemany(self._INSERT_SQL, [self._record_params(r) for r in batch])
            conn.commit()
        logger.info("Bulk inserted %d health records", len(batch))
        return len(batch)

    def get_record(self, subject_id: str, record_id: str) -> HealthRecord:
        """Fetch one record owned by ``subject_id``.

        Raises:
            NotFoundError: If the record does not exist or belongs to someone else.
        """
        with self._guard("read health record") as conn:
            row = conn.execute(
                "SELECT * FROM health_records WHERE id = ? AND subject_id = ?",
                (record_id, subject_id),
            ).fetchone()
        if row is None:
            raise NotFoundError(f"Record not found: {record_id!r}")
        return self._row_to_record(row)

    def replace_record(self, record: HealthRecord) -> HealthRecord:
        """Fully replace an existing record's fields (id and created_at are kept)."""
        existing = self.get_record(record.subject_id, record.id)
        with self._guard("update health record") as conn:
            conn.execute(
                """UPDATE health_records SET
                       recorded_at = ?, kind = ?, primary_value = ?, secondary_value = ?,
                       pulse = ?, state_label = ?, memo_enc = ?,
                       sleep_hours = ?, did_exercise = ?, stress_level = ?
                   WHERE id = ? AND subject_id = ?""",
                (
                    to_db_timestamp(record.recorded_at),
                    record.kind,
                    record.primary_value,
                    record.secondary_value,
                    record.pulse,
                    record.state_label,
                    self._enc.encrypt_text(record.memo),
                    record.sleep_hours,
                    None if record.did_exercise is None else int(record.did_exercise),
                    record.stress_level,
                    record.id,
                    record.subject_id,
                ),
            )
            conn.commit()
        record.created_at = existing.created_at
        logger.info("Replaced record %s", record.id)
        return record

    def delete_record(self, subject_id: str, record_id: str) -> None:
        self.get_record(subject_id, record_id)
        with self._guard("delete health record") as conn:
            conn.execute(
                "DELETE FROM health_records WHERE id = ? AND subject_id = ?",
                (record_id, subject_id),
            )
            conn.commit()
        logger.info("Deleted record %s", record_id)

    def delete_records_for_subject(self, subject_id: str) -> int:
        """Remove every record owned by a subject. Returns rows deleted."""
        with self._guard("delete subject records") as conn:
            cursor = conn.execute(
                "DELETE FROM health_records WHERE subject_id = ?", (subject_id,)
            )
            conn.commit()
        logger.warning("Deleted %d records for subject %s", cursor.rowcount, subject_id)
        return cursor.rowcount

    def query_records(
        self,
        subject_id: str,
        *,
        kind: str | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
        order: str = "asc",
        limit: int | None = None,
    ) -> list[HealthRecord]:
        """Query a subject's records ordered by ``recorded_at``.

        Args:
            subject_id: Owning subject.
            kind: Optional 'blood_pressure' / 'blood_sugar' filter.
            since: Inclusive lower bound on ``recorded_at``.
            until: Inclusive upper bound on ``recorded_at``.
            order: 'asc' (oldest first) or 'desc' (newest first).
            limit: Maximum rows.
        """
        if kind is not None and kind not in RECORD_KINDS:
            raise ValidationError(f"Unknown record kind: {kind!r}")
        if order not in ("asc", "desc"):
            raise ValidationError(f"order must be 'asc' or 'desc', got {order!r}")

        conditions = ["subject_id = ?"]
        params: list[Any] = [subject_id]
        if kind:
            conditions.append("kind = ?")
            params.append(kind)
        if since is not None:
            conditions.append("recorded_at >= ?")
            params.append(to_db_timestamp(since))
        if until is not None:
            conditions.append("recorded_at <= ?")
            params.append(to_db_timestamp(until))

        query = (
            "SELECT * FROM health_records WHERE "
            + " AND ".join(conditions)
            + f" ORDER BY recorded_at {order.upper()}, created_at {order.upper()}"
        )
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)

        with self._guard("query health records") as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_record(row) for row in rows]

    def latest_record(self, subject_id: str, kind: str) -> HealthRecord | None:
        """Most recent record of a kind, regardless of any window."""
        results = self.query_records(subject_id, kind=kind, order="desc", limit=1)
        return results[0] if results else None

    # ------------------------------------------------------------------
    # Target profiles
    # ------------------------------------------------------------------

    def get_target_profile(self, subject_id: str) -> TargetProfile | None:
        with self._guard("read target profile") as conn:
            row = conn.execute(
                "SELECT * FROM target_profiles WHERE subject_id = ?", (subject_id,)
            ).fetchone()
        if row is None:
            return None
        return TargetProfile(
            subject_id=row["subject_id"],
            target_primary=row["target_primary"],
            target_secondary=row["target_secondary"],
            updated_at=row["updated_at"],
        )

    def upsert_target_profile(self, profile: TargetProfile) -> TargetProfile:
        """Create the subject's profile on first save, update it in place afterwards."""
        self.require_subject(profile.subject_id)
        profile.updated_at = self._now_iso()
        with self._guard("save target profile") as conn:
            conn.execute(
                """INSERT INTO target_profiles (subject_id, target_primary, target_secondary, updated_at)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT(subject_id) DO UPDATE SET
                       target_primary = excluded.target_primary,
                       target_secondary = excluded.target_secondary,
                       updated_at = excluded.updated_at""",
                (
                    profile.subject_id,
                    profile.target_primary,
                    profile.target_secondary,
                    profile.updated_at,
                ),
            )
            conn.commit()
        logger.info("Saved target profile for subject %s", profile.subject_id)
        return profile

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    _INSERT_SQL = """INSERT INTO health_records (
            id, subject_id, recorded_at, kind, primary_value, secondary_value,
            pulse, state_label, memo_enc, sleep_hours, did_exercise, stress_level,
            created_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)"""

    def _with_identity(self, record: HealthRecord) -> HealthRecord:
        record.id = record.id or self._new_id()
        record.created_at = record.created_at or self._now_iso()
        return record

    def _record_params(self, record: HealthRecord) -> tuple:
        return (
            record.id,
            record.subject_id,
            to_db_timestamp(record.recorded_at),
            record.kind,
            record.primary_value,
            record.secondary_value,
            record.pulse,
            record.state_label,
            self._enc.encrypt_text(record.memo),
            record.sleep_hours,
            None if record.did_exercise is None else int(record.did_exercise),
            record.stress_level,
            record.created_at,
        )

    def _row_to_record(self, row: Any) -> HealthRecord:
        """Convert a database row to a HealthRecord with the memo decrypted."""
        did_exercise = row["did_exercise"]
        return HealthRecord(
            id=row["id"],
            subject_id=row["subject_id"],
            recorded_at=from_db_timestamp(row["recorded_at"]),
            kind=row["kind"],
            primary_value=row["primary_value"],
            secondary_value=row["secondary_value"],
            pulse=row["pulse"],
            state_label=row["state_label"],
            memo=self._enc.decrypt_text(row["memo_enc"]),
            sleep_hours=row["sleep_hours"],
            did_exercise=None if did_exercise is None else bool(did_exercise),
            stress_level=row["stress_level"],
            created_at=row["created_at"],
        )
