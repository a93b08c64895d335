"""
Time-Blocking Engine — Work Unit Database.

SQLite implementation of WorkUnitStore. sqlite3 is blocking, so every
public method runs its query in a worker thread via asyncio.to_thread.
Datetimes are stored as naive ISO-8601 strings, which sort chronologically.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from timeblock.core.errors import WorkUnitNotFoundError
from timeblock.data.models import ProductivityLevel, WorkUnit
from timeblock.ports.store_port import StoreError

logger = logging.getLogger(__name__)


class WorkUnitDB:
    """SQLite-backed storage for work units."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from timeblock.config import settings
            db_path = settings.DATABASE_PATH

        self._db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        """Create the work_units table if it doesn't exist, and migrate schema."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS work_units (
                    id                 TEXT    PRIMARY KEY,
                    title              TEXT    NOT NULL,
                    start_at           TEXT    NOT NULL,
                    end_at             TEXT    NOT NULL,
                    task_id            TEXT,
                    project_id         TEXT,
                    is_auto_scheduled  INTEGER NOT NULL DEFAULT 0,
                    calendar_event_id  TEXT,
                    is_completed       INTEGER NOT NULL DEFAULT 0,
                    productivity       INTEGER,
                    can_be_moved       INTEGER NOT NULL DEFAULT 1,
                    needs_sync         INTEGER NOT NULL DEFAULT 1,
                    created_at         TEXT    NOT NULL,
                    updated_at         TEXT    NOT NULL
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_work_units_start ON work_units (start_at)"
            )
            # Migrate DBs created before can_be_moved existed
            existing_cols = {
                row[1] for row in conn.execute("PRAGMA table_info(work_units)").fetchall()
            }
            if "can_be_moved" not in existing_cols:
                conn.execute(
                    "ALTER TABLE work_units ADD COLUMN can_be_moved INTEGER NOT NULL DEFAULT 1"
                )
        logger.debug("Work units table initialized at %s", self._db_path)

    @staticmethod
    def _row_to_unit(row: sqlite3.Row) -> WorkUnit:
        productivity = row["productivity"]
        return WorkUnit(
            id=row["id"],
            title=row["title"],
            start=datetime.fromisoformat(row["start_at"]),
            end=datetime.fromisoformat(row["end_at"]),
            task_id=row["task_id"],
            project_id=row["project_id"],
            is_auto_scheduled=bool(row["is_auto_scheduled"]),
            calendar_event_id=row["calendar_event_id"],
            is_completed=bool(row["is_completed"]),
            productivity=ProductivityLevel(productivity) if productivity is not None else None,
            can_be_moved=bool(row["can_be_moved"]),
            needs_sync=bool(row["needs_sync"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    @staticmethod
    def _unit_params(unit: WorkUnit) -> dict:
        return {
            "id": unit.id,
            "title": unit.title,
            "start_at": unit.start.isoformat(),
            "end_at": unit.end.isoformat(),
            "task_id": unit.task_id,
            "project_id": unit.project_id,
            "is_auto_scheduled": int(unit.is_auto_scheduled),
            "calendar_event_id": unit.calendar_event_id,
            "is_completed": int(unit.is_completed),
            "productivity": int(unit.productivity) if unit.productivity is not None else None,
            "can_be_moved": int(unit.can_be_moved),
            "needs_sync": int(unit.needs_sync),
            "created_at": unit.created_at.isoformat(),
            "updated_at": unit.updated_at.isoformat(),
        }

    # -- blocking implementations ------------------------------------------

    def _fetch_range(self, start: datetime, end: datetime) -> list[WorkUnit]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM work_units WHERE start_at >= ? AND start_at < ? ORDER BY start_at",
                (start.isoformat(), end.isoformat()),
            ).fetchall()
        return [self._row_to_unit(r) for r in rows]

    def _fetch_by_id(self, unit_id: str) -> WorkUnit | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM work_units WHERE id = ?", (unit_id,)
            ).fetchone()
        if row is None:
            return None
        return self._row_to_unit(row)

    def _save(self, unit: WorkUnit) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO work_units
                    (id, title, start_at, end_at, task_id, project_id,
                     is_auto_scheduled, calendar_event_id, is_completed,
                     productivity, can_be_moved, needs_sync, created_at, updated_at)
                VALUES
                    (:id, :title, :start_at, :end_at, :task_id, :project_id,
                     :is_auto_scheduled, :calendar_event_id, :is_completed,
                     :productivity, :can_be_moved, :needs_sync, :created_at, :updated_at)
                """,
                self._unit_params(unit),
            )

    def _update(self, unit: WorkUnit) -> None:
        with self._connect() as conn:
            cursor = conn.execute(
                """
                UPDATE work_units SET
                    title = :title, start_at = :start_at, end_at = :end_at,
                    task_id = :task_id, project_id = :project_id,
                    is_auto_scheduled = :is_auto_scheduled,
                    calendar_event_id = :calendar_event_id,
                    is_completed = :is_completed, productivity = :productivity,
                    can_be_moved = :can_be_moved, needs_sync = :needs_sync,
                    updated_at = :updated_at
                WHERE id = :id
                """,
                self._unit_params(unit),
            )
        if cursor.rowcount == 0:
            raise WorkUnitNotFoundError(f"Work unit {unit.id} not found")

    def _delete(self, unit_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM work_units WHERE id = ?", (unit_id,))
        return cursor.rowcount > 0

    # -- WorkUnitStore -----------------------------------------------------

    async def fetch_range(self, start: datetime, end: datetime) -> list[WorkUnit]:
        """Return work units starting in [start, end), ordered by start."""
        try:
            return await asyncio.to_thread(self._fetch_range, start, end)
        except sqlite3.Error as exc:
            logger.error("SQLite error (fetch_range): %s", exc)
            raise StoreError(f"Failed to fetch work units: {exc}") from exc

    async def fetch_by_id(self, unit_id: str) -> WorkUnit | None:
        try:
            return await asyncio.to_thread(self._fetch_by_id, unit_id)
        except sqlite3.Error as exc:
            logger.error("SQLite error (fetch_by_id): %s", exc)
            raise StoreError(f"Failed to fetch work unit: {exc}") from exc

    async def save(self, unit: WorkUnit) -> None:
        try:
            await asyncio.to_thread(self._save, unit)
        except sqlite3.Error as exc:
            logger.error("SQLite error (save): %s", exc)
            raise StoreError(f"Failed to save work unit: {exc}") from exc
        logger.info("Work unit saved: %s '%s' %s", unit.id, unit.title, unit.start.isoformat())

    async def update(self, unit: WorkUnit) -> None:
        """Overwrite a stored work unit; raises WorkUnitNotFoundError if unknown."""
        try:
            await asyncio.to_thread(self._update, unit)
        except sqlite3.Error as exc:
            logger.error("SQLite error (update): %s", exc)
            raise StoreError(f"Failed to update work unit: {exc}") from exc
        logger.info("Work unit updated: %s", unit.id)

    async def delete(self, unit_id: str) -> bool:
        try:
            deleted = await asyncio.to_thread(self._delete, unit_id)
        except sqlite3.Error as exc:
            logger.error("SQLite error (delete): %s", exc)
            raise StoreError(f"Failed to delete work unit: {exc}") from exc
        if deleted:
            logger.info("Work unit %s deleted", unit_id)
        return deleted
