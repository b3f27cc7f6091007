"""SQLite implementation of the run repository."""

from __future__ import annotations

import asyncio
import sqlite3
from pathlib import Path
from typing import Any, Optional

from ..run import Run
from .repository import RunRepository


class SQLiteRunRepository(RunRepository):
    """Persist runs using SQLite.

    The full run, step tree included, is stored as JSON in ``data``; the
    remaining columns mirror it for filtering.
    """

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._ensure_schema()

    # ------------------------------------------------------------------
    # Schema management
    def _ensure_schema(self) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS runs (
                id TEXT PRIMARY KEY,
                automation_id INTEGER NOT NULL,
                form_id INTEGER,
                status TEXT NOT NULL,
                to_replay INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                data TEXT NOT NULL
            )
            """
        )
        self._conn.commit()

    # ------------------------------------------------------------------
    # Helper methods
    def _execute(self, query: str, *params: Any) -> None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        self._conn.commit()

    def _fetchone(self, query: str, *params: Any) -> sqlite3.Row | None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchone()

    def _fetchall(self, query: str, *params: Any) -> list[sqlite3.Row]:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchall()

    # ------------------------------------------------------------------
    # Repository API
    async def create(self, run: Run) -> Run:
        await asyncio.to_thread(
            self._execute,
            """
            INSERT INTO runs
                (id, automation_id, form_id, status, to_replay, created_at, updated_at, data)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            run.id,
            run.automation_id,
            run.form_id,
            run.status,
            int(run.to_replay),
            run.created_at.isoformat(),
            run.updated_at.isoformat(),
            run.model_dump_json(),
        )
        return run

    async def update(self, run: Run) -> None:
        await asyncio.to_thread(
            self._execute,
            """
            UPDATE runs
            SET status = ?, to_replay = ?, updated_at = ?, data = ?
            WHERE id = ?
            """,
            run.status,
            int(run.to_replay),
            run.updated_at.isoformat(),
            run.model_dump_json(),
            run.id,
        )

    async def get(self, run_id: str) -> Run | None:
        row = await asyncio.to_thread(
            self._fetchone, "SELECT data FROM runs WHERE id = ?", run_id
        )
        if not row:
            return None
        return Run.model_validate_json(row["data"])

    async def list_runs(self, automation_id: Optional[int] = None) -> list[Run]:
        if automation_id is None:
            rows = await asyncio.to_thread(
                self._fetchall, "SELECT data FROM runs ORDER BY created_at"
            )
        else:
            rows = await asyncio.to_thread(
                self._fetchall,
                "SELECT data FROM runs WHERE automation_id = ? ORDER BY created_at",
                automation_id,
            )
        return [Run.model_validate_json(row["data"]) for row in rows]

    async def list_to_replay(self) -> list[Run]:
        rows = await asyncio.to_thread(
            self._fetchall,
            "SELECT data FROM runs WHERE to_replay = 1 ORDER BY created_at",
        )
        return [Run.model_validate_json(row["data"]) for row in rows]
