"""PostgreSQL implementation of the run repository."""

from __future__ import annotations

from typing import Optional

import asyncpg

from ..run import Run
from .repository import RunRepository


class PostgresRunRepository(RunRepository):
    """Persist runs using PostgreSQL."""

    def __init__(self, dsn: str):
        self._dsn = dsn
        self._initialized = False

    async def _connect(self) -> asyncpg.Connection:
        conn = await asyncpg.connect(self._dsn)
        if not self._initialized:
            await self._ensure_schema(conn)
            self._initialized = True
        return conn

    async def _ensure_schema(self, conn: asyncpg.Connection) -> None:
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS runs (
                id TEXT PRIMARY KEY,
                automation_id INTEGER NOT NULL,
                form_id INTEGER,
                status TEXT NOT NULL,
                to_replay BOOLEAN NOT NULL DEFAULT FALSE,
                created_at TIMESTAMPTZ NOT NULL,
                updated_at TIMESTAMPTZ NOT NULL,
                data JSONB NOT NULL
            )
            """
        )

    # ------------------------------------------------------------------
    async def create(self, run: Run) -> Run:
        conn = await self._connect()
        try:
            await conn.execute(
                """
                INSERT INTO runs
                    (id, automation_id, form_id, status, to_replay, created_at, updated_at, data)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8::jsonb)
                """,
                run.id,
                run.automation_id,
                run.form_id,
                run.status,
                run.to_replay,
                run.created_at,
                run.updated_at,
                run.model_dump_json(),
            )
        finally:
            await conn.close()
        return run

    async def update(self, run: Run) -> None:
        conn = await self._connect()
        try:
            await conn.execute(
                """
                UPDATE runs
                SET status = $1, to_replay = $2, updated_at = $3, data = $4::jsonb
                WHERE id = $5
                """,
                run.status,
                run.to_replay,
                run.updated_at,
                run.model_dump_json(),
                run.id,
            )
        finally:
            await conn.close()

    async def get(self, run_id: str) -> Run | None:
        conn = await self._connect()
        try:
            row = await conn.fetchrow("SELECT data::text FROM runs WHERE id = $1", run_id)
        finally:
            await conn.close()
        if not row:
            return None
        return Run.model_validate_json(row["data"])

    async def list_runs(self, automation_id: Optional[int] = None) -> list[Run]:
        conn = await self._connect()
        try:
            if automation_id is None:
                rows = await conn.fetch(
                    "SELECT data::text FROM runs ORDER BY created_at"
                )
            else:
                rows = await conn.fetch(
                    "SELECT data::text FROM runs WHERE automation_id = $1 ORDER BY created_at",
                    automation_id,
                )
        finally:
            await conn.close()
        return [Run.model_validate_json(r["data"]) for r in rows]

    async def list_to_replay(self) -> list[Run]:
        conn = await self._connect()
        try:
            rows = await conn.fetch(
                "SELECT data::text FROM runs WHERE to_replay ORDER BY created_at"
            )
        finally:
            await conn.close()
        return [Run.model_validate_json(r["data"]) for r in rows]
