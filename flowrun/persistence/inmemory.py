"""In-memory implementation of the run repository."""

from __future__ import annotations

from typing import Dict, Optional

from ..run import Run
from .repository import RunRepository


class InMemoryRunRepository(RunRepository):
    """Store runs in local memory.

    Useful for tests or when no database is configured. Data is not
    persisted across process restarts. Runs are stored and returned as deep
    copies so callers never share step trees with the store.
    """

    def __init__(self) -> None:
        self._runs: Dict[str, Run] = {}

    async def create(self, run: Run) -> Run:
        self._runs[run.id] = run.model_copy(deep=True)
        return run

    async def update(self, run: Run) -> None:
        if run.id in self._runs:
            self._runs[run.id] = run.model_copy(deep=True)

    async def get(self, run_id: str) -> Run | None:
        run = self._runs.get(run_id)
        return run.model_copy(deep=True) if run else None

    async def list_runs(self, automation_id: Optional[int] = None) -> list[Run]:
        runs = [
            run.model_copy(deep=True)
            for run in self._runs.values()
            if automation_id is None or run.automation_id == automation_id
        ]
        return sorted(runs, key=lambda run: run.created_at)

    async def list_to_replay(self) -> list[Run]:
        return [run for run in await self.list_runs() if run.to_replay]
