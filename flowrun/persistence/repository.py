"""Repository abstraction for run persistence."""

from __future__ import annotations

from typing import Optional, Protocol

from ..run import Run


class RunRepository(Protocol):
    """Protocol for run storage backends.

    Implementations must apply ``update`` calls atomically and in the order
    they are issued, and reproduce the full step tree on ``get``.
    """

    async def create(self, run: Run) -> Run:
        """Persist a new run."""

    async def update(self, run: Run) -> None:
        """Persist the current state of an existing run."""

    async def get(self, run_id: str) -> Run | None:
        """Retrieve a run by id."""

    async def list_runs(self, automation_id: Optional[int] = None) -> list[Run]:
        """Return stored runs, oldest first, optionally for one automation."""

    async def list_to_replay(self) -> list[Run]:
        """Return runs flagged for replay, oldest first."""
