"""In-memory record store backing ``database/create-record`` actions."""

from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Dict, List


class InMemoryDatabase:
    """Keep created records per table in local memory.

    Useful for tests or when tables live outside the engine. Data is not
    persisted across process restarts.
    """

    def __init__(self) -> None:
        self._tables: Dict[str, List[Dict[str, Any]]] = defaultdict(list)

    async def create_record(self, table: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        record = {
            "id": str(uuid.uuid4()),
            "fields": dict(fields),
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        self._tables[table].append(record)
        return record

    def list_records(self, table: str) -> List[Dict[str, Any]]:
        return list(self._tables.get(table, []))
