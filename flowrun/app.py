"""App context: the tables, connections and automations an engine serves."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .contracts import Automation
from .errors import ConfigurationError


class TableSchema(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    fields: List[Dict[str, Any]] = Field(default_factory=list)


class Connection(BaseModel):
    """Credentials holder for an integration account."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    service: str
    params: Dict[str, Any] = Field(default_factory=dict)


def _ensure_unique(kind: str, attribute: str, values: List[Any]) -> None:
    seen = set()
    for value in values:
        if value in seen:
            raise ConfigurationError(f"Duplicate {kind} {attribute}: {value}")
        seen.add(value)


def _matches(item: Any, name_or_id: Union[str, int]) -> bool:
    if str(item.id) == str(name_or_id):
        return True
    return item.name == str(name_or_id)


class App(BaseModel):
    """Read-only lookups used to resolve action targets."""

    model_config = ConfigDict(frozen=True)

    name: str = "app"
    automations: List[Automation] = Field(default_factory=list)
    tables: List[TableSchema] = Field(default_factory=list)
    connections: List[Connection] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_unique(self) -> "App":
        for kind, items in (
            ("automation", self.automations),
            ("table", self.tables),
            ("connection", self.connections),
        ):
            _ensure_unique(kind, "name", [item.name for item in items])
            _ensure_unique(kind, "id", [item.id for item in items])
        return self

    def find_table(self, name_or_id: Union[str, int]) -> Optional[TableSchema]:
        return next((t for t in self.tables if _matches(t, name_or_id)), None)

    def find_connection(self, name_or_id: Union[str, int]) -> Optional[Connection]:
        return next((c for c in self.connections if _matches(c, name_or_id)), None)

    def find_automation(self, name_or_id: Union[str, int]) -> Optional[Automation]:
        return next((a for a in self.automations if _matches(a, name_or_id)), None)


def load_app(path: Union[str, Path]) -> App:
    """Load an app definition from a YAML file."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    return App(**data)


__all__ = ["App", "Connection", "TableSchema", "load_app"]
