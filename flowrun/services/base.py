"""Collaborator protocols consumed by the action dispatcher and orchestrator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional, Protocol

from pydantic import BaseModel

from ..steps import StepError

if TYPE_CHECKING:
    from ..app import Connection
    from ..contracts import Automation, IntegrationAction
    from ..run import Run


class ActionResult(BaseModel):
    """Normalized outcome of one dispatched action: ``data`` or ``error``."""

    data: Any = None
    error: Optional[StepError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class CodeRunner(Protocol):
    """Executes user code snippets."""

    async def run_typescript(self, code: str, input_data: Dict[str, Any]) -> Any:
        """Run a TypeScript snippet and return its result."""

    async def run_javascript(self, code: str, input_data: Dict[str, Any]) -> Any:
        """Run a JavaScript snippet and return its result."""


class HttpClient(Protocol):
    async def get(self, url: str, headers: Dict[str, str] | None = None) -> Any:
        """Perform a GET request and return the decoded body."""

    async def post(
        self, url: str, headers: Dict[str, str] | None = None, body: Any = None
    ) -> Any:
        """Perform a POST request and return the decoded body."""


class DatabaseService(Protocol):
    async def create_record(self, table: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a record into ``table`` and return it."""


class IntegrationRunner(Protocol):
    async def run_integration(
        self, action: "IntegrationAction", connection: "Connection"
    ) -> ActionResult:
        """Run an integration action with the given connection."""


class TemplateFiller(Protocol):
    def fill(self, params: Any, context: Dict[str, Any]) -> Any:
        """Return ``params`` with every binding resolved against ``context``."""


class FilterEvaluator(Protocol):
    def evaluate(self, conditions: Dict[str, Any]) -> Dict[str, Any]:
        """Return a filter decision ``{"can_continue": bool, ...}``."""


class Alerter(Protocol):
    async def send_alert(
        self, run: "Run", automation: "Automation", message: str
    ) -> None:
        """Notify operators that ``run`` failed."""


@dataclass
class ActionServices:
    """Bundle of collaborators an :class:`ActionDispatcher` dispatches to."""

    code: CodeRunner
    http: HttpClient
    database: DatabaseService
    integrations: IntegrationRunner
    template: TemplateFiller
    filter: FilterEvaluator
