"""Integration runner dispatching to handlers registered per service."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict

from ..steps import StepError
from .base import ActionResult

if TYPE_CHECKING:
    from ..app import Connection
    from ..contracts import IntegrationAction

logger = logging.getLogger(__name__)

IntegrationHandler = Callable[["IntegrationAction", "Connection"], Awaitable[Any]]


class IntegrationRegistry:
    """Route integration actions to the handler registered for their service.

    Handlers receive the action with filled params and the resolved
    connection, and return the action's data. Exceptions raised by a handler
    are reported as an error result.
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, IntegrationHandler] = {}

    def register(self, service: str, handler: IntegrationHandler) -> None:
        self._handlers[service] = handler

    async def run_integration(
        self, action: "IntegrationAction", connection: "Connection"
    ) -> ActionResult:
        handler = self._handlers.get(action.service)
        if handler is None:
            return ActionResult(
                error=StepError(
                    message=f'Integration "{action.service}" is not available'
                )
            )
        try:
            data = await handler(action, connection)
        except Exception as e:
            logger.error(
                f"Integration {action.service}/{action.action} failed "
                f'for connection "{connection.name}": {e}'
            )
            return ActionResult(error=StepError(message=str(e)))
        return ActionResult(data=data if data is not None else {})
