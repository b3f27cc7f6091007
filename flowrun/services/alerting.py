"""Failure notifications for stopped runs."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

import httpx

if TYPE_CHECKING:
    from ..contracts import Automation
    from ..run import Run

logger = logging.getLogger(__name__)


class LoggingAlerter:
    """Report failures to the log only."""

    async def send_alert(self, run: "Run", automation: "Automation", message: str) -> None:
        logger.error(
            f'Automation "{automation.name}" run {run.id} failed: {message}'
        )


class WebhookAlerter:
    """POST a JSON alert to a webhook (chat channel, incident tool, ...)."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._transport = transport

    async def send_alert(self, run: "Run", automation: "Automation", message: str) -> None:
        payload = {
            "automation": {"id": automation.id, "name": automation.name},
            "run_id": run.id,
            "status": run.status,
            "message": message,
            "error": run.get_error_message(),
        }
        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self._transport
        ) as client:
            response = await client.post(self.url, json=payload)
        response.raise_for_status()
        logger.debug(f"Alert for run {run.id} delivered to {self.url}")
