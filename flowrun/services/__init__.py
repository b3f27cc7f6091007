"""Default collaborators for the flowrun engine."""

from __future__ import annotations

from typing import Optional

from ..config import FlowrunConfig, load_config
from ..errors import ConfigurationError
from .alerting import LoggingAlerter, WebhookAlerter
from .base import (
    ActionResult,
    ActionServices,
    Alerter,
    CodeRunner,
    DatabaseService,
    FilterEvaluator,
    HttpClient,
    IntegrationRunner,
    TemplateFiller,
)
from .code import SubprocessCodeRunner
from .database import InMemoryDatabase
from .filter import ConditionFilter
from .http import HttpxClient
from .integrations import IntegrationRegistry
from .template import JinjaTemplateFiller


def build_services(
    config: Optional[FlowrunConfig] = None,
    integrations: Optional[IntegrationRunner] = None,
) -> ActionServices:
    """Build the default collaborator bundle from configuration."""

    config = config or load_config()
    return ActionServices(
        code=SubprocessCodeRunner(
            node=config.code.node, tsx=config.code.tsx, timeout=config.code.timeout
        ),
        http=HttpxClient(timeout=config.http.timeout),
        database=InMemoryDatabase(),
        integrations=integrations or IntegrationRegistry(),
        template=JinjaTemplateFiller(),
        filter=ConditionFilter(),
    )


def get_alerter(config: Optional[FlowrunConfig] = None) -> Alerter:
    """Factory function to get the configured alerter."""

    config = config or load_config()
    backend = config.alerting.backend
    if backend == "log":
        return LoggingAlerter()
    if backend == "webhook":
        if not config.alerting.webhook_url:
            raise ConfigurationError("alerting.webhook_url is required for webhook alerts")
        return WebhookAlerter(config.alerting.webhook_url)
    raise ConfigurationError(f"Unsupported alerting backend: {backend}")


__all__ = [
    "ActionResult",
    "ActionServices",
    "Alerter",
    "CodeRunner",
    "ConditionFilter",
    "DatabaseService",
    "FilterEvaluator",
    "HttpClient",
    "HttpxClient",
    "InMemoryDatabase",
    "IntegrationRegistry",
    "IntegrationRunner",
    "JinjaTemplateFiller",
    "LoggingAlerter",
    "SubprocessCodeRunner",
    "TemplateFiller",
    "WebhookAlerter",
    "build_services",
    "get_alerter",
]
