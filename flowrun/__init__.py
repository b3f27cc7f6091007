"""Flowrun: run engine for declarative, branching automations."""

from .app import App, load_app
from .config import FlowrunConfig, load_config
from .contracts import ActionSchema, Automation, PathSchema, TriggerSchema
from .dispatch import ActionDispatcher
from .errors import (
    ActionExecutionError,
    PathAggregateFailure,
    StepNotFound,
)
from .execute import AutomationOrchestrator
from .persistence import get_repository
from .run import Run, RunStatus
from .services import ActionResult, ActionServices, build_services

__version__ = "0.1.0"
__all__ = [
    "ActionDispatcher",
    "ActionExecutionError",
    "ActionResult",
    "ActionSchema",
    "ActionServices",
    "App",
    "Automation",
    "AutomationOrchestrator",
    "FlowrunConfig",
    "PathAggregateFailure",
    "PathSchema",
    "Run",
    "RunStatus",
    "StepNotFound",
    "TriggerSchema",
    "build_services",
    "get_repository",
    "load_app",
    "load_config",
]
