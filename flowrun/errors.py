"""Exception types raised by the flowrun engine."""

from __future__ import annotations

from typing import Optional


class FlowrunError(Exception):
    """Base class for flowrun errors."""


class ConfigurationError(FlowrunError):
    """Raised when an app definition or backend setting is invalid."""


class StepNotFound(FlowrunError, LookupError):
    """A dotted action path does not resolve inside a run's step tree."""

    def __init__(self, action_path: str, reason: Optional[str] = None) -> None:
        self.action_path = action_path
        message = f'Action step "{action_path}" not found'
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class PathNotFound(FlowrunError, LookupError):
    """A branch path name is missing from an automation definition."""

    def __init__(self, path_name: str) -> None:
        self.path_name = path_name
        super().__init__(f'Path "{path_name}" not found')


class ActionExecutionError(FlowrunError):
    """An action failed while running inside a branch path."""

    def __init__(self, message: str, action_path: Optional[str] = None) -> None:
        self.message = message
        self.action_path = action_path
        super().__init__(message)


class PathAggregateFailure(FlowrunError):
    """One or more branch paths of a split failed.

    The message is the first failure encountered; every path has been
    attempted by the time this is raised.
    """

    def __init__(self, message: str, failures: Optional[list[str]] = None) -> None:
        self.failures = failures or []
        super().__init__(message)


__all__ = [
    "FlowrunError",
    "ConfigurationError",
    "StepNotFound",
    "PathNotFound",
    "ActionExecutionError",
    "PathAggregateFailure",
]
