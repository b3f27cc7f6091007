"""Step records kept inside a run.

A run's steps form a tree: action steps are leaves, and a paths step (the
record of a ``split-into-paths`` action) owns one :class:`PathStep` per
branch, each holding its own ordered list of nested steps.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .contracts import ActionSchema, TriggerSchema


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StepError(BaseModel):
    """Error recorded on a failed step.

    Integrations may attach extra detail (status codes, provider payloads).
    """

    model_config = ConfigDict(extra="allow")

    message: str


class TriggerStep(BaseModel):
    """First step of every run, holding what the trigger received."""

    type: Literal["trigger"] = "trigger"
    definition: Optional[TriggerSchema] = None
    output: Dict[str, Any] = Field(default_factory=dict)


class ActionStep(BaseModel):
    """Record of one dispatched action."""

    type: Literal["action"] = "action"
    definition: ActionSchema
    input: Dict[str, Any] = Field(default_factory=dict)
    output: Any = None
    error: Optional[StepError] = None
    started_at: datetime = Field(default_factory=utcnow)
    finished_at: Optional[datetime] = None

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def finished(self) -> bool:
        return self.finished_at is not None


class PathsStepDefinition(BaseModel):
    name: str
    service: Literal["filter"] = "filter"
    action: Literal["split-into-paths"] = "split-into-paths"


class PathDefinition(BaseModel):
    name: str
    filter: Dict[str, Any] = Field(default_factory=dict)


class PathStep(BaseModel):
    """One branch of a paths step: filter evaluation plus nested steps."""

    definition: PathDefinition
    input: Dict[str, Any] = Field(default_factory=dict)
    output: Dict[str, Any] = Field(default_factory=dict)
    actions: List["Step"] = Field(default_factory=list)

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def can_continue(self) -> bool:
        return self.output.get("can_continue") is True

    def has_errors(self) -> bool:
        for step in self.actions:
            if isinstance(step, PathsStep):
                if step.has_errors():
                    return True
            elif step.error is not None:
                return True
        return False

    def first_error(self) -> Optional[StepError]:
        return find_first_error(self.actions)


class PathsStep(BaseModel):
    """Record of a ``split-into-paths`` action."""

    type: Literal["paths"] = "paths"
    definition: PathsStepDefinition
    paths: List[PathStep] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=utcnow)
    finished_at: Optional[datetime] = None

    @property
    def name(self) -> str:
        return self.definition.name

    def find_path(self, path_name: str) -> Optional[PathStep]:
        return next((p for p in self.paths if p.name == path_name), None)

    def has_errors(self) -> bool:
        return any(path.has_errors() for path in self.paths)


Step = Annotated[Union[ActionStep, PathsStep], Field(discriminator="type")]
AnyStep = Annotated[
    Union[TriggerStep, ActionStep, PathsStep], Field(discriminator="type")
]

PathStep.model_rebuild()
PathsStep.model_rebuild()


def find_first_error(steps: List[Any]) -> Optional[StepError]:
    """Depth-first search for the first recorded error, descending into paths."""
    for step in steps:
        if isinstance(step, PathsStep):
            for path in step.paths:
                error = find_first_error(path.actions)
                if error is not None:
                    return error
        elif isinstance(step, ActionStep) and step.error is not None:
            return step.error
    return None


__all__ = [
    "ActionStep",
    "AnyStep",
    "PathDefinition",
    "PathStep",
    "PathsStep",
    "PathsStepDefinition",
    "Step",
    "StepError",
    "TriggerStep",
    "find_first_error",
    "utcnow",
]
