"""Run aggregate: the recorded step tree and status of one automation execution."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from .contracts import SplitIntoPathsFilterAction
from .errors import StepNotFound
from .steps import (
    ActionStep,
    AnyStep,
    PathsStep,
    PathsStepDefinition,
    PathStep,
    StepError,
    TriggerStep,
    find_first_error,
    utcnow,
)

RunStatus = Literal["playing", "success", "stopped", "filtered"]


def _find(steps: List[Any], name: str) -> Optional[Any]:
    for step in steps:
        if isinstance(step, (ActionStep, PathsStep)) and step.name == name:
            return step
    return None


def _enter_path(step: Any, path_name: str, action_path: str) -> PathStep:
    if not isinstance(step, PathsStep):
        raise StepNotFound(action_path, f'step "{step.name}" is not a paths step')
    path = step.find_path(path_name)
    if path is None:
        raise StepNotFound(action_path, f'path "{path_name}" not found')
    return path


def _lookup(segments: List[str], steps: List[Any], action_path: str) -> Optional[Any]:
    name, *rest = segments
    step = _find(steps, name)
    if step is None or not rest:
        return step
    path_name, *rest = rest
    path = _enter_path(step, path_name, action_path)
    if not rest:
        return step
    return _lookup(rest, path.actions, action_path)


def _container(
    segments: List[str], steps: List[Any], action_path: str, strict: bool = True
) -> Optional[List[Any]]:
    """Return the step list holding the step addressed by ``segments``."""
    if len(segments) == 1:
        return steps
    if len(segments) == 2:
        if strict:
            raise StepNotFound(action_path, "path does not address an action")
        return None
    name, path_name, *rest = segments
    step = _find(steps, name)
    if step is None:
        if strict:
            raise StepNotFound(action_path, f'step "{name}" not found')
        return None
    if not strict and (
        not isinstance(step, PathsStep) or step.find_path(path_name) is None
    ):
        return None
    path = _enter_path(step, path_name, action_path)
    return _container(rest, path.actions, action_path, strict)


class Run(BaseModel):
    """One execution instance of an automation.

    ``steps[0]`` is always the trigger step. Mutation methods are meant to be
    called only by the orchestration that owns the run.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    automation_id: int
    form_id: Optional[int] = None
    status: RunStatus = "playing"
    steps: List[AnyStep] = Field(default_factory=list)
    error: Optional[StepError] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    to_replay: bool = False

    @classmethod
    def from_trigger(
        cls,
        automation_id: int,
        output: Dict[str, Any],
        definition: Any = None,
        form_id: Optional[int] = None,
    ) -> "Run":
        trigger = TriggerStep(definition=definition, output=output)
        return cls(automation_id=automation_id, form_id=form_id, steps=[trigger])

    @property
    def trigger(self) -> TriggerStep:
        return self.steps[0]

    def _touch(self) -> None:
        self.updated_at = utcnow()

    # ------------------------------------------------------------------
    # Lifecycle

    def clone(self) -> "Run":
        """Deep copy of the step tree under a new id."""
        return Run(
            automation_id=self.automation_id,
            form_id=self.form_id,
            status=self.status,
            steps=[step.model_copy(deep=True) for step in self.steps],
        )

    def replay(self) -> None:
        """Queue the run for re-execution."""
        self.to_replay = True
        self._touch()

    def replaying(self) -> None:
        """Reopen the run; recorded steps are kept so succeeded work is skipped."""
        self.status = "playing"
        self.error = None
        self.to_replay = False
        self._touch()

    # ------------------------------------------------------------------
    # Step writes

    def start_action_step(
        self, action_path: str, definition: Any, input: Dict[str, Any]
    ) -> ActionStep:
        container = _container(action_path.split("."), self.steps, action_path)
        step = ActionStep(definition=definition, input=input)
        container.append(step)
        self._touch()
        return step

    def start_action_paths_step(
        self,
        definition: SplitIntoPathsFilterAction,
        paths: List[PathStep],
        action_path: Optional[str] = None,
    ) -> PathsStep:
        container = self.steps
        if action_path is not None:
            container = _container(action_path.split("."), self.steps, action_path)
        step = PathsStep(
            definition=PathsStepDefinition(name=definition.name),
            paths=paths,
        )
        container.append(step)
        self._touch()
        return step

    def remove_step(self, action_path: str) -> None:
        segments = action_path.split(".")
        container = _container(segments, self.steps, action_path, strict=False)
        if container is None:
            return
        for index, step in enumerate(container):
            if isinstance(step, TriggerStep):
                continue
            if step.name == segments[-1]:
                del container[index]
                self._touch()
                return

    def success_action_step(self, action_path: str, output: Any) -> None:
        step = self.get_action_or_paths_step_or_raise(action_path)
        if isinstance(step, ActionStep):
            step.output = output
        step.finished_at = utcnow()
        self._touch()

    def filter_action_step(self, action_path: str, result: Any) -> None:
        """Finish the step and mark the run filtered; first terminal event wins."""
        if self.status != "playing":
            return
        step = self.get_action_or_paths_step_or_raise(action_path)
        if isinstance(step, ActionStep):
            step.output = result
        step.finished_at = utcnow()
        self.status = "filtered"
        self._touch()

    def stop_action_step(self, action_path: str, error: StepError) -> None:
        """Record ``error`` and stop the run.

        Accepted from ``playing`` and ``filtered``. When ``action_path`` does
        not address a recorded step (e.g. ``"execution"``), the error is kept
        on the run itself.
        """
        if self.status not in ("playing", "filtered"):
            return
        step = self.get_action_or_paths_step(action_path)
        if step is None:
            self.error = error
        else:
            if isinstance(step, ActionStep):
                step.error = error
            step.finished_at = utcnow()
        self.status = "stopped"
        self._touch()

    def run_succeed(self) -> None:
        if self.status == "playing":
            self.status = "success"
            self._touch()

    # ------------------------------------------------------------------
    # Step reads

    def get_action_or_paths_step(
        self, action_path: str, steps: Optional[List[Any]] = None
    ) -> ActionStep | PathsStep | None:
        return _lookup(
            action_path.split("."),
            self.steps if steps is None else steps,
            action_path,
        )

    def get_action_or_paths_step_or_raise(
        self, action_path: str
    ) -> ActionStep | PathsStep:
        step = self.get_action_or_paths_step(action_path)
        if step is None:
            raise StepNotFound(action_path)
        return step

    def is_step_executed(self, action_path: str) -> bool:
        step = self.get_action_or_paths_step(action_path)
        if step is None:
            return False
        if isinstance(step, ActionStep):
            return step.output is not None or step.error is not None
        return True

    def is_step_executed_with_success(self, action_path: str) -> bool:
        step = self.get_action_or_paths_step(action_path)
        if step is None:
            return False
        if isinstance(step, ActionStep):
            return step.error is None and step.finished
        return not step.has_errors()

    def get_steps_output(self) -> Dict[str, Any]:
        """Template context: step name to output, branches nested by path name."""

        def build(steps: List[Any]) -> Dict[str, Any]:
            output: Dict[str, Any] = {}
            for step in steps:
                if isinstance(step, PathsStep):
                    output[step.name] = {
                        path.name: build(path.actions) for path in step.paths
                    }
                elif isinstance(step, ActionStep):
                    output[step.name] = step.output if step.output is not None else {}
            return output

        trigger, *actions = self.steps
        return {**build(actions), "trigger": trigger.output}

    def get_last_action_step(self) -> ActionStep | PathsStep | None:
        actions = self.steps[1:]
        return actions[-1] if actions else None

    def get_last_action_step_data(self) -> Any:
        def build(step: Any) -> Any:
            if isinstance(step, PathsStep):
                return {
                    path.name: build(path.actions[-1])
                    for path in step.paths
                    if path.actions
                }
            return step.output if step.output is not None else {}

        last = self.get_last_action_step()
        if last is None:
            return {}
        return build(last)

    def get_error_message(self) -> Optional[str]:
        error = find_first_error(self.steps[1:]) or self.error
        return error.message if error is not None else None


__all__ = ["Run", "RunStatus"]
