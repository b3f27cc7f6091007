"""Automation orchestrator: runs an automation's actions against a run."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from .contracts import Automation, SplitIntoPathsFilterAction
from .dispatch import ActionDispatcher
from .errors import ActionExecutionError, PathAggregateFailure
from .run import Run
from .services import ActionServices, Alerter, LoggingAlerter
from .steps import PathsStep, StepError

if TYPE_CHECKING:
    from .app import App
    from .contracts import ActionSchema
    from .persistence import RunRepository

logger = logging.getLogger(__name__)


class AutomationOrchestrator:
    """Executes automations step by step and finalizes their runs.

    Actions run strictly one after another, sibling branch paths included.
    Steps that already succeeded are skipped, so re-executing a run after
    :meth:`Run.replaying` resumes at the first failed or missing step.
    """

    def __init__(
        self,
        services: ActionServices,
        repository: RunRepository,
        alerter: Optional[Alerter] = None,
    ) -> None:
        self._repository = repository
        self._dispatcher = ActionDispatcher(services, repository)
        self._alerter = alerter or LoggingAlerter()

    # ------------------------------------------------------------------
    # Entry points

    async def trigger(
        self,
        app: App,
        automation: Automation,
        payload: Dict[str, Any],
        form_id: Optional[int] = None,
    ) -> Run:
        """Create a run from a trigger event and execute it."""
        if not automation.active:
            raise ValueError(f'Automation "{automation.name}" is not active')
        run = Run.from_trigger(
            automation.id, payload, definition=automation.trigger, form_id=form_id
        )
        await self._repository.create(run)
        logger.info(f'run {run.id} created for automation "{automation.name}"')
        await self.execute(app, run, automation)
        return run

    async def replay(self, app: App, run_id: str) -> Run:
        """Reopen a stored run and execute the steps it has not completed."""
        run = await self._repository.get(run_id)
        if run is None:
            raise LookupError(f"Run {run_id} not found")
        automation = app.find_automation(run.automation_id)
        if automation is None:
            raise LookupError(f"Automation {run.automation_id} not found")
        logger.info(f"replaying run {run.id}")
        run.replaying()
        await self._repository.update(run)
        await self.execute(app, run, automation)
        return run

    async def replay_queued(self, app: App) -> list[Run]:
        """Replay every stored run flagged with :meth:`Run.replay`."""
        replayed = []
        for queued in await self._repository.list_to_replay():
            replayed.append(await self.replay(app, queued.id))
        return replayed

    async def execute(
        self,
        app: App,
        run: Run,
        automation: Automation,
        path_name: Optional[str] = None,
    ) -> None:
        """Execute the whole automation, or one branch when ``path_name`` is set.

        Branch executions re-raise failures so the parent split can collect
        them; whole-automation executions never raise and finalize the run.
        """
        try:
            if path_name:
                await self._execute_path(app, run, automation, path_name)
            else:
                await self._execute_automation(app, run, automation)
        except Exception as e:
            if path_name:
                logger.error(f'path "{path_name}" failed: {e}')
                raise
            message = f'automation "{automation.name}" failed: {e}'
            logger.error(message, exc_info=True)
            run.stop_action_step("execution", StepError(message=str(e)))
            await self._repository.update(run)
            await self._send_alert(run, automation, message)

    # ------------------------------------------------------------------
    # Sequencing

    async def _execute_path(
        self, app: App, run: Run, automation: Automation, path_name: str
    ) -> None:
        logger.info(f'playing path "{path_name}"')
        path = automation.find_path(path_name)
        if not path.actions:
            logger.debug(f'path "{path_name}" has no actions')
        for action in path.actions:
            action_path = f"{path_name}.{action.name}"
            if run.is_step_executed_with_success(action_path):
                logger.debug(f'action "{action_path}" has already been successfully run')
                if isinstance(action, SplitIntoPathsFilterAction):
                    if not await self._resume_paths(
                        app, run, automation, action, action_path, path_name
                    ):
                        break
                continue
            run.remove_step(action_path)
            if not await self._run_action(app, run, automation, action, path_name):
                break
        logger.info(f'path "{path_name}" finished')

    async def _execute_automation(
        self, app: App, run: Run, automation: Automation
    ) -> None:
        logger.info(f'playing automation "{automation.name}"')
        if not automation.actions:
            logger.debug(f'automation "{automation.name}" has no actions')
            run.run_succeed()
            await self._repository.update(run)
            logger.info(f'automation "{automation.name}" finished')
            return

        all_succeeded = True
        for action in automation.actions:
            if isinstance(action, SplitIntoPathsFilterAction):
                step = run.get_action_or_paths_step(action.name)
                if isinstance(step, PathsStep) and step.has_errors():
                    logger.debug(f'action "{action.name}" has path errors, re-executing')
                    run.remove_step(action.name)
                    if not await self._run_action(app, run, automation, action):
                        all_succeeded = False
                        break
                    continue

            if run.is_step_executed_with_success(action.name):
                logger.debug(f'action "{action.name}" has already been successfully run')
                if isinstance(action, SplitIntoPathsFilterAction):
                    if not await self._resume_paths(
                        app, run, automation, action, action.name
                    ):
                        all_succeeded = False
                        break
                continue
            run.remove_step(action.name)
            if not await self._run_action(app, run, automation, action):
                all_succeeded = False
                break

        if all_succeeded:
            run.run_succeed()
        elif run.status != "filtered":
            message = "Automation stopped due to action failure"
            logger.error(message)
            run.stop_action_step("execution", StepError(message=message))
        await self._repository.update(run)
        logger.info(f'automation "{automation.name}" finished')

    async def _run_action(
        self,
        app: App,
        run: Run,
        automation: Automation,
        action: ActionSchema,
        path_name: Optional[str] = None,
    ) -> bool:
        """Dispatch one action and record its outcome; return whether to continue."""
        action_path = f"{path_name}.{action.name}" if path_name else action.name
        result = await self._dispatcher.execute(app, action, run, action_path)

        if result.error is not None:
            if run.get_action_or_paths_step(action_path) is None:
                # failed before its step was recorded; keep the failure in the tree
                run.start_action_step(action_path, action, {})
            await self._stop(run, automation, action_path, result.error, path_name)
            return False

        data = result.data
        if (
            action.service == "filter"
            and isinstance(data, dict)
            and data.get("can_continue") is False
        ):
            await self._filter(run, action_path, data)
            return False

        if isinstance(data, list):
            return await self._fan_out(run, action, action_path, data)

        run.success_action_step(action_path, data)
        await self._repository.update(run)

        if isinstance(action, SplitIntoPathsFilterAction):
            if not await self._continue_split(
                app, run, automation, action, action_path, data, path_name
            ):
                return False

        logger.info(f'action "{action_path}" succeeded')
        return True

    async def _resume_paths(
        self,
        app: App,
        run: Run,
        automation: Automation,
        action: SplitIntoPathsFilterAction,
        action_path: str,
        path_name: Optional[str] = None,
    ) -> bool:
        """Walk the passing paths of a split recorded by an earlier attempt.

        Branch steps that already succeeded are skipped, so only the work a
        fan-out clone or an interrupted attempt left behind runs.
        """
        step = run.get_action_or_paths_step_or_raise(action_path)
        decisions = {path.name: path.output for path in step.paths}
        return await self._continue_split(
            app, run, automation, action, action_path, decisions, path_name
        )

    async def _continue_split(
        self,
        app: App,
        run: Run,
        automation: Automation,
        action: SplitIntoPathsFilterAction,
        action_path: str,
        decisions: Dict[str, Any],
        path_name: Optional[str] = None,
    ) -> bool:
        try:
            await self._execute_paths(app, run, automation, action, action_path, decisions)
        except Exception as e:
            logger.error(
                f"split-into-paths action {action_path} failed during path execution: {e}"
            )
            error = StepError(message=f"Path failure in multi-step execution: {e}")
            await self._stop(run, automation, action_path, error, path_name)
            return False
        step = run.get_action_or_paths_step(action_path)
        if isinstance(step, PathsStep):
            if all(not path.can_continue for path in step.paths):
                await self._filter(run, action_path, decisions)
                return False
            failed = next((p for p in step.paths if p.has_errors()), None)
            if failed is not None:
                first = failed.first_error()
                message = "Path failure in multi-step execution"
                if first is not None:
                    message = f"{message}: {first.message}"
                await self._stop(
                    run, automation, action_path, StepError(message=message), path_name
                )
                return False
        return True

    async def _fan_out(
        self, run: Run, action: ActionSchema, action_path: str, items: list[Any]
    ) -> bool:
        """Continue the run with the first item and clone it for every other one.

        Clones are flagged for replay so a replay sweep resumes them after the
        fanned-out step.
        """
        if not items:
            await self._filter(run, action_path, {"can_continue": False, "items": []})
            return False
        for index, item in enumerate(items):
            output = dict(item) if isinstance(item, dict) else {"value": item}
            output["index"] = index + 1
            if index == 0:
                run.success_action_step(action_path, output)
                await self._repository.update(run)
                logger.info(f'action "{action_path}" succeeded')
            else:
                clone = run.clone()
                clone.success_action_step(action_path, output)
                clone.replay()
                await self._repository.create(clone)
                logger.debug(f'created run {clone.id} for item {index + 1} of "{action_path}"')
        return True

    async def _execute_paths(
        self,
        app: App,
        run: Run,
        automation: Automation,
        action: SplitIntoPathsFilterAction,
        action_path: str,
        decisions: Dict[str, Any],
    ) -> None:
        failures: list[str] = []
        for path in action.params:
            path_name = f"{action_path}.{path.name}"
            decision = decisions.get(path.name)
            if not (isinstance(decision, dict) and decision.get("can_continue") is True):
                logger.info(f"skipping path {path_name}: filter did not pass")
                continue
            try:
                await self.execute(app, run, automation, path_name)
            except Exception as e:
                logger.error(f"path execution failed for {path_name}: {e}")
                failures.append(str(e))
        if failures:
            raise PathAggregateFailure(f"Path failure: {failures[0]}", failures)

    # ------------------------------------------------------------------
    # Outcomes

    async def _stop(
        self,
        run: Run,
        automation: Automation,
        action_path: str,
        error: StepError,
        path_name: Optional[str] = None,
    ) -> None:
        """Record a failed action.

        Inside a branch the failure is raised to the parent split, which
        reports it; at top level the alert is sent here.
        """
        message = f'action "{action_path}" stopped with error: {error.message}'
        logger.error(message)
        run.stop_action_step(action_path, error)
        await self._repository.update(run)
        if path_name:
            raise ActionExecutionError(message, action_path)
        await self._send_alert(run, automation, message)

    async def _filter(self, run: Run, action_path: str, data: Any) -> None:
        logger.info(f'action "{action_path}" filtered')
        run.filter_action_step(action_path, data)
        await self._repository.update(run)

    async def _send_alert(self, run: Run, automation: Automation, message: str) -> None:
        try:
            await self._alerter.send_alert(run, automation, message)
        except Exception as e:
            logger.error(f"failed to send alert for run {run.id}: {e}")
