"""Action dispatcher: runs exactly one action of an automation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, assert_never

from .contracts import (
    CreateRecordDatabaseAction,
    GetHttpAction,
    IntegrationAction,
    OnlyContinueIfFilterAction,
    PostHttpAction,
    ResponseHttpAction,
    RunJavascriptCodeAction,
    RunTypescriptCodeAction,
    SplitIntoPathsFilterAction,
)
from .run import Run
from .services import ActionResult, ActionServices
from .steps import PathDefinition, PathStep, StepError

if TYPE_CHECKING:
    from .app import App
    from .contracts import ActionSchema
    from .persistence import RunRepository

logger = logging.getLogger(__name__)


class ActionDispatcher:
    """Resolve an action's inputs, invoke its service and normalize the result.

    Every failure is returned as ``ActionResult(error=...)``; deciding whether
    it stops the run is left to the orchestrator. The dispatcher never retries.
    """

    def __init__(self, services: ActionServices, repository: RunRepository) -> None:
        self._services = services
        self._repository = repository

    async def execute(
        self, app: App, action: ActionSchema, run: Run, action_path: str
    ) -> ActionResult:
        logger.debug(f'running action "{action_path}"')
        try:
            return await self._dispatch(app, action, run, action_path)
        except Exception as e:
            logger.error(f'action "{action_path}" raised: {e}')
            return ActionResult(error=StepError(message=str(e) or type(e).__name__))

    async def _dispatch(
        self, app: App, action: ActionSchema, run: Run, action_path: str
    ) -> ActionResult:
        services = self._services
        data: Any

        async def fill(params: Any) -> Any:
            return await self.fill_input_data(params, action_path, action, run)

        match action:
            case RunTypescriptCodeAction():
                params = await fill(action.params.model_dump())
                data = await services.code.run_typescript(
                    params["code"], params["input_data"]
                )
            case RunJavascriptCodeAction():
                params = await fill(action.params.model_dump())
                data = await services.code.run_javascript(
                    params["code"], params["input_data"]
                )
            case GetHttpAction():
                params = await fill(action.params.model_dump())
                data = await services.http.get(params["url"], headers=params["headers"])
            case PostHttpAction():
                params = await fill(action.params.model_dump())
                data = await services.http.post(
                    params["url"], headers=params["headers"], body=params["body"]
                )
            case ResponseHttpAction():
                data = await fill(dict(action.params))
            case OnlyContinueIfFilterAction():
                conditions = await fill(dict(action.params))
                data = services.filter.evaluate(conditions)
            case SplitIntoPathsFilterAction():
                data = await self._split_into_paths(action, run, action_path)
            case CreateRecordDatabaseAction():
                params = await fill(action.params.model_dump())
                table = app.find_table(params["table"])
                if table is None:
                    raise LookupError(f"Table not found: {params['table']}")
                data = await services.database.create_record(table.name, params["fields"])
            case IntegrationAction():
                connection = app.find_connection(action.account)
                if connection is None:
                    raise LookupError(
                        f"Connection not found for account {action.account}"
                    )
                params = await fill(dict(action.params))
                filled = action.model_copy(update={"params": params})
                return await services.integrations.run_integration(filled, connection)
            case _:
                assert_never(action)

        if data is None:
            data = {}
        return ActionResult(data=data)

    async def fill_input_data(
        self, params: Any, action_path: str, action: ActionSchema, run: Run
    ) -> Any:
        """Bind ``params`` against the run's outputs and record the step start.

        The started step is persisted before the service is invoked so an
        interrupted attempt is visible on replay.
        """
        filled = self._services.template.fill(params, run.get_steps_output())
        run.start_action_step(action_path, action, filled)
        await self._repository.update(run)
        return filled

    async def _split_into_paths(
        self, action: SplitIntoPathsFilterAction, run: Run, action_path: str
    ) -> Dict[str, Any]:
        decisions: Dict[str, Any] = {}
        path_steps: List[PathStep] = []
        logger.debug(f"split-into-paths: processing {len(action.params)} paths")
        for path in action.params:
            definition = PathDefinition(name=path.name, filter=path.filter)
            try:
                conditions = self._services.template.fill(
                    dict(path.filter), run.get_steps_output()
                )
                result = self._services.filter.evaluate(conditions)
                logger.debug(f"split-into-paths: path {path.name} -> {result}")
                path_steps.append(
                    PathStep(definition=definition, input=conditions, output=result)
                )
            except Exception as e:
                logger.error(f"split-into-paths: error processing path {path.name}: {e}")
                result = {"can_continue": False, "error": str(e)}
                path_steps.append(
                    PathStep(definition=definition, input=dict(path.filter), output=result)
                )
            decisions[path.name] = result
        run.start_action_paths_step(action, path_steps, action_path)
        await self._repository.update(run)
        return decisions
