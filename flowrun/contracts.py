"""Definition contracts for automations, actions and branch paths."""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag

from .errors import PathNotFound

BUILTIN_SERVICES = ("code", "http", "filter", "database")


class Definition(BaseModel):
    """Immutable configuration object."""

    model_config = ConfigDict(frozen=True)


class TriggerSchema(Definition):
    """Event that creates a run (HTTP call, webhook, schedule, record change)."""

    service: str
    event: str
    params: Dict[str, Any] = Field(default_factory=dict)


# ----------------------------------------------------------------------
# Action parameters


class CodeParams(Definition):
    code: str
    input_data: Dict[str, Any] = Field(default_factory=dict)


class HttpGetParams(Definition):
    url: str
    headers: Dict[str, str] = Field(default_factory=dict)


class HttpPostParams(Definition):
    url: str
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Any = Field(default_factory=dict)


class CreateRecordParams(Definition):
    table: Union[str, int]
    fields: Dict[str, Any] = Field(default_factory=dict)


# ----------------------------------------------------------------------
# Actions


class BaseAction(Definition):
    """Fields shared by every action definition."""

    name: str
    service: str
    action: str


class RunTypescriptCodeAction(BaseAction):
    service: Literal["code"] = "code"
    action: Literal["run-typescript"] = "run-typescript"
    params: CodeParams


class RunJavascriptCodeAction(BaseAction):
    service: Literal["code"] = "code"
    action: Literal["run-javascript"] = "run-javascript"
    params: CodeParams


class GetHttpAction(BaseAction):
    service: Literal["http"] = "http"
    action: Literal["get"] = "get"
    params: HttpGetParams


class PostHttpAction(BaseAction):
    service: Literal["http"] = "http"
    action: Literal["post"] = "post"
    params: HttpPostParams


class ResponseHttpAction(BaseAction):
    """Builds the response returned to an HTTP trigger caller."""

    service: Literal["http"] = "http"
    action: Literal["response"] = "response"
    params: Dict[str, Any] = Field(default_factory=dict)


class OnlyContinueIfFilterAction(BaseAction):
    """Stops the run without failing it unless ``params`` conditions hold."""

    service: Literal["filter"] = "filter"
    action: Literal["only-continue-if"] = "only-continue-if"
    params: Dict[str, Any]


class PathSchema(Definition):
    """A named, conditionally entered branch of a split."""

    name: str
    filter: Dict[str, Any]
    actions: List["ActionSchema"] = Field(default_factory=list)


class SplitIntoPathsFilterAction(BaseAction):
    """Evaluates each path filter and runs every path allowed to continue."""

    service: Literal["filter"] = "filter"
    action: Literal["split-into-paths"] = "split-into-paths"
    params: List[PathSchema]


class CreateRecordDatabaseAction(BaseAction):
    service: Literal["database"] = "database"
    action: Literal["create-record"] = "create-record"
    params: CreateRecordParams


class IntegrationAction(BaseAction):
    """Action run against a third-party integration through a connection."""

    account: Union[str, int]
    params: Dict[str, Any] = Field(default_factory=dict)


def _action_tag(value: Any) -> str:
    if isinstance(value, dict):
        service, action = value.get("service"), value.get("action")
    else:
        service = getattr(value, "service", None)
        action = getattr(value, "action", None)
    if service in BUILTIN_SERVICES:
        return f"{service}/{action}"
    return "integration"


ActionSchema = Annotated[
    Union[
        Annotated[RunTypescriptCodeAction, Tag("code/run-typescript")],
        Annotated[RunJavascriptCodeAction, Tag("code/run-javascript")],
        Annotated[GetHttpAction, Tag("http/get")],
        Annotated[PostHttpAction, Tag("http/post")],
        Annotated[ResponseHttpAction, Tag("http/response")],
        Annotated[OnlyContinueIfFilterAction, Tag("filter/only-continue-if")],
        Annotated[SplitIntoPathsFilterAction, Tag("filter/split-into-paths")],
        Annotated[CreateRecordDatabaseAction, Tag("database/create-record")],
        Annotated[IntegrationAction, Tag("integration")],
    ],
    Discriminator(_action_tag),
]

PathSchema.model_rebuild()
SplitIntoPathsFilterAction.model_rebuild()


class Automation(Definition):
    """A trigger plus the ordered list of actions it runs."""

    id: int
    name: str
    trigger: TriggerSchema
    actions: List[ActionSchema] = Field(default_factory=list)
    active: bool = True

    def find_path(self, path_name: str) -> PathSchema:
        """Resolve a dotted branch name such as ``split.path`` or
        ``split.path.nested-split.nested-path``.

        Raises:
            PathNotFound: If any segment does not match the definition.
        """
        segments = path_name.split(".")
        actions: List[Any] = list(self.actions)
        path: Optional[PathSchema] = None
        while segments:
            if len(segments) < 2:
                raise PathNotFound(path_name)
            action_name, branch_name, *segments = segments
            split = next(
                (
                    a
                    for a in actions
                    if isinstance(a, SplitIntoPathsFilterAction)
                    and a.name == action_name
                ),
                None,
            )
            if split is None:
                raise PathNotFound(path_name)
            path = next((p for p in split.params if p.name == branch_name), None)
            if path is None:
                raise PathNotFound(path_name)
            actions = list(path.actions)
        if path is None:
            raise PathNotFound(path_name)
        return path


__all__ = [
    "ActionSchema",
    "Automation",
    "BaseAction",
    "CodeParams",
    "CreateRecordDatabaseAction",
    "CreateRecordParams",
    "GetHttpAction",
    "HttpGetParams",
    "HttpPostParams",
    "IntegrationAction",
    "OnlyContinueIfFilterAction",
    "PathSchema",
    "PostHttpAction",
    "ResponseHttpAction",
    "RunJavascriptCodeAction",
    "RunTypescriptCodeAction",
    "SplitIntoPathsFilterAction",
    "TriggerSchema",
]
