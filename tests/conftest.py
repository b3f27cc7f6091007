"""Shared fixtures: fake collaborators and automation builders."""

from types import SimpleNamespace

import pytest

from flowrun import App, AutomationOrchestrator
from flowrun.persistence import InMemoryRunRepository
from flowrun.services import (
    ActionServices,
    ConditionFilter,
    InMemoryDatabase,
    IntegrationRegistry,
    JinjaTemplateFiller,
)


class FakeCodeRunner:
    def __init__(self):
        self.calls = []
        self.result = {"ran": True}

    async def run_typescript(self, code, input_data):
        self.calls.append(("typescript", code, input_data))
        return self.result

    async def run_javascript(self, code, input_data):
        self.calls.append(("javascript", code, input_data))
        return self.result


class FakeHttpClient:
    def __init__(self):
        self.calls = []
        self.responses = {}

    async def get(self, url, headers=None):
        self.calls.append(("GET", url, headers, None))
        return self._respond(url)

    async def post(self, url, headers=None, body=None):
        self.calls.append(("POST", url, headers, body))
        return self._respond(url)

    def _respond(self, url):
        response = self.responses.get(url, {"status": "ok"})
        if isinstance(response, Exception):
            raise response
        return response


class FakeIntegration:
    """Handler for the ``fake`` service.

    Returns ``params["result"]``, raises ``params["error"]``, and raises
    ``"boom"`` for any action whose name is in ``failing``.
    """

    def __init__(self):
        self.calls = []
        self.failing = set()

    async def __call__(self, action, connection):
        self.calls.append(action.name)
        if action.name in self.failing:
            raise RuntimeError("boom")
        if "error" in action.params:
            raise RuntimeError(action.params["error"])
        return action.params.get("result", {"ok": True})


class RecordingAlerter:
    def __init__(self):
        self.alerts = []

    async def send_alert(self, run, automation, message):
        self.alerts.append((run.id, automation.name, message))


@pytest.fixture
def integration():
    return FakeIntegration()


@pytest.fixture
def services(integration):
    registry = IntegrationRegistry()
    registry.register("fake", integration)
    return ActionServices(
        code=FakeCodeRunner(),
        http=FakeHttpClient(),
        database=InMemoryDatabase(),
        integrations=registry,
        template=JinjaTemplateFiller(),
        filter=ConditionFilter(),
    )


@pytest.fixture
def repository():
    return InMemoryRunRepository()


@pytest.fixture
def alerter():
    return RecordingAlerter()


@pytest.fixture
def orchestrator(services, repository, alerter):
    return AutomationOrchestrator(services, repository, alerter=alerter)


def _fake(name, **params):
    return {
        "name": name,
        "service": "fake",
        "action": "run",
        "account": "fake",
        "params": params,
    }


def _split(name, *paths):
    return {
        "name": name,
        "service": "filter",
        "action": "split-into-paths",
        "params": list(paths),
    }


def _path(name, *actions, passes=True, filter=None):
    return {
        "name": name,
        "filter": filter or {"target": passes, "operator": "is-true"},
        "actions": list(actions),
    }


def _only_continue_if(name, target, operator="is-true", value=None):
    return {
        "name": name,
        "service": "filter",
        "action": "only-continue-if",
        "params": {"target": target, "operator": operator, "value": value},
    }


def _app(*actions, automation_id=1, name="auto"):
    return App(
        automations=[
            {
                "id": automation_id,
                "name": name,
                "trigger": {"service": "http", "event": "post", "params": {"path": "/hook"}},
                "actions": list(actions),
            }
        ],
        tables=[{"id": 1, "name": "contacts"}],
        connections=[{"id": 1, "name": "fake", "service": "fake"}],
    )


@pytest.fixture
def build():
    """Builders for action, path and app definitions."""
    return SimpleNamespace(
        fake=_fake,
        split=_split,
        path=_path,
        only_continue_if=_only_continue_if,
        app=_app,
    )
