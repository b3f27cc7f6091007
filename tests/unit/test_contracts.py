import pytest
from pydantic import TypeAdapter, ValidationError

from flowrun.app import App, load_app
from flowrun.contracts import (
    ActionSchema,
    Automation,
    CreateRecordDatabaseAction,
    GetHttpAction,
    IntegrationAction,
    OnlyContinueIfFilterAction,
    RunJavascriptCodeAction,
    SplitIntoPathsFilterAction,
)
from flowrun.errors import ConfigurationError, PathNotFound

adapter = TypeAdapter(ActionSchema)


def test_builtin_actions_resolve_to_their_models():
    assert isinstance(
        adapter.validate_python(
            {
                "name": "js",
                "service": "code",
                "action": "run-javascript",
                "params": {"code": "return 1"},
            }
        ),
        RunJavascriptCodeAction,
    )
    assert isinstance(
        adapter.validate_python(
            {"name": "g", "service": "http", "action": "get", "params": {"url": "http://x"}}
        ),
        GetHttpAction,
    )
    assert isinstance(
        adapter.validate_python(
            {
                "name": "f",
                "service": "filter",
                "action": "only-continue-if",
                "params": {"target": True, "operator": "is-true"},
            }
        ),
        OnlyContinueIfFilterAction,
    )
    assert isinstance(
        adapter.validate_python(
            {
                "name": "rec",
                "service": "database",
                "action": "create-record",
                "params": {"table": "contacts", "fields": {"a": 1}},
            }
        ),
        CreateRecordDatabaseAction,
    )


def test_unknown_service_is_an_integration_action():
    action = adapter.validate_python(
        {
            "name": "post-message",
            "service": "slack",
            "action": "send-message",
            "account": 3,
            "params": {"text": "hi"},
        }
    )
    assert isinstance(action, IntegrationAction)
    assert action.account == 3


def test_unknown_builtin_action_is_rejected():
    with pytest.raises(ValidationError):
        adapter.validate_python(
            {"name": "x", "service": "http", "action": "delete", "params": {"url": "u"}}
        )


def test_definitions_are_immutable():
    action = adapter.validate_python(
        {"name": "g", "service": "http", "action": "get", "params": {"url": "http://x"}}
    )
    with pytest.raises(ValidationError):
        action.name = "other"


def _automation():
    return Automation(
        id=1,
        name="auto",
        trigger={"service": "http", "event": "post"},
        actions=[
            {
                "name": "split",
                "service": "filter",
                "action": "split-into-paths",
                "params": [
                    {
                        "name": "left",
                        "filter": {},
                        "actions": [
                            {
                                "name": "inner",
                                "service": "filter",
                                "action": "split-into-paths",
                                "params": [{"name": "deep", "filter": {}, "actions": []}],
                            }
                        ],
                    }
                ],
            }
        ],
    )


def test_find_path_resolves_nested_branches():
    automation = _automation()
    assert isinstance(automation.actions[0], SplitIntoPathsFilterAction)
    assert automation.find_path("split.left").name == "left"
    assert automation.find_path("split.left.inner.deep").name == "deep"


@pytest.mark.parametrize("name", ["split", "split.right", "nope.left", "split.left.inner"])
def test_find_path_raises_for_unknown_paths(name):
    with pytest.raises(PathNotFound):
        _automation().find_path(name)


def test_app_lookups_by_name_or_id():
    app = App(
        automations=[{"id": 7, "name": "auto", "trigger": {"service": "http", "event": "post"}}],
        tables=[{"id": 1, "name": "contacts"}],
        connections=[{"id": 2, "name": "crm", "service": "hubspot"}],
    )
    assert app.find_table("contacts").id == 1
    assert app.find_table(1).name == "contacts"
    assert app.find_connection("2").name == "crm"
    assert app.find_automation(7).name == "auto"
    assert app.find_automation("missing") is None


def test_app_rejects_duplicate_names():
    with pytest.raises(ConfigurationError):
        App(tables=[{"id": 1, "name": "t"}, {"id": 2, "name": "t"}])


def test_load_app_from_yaml(tmp_path):
    path = tmp_path / "app.yaml"
    path.write_text(
        """
name: demo
tables:
  - id: 1
    name: contacts
automations:
  - id: 1
    name: welcome
    trigger:
      service: http
      event: post
    actions:
      - name: save
        service: database
        action: create-record
        params:
          table: contacts
          fields:
            name: "{{ trigger.body.name }}"
"""
    )
    app = load_app(path)
    assert app.name == "demo"
    automation = app.find_automation("welcome")
    assert isinstance(automation.actions[0], CreateRecordDatabaseAction)
    assert automation.actions[0].params.fields == {"name": "{{ trigger.body.name }}"}
