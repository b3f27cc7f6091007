import asyncio
import json

import pytest
from typer.testing import CliRunner

import flowrun.persistence as persistence
from flowrun.cli import app
from flowrun.persistence import InMemoryRunRepository
from flowrun.run import Run
from flowrun.steps import StepError

APP_YAML = """
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
      - name: reply
        service: http
        action: response
        params:
          greeting: "Hello {{ save.fields.name }}"
"""


@pytest.fixture
def app_file(tmp_path):
    path = tmp_path / "app.yaml"
    path.write_text(APP_YAML)
    return path


@pytest.fixture(autouse=True)
def _isolated(tmp_path, monkeypatch):
    monkeypatch.setenv("FLOWRUN_CONFIG", str(tmp_path / "absent.yaml"))
    monkeypatch.delenv("FLOWRUN_DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)


def _setup_repo() -> InMemoryRunRepository:
    repo = InMemoryRunRepository()
    persistence._repository_instance = repo
    return repo


def _stopped_run(repo) -> Run:
    run = Run.from_trigger(1, {"body": {"name": "Ada"}})
    run.stop_action_step("execution", StepError(message="worker crashed"))
    asyncio.run(repo.create(run))
    return run


def test_runs_list_shows_status_and_error():
    repo = _setup_repo()
    stopped = _stopped_run(repo)
    ok = Run.from_trigger(2, {})
    ok.run_succeed()
    asyncio.run(repo.create(ok))

    runner = CliRunner()
    result = runner.invoke(app, ["runs", "list"])
    assert result.exit_code == 0, f"Output: {result.stdout}"
    assert stopped.id in result.stdout
    assert "worker crashed" in result.stdout
    assert ok.id in result.stdout

    filtered = runner.invoke(app, ["runs", "list", "--automation-id", "2"])
    assert ok.id in filtered.stdout
    assert stopped.id not in filtered.stdout


def test_runs_list_empty():
    _setup_repo()
    result = CliRunner().invoke(app, ["runs", "list"])
    assert result.exit_code == 0
    assert "No runs found" in result.stdout


def test_runs_show_details_and_missing():
    repo = _setup_repo()
    run = Run.from_trigger(1, {"body": {"name": "Ada"}})
    run.start_action_step(
        "save",
        {"name": "save", "service": "fake", "action": "run", "account": "fake"},
        {},
    )
    run.success_action_step("save", {"id": 1})
    asyncio.run(repo.create(run))

    runner = CliRunner()
    result = runner.invoke(app, ["runs", "show", run.id])
    assert result.exit_code == 0, f"Output: {result.stdout}"
    assert f"Run {run.id}: playing" in result.stdout
    assert "save: done" in result.stdout
    assert '"name": "Ada"' in result.stdout

    missing = runner.invoke(app, ["runs", "show", "missing-id"])
    assert missing.exit_code == 1
    assert "Run not found" in missing.stdout


def test_trigger_command_runs_automation(app_file):
    repo = _setup_repo()
    result = CliRunner().invoke(
        app,
        ["trigger", "welcome", "--app", str(app_file), "--payload", json.dumps({"body": {"name": "Ada"}})],
    )
    assert result.exit_code == 0, f"Output: {result.stdout}"
    assert "success" in result.stdout

    (run,) = asyncio.run(repo.list_runs())
    assert run.status == "success"
    assert run.get_last_action_step_data() == {"greeting": "Hello Ada"}


def test_trigger_command_unknown_automation(app_file):
    _setup_repo()
    result = CliRunner().invoke(app, ["trigger", "nope", "--app", str(app_file)])
    assert result.exit_code == 1
    assert "Automation not found" in result.stdout


def test_trigger_command_inactive_automation(tmp_path):
    repo = _setup_repo()
    path = tmp_path / "inactive.yaml"
    path.write_text(APP_YAML.replace("    name: welcome\n", "    name: welcome\n    active: false\n"))
    result = CliRunner().invoke(app, ["trigger", "welcome", "--app", str(path)])
    assert result.exit_code == 1
    assert result.exception is None or isinstance(result.exception, SystemExit)
    assert "is not active" in result.stdout
    assert asyncio.run(repo.list_runs()) == []


def test_replay_command_resumes_stopped_run(app_file):
    repo = _setup_repo()
    run = _stopped_run(repo)

    result = CliRunner().invoke(app, ["runs", "replay", run.id, "--app", str(app_file)])
    assert result.exit_code == 0, f"Output: {result.stdout}"
    assert f"Run {run.id}: success" in result.stdout

    missing = CliRunner().invoke(app, ["runs", "replay", "missing", "--app", str(app_file)])
    assert missing.exit_code == 1


def test_replay_queued_command(app_file):
    repo = _setup_repo()
    run = _stopped_run(repo)
    run.replay()
    asyncio.run(repo.update(run))

    runner = CliRunner()
    result = runner.invoke(app, ["runs", "replay-queued", "--app", str(app_file)])
    assert result.exit_code == 0, f"Output: {result.stdout}"
    assert f"Run {run.id}: success" in result.stdout

    again = runner.invoke(app, ["runs", "replay-queued", "--app", str(app_file)])
    assert "No runs queued for replay" in again.stdout
