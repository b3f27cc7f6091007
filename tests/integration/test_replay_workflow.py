import pytest

from flowrun import AutomationOrchestrator
from flowrun.persistence import SQLiteRunRepository


@pytest.mark.asyncio
async def test_run_survives_restart_and_replays(tmp_path, services, alerter, integration, build):
    db_path = tmp_path / "runs.db"
    app = build.app(
        build.fake("fetch", result={"email": "{{ trigger.body.email }}"}),
        build.split(
            "route",
            build.path("notify", build.fake("send", result={"to": "{{ fetch.email }}"})),
            build.path("archive", build.fake("store"), passes=False),
        ),
        build.fake("done"),
    )
    automation = app.automations[0]
    integration.failing.add("send")

    first = AutomationOrchestrator(services, SQLiteRunRepository(db_path), alerter=alerter)
    run = await first.trigger(app, automation, {"body": {"email": "ada@example.com"}})
    assert run.status == "stopped"
    assert len(alerter.alerts) == 1

    # a fresh process sees the same step tree
    integration.failing.clear()
    repo = SQLiteRunRepository(db_path)
    stored = await repo.get(run.id)
    assert stored.status == "stopped"
    assert stored.get_error_message() == "boom"

    second = AutomationOrchestrator(services, repo, alerter=alerter)
    replayed = await second.replay(app, run.id)

    assert replayed.status == "success"
    assert integration.calls == ["fetch", "send", "send", "done"]
    final = await SQLiteRunRepository(db_path).get(run.id)
    assert final.status == "success"
    assert final.get_action_or_paths_step("route.notify.send").output == {
        "to": "ada@example.com"
    }
    assert final.get_error_message() is None
