"""Command line interface for inspecting and replaying automation runs."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, List, Optional

import typer

from flowrun import AutomationOrchestrator, get_repository, load_app, load_config
from flowrun.services import build_services, get_alerter
from flowrun.steps import ActionStep, PathsStep

app = typer.Typer(help="CLI for flowrun automations")

runs_app = typer.Typer(help="Commands for inspecting and replaying runs")

app.add_typer(runs_app, name="runs")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logs"),
) -> None:
    """Flowrun CLI entry point."""
    level = "DEBUG" if verbose else load_config().log_level
    logging.basicConfig(
        level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


def _orchestrator() -> AutomationOrchestrator:
    config = load_config()
    return AutomationOrchestrator(
        build_services(config), get_repository(), alerter=get_alerter(config)
    )


def _format_steps(steps: List[Any], indent: str = "") -> List[str]:
    lines = []
    for step in steps:
        if isinstance(step, PathsStep):
            lines.append(f"{indent}- {step.name}: paths")
            for path in step.paths:
                state = "continue" if path.can_continue else "skipped"
                lines.append(f"{indent}  - {path.name} ({state})")
                lines.extend(_format_steps(path.actions, indent + "    "))
        elif isinstance(step, ActionStep):
            if step.error is not None:
                state = f"error: {step.error.message}"
            elif step.finished:
                state = "done"
            else:
                state = "started"
            timing = f" ({step.started_at} -> {step.finished_at})" if step.finished else ""
            lines.append(f"{indent}- {step.name}: {state}{timing}")
    return lines


@runs_app.command("list")
def runs_list(
    automation_id: Optional[int] = typer.Option(
        None, "--automation-id", help="Only list runs of this automation"
    ),
) -> None:
    """
    List runs with their current status.

    Example:
        flowrun runs list
        # Output: 1b6c...    1    success
        #         9f02...    1    stopped    boom
    """
    repo = get_repository()
    runs = asyncio.run(repo.list_runs(automation_id))
    if not runs:
        typer.echo("No runs found")
        return
    for run in runs:
        line = f"{run.id}\t{run.automation_id}\t{run.status}"
        error = run.get_error_message()
        if error:
            line += f"\t{error}"
        typer.echo(line)


@runs_app.command("show")
def runs_show(run_id: str) -> None:
    """Show a run's status, trigger payload and step tree."""
    repo = get_repository()
    run = asyncio.run(repo.get(run_id))
    if run is None:
        typer.echo("Run not found")
        raise typer.Exit(code=1)
    typer.echo(f"Run {run.id}: {run.status}")
    typer.echo(f"Automation: {run.automation_id}")
    if run.to_replay:
        typer.echo("Queued for replay")
    error = run.get_error_message()
    if error:
        typer.echo(f"Error: {error}")
    typer.echo(f"Trigger: {json.dumps(run.trigger.output, default=str)}")
    for line in _format_steps(run.steps[1:]):
        typer.echo(line)


@runs_app.command("replay")
def runs_replay(
    run_id: str,
    app_path: Path = typer.Option(..., "--app", help="App definition YAML file"),
) -> None:
    """Replay a run, skipping the steps that already succeeded."""
    definition = load_app(app_path)
    try:
        run = asyncio.run(_orchestrator().replay(definition, run_id))
    except LookupError as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.echo(f"Run {run.id}: {run.status}")


@runs_app.command("replay-queued")
def runs_replay_queued(
    app_path: Path = typer.Option(..., "--app", help="App definition YAML file"),
) -> None:
    """Replay every run queued for replay (including fan-out clones)."""
    definition = load_app(app_path)
    runs = asyncio.run(_orchestrator().replay_queued(definition))
    if not runs:
        typer.echo("No runs queued for replay")
        return
    for run in runs:
        typer.echo(f"Run {run.id}: {run.status}")


@app.command("trigger")
def trigger(
    automation: str,
    app_path: Path = typer.Option(..., "--app", help="App definition YAML file"),
    payload: str = typer.Option("{}", help="Trigger payload as JSON"),
) -> None:
    """
    Trigger an automation by name or id and print the resulting run.

    Example:
        flowrun trigger send-welcome --app app.yaml --payload '{"body": {"name": "Ada"}}'
    """
    definition = load_app(app_path)
    target = definition.find_automation(automation)
    if target is None:
        typer.secho(f"Automation not found: {automation}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        typer.secho(f"Invalid payload: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    try:
        run = asyncio.run(_orchestrator().trigger(definition, target, data))
    except ValueError as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.echo(f"Run {run.id}: {run.status}")
    error = run.get_error_message()
    if error:
        typer.echo(f"Error: {error}")


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
