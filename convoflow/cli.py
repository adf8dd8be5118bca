"""Command line interface for inspecting and trying out workflows."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional

import typer

from convoflow import TurnRunner, WorkflowEngine, get_repository
from convoflow.config import load_config
from convoflow.errors import DefinitionError, WorkflowInactiveError, WorkflowNotFoundError
from convoflow.registry import WorkflowRegistry
from convoflow.workflows import load_workflow_file, register_builtin_workflows

app = typer.Typer(help="CLI for convoflow conversational workflows")

workflow_app = typer.Typer(help="Commands for inspecting workflow definitions")
context_app = typer.Typer(help="Commands for inspecting persisted user contexts")

app.add_typer(workflow_app, name="workflow")
app.add_typer(context_app, name="context")

FileOption = typer.Option(
    None, "--file", "-f", help="Additional YAML workflow definition to register"
)


@app.callback()
def main() -> None:
    """convoflow CLI entry point."""
    pass


def _build_engine(files: Optional[List[Path]] = None) -> WorkflowEngine:
    config = load_config()
    logging.basicConfig(level=config.log_level.upper())
    engine = WorkflowEngine(get_repository(), settings=config.engine)
    register_builtin_workflows(engine)
    for path in files or []:
        engine.register_workflow(load_workflow_file(path))
    return engine


@workflow_app.command("list")
def workflow_list(files: Optional[List[Path]] = FileOption) -> None:
    """
    List registered workflows.

    Shows the built-in workflows plus any definition passed with --file,
    one per line with its id, name and whether it can be started.

    Example:
        convoflow workflow list
        # Output: name_collection    Collecte du Nom (Onboarding)    active
    """
    engine = _build_engine(files)
    for definition in engine.workflows.all():
        status = "active" if definition.is_active else "inactive"
        typer.echo(f"{definition.id}\t{definition.name}\t{status}")


@workflow_app.command("show")
def workflow_show(
    workflow_id: str, files: Optional[List[Path]] = FileOption
) -> None:
    """Show the states and transitions of one workflow."""
    engine = _build_engine(files)
    definition = engine.get_workflow(workflow_id)
    if definition is None:
        typer.echo("Workflow not found")
        raise typer.Exit(code=1)

    typer.echo(f"Workflow {definition.id}: {definition.name} (v{definition.version})")
    typer.echo(f"Initial state: {definition.initial_state}")
    for state in definition.states:
        extra = f" handler={state.handler}" if state.handler else ""
        nxt = f" -> {state.next_state}" if state.next_state else ""
        typer.echo(f"- {state.id} [{state.type.value}]{extra}{nxt}")
    for transition in definition.transitions:
        guard = f" if {transition.condition}" if transition.condition else ""
        typer.echo(
            f"  {transition.from_state} -> {transition.to} "
            f"(priority {transition.priority}){guard}"
        )


@workflow_app.command("validate")
def workflow_validate(path: Path) -> None:
    """Check a YAML workflow definition; exit code 1 when invalid."""
    try:
        definition = load_workflow_file(path)
        WorkflowRegistry().register(definition)
    except FileNotFoundError:
        typer.secho(f"File not found: {path}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    except DefinitionError as exc:
        typer.secho(f"Invalid workflow: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.echo(f"Workflow {definition.id} is valid ({len(definition.states)} states)")


@context_app.command("show")
def context_show(user_id: str) -> None:
    """
    Show the persisted workflow contexts of a user, newest first.

    Example:
        convoflow context show +237690000999
        # Output: Context 3: name_collection completed (state completed)
        #         Data: {"user_name": "Ahmed"}
        #         - await_name_input ok
    """
    repo = get_repository()
    contexts = asyncio.run(repo.list_contexts(user_id))
    if not contexts:
        typer.echo("No contexts found")
        raise typer.Exit(code=1)
    for ctx in contexts:
        typer.echo(
            f"Context {ctx.id}: {ctx.workflow_id} {ctx.status.value} "
            f"(state {ctx.current_state})"
        )
        typer.echo(f"Data: {json.dumps(ctx.data, ensure_ascii=False)}")
        if ctx.error_message:
            typer.echo(f"Reason: {ctx.error_message}")
        for step in ctx.history:
            outcome = "ok" if step.success else f"failed ({step.error})"
            typer.echo(f"- {step.state_id} {outcome}")


async def _chat(
    runner: TurnRunner, engine: WorkflowEngine, user_id: str, workflow_id: str
) -> None:
    outcome = await runner.start(user_id, workflow_id)
    if outcome.reply:
        typer.echo(outcome.reply)
    while not outcome.completed:
        text = typer.prompt(">", default="", show_default=False)
        if text == "/quit":
            await engine.cancel_workflow(user_id, "Chat closed")
            typer.echo("Bye")
            return
        if text == "/back":
            result = await engine.rollback(user_id)
            typer.echo(result.message)
            continue
        outcome = await runner.handle_message(user_id, text)
        if outcome.result is None and outcome.reply is None:
            typer.echo("No active workflow")
            return
        if outcome.reply:
            typer.echo(outcome.reply)
    typer.echo(f"[{outcome.context.status.value}]")


@app.command("chat")
def chat(
    workflow_id: str,
    user_id: str = typer.Option("cli-user", help="User id the context is stored under"),
    files: Optional[List[Path]] = FileOption,
) -> None:
    """
    Run a workflow interactively in the terminal.

    Type /back to roll back one step and /quit to cancel the workflow.

    Example:
        convoflow chat product_purchase --user-id 42
    """
    engine = _build_engine(files)
    runner = TurnRunner(engine)
    try:
        asyncio.run(_chat(runner, engine, user_id, workflow_id))
    except (WorkflowNotFoundError, WorkflowInactiveError) as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1)
