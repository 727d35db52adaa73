"""review command — analyse a file inside a project or an existing session."""

from __future__ import annotations

import asyncio
from pathlib import Path

import click
from rich.console import Console

from codelens_cli.context import get_store, get_user, user_errors
from codelens_cli.render import print_review
from codelens_core.orchestrator import ReviewOrchestrator
from codelens_core.providers.factory import get_analyzer

console = Console()


@click.command("review")
@click.argument("file", required=False, type=click.Path(exists=True, dir_okay=False))
@click.option("--project", "project_id", default=None, help="Start a new review in this project.")
@click.option("--session", "session_id", default=None, help="Continue an existing review session.")
@click.option(
    "--model",
    type=click.Choice(["anthropic", "openai"]),
    default=None,
    help="AI model provider. Overrides config file.",
)
@click.option("--apply", "apply_fix", is_flag=True, help="Apply the proposed fix and resolve the session.")
@click.option("--write", is_flag=True, help="With --apply, also write the fixed code back to FILE.")
@click.option("--export", "export_path", default=None, help="Write a Markdown report to this path.")
@click.pass_context
def review_cmd(
    ctx,
    file: str | None,
    project_id: str | None,
    session_id: str | None,
    model: str | None,
    apply_fix: bool,
    write: bool,
    export_path: str | None,
):
    """Run an AI review of FILE and store it as a review session.

    \b
    Required environment variables:
      ANTHROPIC_API_KEY    Required when using --model anthropic
      OPENAI_API_KEY       Required when using --model openai
    """
    if bool(project_id) == bool(session_id):
        raise click.UsageError("Pass exactly one of --project or --session.")
    if file is None and session_id is None:
        raise click.UsageError("A FILE is required when starting a new review.")
    if write and not (apply_fix and file):
        raise click.UsageError("--write needs both --apply and FILE.")

    config = dict(ctx.obj["config"])
    if model:
        config["model"] = model
    if config["model"] == "anthropic" and not config.get("anthropic_api_key"):
        raise click.UsageError("ANTHROPIC_API_KEY environment variable is not set.")
    if config["model"] == "openai" and not config.get("openai_api_key"):
        raise click.UsageError("OPENAI_API_KEY environment variable is not set.")

    store = get_store(ctx)
    with user_errors():
        orchestrator = ReviewOrchestrator(
            store,
            get_analyzer(config),
            get_user(ctx),
            max_chars=config.get("max_chars"),
        )
        if session_id:
            orchestrator.load_session(session_id)
        else:
            orchestrator.open_project(project_id)
        if file:
            orchestrator.import_file(file)

        console.print(f"Analyzing {file or 'session code'} with {config['model']}...")
        asyncio.run(orchestrator.analyze())

    state = orchestrator.state
    print_review(state)

    if apply_fix:
        if state.fix_candidate is None:
            console.print("[yellow]Nothing to apply: no fix was proposed.[/yellow]")
        else:
            with user_errors():
                orchestrator.apply_fix()
            console.print("[green]Fix applied. Session resolved.[/green]")
            if write:
                Path(file).write_text(state.code)
                console.print(f"[green]Wrote fixed code to {file}[/green]")

    if export_path:
        Path(export_path).write_text(orchestrator.export_report())
        console.print(f"Report written to {export_path}")
