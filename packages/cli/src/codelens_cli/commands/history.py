"""history and show commands — browse review sessions in the store."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from codelens_cli.context import get_store, get_user, user_errors
from codelens_cli.render import print_review
from codelens_core.browser import list_sessions
from codelens_core.orchestrator import ReviewOrchestrator

console = Console()

_STATUS_STYLE = {
    "open": "yellow",
    "in_progress": "cyan",
    "resolved": "green",
    "archived": "dim",
}


@click.command("history")
@click.option("--project", "project_id", required=True, help="Project ID.")
@click.option("--limit", default=20, show_default=True, help="Maximum number of sessions to show.")
@click.pass_context
def history_cmd(ctx, project_id: str, limit: int):
    """Show a project's review sessions, most recently updated first."""
    store = get_store(ctx)
    with user_errors():
        project = store.get_project(project_id)
        if project is None:
            raise click.UsageError(f"Project {project_id} not found.")
        sessions = list_sessions(store, project_id)[:limit]

    if not sessions:
        console.print("[yellow]No review sessions found.[/yellow]")
        return

    table = Table(title=f"Review History — {project.name}", show_header=True, header_style="bold cyan")
    table.add_column("Session", style="dim", width=36)
    table.add_column("Title", max_width=30)
    table.add_column("Language", width=12)
    table.add_column("Status", width=12)
    table.add_column("Score", justify="right", width=6)
    table.add_column("Issues", justify="right", width=7)
    table.add_column("Updated At", width=20)

    for s in sessions:
        status_style = _STATUS_STYLE.get(s.status.value, "white")
        table.add_row(
            s.id,
            s.title,
            s.language,
            f"[{status_style}]{s.status.value}[/{status_style}]",
            "—" if s.quality_score is None else str(s.quality_score),
            "—" if s.issue_count is None else str(s.issue_count),
            s.updated_at[:19].replace("T", " "),
        )

    console.print(table)


@click.command("show")
@click.argument("session_id")
@click.pass_context
def show_cmd(ctx, session_id: str):
    """Print one session with its outstanding issues."""
    with user_errors():
        orchestrator = ReviewOrchestrator(get_store(ctx), None, get_user(ctx))
        state = orchestrator.load_session(session_id)
    print_review(state)
