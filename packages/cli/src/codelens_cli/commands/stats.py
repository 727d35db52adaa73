"""stats command — dashboard aggregates across all of the user's projects."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from codelens_cli.context import get_store, get_user, user_errors
from codelens_cli.render import score_style
from codelens_core.browser import dashboard, list_projects

console = Console()


@click.command("stats")
@click.pass_context
def stats_cmd(ctx):
    """Show review totals, resolved sessions, average score and recent activity."""
    store = get_store(ctx)
    with user_errors():
        user = get_user(ctx)
        stats = dashboard(store, user)
        projects = {p.id: p.name for p in list_projects(store, user)}

    if not stats.total_reviews:
        console.print("[yellow]No reviews yet.[/yellow]")
        return

    style = score_style(stats.avg_score)
    console.print(f"\n[bold]Review stats for [cyan]{user.name}[/cyan][/bold]")
    console.print(f"  Total reviews:    {stats.total_reviews}")
    console.print(f"  Resolved reviews: {stats.resolved_reviews}")
    console.print(f"  Average score:    [{style}]{stats.avg_score}[/{style}]")

    table = Table(title="Recent Activity", show_header=True)
    table.add_column("Project")
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("Score", justify="right")
    table.add_column("Updated At", width=20)
    for s in stats.recent_activity:
        table.add_row(
            projects.get(s.project_id, s.project_id),
            s.title,
            s.status.value,
            "—" if s.quality_score is None else str(s.quality_score),
            s.updated_at[:19].replace("T", " "),
        )
    console.print(table)
