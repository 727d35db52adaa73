"""project commands — create and list projects."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from codelens_cli.context import get_store, get_user, user_errors
from codelens_core.browser import create_project, list_projects
from codelens_core.config import load_style_guide

console = Console()


@click.group("project")
def project_group():
    """Manage the projects reviews are filed under."""


@project_group.command("create")
@click.argument("name")
@click.option("--description", default=None, help="Short description.")
@click.option(
    "--style-guide",
    "style_guide_path",
    default=None,
    help="Path to a style guide file passed to the AI with every review.",
)
@click.pass_context
def create_cmd(ctx, name: str, description: str | None, style_guide_path: str | None):
    """Create a project owned by the current user."""
    style_guide = None
    if style_guide_path:
        try:
            style_guide = load_style_guide(style_guide_path)
        except FileNotFoundError as e:
            raise click.BadParameter(str(e), param_hint="--style-guide")

    with user_errors():
        project = create_project(get_store(ctx), get_user(ctx), name, description=description, style_guide=style_guide)
    console.print(f"[green]Created project {project.name}[/green] ({project.id})")


@project_group.command("list")
@click.pass_context
def list_cmd(ctx):
    """List the current user's projects, newest first."""
    with user_errors():
        projects = list_projects(get_store(ctx), get_user(ctx))
    if not projects:
        console.print("[yellow]No projects yet. Create one with `codelens project create NAME`.[/yellow]")
        return

    table = Table(title="Projects", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim", width=36)
    table.add_column("Name", style="bold")
    table.add_column("Reviews", justify="right")
    table.add_column("Style guide", justify="center")
    table.add_column("Created", width=20)
    for p in projects:
        table.add_row(
            p.id,
            p.name,
            str(p.stats.total_reviews),
            "yes" if p.style_guide else "—",
            p.created_at[:19].replace("T", " "),
        )
    console.print(table)
