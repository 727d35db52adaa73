"""register command — create the local user identity."""

from __future__ import annotations

import click
from rich.console import Console

from codelens_cli.context import get_store, user_errors
from codelens_core.accounts import register

console = Console()


@click.command("register")
@click.option("--name", required=True, help="Display name.")
@click.option("--email", required=True, help="E-mail address; used as the user id.")
@click.option("--language", "languages", multiple=True, help="Primary language (repeatable).")
@click.option(
    "--style",
    type=click.Choice(["strict", "balanced", "relaxed"]),
    default="balanced",
    show_default=True,
    help="How picky the AI reviewer should be.",
)
@click.pass_context
def register_cmd(ctx, name: str, email: str, languages: tuple[str, ...], style: str):
    """Register a user so reviews can be attributed and personalised."""
    with user_errors():
        user = register(get_store(ctx), name, email, primary_languages=list(languages), preferred_style=style)
    console.print(f"[green]Registered {user.name} <{user.email}>[/green]")
    console.print(f"Set [bold]CODELENS_USER={user.email}[/bold] or add [bold]user: {user.email}[/bold] to .codelens.yml.")
