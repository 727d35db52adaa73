"""prefs command — view or change the acting user's review preferences."""

from __future__ import annotations

import click
from rich.console import Console

from codelens_cli.context import get_store, get_user, user_errors
from codelens_core.accounts import update_preferences

console = Console()


@click.command("prefs")
@click.option("--language", "languages", multiple=True, help="Primary language (repeatable); replaces the list.")
@click.option(
    "--style",
    type=click.Choice(["strict", "balanced", "relaxed"]),
    default=None,
    help="How picky the AI reviewer should be.",
)
@click.pass_context
def prefs_cmd(ctx, languages: tuple[str, ...], style: str | None):
    """Show preferences, or update them when options are given."""
    changes: dict = {}
    if languages:
        changes["primary_languages"] = list(languages)
        changes["onboarding_completed"] = True
    if style:
        changes["preferred_style"] = style

    with user_errors():
        user = get_user(ctx)
        if changes:
            user = update_preferences(get_store(ctx), user, **changes)
            ctx.obj["user"] = user

    prefs = user.preferences
    console.print(f"[bold]{user.name}[/bold] <{user.email}>")
    console.print(f"  Style:     {prefs.preferred_style}")
    console.print(f"  Languages: {', '.join(prefs.primary_languages) or '—'}")
