"""CLI entry point for codelens.

Commands:
  init      — write .codelens.yml (provider, store backend, user)
  register  — create the local user identity
  project   — create and list projects
  review    — analyse a file inside a project or an existing session
  history   — list a project's review sessions
  show      — print one session with its outstanding issues
  stats     — dashboard aggregates across all projects
  prefs     — show or update review preferences
"""

from __future__ import annotations

import logging

import click

from codelens_cli.commands.history import history_cmd, show_cmd
from codelens_cli.commands.init import init_cmd
from codelens_cli.commands.prefs import prefs_cmd
from codelens_cli.commands.project import project_group
from codelens_cli.commands.register import register_cmd
from codelens_cli.commands.review import review_cmd
from codelens_cli.commands.stats import stats_cmd
from codelens_cli.context import user_errors


def _build_store(config: dict):
    """Instantiate the configured store from .codelens.yml settings.

    Store selection:
      store: sqlite → SQLiteStore (store_path, default .codelens.db)
      store: memory → MemoryStore (nothing persisted; useful for dry runs)
      store: gist   → GistStore  (requires gist_id and a GitHub token)
    """
    from codelens_store.sqlite import SQLiteStore

    store_type = config.get("store", "sqlite")

    if store_type == "memory":
        from codelens_store.memory import MemoryStore

        return MemoryStore()

    if store_type == "gist":
        from codelens_store.gist import GistStore

        gist_id = config.get("gist_id")
        token = config.get("github_token")
        if not gist_id or not token:
            raise click.UsageError("The gist store requires gist_id in .codelens.yml and a GitHub token.")
        return GistStore(gist_id=gist_id, token=token)

    if store_type != "sqlite":
        raise click.UsageError(f"Unknown store {store_type!r}. Choose 'sqlite', 'memory' or 'gist'.")
    return SQLiteStore(db_path=config.get("store_path") or ".codelens.db")


@click.group()
@click.version_option(package_name="codelens", prog_name="codelens")
@click.option(
    "--config",
    "config_path",
    default=".codelens.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="CODELENS_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """AI-assisted code review sessions, tracked per project."""
    from codelens_core.config import load_config
    from codelens_cli.auth import resolve_github_token

    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)
    ctx.ensure_object(dict)

    config = load_config(config_path)
    if config.get("store") == "gist" and not config.get("github_token"):
        config["github_token"] = resolve_github_token()

    with user_errors():
        store = _build_store(config)
    ctx.obj["store"] = store
    ctx.obj["config"] = config
    ctx.call_on_close(store.close)


main.add_command(init_cmd)
main.add_command(register_cmd)
main.add_command(project_group)
main.add_command(review_cmd)
main.add_command(history_cmd)
main.add_command(show_cmd)
main.add_command(stats_cmd)
main.add_command(prefs_cmd)
