"""init command — interactive setup wizard.

Writes .codelens.yml with the AI provider, the store backend and the acting
user. For the Gist backend it creates a private Gist seeded with an empty
store document via the GitHub CLI.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
import tempfile
from pathlib import Path

import click
import yaml
from rich.console import Console

console = Console()
logger = logging.getLogger(__name__)

_GIST_FILENAME = "codelens_store.json"


@click.command("init")
@click.option("--config", "config_path", default=".codelens.yml", show_default=True, help="File to write.")
def init_cmd(config_path: str):
    """Set up codelens in the current directory."""
    console.print("\n[bold cyan]codelens init[/bold cyan] — setup wizard\n")

    provider = click.prompt(
        "AI provider",
        type=click.Choice(["anthropic", "openai"]),
        default="anthropic",
    )
    api_key_env = "ANTHROPIC_API_KEY" if provider == "anthropic" else "OPENAI_API_KEY"

    console.print("\nWhere should review sessions be stored?")
    console.print("  [bold]sqlite[/bold]  — local SQLite file (default)")
    console.print("  [bold]gist[/bold]    — private GitHub Gist, synced between machines")
    console.print("  [bold]memory[/bold]  — nothing persisted (dry runs)")
    store_type = click.prompt(
        "Store backend",
        type=click.Choice(["sqlite", "gist", "memory"]),
        default="sqlite",
    )

    config: dict = {"model": provider, "store": store_type}

    if store_type == "sqlite":
        db_path = click.prompt("SQLite database path", default=".codelens.db")
        if db_path != ".codelens.db":
            config["store_path"] = db_path

    elif store_type == "gist":
        gist_id = _create_store_gist()
        if gist_id:
            console.print(f"[green]Created Gist: {gist_id}[/green]")
            config["gist_id"] = gist_id
        else:
            console.print("[yellow]Gist creation failed — add gist_id manually to .codelens.yml[/yellow]")

    email = click.prompt("Your e-mail (leave blank to set later)", default="", show_default=False)
    if email.strip():
        config["user"] = email.strip().lower()

    _write_config(Path(config_path), config)
    console.print(f"[green]Created {config_path}[/green]")
    console.print(f"\n[yellow]Remember to export [bold]{api_key_env}[/bold] before running a review.[/yellow]")
    if "user" in config:
        console.print(
            f"Register yourself with: [bold]codelens register --name <you> --email {config['user']}[/bold]"
        )


def _create_store_gist() -> str | None:
    """Create a private Gist holding an empty store document and return its ID."""
    tmp_dir = tempfile.mkdtemp()
    # gh names the Gist file after the local file, so the name must match.
    seed_path = os.path.join(tmp_dir, _GIST_FILENAME)
    with open(seed_path, "w") as f:
        json.dump({"users": {}, "projects": {}, "sessions": {}, "comments": {}}, f)

    try:
        result = subprocess.run(
            ["gh", "gist", "create", "--public=false", "--desc", "codelens review store", seed_path],
            capture_output=True,
            text=True,
            timeout=15,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired) as e:
        logger.warning("Could not run gh gist create: %s", e)
        return None
    finally:
        os.unlink(seed_path)
        os.rmdir(tmp_dir)

    if result.returncode != 0:
        logger.warning("gh gist create failed: %s", result.stderr.strip())
        return None
    return result.stdout.strip().rstrip("/").split("/")[-1]


def _write_config(path: Path, config: dict) -> None:
    """Write or update the config file, preserving any existing keys."""
    existing: dict = {}
    if path.exists():
        existing = yaml.safe_load(path.read_text()) or {}
    existing.update(config)
    path.write_text(yaml.dump(existing, default_flow_style=False, sort_keys=False))
