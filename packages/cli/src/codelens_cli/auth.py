"""Credential and identity resolution for the CLI.

GitHub token (only needed by the Gist store), first match wins:
  1. GITHUB_TOKEN environment variable
  2. `gh auth token` (the GitHub CLI session)

Acting user: CODELENS_USER, else the `user` key in .codelens.yml. The e-mail is
looked up in the store; there is no password step.
"""

from __future__ import annotations

import logging
import os
import subprocess

import click

from codelens_core.accounts import login
from codelens_core.errors import ValidationError

logger = logging.getLogger(__name__)


def resolve_github_token() -> str | None:
    """Return a GitHub token or None. Never raises."""
    token = os.environ.get("GITHUB_TOKEN")
    if token:
        return token

    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None
    if result.returncode == 0 and result.stdout.strip():
        logger.debug("Resolved GitHub token via gh CLI session.")
        return result.stdout.strip()
    return None


def resolve_current_user(store, config: dict):
    """Look up the configured user, or fail with a usage hint."""
    email = config.get("user")
    if not email:
        raise click.UsageError(
            "No user configured. Run `codelens register`, then set CODELENS_USER "
            "or add 'user: you@example.com' to .codelens.yml."
        )
    try:
        return login(store, email)
    except ValidationError as e:
        raise click.UsageError(f"{e} ({email})")
