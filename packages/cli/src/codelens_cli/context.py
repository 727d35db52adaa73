"""Helpers shared by every command: store/user lookup and error mapping."""

from __future__ import annotations

from contextlib import contextmanager

import click

from codelens_core.errors import CodelensError, PersistenceError


def get_store(ctx: click.Context):
    store = ctx.obj.get("store") if ctx.obj else None
    if store is None:
        raise click.UsageError("No store available.")
    return store


def get_user(ctx: click.Context):
    """Resolve the acting user once per invocation."""
    from codelens_cli.auth import resolve_current_user

    if "user" not in ctx.obj:
        ctx.obj["user"] = resolve_current_user(get_store(ctx), ctx.obj["config"])
    return ctx.obj["user"]


@contextmanager
def user_errors():
    """Report review errors as a one-line CLI error instead of a traceback."""
    try:
        yield
    except (CodelensError, PersistenceError) as e:
        raise click.ClickException(str(e))
