"""Error taxonomy for review flows.

ValidationError  — bad input or missing context; nothing changed.
AnalysisFailed   — the AI service failed or replied with garbage; prior
                   results are kept and the user may retry manually.
PersistenceError — storage is unavailable; fatal to the operation in progress.
"""

from __future__ import annotations

from codelens_store.base import PersistenceError


class CodelensError(Exception):
    """Base class for errors surfaced to the user."""


class ValidationError(CodelensError):
    pass


class AnalysisFailed(CodelensError):
    pass


__all__ = ["AnalysisFailed", "CodelensError", "PersistenceError", "ValidationError"]
