"""Request/response contract of the analysis adapter.

normalize_result() is where the adapter's guarantees are enforced, whatever
the model actually returned:

- an enclosing code fence around ``refactored_code`` is stripped;
- a score of 100 alongside issues is clamped to 95 (100 means zero issues);
- a score below 100 without a fix falls back to echoing the input code, so a
  fix candidate always exists when there is something to fix;
- replies missing ``score`` or ``comments`` raise AnalysisFailed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from codelens_core.errors import AnalysisFailed
from codelens_core.utils.code import strip_code_fence
from codelens_store.models import Category, Severity

logger = logging.getLogger(__name__)

PERFECT_SCORE = 100
CLAMPED_SCORE = 95


@dataclass
class AnalysisRequest:
    code: str
    preferred_style: str = "balanced"  # "strict" | "balanced" | "relaxed"
    primary_languages: list[str] = field(default_factory=list)
    style_guide: str | None = None


@dataclass
class IssueDraft:
    """One issue as reported by the model, before it is tied to a session."""

    line_number: int
    severity: Severity
    category: Category
    content: str
    suggestion: str | None = None


@dataclass
class AnalysisResult:
    summary: str
    score: int
    language: str
    comments: list[IssueDraft] = field(default_factory=list)
    refactored_code: str | None = None


def normalize_result(payload: dict, original_code: str) -> AnalysisResult:
    if not isinstance(payload, dict):
        raise AnalysisFailed("AI response is not a JSON object.")
    if "score" not in payload or not isinstance(payload.get("comments"), list):
        raise AnalysisFailed("AI response is missing the score or comments fields.")

    try:
        score = int(payload["score"])
    except (TypeError, ValueError, OverflowError):
        raise AnalysisFailed(f"AI response has a non-numeric score: {payload['score']!r}")
    score = max(0, min(PERFECT_SCORE, score))

    comments = [draft for draft in map(_normalize_issue, payload["comments"]) if draft is not None]

    refactored = payload.get("refactoredCode") or payload.get("refactored_code")
    refactored = strip_code_fence(refactored) if isinstance(refactored, str) and refactored.strip() else None

    if score == PERFECT_SCORE and comments:
        logger.debug("Clamping score 100 to %d: %d issue(s) reported", CLAMPED_SCORE, len(comments))
        score = CLAMPED_SCORE
    if score < PERFECT_SCORE and refactored is None:
        refactored = original_code

    return AnalysisResult(
        summary=str(payload.get("summary") or ""),
        score=score,
        language=str(payload.get("language") or "plaintext"),
        comments=comments,
        refactored_code=refactored,
    )


def _normalize_issue(raw) -> IssueDraft | None:
    if not isinstance(raw, dict):
        return None
    content = str(raw.get("content") or "").strip()
    if not content:
        return None

    try:
        line = int(raw.get("lineNumber", raw.get("line_number", 1)))
    except (TypeError, ValueError, OverflowError):
        line = 1

    severity = _coerce(Severity, raw.get("severity"), Severity.INFO)
    category = _coerce(Category, raw.get("category"), Category.REFACTOR)
    suggestion = raw.get("suggestion")
    return IssueDraft(
        line_number=line if line >= 1 else 1,
        severity=severity,
        category=category,
        content=content,
        suggestion=suggestion if isinstance(suggestion, str) and suggestion.strip() else None,
    )


def _coerce(enum_cls, value, default):
    try:
        return enum_cls(value)
    except (TypeError, ValueError):
        return default
