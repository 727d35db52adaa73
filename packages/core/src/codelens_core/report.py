"""Markdown export of a review's summary, issues and proposed fix."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from codelens_core.orchestrator import ReviewState


def build_report(state: ReviewState) -> str:
    title = state.session.title if state.session and state.session.title else "Untitled review"
    language = (state.language or "").lower()

    lines = [f"# Code Review: {title}\n"]
    if state.project is not None:
        lines.append(f"_Project: {state.project.name}_\n")

    lines.append("## Summary")
    lines.append(state.summary or "No analysis has been run yet.")
    lines.append("")
    lines.append(f"**Score:** {state.score}/100")
    lines.append("")

    lines.append("## Issues")
    if state.comments:
        for c in state.comments:
            lines.append(f"- line {c.line_number} [{c.severity.value.upper()}/{c.category.value}] {c.content}")
            if c.suggestion:
                lines.append(f"  - Suggestion: `{c.suggestion}`")
    else:
        lines.append("No outstanding issues.")

    if state.fix_candidate:
        lines.append("")
        lines.append("## Proposed Fix")
        lines.append(f"```{language}")
        lines.append(state.fix_candidate)
        lines.append("```")

    return "\n".join(lines) + "\n"
