"""Terminal rendering of review state."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

from codelens_core.orchestrator import ReviewPhase, ReviewState

console = Console()

_SEVERITY_COLOR = {"critical": "red", "major": "yellow", "minor": "blue", "info": "dim"}


def score_style(score: int) -> str:
    if score > 80:
        return "green"
    if score > 50:
        return "yellow"
    return "red"


def print_review(state: ReviewState) -> None:
    """Print the score, summary and issues of the current review."""
    if state.session is not None:
        console.print(f"[bold]{state.session.title}[/bold]  [dim]{state.session.id}[/dim]")
    style = score_style(state.score)
    console.print(f"Score: [{style}]{state.score}/100[/{style}]  Language: {state.language or '—'}")
    if state.summary:
        console.print(f"\n{escape(state.summary)}\n")

    if state.phase in (ReviewPhase.CLEAN, ReviewPhase.RESOLVED):
        console.print("[green]No outstanding issues. The code looks clean.[/green]")
        return
    if not state.comments:
        console.print("[yellow]No analysis results for the current code.[/yellow]")
        return

    code_lines = state.code.split("\n")
    console.print(f"[bold]{len(state.comments)} issue(s)[/bold]\n")
    for c in state.comments:
        color = _SEVERITY_COLOR.get(c.severity.value, "white")
        console.print(
            f"line [bold]{c.line_number}[/bold]  [{color}]{c.severity.value.upper()}[/{color}]  "
            f"[cyan]{c.category.value}[/cyan]"
        )
        if 0 < c.line_number <= len(code_lines) and code_lines[c.line_number - 1].strip():
            console.print(f"  [dim]{escape(code_lines[c.line_number - 1].strip())}[/dim]")
        console.print(f"  {escape(c.content)}")
        if c.suggestion:
            console.print(f"  [green]suggestion:[/green] {escape(c.suggestion)}")
        console.print()
    if state.fix_candidate is not None:
        console.print("[cyan]A full-file fix is available (use --apply).[/cyan]")
