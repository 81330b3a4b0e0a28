"""Rich console output and markdown report export for debate sessions."""

import logging
import re
from datetime import datetime
from pathlib import Path

from rich.columns import Columns
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from warroom.models import AgentResponse, Role, Session, Verdict

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

_ROLE_STYLES = {
    Role.OPTIMIST: "green",
    Role.SKEPTIC: "red",
    Role.SOCIAL_LISTENER: "magenta",
    Role.AD_ANALYST: "yellow",
    Role.JUDGE: "blue",
    Role.TIE_BREAKER: "purple",
}


def _slug(text: str, max_len: int = 40) -> str:
    """Convert text to a filename-safe slug."""
    slug = re.sub(r"[^\w\s-]", "", text.lower())
    slug = re.sub(r"[\s_-]+", "-", slug).strip("-")
    return slug[:max_len]


def _score_style(score: float) -> str:
    if score >= 7:
        return "bold green"
    if score >= 4:
        return "bold yellow"
    return "bold red"


def print_responses(responses: list[AgentResponse] | tuple[AgentResponse, ...]) -> None:
    """Print one panel per agent response."""
    for resp in responses:
        console.print(
            Panel(
                Markdown(resp.text),
                title=f"[bold]{resp.role.label}[/bold]",
                subtitle=datetime.fromtimestamp(resp.produced_at).strftime("%H:%M:%S"),
                border_style=_ROLE_STYLES[resp.role],
            )
        )


def print_questions(questions: tuple[str, ...]) -> None:
    console.print(Rule("[bold cyan]Recursive Refinement Input Required[/bold cyan]"))
    for i, q in enumerate(questions, start=1):
        console.print(f"[italic]Q{i}: {q}[/italic]")


def _bullet_list(title: str, items: tuple[str, ...], style: str) -> Panel:
    body = "\n".join(f"• {item}" for item in items) or "[dim]none[/dim]"
    return Panel(body, title=f"[{style}]{title}[/{style}]", border_style="dim")


def print_verdict(verdict: Verdict) -> None:
    """Print the verdict dashboard: score, summary, metrics, lists, ruling and sources."""
    console.print(Rule("[bold blue]Verdict[/bold blue]"))
    console.print(
        Text(f"SCORE: {verdict.viability_score:g}/10", style=_score_style(verdict.viability_score))
    )
    console.print(Text(f'"{verdict.summary}"', style="italic"))

    metrics = Table(show_header=False, box=None)
    metrics.add_row("[magenta]Social Sentiment[/magenta]", verdict.social_sentiment)
    metrics.add_row("[yellow]Estimated CAC[/yellow]", verdict.estimated_cac)
    console.print(metrics)

    console.print(
        Columns([
            _bullet_list("Critical Risks", verdict.key_risks, "red"),
            _bullet_list("Strategic Opportunities", verdict.key_opportunities, "green"),
            _bullet_list("Market Trends", verdict.market_trends, "cyan"),
        ])
    )

    if verdict.tie_breaker_ruling:
        console.print(
            Panel(
                Markdown(verdict.tie_breaker_ruling),
                title="[bold purple]Tie-Breaker Ruling[/bold purple]",
                border_style="purple",
            )
        )

    if verdict.sources:
        console.print("[bold]Market Grounding Sources[/bold]")
        for source in verdict.sources:
            console.print(f"  [link={source.uri}]{source.title}[/link] [dim]{source.uri}[/dim]")
    else:
        console.print("[dim]No external sources identified in this run.[/dim]")


def _md_list(items: tuple[str, ...]) -> list[str]:
    return [f"- {item}" for item in items] or ["- (none)"]


def save_to_file(session: Session, output_dir: Path, slug_override: str | None = None) -> Path:
    """Save the full debate transcript and verdict as a markdown file.

    Args:
        session: The session to export, usually completed.
        output_dir: Directory to save the file in.
        slug_override: If provided, use this as the filename stem instead of
            deriving one from the idea text. Useful for inbox mode.

    Returns:
        Path to the saved file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    slug = slug_override if slug_override is not None else _slug(session.idea)
    filepath = output_dir / f"{timestamp}_{slug}.md"

    lines: list[str] = [
        f"# War Room Debate: {session.idea[:80]}",
        "",
        f"**Date:** {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        f"**Location:** {session.location}",
        f"**Status:** {session.status.value}",
        f"**Session:** {session.session_id}",
        "",
        "---",
        "",
    ]

    for resp in session.responses:
        lines += [f"## {resp.role.label}", "", resp.text, ""]

    if session.clarifications is not None:
        lines += ["## Clarifications", ""]
        for i, (q, a) in enumerate(zip(session.clarifications.questions, session.clarifications.answers), start=1):
            lines.append(f"{i}. **{q}**")
            lines.append(f"   {a or '(unanswered)'}")
        lines.append("")

    verdict = session.verdict
    if verdict is not None:
        lines += [
            f"## Verdict: {verdict.viability_score:g}/10",
            "",
            verdict.summary,
            "",
            f"**Social Sentiment:** {verdict.social_sentiment}",
            "",
            f"**Estimated CAC:** {verdict.estimated_cac}",
            "",
            "### Critical Risks",
            "",
            *_md_list(verdict.key_risks),
            "",
            "### Strategic Opportunities",
            "",
            *_md_list(verdict.key_opportunities),
            "",
            "### Market Trends",
            "",
            *_md_list(verdict.market_trends),
            "",
            "## Tie-Breaker Ruling",
            "",
            verdict.tie_breaker_ruling or "",
            "",
            "## Sources",
            "",
        ]
        lines += [f"- [{s.title}]({s.uri})" for s in verdict.sources] or ["- (none)"]
        lines.append("")

    filepath.write_text("\n".join(lines), encoding="utf-8")
    logger.info("Debate saved to: %s", filepath)
    return filepath
