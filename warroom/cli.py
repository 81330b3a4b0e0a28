"""Click CLI: loads config, builds providers, drives one debate session, renders output."""

import asyncio
import logging
import sys
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from config.config_loader import AppConfig, load_config
from warroom.errors import InvalidInputError
from warroom.healthcheck import HealthResult, affected_roles, run_health_checks
from warroom.inbox import IdeaBrief, archive_brief, open_inbox, parse_brief
from warroom.invoker import PanelInvoker
from warroom.models import Session, SessionStatus
from warroom.orchestrator import FAILURE_MESSAGE, DebateOrchestrator
from warroom.output import print_questions, print_responses, print_verdict, save_to_file
from warroom.parsing import QUESTION_COUNT
from warroom.providers.anthropic import AnthropicProvider
from warroom.providers.base import AIProvider
from warroom.providers.gemini import GeminiProvider
from warroom.providers.openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

PROVIDER_CLASSES: dict[str, type[AIProvider]] = {
    "gemini": GeminiProvider,
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
}

_STATUS_LABELS = {
    SessionStatus.ANALYZING: "Optimist and Skeptic are debating...",
    SessionStatus.CLARIFYING: "Drafting clarifying questions...",
    SessionStatus.REFINING: "Social Listener and Ad Analyst are researching...",
    SessionStatus.JUDGING: "Judge and Tie-Breaker are deliberating...",
}


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _build_all_providers(config: AppConfig) -> dict[str, AIProvider]:
    """Build providers for every model a role needs and has a key for. Keyed by model name."""
    providers: dict[str, AIProvider] = {}
    for name in sorted(config.required_models() & config.available_providers):
        model_cfg = config.models[name]
        if model_cfg.sdk not in PROVIDER_CLASSES:
            logger.warning("Model '%s' uses unknown sdk '%s', skipping", name, model_cfg.sdk)
            continue
        try:
            providers[name] = PROVIDER_CLASSES[model_cfg.sdk](model_cfg)
        except Exception as exc:
            logger.warning("Failed to instantiate provider '%s': %s", name, exc)
    return providers


def _missing_models(config: AppConfig, providers: dict[str, AIProvider]) -> list[str]:
    """Model names some role needs but no provider was built for."""
    return sorted(config.required_models() - providers.keys())


def _check_providers(config: AppConfig, all_providers: dict[str, AIProvider]) -> None:
    """Ping every provider and print results. Exits if the user declines to continue."""
    console.print("\n[bold]Checking providers...[/bold]")
    results: dict[str, HealthResult] = asyncio.run(run_health_checks(all_providers))

    failed_names: list[str] = []
    for name in sorted(results):
        result = results[name]
        if result.ok:
            console.print(f"  [green]OK  [/green] {name} [dim]({result.latency_sec:.1f}s)[/dim]")
        else:
            console.print(f"  [red]FAIL[/red] {name}: {result.error.splitlines()[0][:120]}")
            failed_names.append(name)

    console.print()
    if not failed_names:
        return

    roles = affected_roles(config, set(failed_names))
    console.print(
        f"[yellow]{len(failed_names)} provider(s) failed:[/yellow] {', '.join(failed_names)}. "
        f"The debate will fail at: {', '.join(roles)}."
    )
    if not click.confirm("Continue anyway?", default=False):
        sys.exit(1)


def _collect_answers(questions: tuple[str, ...], preset: list[str], interactive: bool) -> list[str]:
    """Use preset answers when all three are given, otherwise prompt for each question.

    Raises:
        InvalidInputError: If answers are missing and prompting is not allowed.
    """
    if len(preset) == QUESTION_COUNT and all(preset):
        for q, a in zip(questions, preset):
            console.print(f"[italic]{q}[/italic]\n  -> {a}")
        return list(preset)
    if not interactive:
        raise InvalidInputError(f"Brief must provide {QUESTION_COUNT} answers in non-interactive mode")
    return [click.prompt(f"Q{i}", type=str).strip() for i, _ in enumerate(questions, start=1)]


async def _run_session(
    brief: IdeaBrief,
    invoker: PanelInvoker,
    output_dir: Path,
    save: bool,
    interactive: bool = True,
    slug_override: str | None = None,
) -> Session | None:
    """Run one debate end to end and render it. Returns the final session."""
    console.print(f"\n[bold cyan]War Room[/bold cyan] | {brief.location}")
    console.print(f"Idea: [italic]{brief.idea[:80]}{'...' if len(brief.idea) > 80 else ''}[/italic]\n")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task(_STATUS_LABELS[SessionStatus.ANALYZING], total=None)

        def on_update(session: Session | None) -> None:
            if session is not None and session.status in _STATUS_LABELS:
                progress.update(task, description=_STATUS_LABELS[session.status])

        orchestrator = DebateOrchestrator(invoker, invoker, on_update=on_update)
        session = await orchestrator.start(brief.idea, brief.location)

    if session is None:
        return None
    print_responses(session.responses)

    if session.status is SessionStatus.CLARIFYING and session.clarifications is not None:
        print_questions(session.clarifications.questions)
        answers = _collect_answers(session.clarifications.questions, brief.answers, interactive)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task(_STATUS_LABELS[SessionStatus.REFINING], total=None)
            session = await orchestrator.submit_clarifications(answers)

        if session is None:
            return None
        print_responses(session.responses[2:])

    if session.status is SessionStatus.FAILED:
        console.print(f"[bold red]{FAILURE_MESSAGE}[/bold red]")
        logger.debug("Failure cause: %r", session.error)
    elif session.verdict is not None:
        print_verdict(session.verdict)

    if save:
        saved_path = save_to_file(session, output_dir, slug_override=slug_override)
        console.print(f"\n[dim]Saved to: {saved_path}[/dim]")
    return session


async def _run_inbox(
    invoker: PanelInvoker,
    inbox_dir: Path,
    archive_dir: Path,
    output_dir: Path,
    save: bool,
) -> None:
    """Debate every queued brief without prompting, archiving each by outcome."""
    files = open_inbox(inbox_dir, archive_dir)
    if not files:
        click.echo("No files in inbox.")
        return

    for file_path in files:
        try:
            brief = parse_brief(file_path)
            session = await _run_session(
                brief,
                invoker,
                output_dir,
                save,
                interactive=False,
                slug_override=file_path.stem,
            )
        except InvalidInputError as e:
            logger.error("Invalid brief %s: %s", file_path.name, e)
            outcome = "invalid"
        else:
            outcome = session.status.value if session is not None else "discarded"

        archived = archive_brief(file_path, archive_dir, outcome)
        click.echo(f"Processed: {file_path.name} -> {outcome} (archived: {archived.name})")


@click.command()
@click.argument("idea", required=False)
@click.option("--location", "-l", default=None, help="Target market location, e.g. 'Silicon Valley, USA'")
@click.option("--file", "brief_file", type=click.Path(exists=True),
              help="Read idea, location and optional answers from a .md brief")
@click.option("--output", "output_path", default=None, help="Output directory (default: from config)")
@click.option("--no-save", is_flag=True, default=False, help="Do not write a markdown report")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
@click.option("--inbox", "use_inbox", is_flag=True, default=False,
              help="Process all .md briefs in inbox folder")
@click.option("--inbox-dir", "inbox_dir_override", default=None,
              help="Override inbox folder path (default: from config)")
@click.option("--skip-health-check", is_flag=True, default=False,
              help="Skip the API connectivity check at startup")
def main(
    idea: str | None,
    location: str | None,
    brief_file: str | None,
    output_path: str | None,
    no_save: bool,
    verbose: bool,
    use_inbox: bool,
    inbox_dir_override: str | None,
    skip_health_check: bool,
) -> None:
    """War Room -- multi-agent debate on a business idea.

    \b
    Examples:
      warroom "Luxury dog perfume subscription" -l "Silicon Valley, USA"
      warroom --file brief.md
      warroom --inbox
      warroom --inbox --inbox-dir ./my_queue
    """
    # Reconfigure stdout/stderr to UTF-8 on Windows so model responses containing
    # Unicode chars don't crash the ANSI render path.
    if sys.platform == "win32":
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding="utf-8", errors="replace")

    load_dotenv()
    _setup_logging(verbose)

    try:
        config = load_config()
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        sys.exit(1)

    output_dir = Path(output_path) if output_path else config.defaults.output_dir

    all_providers = _build_all_providers(config)
    missing = _missing_models(config, all_providers)
    if missing:
        console.print(
            f"[bold red]Error:[/bold red] No provider for model(s): {', '.join(missing)}. "
            "Check API keys in .env."
        )
        sys.exit(1)

    if not skip_health_check:
        _check_providers(config, all_providers)

    invoker = PanelInvoker(config, all_providers)

    if use_inbox:
        inbox_dir = Path(inbox_dir_override) if inbox_dir_override else config.defaults.inbox_dir
        asyncio.run(
            _run_inbox(
                invoker=invoker,
                inbox_dir=inbox_dir,
                archive_dir=config.defaults.archive_dir,
                output_dir=output_dir,
                save=not no_save,
            )
        )
        return

    if brief_file:
        try:
            brief = parse_brief(Path(brief_file))
        except InvalidInputError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            sys.exit(1)
    else:
        idea_text = idea or click.prompt("Business concept", type=str)
        location_text = location or click.prompt("Target location", type=str)
        brief = IdeaBrief(idea=idea_text.strip(), location=location_text.strip())

    try:
        session = asyncio.run(_run_session(brief, invoker, output_dir, save=not no_save))
    except InvalidInputError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        sys.exit(1)

    if session is None or session.status is not SessionStatus.COMPLETED:
        sys.exit(1)


if __name__ == "__main__":
    main()
