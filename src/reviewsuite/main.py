"""Main CLI entry point for reviewsuite.

This module provides the Typer application that runs a review suite against
an external coding-agent command, and a few inspection commands.

Usage:
    reviewsuite review --agent-command "claude -p"
    reviewsuite review staged --agent-command "codex exec -"
    reviewsuite review recent 20 --agent-command "claude -p"
    reviewsuite stages
    reviewsuite prompt 123 --stage linus
"""

from __future__ import annotations

import asyncio
import signal
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from reviewsuite.agents.backend import CommandAgentBackend
from reviewsuite.agents.console import ConsoleUI
from reviewsuite.agents.session import ConversationSession
from reviewsuite.commands.review import ReviewCommand
from reviewsuite.config import ReviewSuiteConfig, load_config
from reviewsuite.logging import setup_logging
from reviewsuite.prompts.compiler import MissingTemplateError, compile_stage_prompt
from reviewsuite.prompts.loader import PromptLoader
from reviewsuite.review.repository import RepositoryInspector
from reviewsuite.review.resolver import TargetResolver
from reviewsuite.review.targets import (
    RecentPickerRequest,
    RecentTarget,
    ReviewTarget,
    parse_target_args,
)
from reviewsuite.suite.hooks import register_review_suite
from reviewsuite.suite.stages import DEFAULT_PIPELINE
from reviewsuite.suite.state_machine import ReviewSuite, SuiteEndReason

app = typer.Typer(
    name="reviewsuite",
    help="reviewsuite: multi-stage code review with fresh eyes",
    no_args_is_help=True,
)

console = Console()

EXIT_INTERRUPTED = 130


class AppContext:
    """Application context shared across CLI commands.

    Attributes:
        config: Loaded reviewsuite configuration
        loader: Prompt template loader built from the config
    """

    def __init__(self, config: ReviewSuiteConfig):
        self.config = config
        self.loader = PromptLoader(
            user_dir=config.prompts.user_dir,
            package_dir=config.prompts.package_dir,
        )


_app_context: AppContext | None = None


def get_app_context() -> AppContext:
    """Get the shared application context.

    Raises:
        RuntimeError: If context has not been initialized
    """
    if _app_context is None:
        raise RuntimeError("Application context not initialized. Call initialize_context first.")
    return _app_context


def initialize_context(config: ReviewSuiteConfig) -> AppContext:
    """Initialize the global application context."""
    global _app_context
    _app_context = AppContext(config)
    return _app_context


async def run_review_suite(
    ctx: AppContext,
    args: str,
    agent_command: str,
    repo: Path,
    interactive: bool = True,
    ui: ConsoleUI | None = None,
    stop_event: asyncio.Event | None = None,
) -> ReviewSuite:
    """Start a review suite and drive the agent until the run ends.

    Ctrl+C (or setting ``stop_event``) cancels the turn in flight and ends
    the run as user interrupted, with or without an interactive UI.

    Returns:
        The suite, whose ``last_outcome`` describes how the run ended
    """
    ui = ui or ConsoleUI(console)
    backend = CommandAgentBackend(
        agent_command,
        timeout_seconds=ctx.config.agent.timeout_seconds,
        cwd=str(repo),
    )
    session = ConversationSession(backend, ui, has_ui=interactive)
    suite = ReviewSuite(session, ctx.loader, config=ctx.config.suite)
    register_review_suite(session, suite)

    inspector = RepositoryInspector(repo)
    resolver = TargetResolver(session, inspector, ctx.config.git)
    command = ReviewCommand(session, suite, resolver, inspector)

    if await command.run(args) is None:
        return suite

    if stop_event is None:
        stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, stop_event.set)
    except (NotImplementedError, RuntimeError):
        pass

    try:
        await session.run_until_idle(stop_event)
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except (NotImplementedError, RuntimeError):
            pass

    # Without a UI the input hook ignores the interrupt, so end the run here
    if suite.is_active:
        suite.on_user_interrupt()

    return suite


@app.command()
def review(
    args: Annotated[
        Optional[list[str]],
        typer.Argument(help="Scope shorthand: staged | worktree | 123 | recent [N]"),
    ] = None,
    agent_command: Annotated[
        Optional[str],
        typer.Option(
            "--agent-command",
            "-a",
            help="Agent command reading a transcript on stdin (default: agent.command from config)",
        ),
    ] = None,
    repo: Annotated[
        Path,
        typer.Option("--repo", "-r", help="Repository to review", file_okay=False),
    ] = Path("."),
    no_input: Annotated[
        bool,
        typer.Option("--no-input", help="Never prompt; fall back to the working tree"),
    ] = False,
) -> None:
    """Run the multi-stage review suite and print the synthesized review."""
    ctx = get_app_context()
    command = agent_command or ctx.config.agent.command
    if not command:
        console.print("[red]No agent command configured.[/red] Pass --agent-command or set agent.command.")
        raise typer.Exit(code=2)

    try:
        suite = asyncio.run(
            run_review_suite(
                ctx,
                " ".join(args or []),
                command,
                repo.resolve(),
                interactive=not no_input,
            )
        )
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=2)

    outcome = suite.last_outcome
    if outcome is None:
        raise typer.Exit(code=1)

    if outcome.reason == SuiteEndReason.COMPLETE:
        console.print()
        console.print(Markdown(outcome.final_report or ""))
        return
    if outcome.reason == SuiteEndReason.USER_INTERRUPTED:
        raise typer.Exit(code=EXIT_INTERRUPTED)
    raise typer.Exit(code=1)


@app.command()
def stages() -> None:
    """List the review pipeline and where each stage's template comes from."""
    ctx = get_app_context()

    table = Table(title="Review suite stages")
    table.add_column("#", style="bold cyan", justify="right")
    table.add_column("Stage")
    table.add_column("Kind")
    table.add_column("Template")
    table.add_column("Source", style="dim")

    for idx, stage in enumerate(DEFAULT_PIPELINE, start=1):
        path = ctx.loader.resolve_path(stage.template_name)
        table.add_row(
            str(idx),
            stage.label,
            stage.kind.value,
            stage.template_name,
            str(path) if path else "[red]missing[/red]",
        )

    console.print(table)


@app.command()
def prompt(
    target: Annotated[
        Optional[str],
        typer.Argument(help="Scope shorthand: staged | worktree | 123"),
    ] = None,
    stage: Annotated[
        str,
        typer.Option("--stage", "-s", help="Stage id to compile"),
    ] = DEFAULT_PIPELINE[0].id,
    base: Annotated[
        Optional[str],
        typer.Option("--base", "-b", help="Base commit for a commit-range review"),
    ] = None,
) -> None:
    """Print the compiled prompt of one stage without running an agent."""
    ctx = get_app_context()

    descriptor = next((s for s in DEFAULT_PIPELINE if s.id == stage), None)
    if descriptor is None:
        known = ", ".join(s.id for s in DEFAULT_PIPELINE)
        console.print(f"[red]Unknown stage:[/red] {stage} (known: {known})")
        raise typer.Exit(code=2)

    review_target: ReviewTarget | None
    if base:
        review_target = RecentTarget(base_ref=base)
    else:
        parsed = parse_target_args(target or "worktree")
        review_target = None if isinstance(parsed, RecentPickerRequest) else parsed
    if review_target is None:
        console.print(f"[red]Cannot build a target from:[/red] {target} (use --base for commit ranges)")
        raise typer.Exit(code=2)

    try:
        text = compile_stage_prompt(review_target, descriptor, [], ctx.loader)
    except MissingTemplateError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)

    typer.echo(text)


@app.callback()
def main_callback(
    config_path: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file (TOML format)",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Configure global options and initialize application context."""
    try:
        config = load_config(config_path)
    except Exception as e:
        console.print(f"[red]Error loading configuration:[/red] {e}")
        raise typer.Exit(code=1)

    if verbose:
        config.logging.level = "DEBUG"
    setup_logging(config.logging)

    initialize_context(config)

    if verbose:
        console.print("[dim]Debug logging enabled[/dim]")


if __name__ == "__main__":
    app()
