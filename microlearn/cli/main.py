"""
MicroLearn CLI - weighted topic selection from the terminal.

Usage:
    microlearn init                      # Create the topic table
    microlearn add "Linear Algebra"      # Register a topic
    microlearn weights                   # Show computed weights and factors
    microlearn next --seed 7             # Draw the next topic
    microlearn complete <id> --pass -s 85
    microlearn distribution              # Stored weight statistics
    microlearn reset-weights             # Put every topic back at the default
"""

from __future__ import annotations

import random
import sys
from typing import Annotated

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from config import get_settings
from microlearn.db import SqlTopicRepository, init_db, session_scope
from microlearn.selection import (
    ContentAnalyzer,
    DifficultyBand,
    SelectionError,
    SelectionOrchestrator,
    UserPreferences,
    WeightBounds,
    WeightedSelector,
    WeightStatistics,
    WeightUpdate,
)

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="microlearn",
    help="MicroLearn - weighted topic selection with a pass/fail feedback loop",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main() -> None:
    """Weighted topic selection with a pass/fail feedback loop."""
    try:
        WeightBounds.from_settings()
    except SelectionError as e:
        _fail(e)
    # Table creation is idempotent; every command may be the first one run
    init_db()


class _StaticPreferences:
    def __init__(self, preferences: UserPreferences | None):
        self._preferences = preferences

    def get_user_preferences(self) -> UserPreferences | None:
        return self._preferences


def _build_orchestrator(
    repository: SqlTopicRepository,
    seed: int | None = None,
    signals: bool = False,
    prefer_topic: str | None = None,
    difficulty: DifficultyBand | None = None,
) -> SelectionOrchestrator:
    preferences = None
    if prefer_topic or difficulty:
        preferences = UserPreferences(topic=prefer_topic, difficulty=difficulty)

    random_source = random.Random(seed).random if seed is not None else None
    return SelectionOrchestrator(
        repository,
        analysis_source=ContentAnalyzer(repository) if signals else None,
        preference_source=_StaticPreferences(preferences),
        selector=WeightedSelector(random_source),
    )


def _fail(error: Exception) -> None:
    console.print(f"[red]✗ {error}[/]")
    raise typer.Exit(1)


def _print_statistics(stats: WeightStatistics) -> None:
    console.print(
        f"[dim]Candidates: {stats.count} · Total: {stats.total} · Mean: {stats.mean} · "
        f"Min: {stats.minimum} · Max: {stats.maximum} · "
        f"<50: {stats.low} · 50-150: {stats.normal} · >150: {stats.high}[/]"
    )


def _print_updates(updates: list[WeightUpdate], title: str) -> None:
    if not updates:
        console.print("[dim]No weight changes[/]")
        return
    table = Table(title=title)
    table.add_column("Topic")
    table.add_column("Old", justify="right")
    table.add_column("New", justify="right")
    table.add_column("Δ", justify="right")
    for update in updates:
        style = "green" if update.delta > 0 else "red" if update.delta < 0 else "dim"
        table.add_row(
            update.topic_id,
            str(update.old_weight),
            str(update.new_weight),
            f"[{style}]{update.delta:+d}[/]",
        )
    console.print(table)


# =============================================================================
# Topic Commands
# =============================================================================


@app.command()
def init() -> None:
    """Create the topic table if it does not exist."""
    init_db()
    settings = get_settings()
    console.print(f"[green]✓ Database ready:[/] {settings.database_url}")
    for key, value in settings.get_weight_config().items():
        console.print(f"  [dim]{key}:[/] {value}")


@app.command()
def add(
    name: Annotated[str, typer.Argument(help="Topic display name")],
    scope: Annotated[
        str | None, typer.Option("--scope", help="Sibling group for redistribution")
    ] = None,
    importance: Annotated[
        str, typer.Option("--importance", "-i", help="foundation, core, subject, skill or default")
    ] = "default",
    mastery: Annotated[
        int, typer.Option("--mastery", "-m", min=0, max=100, help="Initial mastery percentage")
    ] = 0,
    weight: Annotated[
        int | None, typer.Option("--weight", "-w", help="Initial stored selection weight")
    ] = None,
) -> None:
    """Register a topic."""
    with session_scope() as session:
        topic = SqlTopicRepository(session).add_topic(
            name,
            scope=scope,
            importance_class=importance,
            mastery_percentage=mastery,
            selection_weight=weight,
        )
    console.print(f"[green]✓ Added[/] {topic.name} [dim]({topic.id})[/]")


@app.command("list")
def list_topics(
    scope: Annotated[str | None, typer.Option("--scope", help="Only this scope")] = None,
) -> None:
    """List stored topics."""
    with session_scope() as session:
        topics = SqlTopicRepository(session).list_candidates(scope)

    if not topics:
        console.print("[yellow]No topics yet. Add one with 'microlearn add'.[/]")
        return

    table = Table(title="Topics")
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Scope")
    table.add_column("Importance")
    table.add_column("Mastery", justify="right")
    table.add_column("Weight", justify="right")
    table.add_column("Last practiced")
    for topic in topics:
        table.add_row(
            topic.id,
            topic.name,
            topic.scope or "-",
            topic.importance_class,
            f"{topic.mastery_percentage}%",
            "-" if topic.selection_weight is None else str(topic.selection_weight),
            topic.last_practiced.strftime("%Y-%m-%d %H:%M") if topic.last_practiced else "never",
        )
    console.print(table)


# =============================================================================
# Selection Commands
# =============================================================================


@app.command()
def weights(
    scope: Annotated[str | None, typer.Option("--scope", help="Only this scope")] = None,
    signals: Annotated[
        bool, typer.Option("--signals", help="Derive opportunity/gap signals from mastery")
    ] = False,
    prefer_topic: Annotated[
        str | None, typer.Option("--prefer-topic", "-t", help="Preferred topic substring")
    ] = None,
    difficulty: Annotated[
        DifficultyBand | None, typer.Option("--difficulty", "-d", help="Preferred difficulty")
    ] = None,
) -> None:
    """Show computed selection weights with their factor breakdown."""
    with session_scope() as session:
        orchestrator = _build_orchestrator(
            SqlTopicRepository(session), signals=signals, prefer_topic=prefer_topic, difficulty=difficulty
        )
        candidates = orchestrator.preview_weights(scope)

    table = Table(title="Selection Weights")
    for column in ("Topic", "Base", "Mastery", "Importance", "Recency", "Interest", "Frequency"):
        table.add_column(column, justify="left" if column == "Topic" else "right")
    table.add_column("Final", justify="right", style="bold")

    for candidate in candidates:
        b = candidate.breakdown
        if candidate.is_create_new:
            table.add_row(
                f"[cyan]{candidate.name}[/]", str(b.base), f"×{b.new_topic}", "", "", "", "", str(b.final)
            )
            continue
        table.add_row(
            candidate.name,
            str(b.base),
            f"×{b.mastery}",
            f"×{b.importance}",
            f"×{b.recency}",
            f"×{b.interest}",
            f"×{b.frequency}",
            str(b.final),
        )
    console.print(table)
    _print_statistics(WeightedSelector.get_statistics(candidates))


@app.command("next")
def next_topic(
    scope: Annotated[str | None, typer.Option("--scope", help="Only this scope")] = None,
    seed: Annotated[int | None, typer.Option("--seed", help="Seed for a reproducible draw")] = None,
    signals: Annotated[
        bool, typer.Option("--signals", help="Derive opportunity/gap signals from mastery")
    ] = False,
    prefer_topic: Annotated[
        str | None, typer.Option("--prefer-topic", "-t", help="Preferred topic substring")
    ] = None,
    difficulty: Annotated[
        DifficultyBand | None, typer.Option("--difficulty", "-d", help="Preferred difficulty")
    ] = None,
) -> None:
    """Draw the next topic to study."""
    try:
        with session_scope() as session:
            orchestrator = _build_orchestrator(
                SqlTopicRepository(session),
                seed=seed,
                signals=signals,
                prefer_topic=prefer_topic,
                difficulty=difficulty,
            )
            result = orchestrator.select_next(scope)
    except SelectionError as e:
        _fail(e)

    candidate = result.candidate
    if result.is_create_new:
        body = "[bold cyan]Create New Topic[/]\nTime to author new learning content."
    else:
        body = (
            f"[bold cyan]{candidate.name}[/]\n"
            f"ID: {candidate.id}\n"
            f"Mastery: {candidate.topic.mastery_percentage}%\n"
            f"Difficulty: {result.difficulty.value}\n"
            f"Lesson: {result.lesson_type.value}"
        )
    body += f"\nWeight: {candidate.weight}/{result.statistics.total}"
    console.print(Panel(body, title="🎲 Next topic", border_style="cyan"))


@app.command()
def complete(
    topic_id: Annotated[str, typer.Argument(help="ID of the completed topic")],
    passed: Annotated[bool, typer.Option("--pass/--fail", help="Lesson outcome")] = True,
    score: Annotated[
        float | None, typer.Option("--score", "-s", min=0, max=100, help="Lesson score (0-100)")
    ] = None,
    scope: Annotated[str | None, typer.Option("--scope", help="Only this scope")] = None,
) -> None:
    """Record a completed topic and redistribute weight on a pass."""
    try:
        with session_scope() as session:
            result = _build_orchestrator(SqlTopicRepository(session)).complete(
                topic_id, passed, score, scope
            )
    except SelectionError as e:
        _fail(e)

    outcome = "[green]PASSED[/]" if result.passed else "[yellow]FAILED[/]"
    console.print(f"{outcome} mastery {result.old_mastery}% → {result.new_mastery}%")
    if result.passed:
        _print_updates(result.weight_updates, "Weight Redistribution")


# =============================================================================
# Weight Maintenance Commands
# =============================================================================


@app.command()
def distribution(
    scope: Annotated[str | None, typer.Option("--scope", help="Only this scope")] = None,
) -> None:
    """Show statistics over stored selection weights."""
    with session_scope() as session:
        stats, topics = _build_orchestrator(SqlTopicRepository(session)).get_weight_distribution(scope)

    table = Table(title="Stored Weights")
    table.add_column("Topic")
    table.add_column("Mastery", justify="right")
    table.add_column("Weight", justify="right")
    for topic in topics:
        table.add_row(topic.name, f"{topic.mastery_percentage}%", str(topic.selection_weight))
    console.print(table)
    _print_statistics(stats)


@app.command("reset-weights")
def reset_weights(
    scope: Annotated[str | None, typer.Option("--scope", help="Only this scope")] = None,
) -> None:
    """Put every stored weight back at the default."""
    with session_scope() as session:
        updates = _build_orchestrator(SqlTopicRepository(session)).reset_weights(scope)
    _print_updates(updates, "Weight Reset")


@app.command("normalize-weights")
def normalize_weights(
    scope: Annotated[str | None, typer.Option("--scope", help="Only this scope")] = None,
) -> None:
    """Default missing weights and clamp out-of-range ones."""
    with session_scope() as session:
        updates = _build_orchestrator(SqlTopicRepository(session)).normalize_weights(scope)
    _print_updates(updates, "Weight Normalization")


# =============================================================================
# Entry Point
# =============================================================================


def run() -> None:
    """CLI entry point."""
    settings = get_settings()
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level, format="<level>{message}</level>")
    if settings.log_file:
        logger.add(settings.log_file, level="DEBUG", rotation="1 MB", retention=5)

    app()


if __name__ == "__main__":
    run()
