"""
LOGOS operator CLI.

Commands:
- logos validate                 - Run algorithm sanity checks
- logos collocations FILE WORD   - Top collocations of WORD in a text file
"""
from __future__ import annotations

import sys
from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

import numpy as np
import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from config import Settings, get_settings
from logos.ability import estimate_ability, probability
from logos.core.models import ItemParameters
from logos.corpus import compute_pmi, get_collocations, index_corpus, tokenize
from logos.graph import LearnableItem, UserState, build_learning_queue
from logos.study import CardState, Rating, ReviewCard, ReviewScheduler

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="logos",
    help="LOGOS adaptive-learning engine",
    no_args_is_help=True,
)
console = Console()

SAMPLE_TEXT = (
    "we make a decision and then we make a plan. she will make a decision soon. "
    "they take a break after they make a decision. take a break and make a plan."
)


def configure_logging(settings: Settings) -> None:
    """Route loguru output according to settings."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<level>{message}</level>",
    )
    if settings.log_file:
        logger.add(settings.log_file, level=settings.log_level, rotation="10 MB")


# =============================================================================
# Sanity Checks
# =============================================================================


def _check_irt_recovery() -> tuple[bool, str]:
    rng = np.random.default_rng(42)
    true_theta = 0.8
    items = [
        ItemParameters(item_id=f"i{k:03d}", difficulty=float(b))
        for k, b in enumerate(np.linspace(-3.0, 3.0, 600))
    ]
    responses = [bool(rng.random() < probability(true_theta, 1.0, it.difficulty)) for it in items]
    estimate = estimate_ability(responses, items, get_settings().get_engine_config().ability)
    error = abs(estimate.theta - true_theta)
    return error <= 0.3, f"theta={estimate.theta:.3f} (true {true_theta}), se={estimate.se:.3f}"


def _check_scheduler() -> tuple[bool, str]:
    scheduler = ReviewScheduler(get_settings().get_engine_config().scheduler)
    now = datetime(2024, 1, 1)
    lapsed = scheduler.schedule(ReviewCard(item_id="new"), Rating.AGAIN, now)
    card = scheduler.schedule(ReviewCard(item_id="w"), Rating.GOOD, now)
    later = now + timedelta(days=card.scheduled_days)
    hard = scheduler.schedule(card, Rating.HARD, later)
    good = scheduler.schedule(card, Rating.GOOD, later)
    easy = scheduler.schedule(card, Rating.EASY, later)
    ok = (
        lapsed.state == CardState.RELEARNING
        and lapsed.lapses == 1
        and lapsed.scheduled_days >= 1
        and hard.stability < good.stability < easy.stability
    )
    return ok, f"stability hard/good/easy = {hard.stability:.1f}/{good.stability:.1f}/{easy.stability:.1f}"


def _check_pmi_symmetry() -> tuple[bool, str]:
    index = index_corpus(tokenize(SAMPLE_TEXT))
    forward = compute_pmi(index, "make", "decision")
    backward = compute_pmi(index, "decision", "make")
    ok = forward is not None and forward == backward
    detail = f"pmi={forward.pmi:.3f}, npmi={forward.npmi:.3f}" if forward else "pair not found"
    return ok, detail


def _check_priority() -> tuple[bool, str]:
    items = [
        LearnableItem(item_id="rare", frequency=0.1, relational_density=0.5, contextual_contribution=0.5),
        LearnableItem(item_id="common", frequency=0.9, relational_density=0.5, contextual_contribution=0.5),
    ]
    queue = build_learning_queue(items, UserState())
    order = [entry.item.item_id for entry in queue]
    return order == ["common", "rare"], " > ".join(order)


CHECKS: dict[str, Callable[[], tuple[bool, str]]] = {
    "IRT ability recovery": _check_irt_recovery,
    "Scheduler ordering": _check_scheduler,
    "PMI symmetry": _check_pmi_symmetry,
    "Priority ordering": _check_priority,
}


# =============================================================================
# Commands
# =============================================================================


@app.command()
def validate() -> None:
    """Run algorithm sanity checks."""
    table = Table(title="Algorithm Validation")
    table.add_column("Check", style="cyan")
    table.add_column("Result")
    table.add_column("Detail", style="dim")

    failures = 0
    for name, check in CHECKS.items():
        ok, detail = check()
        if not ok:
            failures += 1
            logger.warning(f"Validation check failed: {name} ({detail})")
        table.add_row(name, "[green]PASS[/green]" if ok else "[red]FAIL[/red]", detail)

    console.print(table)
    if failures:
        console.print(f"[bold red]{failures} check(s) failed[/bold red]")
        raise typer.Exit(1)
    console.print("[bold green]All checks passed[/bold green]")


@app.command()
def collocations(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Plain-text corpus"),
    word: str = typer.Argument(..., help="Target word"),
    top: int = typer.Option(10, "--top", "-k", help="Number of collocations"),
    window: Optional[int] = typer.Option(None, "--window", "-w", help="Co-occurrence window"),
) -> None:
    """Show the strongest collocations of WORD in FILE."""
    settings = get_settings()
    tokens = tokenize(file.read_text(encoding="utf-8"))
    index = index_corpus(tokens, window or settings.collocation_window)
    results = get_collocations(index, word, top, settings.get_engine_config().collocation)

    if not results:
        console.print(f"[yellow]No significant collocations for '{word}'[/yellow]")
        return

    table = Table(title=f"Collocations of '{word.lower()}' ({index.total_tokens} tokens)")
    table.add_column("Partner", style="cyan")
    table.add_column("Count", justify="right")
    table.add_column("PMI", justify="right")
    table.add_column("NPMI", justify="right")
    table.add_column("LLR", justify="right")
    for r in results:
        table.add_row(
            r.partner_of(word),
            str(r.cooccurrence),
            f"{r.pmi:.2f}",
            f"{r.npmi:.2f}",
            f"{r.significance:.2f}",
        )
    console.print(table)


# =============================================================================
# Entry Point
# =============================================================================


def run() -> None:
    """Entry point for the CLI."""
    configure_logging(get_settings())
    app()


if __name__ == "__main__":
    run()
