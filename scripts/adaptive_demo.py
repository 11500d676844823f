# ABOUTME: Provides a CLI that exercises the adaptive engine against item pools and response logs.
# ABOUTME: Simulates sessions, recalibrates items, and reports mastery velocity and predictions.

import math
import random
from pathlib import Path
from typing import List, Optional

import numpy as np
import pandas as pd
import typer
from rich.console import Console
from rich.table import Table

from src.adaptive.config import CalibrationConfig, load_engine_config
from src.adaptive.prediction import predict_performance
from src.adaptive.session import choose_next_item, close_session, record_answer, start_session
from src.adaptive.velocity import analyze_learning_velocity, history_from_frame
from src.calibration.item_calibrator import item_metrics_frame, refresh_item_difficulty
from src.common.schemas import Item
from src.common.stores import InMemoryQuestionStore, InMemorySessionStore

console = Console()
app = typer.Typer(help="Drive the adaptive assessment engine from the terminal.")


def _read_table(path: Path) -> pd.DataFrame:
    if not path.exists():
        console.print(f"[red]Missing input at {path}[/red]")
        raise typer.Exit(code=1)
    if path.suffix == ".parquet":
        return pd.read_parquet(path)
    return pd.read_csv(path)


def _write_table(frame: pd.DataFrame, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix == ".parquet":
        frame.to_parquet(path, index=False)
    else:
        frame.to_csv(path, index=False)


def generate_item_pool(count: int, topic: str, seed: int) -> List[Item]:
    """Synthetic pool with difficulties spread across the 1-5 scale."""
    rng = np.random.default_rng(seed)
    difficulties = np.round(rng.uniform(1.0, 5.0, size=count), 1)
    discrimination = np.round(rng.uniform(0.2, 0.9, size=count), 2)
    return [
        Item(item_id=f"{topic}-q{i:03d}", difficulty=float(d), discrimination_index=float(a), topic=topic)
        for i, (d, a) in enumerate(zip(difficulties, discrimination))
    ]


def items_from_frame(frame: pd.DataFrame, topic: str) -> List[Item]:
    """Every loaded item is served under ``topic``; the file's own topic column is ignored."""
    items = []
    for row in frame.itertuples(index=False):
        items.append(
            Item(
                item_id=str(row.item_id),
                difficulty=float(row.difficulty),
                average_response_time_seconds=float(getattr(row, "average_response_time_seconds", 15.0)),
                success_rate=float(getattr(row, "success_rate", 0.5)),
                discrimination_index=float(getattr(row, "discrimination_index", 0.5)),
                topic=topic,
            )
        )
    return items


def _simulated_answer(ability: float, difficulty: float, rng: random.Random):
    p_correct = 1.0 / (1.0 + math.exp(1.7 * (difficulty - ability)))
    correct = rng.random() < p_correct
    response_time = max(1.0, rng.gauss(8.0 + 4.0 * difficulty, 5.0))
    return correct, round(response_time, 1)


def _recalibrate_served_items(store: InMemoryQuestionStore, item_ids, config: CalibrationConfig) -> None:
    """
    Refresh served item difficulty and print the before/after values.

    Items with fewer responses than the calibration minimum keep their
    current difficulty instead of being reset to the neutral default.
    """
    table = Table(title="Recalibrated items", show_header=True, header_style="bold magenta")
    for column in ("Item", "Responses", "Before", "After"):
        table.add_column(column)

    for item_id in item_ids:
        before = store.get_item(item_id).difficulty
        count = len(store.responses_for(item_id))
        if count < config.min_responses_difficulty:
            table.add_row(item_id, str(count), f"{before:.1f}", f"{before:.1f} (kept)")
            continue
        after = refresh_item_difficulty(store, item_id, config)
        table.add_row(item_id, str(count), f"{before:.1f}", f"{after:.1f}")

    console.print()
    console.print(table)


@app.command()
def simulate(
    items_path: Optional[Path] = typer.Option(None, "--items-path", help="CSV/Parquet item pool; generated when omitted."),
    topic: str = typer.Option("fractions", "--topic", help="Topic identifier for the session."),
    ability: float = typer.Option(3.5, "--ability", help="Simulated learner ability on the 1-5 difficulty scale."),
    questions: int = typer.Option(15, "--questions", help="Number of answers to simulate."),
    pool_size: int = typer.Option(40, "--pool-size", help="Size of the generated pool."),
    seed: int = typer.Option(7, "--seed", help="Seed for the learner and the selector."),
    config: Optional[Path] = typer.Option(None, "--config", help="Engine config YAML."),
    recalibrate: bool = typer.Option(True, "--recalibrate/--no-recalibrate", help="Refresh served item difficulty after the session and print the changes."),
) -> None:
    """
    Run one simulated learner through an adaptive session and print the decision trace.
    """
    engine_config = load_engine_config(config)
    rng = random.Random(seed)
    selector_seed = engine_config.selector.seed if engine_config.selector.seed is not None else seed
    selector_rng = random.Random(selector_seed)

    pool = items_from_frame(_read_table(items_path), topic) if items_path else generate_item_pool(pool_size, topic, seed)
    question_store = InMemoryQuestionStore(pool)
    session_store = InMemorySessionStore()

    session = start_session("sim-session", "sim-learner", topic, engine_config.session)
    session_store.save(session)
    mastery = session_store.get_mastery(session.learner_id, topic)

    console.rule("[bold blue]Adaptive Session Simulation[/bold blue]")
    console.print(f"[bold]Run:[/] {engine_config.run_name}")
    console.print(f"[bold]Topic:[/] {topic}   [bold]Ability:[/] {ability}   [bold]Pool:[/] {len(pool)} items")
    console.print()

    trace_table = Table(show_header=True, header_style="bold magenta")
    for column in ("#", "Item", "Item Diff", "Correct", "Time (s)", "Next Diff", "Strategy", "Mastery"):
        trace_table.add_column(column)

    recommendation = None
    for step in range(1, questions + 1):
        topic_pool = question_store.items_for_topic(topic)
        item_id = choose_next_item(session, topic_pool, recommendation, rng=selector_rng)
        if item_id is None and not topic_pool:
            console.print(f"[red]Item pool is empty for topic '{topic}'; nothing to ask.[/red]")
            break
        if item_id is None:
            console.print("[yellow]Item pool exhausted; ending session early.[/yellow]")
            break
        item = question_store.get_item(item_id)
        correct, response_time = _simulated_answer(ability, item.difficulty, rng)

        applied = {}

        def _apply(current):
            applied["result"] = record_answer(current, item_id, correct, response_time, mastery, engine_config.session)
            return applied["result"].session

        session = session_store.update(session.session_id, _apply)
        result = applied["result"]
        recommendation, mastery = result.recommendation, result.mastery
        session_store.save_mastery(mastery)
        question_store.record_response(result.response)

        trace_table.add_row(
            str(step),
            item_id,
            f"{item.difficulty:.1f}",
            "✅" if correct else "❌",
            f"{response_time:.1f}",
            f"{recommendation.next_difficulty:.1f}",
            recommendation.strategy.value,
            f"{mastery.value:.2f}",
        )

    session = close_session(session)
    session_store.save(session)
    console.print(trace_table)

    if recommendation is not None:
        console.print()
        console.print("[bold yellow]Last reasoning[/bold yellow]")
        for line in recommendation.reasoning:
            console.print(f"  → {line}")

    prediction = predict_performance(mastery.value, session.current_difficulty, questions)
    console.print()
    console.print(
        f"[bold green]Final:[/] {session.correct_answers}/{session.questions_answered} correct, "
        f"difficulty {session.current_difficulty:.1f}, mastery {mastery.value:.2f}"
    )
    low, high = prediction.confidence_interval
    console.print(
        f"[bold green]Next session:[/] expected accuracy {prediction.expected_accuracy:.2f} "
        f"({low:.2f}-{high:.2f}), recommended length {prediction.recommended_session_length}"
    )

    if recalibrate and session.answered_item_ids:
        _recalibrate_served_items(question_store, session.answered_item_ids, engine_config.calibration)

    session_store.discard(session.session_id)


@app.command()
def calibrate(
    items_path: Path = typer.Option(..., "--items-path", help="CSV/Parquet with item_id and optional topic."),
    responses_path: Path = typer.Option(..., "--responses-path", help="CSV/Parquet response log."),
    sessions_path: Optional[Path] = typer.Option(None, "--sessions-path", help="CSV/Parquet session totals for discrimination."),
    output: Path = typer.Option(Path("reports/item_metrics.parquet"), "--output", help="Where to write recalibrated metrics."),
    config: Optional[Path] = typer.Option(None, "--config", help="Engine config YAML."),
) -> None:
    """
    Recompute difficulty, discrimination, success rate, and response time per item.
    """
    engine_config = load_engine_config(config)
    items = _read_table(items_path)
    responses = _read_table(responses_path)
    sessions = _read_table(sessions_path) if sessions_path else None

    metrics = item_metrics_frame(items, responses, sessions, engine_config.calibration)
    _write_table(metrics, output)

    table = Table(show_header=True, header_style="bold magenta")
    for column in ("Item ID", "Difficulty", "Discrimination", "Success", "Avg Time", "Responses"):
        table.add_column(column)
    for row in metrics.head(20).itertuples(index=False):
        table.add_row(
            row.item_id,
            f"{row.difficulty:.1f}",
            f"{row.discrimination_index:.2f}",
            f"{row.success_rate:.2f}",
            f"{row.average_response_time_seconds:.1f}",
            str(row.response_count),
        )
    console.print(table)
    console.print(f"[bold]Calibrated {len(metrics):,} items; metrics saved to {output}[/bold]")


@app.command()
def velocity(
    history_path: Path = typer.Option(..., "--history-path", help="CSV/Parquet with date and mastery columns."),
    timeframe: int = typer.Option(7, "--timeframe", help="Number of most recent samples to analyze."),
) -> None:
    """
    Report mastery velocity, trend, and a suggested intervention.
    """
    history = history_from_frame(_read_table(history_path))
    report = analyze_learning_velocity(history, timeframe=timeframe)

    color = {"improving": "green", "stable": "yellow", "declining": "red"}.get(report.trend, "white")
    console.print(f"[{color}]Trend: {report.trend}[/{color}]  velocity {report.velocity:+.4f}/day over {len(history)} samples")
    if report.intervention:
        console.print(f"  → {report.intervention}")


@app.command()
def predict(
    mastery: float = typer.Option(..., "--mastery", help="Current mastery in [0, 1]."),
    difficulty: float = typer.Option(3.0, "--difficulty", help="Target difficulty on the 1-5 scale."),
    questions: int = typer.Option(10, "--questions", help="Planned number of questions."),
) -> None:
    """
    Forecast accuracy and session length for a planned session.
    """
    prediction = predict_performance(mastery, difficulty, questions)
    low, high = prediction.confidence_interval
    console.print(f"Expected accuracy {prediction.expected_accuracy:.2f} ({low:.2f}-{high:.2f})")
    console.print(f"Recommended session length: {prediction.recommended_session_length}")


if __name__ == "__main__":
    app()
