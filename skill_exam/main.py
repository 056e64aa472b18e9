"""
Skill Exam CLI Application.

Provides a command-line interface for generating skill-assessment exams,
taking them interactively, and grading saved exams.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from skill_exam.config import get_settings
from skill_exam.gateways import create_gateway
from skill_exam.grading import SCORE_BANDS, GradingEngine, GradingInputError
from skill_exam.models import MAX_QUESTION_COUNT, MIN_QUESTION_COUNT, Exam, GradeResult
from skill_exam.service import ExamService
from skill_exam.store import StoreNotFoundError

# Create Typer app
app = typer.Typer(
    name="skill-exam",
    help="Generate and grade LLM-authored multiple-choice skill exams",
    add_completion=False,
)

console = Console()


@app.callback()
def main(
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help="Log level (defaults to LOG_LEVEL setting)"),
    ] = None,
) -> None:
    """Configure logging for every command."""
    level = (log_level or get_settings().log_level).upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.command()
def generate(
    count: Annotated[
        Optional[int],
        typer.Option(
            "--count",
            "-n",
            help=f"Number of questions ({MIN_QUESTION_COUNT}-{MAX_QUESTION_COUNT})",
        ),
    ] = None,
    category: Annotated[
        Optional[list[str]],
        typer.Option("--category", "-c", help="Category to cover (repeatable)"),
    ] = None,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Save the full exam (with answers) as JSON"),
    ] = None,
    show_answers: Annotated[
        bool,
        typer.Option("--show-answers", help="Show correct answers in the table"),
    ] = False,
) -> None:
    """
    Generate an exam.

    Questions come from the configured LLM provider, or from the built-in
    fallback bank if generation fails.
    """
    service = ExamService.from_settings(get_settings())

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task("Generating exam...", total=None)
        generated = asyncio.run(service.create_exam(count, category or None))

    exam = service.store.get(generated.exam_id).exam
    _display_exam(exam, show_answers)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(exam.model_dump_json(indent=2), encoding="utf-8")
        console.print(f"\n[green]Exam saved to:[/green] {output}")


@app.command()
def take(
    count: Annotated[
        Optional[int],
        typer.Option("--count", "-n", help="Number of questions"),
    ] = None,
    category: Annotated[
        Optional[list[str]],
        typer.Option("--category", "-c", help="Category to cover (repeatable)"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show per-question results"),
    ] = False,
) -> None:
    """
    Take an exam interactively and get graded at the end.

    Enter the option number for each question, or leave blank to skip.
    """
    service = ExamService.from_settings(get_settings())
    generated = asyncio.run(service.create_exam(count, category or None))

    console.print(
        Panel(
            f"{generated.total_questions} questions "
            f"[dim](source: {generated.source})[/dim]",
            title="Skill Exam",
        )
    )

    answers: list[Optional[int]] = []
    for number, question in enumerate(generated.questions, start=1):
        console.print(
            f"\n[bold]Q{number}.[/bold] {question.question} "
            f"[dim]({question.category} / {question.difficulty})[/dim]"
        )
        for i, option in enumerate(question.options, start=1):
            console.print(f"  {i}. {option}")
        answers.append(_prompt_option(len(question.options)))

    try:
        result = service.grade_exam(generated.exam_id, answers)
    except StoreNotFoundError as e:
        console.print(f"[red]Session Error:[/red] {e}")
        raise typer.Exit(1)
    finally:
        service.discard_exam(generated.exam_id)

    _display_results(result, verbose)


@app.command()
def grade(
    exam_file: Annotated[Path, typer.Argument(help="Path to a saved exam JSON file")],
    answers: Annotated[
        str,
        typer.Option(
            "--answers",
            "-a",
            help="Comma-separated zero-based option indexes; leave an entry blank to skip",
        ),
    ],
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Save the grade result as JSON"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show per-question results"),
    ] = False,
) -> None:
    """Grade answers against a saved exam."""
    if not exam_file.exists():
        console.print(f"[red]Error:[/red] Exam file not found: {exam_file}")
        raise typer.Exit(1)

    try:
        exam = Exam.model_validate_json(exam_file.read_text(encoding="utf-8"))
    except ValidationError as e:
        console.print(f"[red]Exam File Error:[/red] {e}")
        raise typer.Exit(1)

    submitted = [entry.strip() or None for entry in answers.split(",")]

    try:
        result = GradingEngine().grade(exam, submitted)
    except GradingInputError as e:
        console.print(f"[red]Grading Error:[/red] {e}")
        raise typer.Exit(1)

    _display_results(result, verbose)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(
            json.dumps(result.to_payload(), indent=2, ensure_ascii=False), encoding="utf-8"
        )
        console.print(f"\n[green]Result saved to:[/green] {output}")


@app.command()
def bands() -> None:
    """Show the score bands used for letter grades."""
    table = Table(title="Score Bands")
    table.add_column("Grade", style="cyan")
    table.add_column("Min Score", justify="right")
    table.add_column("Description")

    for band in sorted(SCORE_BANDS, key=lambda b: b.min_score, reverse=True):
        table.add_row(band.label, str(band.min_score), band.description)

    console.print(table)


@app.command()
def health() -> None:
    """
    Check if the exam generator can reach its provider.

    Verifies configuration and API connectivity.
    """
    settings = get_settings()
    console.print("[bold]Skill Exam Health Check[/bold]\n")

    console.print("[dim]Checking configuration...[/dim]")
    console.print(f"  Provider: {settings.exam_ai_provider.value}")
    console.print(f"  Model: {settings.resolved_model}")
    console.print(f"  API Key: {'set' if settings.api_key_for(settings.exam_ai_provider) else 'missing'}")
    console.print(f"  Session TTL: {settings.session_ttl_seconds:g}s")

    console.print("\n[dim]Checking API connectivity...[/dim]")
    gateway = create_gateway(settings)

    if asyncio.run(gateway.health_check(settings.resolved_model)):
        console.print("[green]✓ API is reachable[/green]")
    else:
        console.print("[red]✗ API is not reachable; exams will be served from the fallback bank[/red]")
        raise typer.Exit(1)

    console.print("\n[green]All systems operational[/green]")


def _prompt_option(option_count: int) -> Optional[int]:
    """Ask for a 1-based option number; blank skips. Returns a zero-based index."""
    while True:
        raw = typer.prompt("Your answer", default="", show_default=False).strip()
        if not raw:
            return None
        if raw.isdigit() and 1 <= int(raw) <= option_count:
            return int(raw) - 1
        console.print(f"[yellow]Enter a number from 1 to {option_count}, or leave blank to skip[/yellow]")


def _display_exam(exam: Exam, show_answers: bool = False) -> None:
    """Display an exam as a table."""
    table = Table(title=f"Exam ({exam.source})")
    table.add_column("#", justify="right")
    table.add_column("Category", style="cyan")
    table.add_column("Difficulty")
    table.add_column("Question")
    table.add_column("Options")
    if show_answers:
        table.add_column("Answer", justify="right")

    for q in exam.questions:
        row = [
            str(q.id),
            q.category,
            q.difficulty,
            q.question,
            "\n".join(f"{i}. {o}" for i, o in enumerate(q.options)),
        ]
        if show_answers:
            row.append(str(q.answer))
        table.add_row(*row)

    console.print(table)


def _display_results(result: GradeResult, verbose: bool = False) -> None:
    """Display grading results in formatted tables."""

    # Score summary
    score_color = "green" if result.percentage >= 70 else "yellow" if result.percentage >= 50 else "red"
    band_text = f"\n{result.band.description}" if result.band else ""
    console.print(
        Panel(
            f"[{score_color}][bold]{result.score} / {result.total}[/bold] "
            f"({result.percentage:.1f}%)  Grade {result.grade}[/{score_color}]{band_text}",
            title="Final Score",
        )
    )

    table = Table(title="Category Breakdown")
    table.add_column("Category", style="cyan")
    table.add_column("Correct", justify="right")
    table.add_column("Accuracy", justify="right")
    for cat in result.breakdown.categories:
        table.add_row(cat.category, f"{cat.correct}/{cat.total}", f"{cat.accuracy:.1f}%")
    console.print(table)

    table = Table(title="Difficulty Breakdown")
    table.add_column("Difficulty", style="cyan")
    table.add_column("Correct", justify="right")
    table.add_column("Accuracy", justify="right")
    for diff in result.breakdown.difficulties:
        table.add_row(diff.difficulty, f"{diff.correct}/{diff.total}", f"{diff.accuracy:.1f}%")
    console.print(table)

    if verbose:
        table = Table(title="Question Results")
        table.add_column("#", justify="right")
        table.add_column("Status")
        table.add_column("Your Answer", justify="right")
        table.add_column("Correct", justify="right")
        table.add_column("Explanation")

        for qr in result.question_results:
            status = "✅" if qr.correct else "❌"
            user = "-" if qr.user_option_index is None else str(qr.user_option_index)
            table.add_row(str(qr.id), status, user, str(qr.correct_option_index), qr.explanation)

        console.print(table)


if __name__ == "__main__":
    app()
