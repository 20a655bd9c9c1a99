"""
CLI Interface
=============
Command-line interface for the question extraction engine.

Usage:
    python -m quizparser extract <pdf_path> --category <name> [options]
    python -m quizparser info <pdf_path>
    python -m quizparser serve [options]
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from . import __version__
from .document import PdfDocument
from .engine import ExtractionEngine, ParserConfig
from .errors import ExtractionError
from .review import ReviewEngine

console = Console()


@click.group()
@click.version_option(version=__version__, prog_name="quizparser")
def cli():
    """Quiz PDF Parser: multiple-choice question extractor."""
    pass


@cli.command()
@click.argument("pdf_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--category", "-c",
    required=True,
    help="Category stamped on every extracted question",
)
@click.option(
    "--year", "-y",
    default=None,
    type=int,
    help="Year stamped on every extracted question",
)
@click.option(
    "--no-figures",
    is_flag=True,
    default=False,
    help="Skip rendering page figures",
)
@click.option(
    "--figure-scale",
    default=1.5,
    type=float,
    help="Render scale for page figures",
)
@click.option(
    "--output", "-o",
    default=None,
    type=click.Path(dir_okay=False),
    help="Write the extracted questions to this JSON file",
)
@click.option(
    "--log-level",
    default="INFO",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Logging level",
)
@click.option(
    "--log-file",
    default=None,
    help="Path to log file",
)
@click.option(
    "--json-output",
    is_flag=True,
    default=False,
    help="Output only JSON result to stdout (for programmatic use)",
)
def extract(
    pdf_path: str,
    category: str,
    year: int,
    no_figures: bool,
    figure_scale: float,
    output: str,
    log_level: str,
    log_file: str,
    json_output: bool,
):
    """Extract multiple-choice questions from a PDF."""

    if json_output:
        # Suppress console output for JSON mode
        log_level = "ERROR"

    config = ParserConfig(
        extract_figures=not no_figures,
        figure_scale=figure_scale,
        log_level=log_level,
        log_file=log_file,
        # The review table below replaces the logged summary
        review_summary=False,
    )

    if not json_output:
        console.print()
        console.print(
            Panel.fit(
                f"[bold cyan]Quiz PDF Parser v{__version__}[/]\n"
                f"[dim]Extracting: {os.path.basename(pdf_path)}[/]",
                border_style="cyan",
            )
        )
        console.print()

    try:
        engine = ExtractionEngine(config)

        if json_output:
            questions = engine.extract(pdf_path, category, year)
        else:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                TimeElapsedColumn(),
                console=console,
            ) as progress:
                task = progress.add_task("Reading pages...", total=None)

                def on_page(page_num: int, total: int):
                    progress.update(task, completed=page_num, total=total)

                questions = engine.extract(
                    pdf_path, category, year, progress_callback=on_page
                )

    except FileNotFoundError as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)
    except ExtractionError as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)
    except Exception as e:
        console.print(f"[red]Unexpected error:[/] {e}")
        if log_level == "DEBUG":
            console.print_exception()
        sys.exit(1)

    payload = [q.model_dump(mode="json") for q in questions]

    if output:
        _save_json(payload, Path(output))

    if json_output:
        # Output clean JSON to stdout
        print(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    report = ReviewEngine().review(questions)
    _display_questions(questions)
    _display_review_table(report.model_dump())
    if output:
        console.print(f"[dim]Saved {len(questions)} questions to {output}[/]")
        console.print()


@cli.command()
@click.argument("pdf_path", type=click.Path(exists=True, dir_okay=False))
def info(pdf_path: str):
    """Display PDF file information."""

    try:
        document = PdfDocument.open(pdf_path)
    except ExtractionError as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)

    with document:
        console.print()
        table = Table(title="PDF Information", border_style="cyan")
        table.add_column("Property", style="bold")
        table.add_column("Value")

        table.add_row("File", os.path.basename(pdf_path))
        table.add_row("Pages", str(document.page_count))
        table.add_row(
            "File Size",
            f"{os.path.getsize(pdf_path) / 1024 / 1024:.2f} MB",
        )

        for key in ["title", "author", "subject", "creator", "producer"]:
            val = document.metadata.get(key, "")
            if val:
                table.add_row(key.title(), val)

        pages_with_text = sum(
            1
            for page_num in range(1, document.page_count + 1)
            if document.page_tokens(page_num)
        )
        table.add_row("Pages With Text", str(pages_with_text))

    console.print(table)
    console.print()


@cli.command()
@click.option("--host", default="0.0.0.0", help="Server host")
@click.option("--port", default=5000, type=int, help="Server port")
@click.option("--debug", is_flag=True, default=False, help="Debug mode")
def serve(host: str, port: int, debug: bool):
    """Start the HTTP extraction service."""
    from .server import run_server

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]Quiz PDF Parser Service[/]\n"
            f"[dim]Starting on {host}:{port}[/]",
            border_style="cyan",
        )
    )
    console.print()

    run_server(host=host, port=port, debug=debug)


# ─── Display Helpers ──────────────────────────────────────────────────────────


def _save_json(payload, filepath: Path):
    """Write extracted questions to a JSON file."""
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)


def _shorten(text: str, width: int = 60) -> str:
    text = " ".join(text.split())
    return text if len(text) <= width else text[: width - 1] + "…"


def _display_questions(questions):
    """Display extracted questions in a formatted table."""
    table = Table(title="Extracted Questions", border_style="cyan")
    table.add_column("Boundary", style="bold")
    table.add_column("Question")
    table.add_column("Answer", justify="center")
    table.add_column("Figure", justify="center")
    table.add_column("Status", justify="center")

    for q in questions:
        table.add_row(
            q.split_boundary,
            _shorten(q.question_text),
            q.correct_option,
            "[green]✓[/]" if q.has_figure else "[dim]-[/]",
            "[yellow]⚠ review[/]" if q.needs_review else "[green]✓[/]",
        )

    console.print(table)
    console.print()


def _display_review_table(review: dict):
    """Display the review report as a rich table."""
    table = Table(title="Review Report", border_style="green")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_column("Status", justify="center")

    def status_icon(count, threshold=0):
        if count <= threshold:
            return "[green]✓[/]"
        return "[yellow]⚠[/]"

    total = review.get("total_questions", 0)
    parsed = review.get("fully_parsed", 0)
    rate = review.get("parse_rate", 0)

    table.add_row(
        "Total Questions",
        str(total),
        "[green]✓[/]" if total > 0 else "[red]✗[/]",
    )
    table.add_row(
        "Fully Parsed",
        f"{parsed} ({rate}%)",
        "[green]✓[/]" if rate >= 90 else "[yellow]⚠[/]",
    )

    for label, key in [
        ("Needs Review", "needs_review"),
        ("Missing Explanation", "missing_explanation"),
        ("Sequentially Mapped", "sequentially_mapped"),
        ("Missing Question Numbers", "missing_question_numbers"),
        ("Duplicate Question Numbers", "duplicate_question_numbers"),
    ]:
        count = len(review.get(key, []))
        table.add_row(label, str(count), status_icon(count))

    table.add_row("Figures Attached", str(review.get("figures_attached", 0)), "")

    console.print(table)
    console.print()


# ─── Entry point (for python -m quizparser.cli) ───────────────────────────────


if __name__ == "__main__":
    cli()
