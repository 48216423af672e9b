"""The ``analyze`` command: search, analyse, and print a narrative."""

import asyncio
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from court_watch.config import get_settings
from court_watch.core import (
    ConfigurationError,
    CourtWatchError,
    NoFilingsFoundError,
    PipelineResult,
    ProgressEvent,
)
from court_watch.pipeline import CallbackSink, PipelineOrchestrator
from court_watch.search import EOglasnaSearchProvider

console = Console()


def print_error(
    label: str,
    message: str,
    *,
    details: str | None = None,
    hint: str | None = None,
) -> None:
    """Print a consistently formatted error with optional details and hint."""
    console.print(f"[red]{label}:[/red] {message}")
    if details:
        console.print(f"  [dim]{details}[/dim]")
    if hint:
        console.print(f"  [dim italic]Hint: {hint}[/dim italic]")


def _make_progress() -> Progress:
    """Create a Rich Progress instance for pipeline steps."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[bold]{task.description}"),
        BarColumn(bar_width=30),
        TextColumn("{task.completed:>3.0f}%"),
        TimeElapsedColumn(),
        console=console,
    )


def _print_result(result: PipelineResult) -> None:
    for processed in result.filings:
        filing = processed.filing
        table = Table(show_header=False, box=None, padding=(0, 2))
        table.add_column("Key", style="bold")
        table.add_column("Value")
        table.add_row("Case", filing.case_number)
        table.add_row("Court", filing.court)
        table.add_row("Date", filing.date)
        table.add_row("Link", f"[dim]{filing.detail_link}[/dim]")
        for analysis in processed.analyses:
            if analysis.succeeded:
                table.add_row(analysis.file.text, "[green]analysed[/green]")
            else:
                table.add_row(analysis.file.text, f"[red]{analysis.error}[/red]")
        if processed.note:
            table.add_row("Note", f"[yellow]{processed.note}[/yellow]")
        console.print(Panel(table, title=f"[bold]{filing.title}[/bold]", expand=False))

    console.print(Panel(Markdown(result.narrative), title="[bold cyan]Analysis[/bold cyan]"))


async def _run(query: str, cases: int, progress: Progress) -> PipelineResult:
    task_id = progress.add_task("Starting", total=100)

    def on_event(event: ProgressEvent) -> None:
        if event.progress is not None:
            progress.update(task_id, completed=event.progress, description=event.message)
        else:
            progress.console.print(f"  [dim]{event.message}[/dim]")

    async with EOglasnaSearchProvider() as provider:
        orchestrator = PipelineOrchestrator(search_provider=provider)
        return await orchestrator.analyze_query(query, cases, CallbackSink(on_event))


def analyze(
    query: Annotated[str, typer.Argument(help="Name, company, or case number to search for.")],
    cases: Annotated[
        Optional[int],
        typer.Option("--cases", "-n", min=1, max=10, help="Number of latest filings to analyse."),
    ] = None,
) -> None:
    """Analyse the latest court filings for a query."""
    cases = cases or get_settings().pipeline.default_case_count

    try:
        with _make_progress() as progress:
            result = asyncio.run(_run(query, cases, progress))
    except NoFilingsFoundError as e:
        print_error("No filings", e.message, hint="Try a broader search term.")
        raise typer.Exit(code=1) from None
    except ConfigurationError as e:
        print_error("Configuration error", e.message, details=e.details)
        raise typer.Exit(code=1) from None
    except CourtWatchError as e:
        print_error("Analysis failed", e.message, details=e.details)
        raise typer.Exit(code=1) from None

    _print_result(result)
