"""Change-detection subcommands (check once, or run on a schedule)."""

import asyncio
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from court_watch.cli.analyze import print_error
from court_watch.config import get_settings
from court_watch.core import ConfigurationError
from court_watch.database import SubscriptionStore
from court_watch.monitor import ChangeDetector, SmtpNotifier, TickReport
from court_watch.pipeline import PipelineOrchestrator
from court_watch.search import EOglasnaSearchProvider

console = Console()

watch_app = typer.Typer(no_args_is_help=True)


async def _with_detector(action) -> Optional[TickReport]:
    """Build a detector around one long-lived search session and run ``action``."""
    async with EOglasnaSearchProvider() as provider:
        detector = ChangeDetector(
            store=SubscriptionStore(),
            search_provider=provider,
            orchestrator=PipelineOrchestrator(search_provider=provider),
            notifier=SmtpNotifier(),
        )
        return await action(detector)


def _print_report(report: TickReport) -> None:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Checked", str(report.checked))
    table.add_row("Unchanged", str(report.unchanged))
    table.add_row("No results", str(report.no_results))
    table.add_row("Notified", f"[green]{report.notified}[/green]")
    table.add_row("Failed", f"[red]{report.failed}[/red]" if report.failed else "0")
    console.print(table)


@watch_app.command("check")
def check() -> None:
    """Run one change-detection pass over all active subscriptions."""
    try:
        report = asyncio.run(_with_detector(lambda d: d.check_all()))
    except ConfigurationError as e:
        print_error("Configuration error", e.message, details=e.details)
        raise typer.Exit(code=1) from None
    _print_report(report)


@watch_app.command("run")
def run(
    interval: Annotated[
        Optional[float],
        typer.Option("--interval", "-i", min=1, help="Seconds between checks."),
    ] = None,
) -> None:
    """Check subscriptions repeatedly until interrupted."""
    interval = interval or get_settings().monitor.interval_seconds
    console.print(f"[bold]Watching subscriptions every {interval:.0f}s[/bold] (Ctrl+C to stop)")
    try:
        asyncio.run(_with_detector(lambda d: d.run_forever(interval)))
    except ConfigurationError as e:
        print_error("Configuration error", e.message, details=e.details)
        raise typer.Exit(code=1) from None
    except KeyboardInterrupt:
        console.print("[dim]Stopped.[/dim]")
