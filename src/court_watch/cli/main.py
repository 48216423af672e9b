"""Typer application root for the court-watch CLI."""

import logging
from importlib.metadata import PackageNotFoundError, version

import typer
from rich.console import Console

from court_watch.cli.analyze import analyze
from court_watch.cli.subscriptions import subscriptions_app
from court_watch.cli.watch import watch_app
from court_watch.core.logging import configure_logging, suppress_third_party_loggers

# Shared console instance for consistent output across all CLI modules.
console = Console()

app = typer.Typer(
    name="court-watch",
    help="Monitor and analyse public court filings.",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        try:
            installed = version("court-watch")
        except PackageNotFoundError:
            installed = "0.0.0"
        console.print(f"court-watch {installed}")
        raise typer.Exit()


def _verbose_callback(value: bool) -> None:
    """Enable DEBUG-level logging when --verbose is passed."""
    if value:
        configure_logging(level=logging.DEBUG)
        suppress_third_party_loggers()


@app.callback()
def main(
    _version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    _verbose: bool = typer.Option(
        False,
        "--verbose",
        "-V",
        help="Enable detailed debug output.",
        callback=_verbose_callback,
        is_eager=True,
    ),
) -> None:
    """Monitor and analyse public court filings."""


# Register sub-command groups.
app.add_typer(watch_app, name="watch", help="Detect new filings for subscriptions.")
app.add_typer(subscriptions_app, name="subscriptions", help="Manage subscriptions.")

# Register analyze as a top-level command (not a sub-group).
app.command(name="analyze")(analyze)
