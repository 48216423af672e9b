"""Subscription management subcommands (add, list, remove)."""

from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from court_watch.cli.analyze import print_error
from court_watch.core import DatabaseError
from court_watch.database import SubscriptionStore

console = Console()

subscriptions_app = typer.Typer(no_args_is_help=True)


@subscriptions_app.command("add")
def add(
    query: Annotated[str, typer.Argument(help="Search text to track.")],
    email: Annotated[str, typer.Argument(help="Address to notify.")],
) -> None:
    """Track a query and notify an address about new filings."""
    try:
        record = SubscriptionStore().add_subscription(query, email)
    except ValueError as e:
        print_error("Invalid subscription", str(e))
        raise typer.Exit(code=1) from None
    except DatabaseError as e:
        print_error("Database error", e.message, details=e.details)
        raise typer.Exit(code=1) from None

    console.print(
        f"[green]Subscribed:[/green] {record.email} → \"{record.query}\" (#{record.id})"
    )
    console.print(f"  [dim]Unsubscribe token: {record.unsubscribe_token}[/dim]")


@subscriptions_app.command("list")
def list_subscriptions(
    all_: Annotated[
        bool,
        typer.Option("--all", "-a", help="Include inactive subscriptions."),
    ] = False,
) -> None:
    """List subscriptions."""
    store = SubscriptionStore()
    records = store.list_all() if all_ else store.list_active()

    if not records:
        console.print("[yellow]No subscriptions found.[/yellow]")
        return

    table = Table(
        title="[bold]Subscriptions[/bold]",
        border_style="dim",
        header_style="bold",
    )
    table.add_column("ID", justify="right")
    table.add_column("Query", style="cyan")
    table.add_column("E-mail")
    table.add_column("Last Seen", style="dim")
    table.add_column("Active")
    table.add_column("Token", style="dim")

    for r in records:
        table.add_row(
            str(r.id),
            r.query,
            r.email,
            r.last_seen_identity or "—",
            "[green]yes[/green]" if r.is_active else "[red]no[/red]",
            r.unsubscribe_token,
        )

    console.print(table)


@subscriptions_app.command("remove")
def remove(
    token: Annotated[str, typer.Argument(help="Unsubscribe token of the subscription.")],
) -> None:
    """Deactivate a subscription by its unsubscribe token."""
    try:
        record = SubscriptionStore().deactivate(token)
    except DatabaseError as e:
        print_error("Database error", e.message, details=e.details)
        raise typer.Exit(code=1) from None

    if record is None:
        print_error(
            "Not found",
            f"No subscription with token {token}",
            hint="Run 'court-watch subscriptions list --all' to see tokens.",
        )
        raise typer.Exit(code=1)

    console.print(f"[green]Unsubscribed:[/green] {record.email} from \"{record.query}\"")
