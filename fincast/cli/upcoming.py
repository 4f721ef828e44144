"""Implementation of 'fincast upcoming' command."""

from datetime import datetime
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from fincast.cli.utils import (
    DocumentOption,
    ProfileOption,
    TodayOption,
    account_names,
    format_signed,
    load_profile,
    resolve_today,
)
from fincast.core.exceptions import FincastError
from fincast.core.models import TransactionStatus
from fincast.engine.aggregator import build_forecast_view

console = Console()


def upcoming_command(
    limit: int = typer.Option(
        10,
        "--limit",
        "-n",
        min=1,
        help="Number of transactions to show",
    ),
    overdue: bool = typer.Option(
        False,
        "--overdue",
        help="Show overdue potential transactions instead",
    ),
    document: Path = DocumentOption,
    profile: str = ProfileOption,
    today: datetime = TodayOption,
) -> None:
    """List the next potential transactions.

    With --overdue, lists potential transactions dated before today
    that still have to be validated.
    """
    try:
        _, prof = load_profile(document, profile)
    except FincastError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    ref_date = resolve_today(today)
    view = build_forecast_view(prof, today=ref_date)

    if overdue:
        rows = view.pending[:limit]
        title = "Overdue potential transactions"
    else:
        upcoming = [
            tx
            for tx in view.forecast_transactions
            if tx.status == TransactionStatus.POTENTIAL and tx.date >= ref_date
        ]
        rows = sorted(upcoming, key=lambda tx: tx.date)[:limit]
        title = "Upcoming potential transactions"

    if not rows:
        console.print("[yellow]Nothing to show[/yellow]")
        raise typer.Exit(0)

    names = account_names(prof)
    table = Table(title=title)
    table.add_column("Date", style="cyan")
    table.add_column("Description")
    table.add_column("Account")
    table.add_column("Amount", justify="right")
    for tx in rows:
        table.add_row(
            tx.date.isoformat(),
            tx.description,
            names.get(tx.account_id, tx.account_id),
            format_signed(tx),
        )
    console.print(table)
