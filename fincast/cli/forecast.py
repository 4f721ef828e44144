"""Implementation of 'fincast forecast' command.

Shows the 12-month balance projection per account, and optionally
per reserve.
"""

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
    format_currency,
    load_profile,
    resolve_today,
)
from fincast.core.exceptions import FincastError
from fincast.engine.aggregator import build_forecast_view

console = Console()


def forecast_command(
    reserves: bool = typer.Option(
        False,
        "--reserves",
        "-r",
        help="Also show reserve balances",
    ),
    document: Path = DocumentOption,
    profile: str = ProfileOption,
    today: datetime = TodayOption,
) -> None:
    """Show projected balances for the next 12 months.

    Each row is the balance at the end of the month, counting real
    transactions and every potential one generated from recurring
    expenses, transfers, reimbursements and card settlements.
    """
    try:
        _, prof = load_profile(document, profile)
    except FincastError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if not prof.accounts:
        console.print("[yellow]No accounts in this profile[/yellow]")
        raise typer.Exit(0)

    view = build_forecast_view(prof, today=resolve_today(today))
    names = account_names(prof)

    table = Table(title=f"Forecast from {view.today.isoformat()}")
    table.add_column("Month", style="cyan")
    for acc in prof.accounts:
        table.add_column(names[acc.id], justify="right")
    table.add_column("Total", justify="right", style="bold")

    for snapshot in view.snapshots:
        row = [snapshot.month]
        row += [format_currency(snapshot.balances[acc.id]) for acc in prof.accounts]
        total = snapshot.total_balance
        row.append(format_currency(total) if total >= 0 else f"[red]{format_currency(total)}[/red]")
        table.add_row(*row)

    console.print(table)

    if reserves and prof.reserves:
        reserve_table = Table(title="Reserves")
        reserve_table.add_column("Month", style="cyan")
        for res in prof.reserves:
            reserve_table.add_column(res.name or res.id, justify="right")
        for snapshot in view.snapshots:
            reserve_table.add_row(
                snapshot.month,
                *[format_currency(snapshot.reserve_balances[res.id]) for res in prof.reserves],
            )
        console.print(reserve_table)

    if view.pending:
        console.print(
            f"[yellow]{len(view.pending)} overdue potential transaction(s) "
            "awaiting validation[/yellow]"
        )
