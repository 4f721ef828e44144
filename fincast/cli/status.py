"""Implementation of 'fincast status' command.

Shows current balances, reserves, open card cycles and net worth.
"""

from datetime import datetime
from decimal import Decimal
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from fincast.cli.utils import (
    DocumentOption,
    ProfileOption,
    TodayOption,
    account_names,
    format_currency,
    format_percentage,
    load_profile,
    resolve_today,
)
from fincast.core.exceptions import FincastError
from fincast.engine.aggregator import build_forecast_view
from fincast.engine.calculator import (
    calculate_account_balance,
    calculate_current_reserve_balance,
    calculate_net_worth,
)
from fincast.engine.generators import calculate_current_deferred_debit_spending

console = Console()


def status_command(
    document: Path = DocumentOption,
    profile: str = ProfileOption,
    today: datetime = TodayOption,
) -> None:
    """Show current status.

    Displays real balances as of today, reserve progress toward their
    targets, running card cycles, overdue potential transactions and
    net worth.
    """
    try:
        _, prof = load_profile(document, profile)
    except FincastError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    ref_date = resolve_today(today)
    view = build_forecast_view(prof, today=ref_date)
    transactions = view.transactions
    names = account_names(prof)

    console.print()
    console.print(Panel(f"[bold]Status for {prof.name or prof.id} on {ref_date}[/bold]", style="cyan"))
    console.print()

    if not prof.accounts:
        console.print("[yellow]No accounts in this profile[/yellow]")
        raise typer.Exit(0)

    # Accounts
    console.print("[bold]Accounts[/bold]")
    for acc in prof.accounts:
        balance = calculate_account_balance(acc, transactions, ref_date)
        marker = " [dim](main)[/dim]" if acc.id == prof.main_account_id else ""
        style = "green" if balance >= 0 else "red"
        console.print(f"  {names[acc.id]}:{marker} [{style}]{format_currency(balance):>16}[/{style}]")
    console.print()

    # Reserves
    if prof.reserves:
        console.print("[bold]Reserves[/bold]")
        for res in prof.reserves:
            balance = calculate_current_reserve_balance(res, transactions, ref_date)
            line = f"  {res.name or res.id} ({names.get(res.account_id, res.account_id)}): {format_currency(balance)}"
            if res.target_amount:
                pct = balance / res.target_amount * 100 if res.target_amount > 0 else Decimal(0)
                line += f" / {format_currency(res.target_amount)} ({format_percentage(pct)})"
                if res.target_date:
                    line += f" by {res.target_date}"
            console.print(line)
        console.print()

    # Deferred debit
    cycles = [
        spending
        for acc in prof.accounts
        if (spending := calculate_current_deferred_debit_spending(acc, transactions, ref_date))
    ]
    if cycles:
        console.print("[bold]Card Cycles[/bold]")
        for spending in cycles:
            console.print(
                f"  {names[spending.account_id]}: {format_currency(spending.total)} "
                f"since {spending.cycle_start}, debited on {spending.next_debit_date}"
            )
        console.print()

    # Net worth
    net = calculate_net_worth(
        prof.accounts, transactions, prof.loans, prof.manual_assets, ref_date
    )
    console.print("[bold]Net Worth[/bold]")
    console.print(f"  Liquid assets:  {format_currency(net.liquid_assets):>16}")
    console.print(f"  Other assets:   {format_currency(net.other_assets):>16}")
    console.print(f"  Liabilities:    {format_currency(net.liabilities):>16}")
    style = "green" if net.net_worth >= 0 else "red"
    console.print(f"  [{style}]Net worth:      {format_currency(net.net_worth):>16}[/{style}]")
    console.print()

    # Warnings
    if view.pending:
        console.print("[bold yellow]⚠ Pending[/bold yellow]")
        console.print(f"  - {len(view.pending)} potential transaction(s) dated before today")
        console.print()

    real_count = sum(1 for tx in prof.transactions if tx.is_real)
    console.print(f"[dim]Transactions: {real_count} real, {len(transactions) - len(prof.transactions)} generated[/dim]")
