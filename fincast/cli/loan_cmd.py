"""Implementation of 'fincast loan' commands.

Show, add and delete loans. Each loan is paired with a monthly recurring
expense on the main account; adding or deleting a loan does both.
"""

from datetime import datetime
from decimal import Decimal
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from fincast.cli.utils import (
    DocumentOption,
    ProfileOption,
    format_currency,
    load_profile,
)
from fincast.core.exceptions import FincastError
from fincast.core.models import MISC_CATEGORY_ID
from fincast.engine.loans import calculate_remaining_balance, count_loan_payments

console = Console()

# Create subcommand group
loan_app = typer.Typer(help="Manage loans and their installments")


@loan_app.command(name="show")
def loan_show(
    document: Path = DocumentOption,
    profile: str = ProfileOption,
) -> None:
    """Show loans with payments made and remaining balance."""
    try:
        _, prof = load_profile(document, profile)
    except FincastError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if not prof.loans:
        console.print("[yellow]No loans[/yellow]")
        raise typer.Exit(0)

    table = Table(title="Loans")
    table.add_column("Id", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Principal", justify="right")
    table.add_column("Rate", justify="right")
    table.add_column("Payment", justify="right")
    table.add_column("Paid", justify="right")
    table.add_column("Remaining", justify="right", style="bold")

    for loan in prof.loans:
        paid = count_loan_payments(loan, prof.transactions)
        table.add_row(
            loan.id,
            loan.name,
            format_currency(loan.initial_amount),
            f"{loan.interest_rate}%",
            format_currency(loan.monthly_payment),
            f"{min(paid, loan.term_in_months)}/{loan.term_in_months}",
            format_currency(calculate_remaining_balance(loan, paid)),
        )
    console.print(table)


@loan_app.command(name="add")
def loan_add(
    name: str = typer.Argument(..., help="Loan name"),
    amount: float = typer.Option(..., "--amount", "-a", help="Borrowed principal"),
    rate: float = typer.Option(..., "--rate", "-r", help="Annual interest rate in percent"),
    term: int = typer.Option(..., "--term", "-t", min=1, help="Term in months"),
    start: datetime = typer.Option(
        ..., "--start", "-s", formats=["%Y-%m-%d"], help="First installment date"
    ),
    paid: int = typer.Option(
        None, "--paid", min=0, help="Payments already made before today"
    ),
    remaining: float = typer.Option(
        None,
        "--remaining",
        help="Outstanding principal today (derives --paid)",
    ),
    category: str = typer.Option(
        MISC_CATEGORY_ID, "--category", "-c", help="Category of the installments"
    ),
    document: Path = DocumentOption,
    profile: str = ProfileOption,
) -> None:
    """Add a loan and its monthly installment on the main account.

    Payments already made are given with --paid, or derived from the
    outstanding principal with --remaining.
    """
    if paid is not None and remaining is not None:
        console.print("[red]Error:[/red] Use either --paid or --remaining, not both")
        raise typer.Exit(1)

    try:
        store, prof = load_profile(document, profile)
        loan = store.add_loan(
            name=name,
            initial_amount=Decimal(str(amount)),
            interest_rate=Decimal(str(rate)),
            term_in_months=term,
            start_date=start.date(),
            category_id=category,
            payments_made_initially=paid,
            remaining_balance=Decimal(str(remaining)) if remaining is not None else None,
            profile_id=prof.id,
        )
        store.save()
    except FincastError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    console.print(f"[green]Added:[/green] {loan.name} ({loan.id})")
    console.print(f"Monthly payment: [cyan]{format_currency(loan.monthly_payment)}[/cyan]")
    if loan.payments_made_initially:
        console.print(f"Payments already made: {loan.payments_made_initially}/{loan.term_in_months}")


@loan_app.command(name="delete")
def loan_delete(
    loan_id: str = typer.Argument(..., help="Loan id (see 'fincast loan show')"),
    confirm: bool = typer.Option(
        False,
        "--confirm",
        "-y",
        help="Confirm deletion (required)",
    ),
    document: Path = DocumentOption,
    profile: str = ProfileOption,
) -> None:
    """Delete a loan and its installment rule.

    Requires --confirm flag to execute.
    """
    try:
        store, prof = load_profile(document, profile)
    except FincastError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    loan = next((lo for lo in prof.loans if lo.id == loan_id), None)
    if loan is None:
        console.print(f"[red]Error:[/red] Loan not found: {loan_id}")
        raise typer.Exit(1)

    if not confirm:
        console.print(f"This will delete [cyan]{loan.name}[/cyan] and its recurring installment.")
        console.print("Run with [bold]--confirm[/bold] to proceed")
        raise typer.Exit(0)

    store.delete_loan(loan_id, profile_id=prof.id)
    store.save()
    console.print(f"[green]Deleted:[/green] {loan.name}")
