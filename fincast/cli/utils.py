"""Shared helpers for CLI commands."""

from datetime import datetime, date
from decimal import Decimal
from pathlib import Path

import typer

from fincast.core.document import DocumentStore, open_store
from fincast.core.models import Profile, Transaction

DEFAULT_CURRENCY = "EUR"

DocumentOption = typer.Option(
    None,
    "--file",
    "-f",
    envvar="FINCAST_DOCUMENT",
    help="Path to the JSON document (default: ./fincast.json)",
)
ProfileOption = typer.Option(
    None,
    "--profile",
    help="Profile id (default: active profile)",
)
TodayOption = typer.Option(
    None,
    "--today",
    formats=["%Y-%m-%d"],
    help="Reference date (default: today)",
)


def format_currency(amount: Decimal, currency: str = DEFAULT_CURRENCY) -> str:
    """Format amount with thousands separator and currency code."""
    return f"{amount:,.2f} {currency}"


def format_percentage(value: Decimal) -> str:
    return f"{value:.1f}%"


def format_signed(tx: Transaction, currency: str = DEFAULT_CURRENCY) -> str:
    """Signed amount, colored for rich output."""
    amount = tx.signed_amount
    color = "green" if amount >= 0 else "red"
    return f"[{color}]{format_currency(amount, currency)}[/{color}]"


def resolve_today(today: datetime | None) -> date:
    return today.date() if today else date.today()


def load_profile(document: Path | None, profile_id: str | None) -> tuple[DocumentStore, Profile]:
    """Open the document and pick the requested (or active) profile.

    The stored active profile is left unchanged.

    Raises:
        FincastError: Document missing or invalid, or unknown profile.
    """
    store = open_store(document)
    return store, store.profile(profile_id or None)


def account_names(profile: Profile) -> dict[str, str]:
    return {acc.id: acc.name or acc.id for acc in profile.accounts}
