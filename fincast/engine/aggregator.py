"""Forecast pipeline over one profile.

Runs the generators, merges and deduplicates, applies deferred-debit
substitution and accumulates the monthly balances. Everything is
recomputed from scratch on every call; inputs are never mutated.
"""

from datetime import date

import structlog

from fincast.core.models import ForecastView, Profile
from fincast.engine.calculator import generate_forecast
from fincast.engine.generators import (
    generate_recurring_expense_transactions,
    generate_recurring_transfer_transactions,
    generate_reimbursement_transactions,
)
from fincast.engine.merge import (
    get_pending_transactions,
    merge_transactions,
    transactions_for_forecast,
)

logger = structlog.get_logger(__name__)


def build_forecast_view(profile: Profile, today: date | None = None) -> ForecastView:
    """Derive every forecast output for a profile.

    Args:
        profile: The user's document.
        today: Reference date (default: today).

    Returns:
        ForecastView with merged transactions, forecast transactions,
        pending items and 12 monthly snapshots.
    """
    today = today or date.today()
    persisted = list(profile.transactions)

    expenses = generate_recurring_expense_transactions(profile.recurring_expenses, today=today)
    transfers = generate_recurring_transfer_transactions(
        profile.recurring_transfers, profile.accounts, profile.reserves, today=today
    )
    # Reimbursements may point at a generated occurrence as well as a persisted one.
    reimbursements = generate_reimbursement_transactions(
        profile.reimbursements, [*persisted, *expenses, *transfers]
    )

    merged = merge_transactions(persisted, expenses, transfers, reimbursements)
    forecast_txs = transactions_for_forecast(
        profile.accounts, merged, persisted, profile.app_settings, today=today
    )
    snapshots = generate_forecast(profile.accounts, profile.reserves, forecast_txs, today=today)

    logger.debug(
        "forecast_built",
        profile=profile.id,
        persisted=len(persisted),
        generated=len(merged) - len(persisted),
        forecast_transactions=len(forecast_txs),
    )

    return ForecastView(
        today=today,
        transactions=merged,
        forecast_transactions=forecast_txs,
        pending=get_pending_transactions(merged, today=today),
        snapshots=snapshots,
    )
