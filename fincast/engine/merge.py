"""Merge persisted and generated transactions.

A generated occurrence disappears as soon as the user has validated it:
the validated copy is persisted with the same rule id and date, and the
(rule id, date) pair is the dedup key.
"""

from collections.abc import Iterable
from datetime import date

from fincast.core.models import (
    Account,
    AccountType,
    AppSettings,
    Transaction,
    TransactionStatus,
)
from fincast.engine.generators import generate_deferred_debit_summaries


def sort_newest_first(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Stable sort by booking date, newest first (display order)."""
    return sorted(transactions, key=lambda tx: tx.date, reverse=True)


def merge_transactions(
    persisted: list[Transaction],
    generated_expenses: list[Transaction],
    generated_transfers: list[Transaction],
    generated_reimbursements: list[Transaction],
) -> list[Transaction]:
    """Combine persisted transactions with generated ones.

    Generated recurring-expense occurrences are dropped when a persisted
    transaction carries the same (recurring_expense_id, date); same for
    recurring transfers with (recurring_transfer_id, date). Both legs of a
    transfer share the key, so they disappear together.

    Returns:
        New list sorted by date, newest first. Equal dates keep the order
        persisted, expenses, transfers, reimbursements.
    """
    expense_keys = {
        (tx.recurring_expense_id, tx.date) for tx in persisted if tx.recurring_expense_id
    }
    transfer_keys = {
        (tx.recurring_transfer_id, tx.date) for tx in persisted if tx.recurring_transfer_id
    }

    unique_expenses = [
        tx for tx in generated_expenses if (tx.recurring_expense_id, tx.date) not in expense_keys
    ]
    unique_transfers = [
        tx
        for tx in generated_transfers
        if (tx.recurring_transfer_id, tx.date) not in transfer_keys
    ]

    return sort_newest_first(
        [*persisted, *unique_expenses, *unique_transfers, *generated_reimbursements]
    )


def transactions_for_forecast(
    accounts: list[Account],
    merged: list[Transaction],
    persisted: list[Transaction],
    settings: AppSettings,
    today: date | None = None,
) -> list[Transaction]:
    """Transaction set used for balance forecasting.

    With deferred debit enabled, card activity is replaced by its monthly
    settlement on the linked account: transactions booked on deferred-debit
    accounts are dropped and settlement summaries are added, except those
    already matched by a REAL settlement on the same date.
    """
    if not settings.enable_deferred_debit:
        return list(merged)

    deferred_ids = {acc.id for acc in accounts if acc.type == AccountType.DEFERRED_DEBIT}
    cash_flow = [tx for tx in merged if tx.account_id not in deferred_ids]

    real_settlements = {
        (tx.deferred_debit_source_account_id, tx.date)
        for tx in persisted
        if tx.deferred_debit_source_account_id and tx.status == TransactionStatus.REAL
    }
    summaries = [
        tx
        for tx in generate_deferred_debit_summaries(accounts, merged, today=today)
        if (tx.deferred_debit_source_account_id, tx.date) not in real_settlements
    ]

    return sort_newest_first([*cash_flow, *summaries])


def get_pending_transactions(
    merged: list[Transaction],
    today: date | None = None,
) -> list[Transaction]:
    """POTENTIAL transactions dated before today, oldest first.

    These are overdue occurrences the user still has to validate.
    """
    today = today or date.today()
    pending = [
        tx
        for tx in merged
        if tx.status == TransactionStatus.POTENTIAL and tx.date < today and not tx.is_simulation
    ]
    return sorted(pending, key=lambda tx: tx.date)
