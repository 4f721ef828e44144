"""Potential-transaction generators.

Each generator expands one kind of rule into forecast-only (POTENTIAL)
transactions. Generated ids are derived from (rule id, date) so the same
occurrence always gets the same identity, which the merge layer and the
callers rely on.

Generators never raise on dangling references: the affected item is
skipped and a warning is logged, so one bad rule cannot blank out the
rest of the forecast.
"""

from collections.abc import Iterable
from datetime import date
from decimal import Decimal

import structlog
from dateutil.relativedelta import relativedelta

from fincast.core.models import (
    Account,
    AccountType,
    DeferredDebitSpending,
    RecurringExpense,
    RecurringTransfer,
    Reimbursement,
    ReimbursementStatus,
    Reserve,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from fincast.core.references import resolve_reference
from fincast.engine.periods import (
    FORECAST_MONTHS,
    day_in_month,
    forecast_horizon,
    iterate_occurrences,
)

logger = structlog.get_logger(__name__)


# -----------------------------------------------------------------------------
# Deterministic ids
# -----------------------------------------------------------------------------


def recurring_expense_tx_id(rule_id: str, on: date) -> str:
    return f"rec-{rule_id}-{on.isoformat()}"


def transfer_id_for(rule_id: str, on: date) -> str:
    return f"rec-trsf-{rule_id}-{on.isoformat()}"


def reimbursement_tx_id(reimbursement_id: str) -> str:
    return f"reimb-pot-{reimbursement_id}"


def deferred_debit_tx_id(account_id: str, on: date) -> str:
    return f"dd-sum-{account_id}-{on.isoformat()}"


# -----------------------------------------------------------------------------
# Recurring expenses
# -----------------------------------------------------------------------------


def generate_recurring_expense_transactions(
    recurring_expenses: Iterable[RecurringExpense],
    today: date | None = None,
) -> list[Transaction]:
    """Expand recurring expenses into POTENTIAL expense transactions.

    Occurrences start at the rule's start_date (past ones included, they
    become pending items) and stop before the 12-month horizon or after
    the rule's end_date.

    Args:
        recurring_expenses: Rules to expand.
        today: Reference date for the horizon (default: today).

    Returns:
        Generated transactions, grouped by rule in input order.
    """
    today = today or date.today()
    horizon = forecast_horizon(today)
    generated: list[Transaction] = []

    for rule in recurring_expenses:
        for occurrence in iterate_occurrences(
            rule.start_date, rule.frequency, horizon, rule.end_date
        ):
            generated.append(
                Transaction(
                    id=recurring_expense_tx_id(rule.id, occurrence),
                    description=rule.description,
                    amount=rule.amount,
                    date=occurrence,
                    effective_date=occurrence,
                    status=TransactionStatus.POTENTIAL,
                    type=TransactionType.EXPENSE,
                    account_id=rule.account_id,
                    category_id=rule.category_id,
                    recurring_expense_id=rule.id,
                )
            )

    return generated


# -----------------------------------------------------------------------------
# Recurring transfers
# -----------------------------------------------------------------------------


def generate_recurring_transfer_transactions(
    recurring_transfers: Iterable[RecurringTransfer],
    accounts: list[Account],
    reserves: list[Reserve],
    today: date | None = None,
) -> list[Transaction]:
    """Expand recurring transfers into paired POTENTIAL transactions.

    Each occurrence yields an EXPENSE on the source and an INCOME on the
    destination sharing one transfer id. A rule whose source or destination
    cannot be resolved emits nothing; other rules are unaffected.

    Returns:
        Generated transactions; each expense leg is followed by its income leg.
    """
    today = today or date.today()
    horizon = forecast_horizon(today)
    generated: list[Transaction] = []
    log = logger.bind(component="recurring_transfers")

    for rule in recurring_transfers:
        source = resolve_reference(rule.source_id, accounts, reserves)
        destination = resolve_reference(rule.destination_id, accounts, reserves)
        if source is None or destination is None:
            log.warning(
                "recurring_transfer_reference_missing",
                rule=rule.id,
                source=str(rule.source_id),
                destination=str(rule.destination_id),
                source_found=source is not None,
                destination_found=destination is not None,
            )
            continue

        for occurrence in iterate_occurrences(
            rule.start_date, rule.frequency, horizon, rule.end_date
        ):
            day = occurrence.isoformat()
            transfer_id = transfer_id_for(rule.id, occurrence)
            generated.append(
                Transaction(
                    id=f"rect-exp-{rule.id}-{day}",
                    description=rule.description or f"Transfer to {destination.name}",
                    amount=rule.amount,
                    date=occurrence,
                    effective_date=occurrence,
                    status=TransactionStatus.POTENTIAL,
                    type=TransactionType.EXPENSE,
                    account_id=source.account_id,
                    reserve_id=source.reserve_id,
                    recurring_transfer_id=rule.id,
                    transfer_id=transfer_id,
                )
            )
            generated.append(
                Transaction(
                    id=f"rect-inc-{rule.id}-{day}",
                    description=rule.description or f"Transfer from {source.name}",
                    amount=rule.amount,
                    date=occurrence,
                    effective_date=occurrence,
                    status=TransactionStatus.POTENTIAL,
                    type=TransactionType.INCOME,
                    account_id=destination.account_id,
                    reserve_id=destination.reserve_id,
                    recurring_transfer_id=rule.id,
                    transfer_id=transfer_id,
                )
            )

    return generated


# -----------------------------------------------------------------------------
# Reimbursements
# -----------------------------------------------------------------------------


def generate_reimbursement_transactions(
    reimbursements: Iterable[Reimbursement],
    context: list[Transaction],
) -> list[Transaction]:
    """Project one POTENTIAL income per pending reimbursement.

    The income books on the original expense's account and category, so
    the expected refund nets against that category.

    Args:
        reimbursements: All reimbursements; RECEIVED ones are ignored.
        context: Transactions in which to look up the original expense.

    Returns:
        Generated transactions. A reimbursement whose original expense
        is gone produces nothing.
    """
    by_id = {tx.id: tx for tx in context}
    generated: list[Transaction] = []

    for reimbursement in reimbursements:
        if reimbursement.status != ReimbursementStatus.PENDING:
            continue
        original = by_id.get(reimbursement.transaction_id)
        if original is None:
            logger.debug(
                "reimbursement_original_missing",
                reimbursement=reimbursement.id,
                transaction=reimbursement.transaction_id,
            )
            continue

        generated.append(
            Transaction(
                id=reimbursement_tx_id(reimbursement.id),
                description=f"Expected reimbursement: {original.description}",
                amount=reimbursement.expected_amount,
                date=reimbursement.expected_date,
                effective_date=reimbursement.expected_date,
                status=TransactionStatus.POTENTIAL,
                type=TransactionType.INCOME,
                account_id=original.account_id,
                category_id=original.category_id,
                reimbursement_id=reimbursement.id,
            )
        )

    return generated


# -----------------------------------------------------------------------------
# Deferred debit
# -----------------------------------------------------------------------------


def _first_debit_date(debit_day: int, today: date) -> date:
    """This month's settlement date, or next month's if it is today or past."""
    debit_date = day_in_month(today.year, today.month, debit_day)
    if today >= debit_date:
        following = today.replace(day=1) + relativedelta(months=1)
        debit_date = day_in_month(following.year, following.month, debit_day)
    return debit_date


def _previous_debit_date(debit_date: date, debit_day: int) -> date:
    """Settlement date of the month before `debit_date`, clamped like it."""
    prior = debit_date.replace(day=1) - relativedelta(months=1)
    return day_in_month(prior.year, prior.month, debit_day)


def _cycle_total(account_id: str, transactions: list[Transaction], start: date, end: date) -> Decimal:
    """Sum of REAL expenses on `account_id` effective in [start, end]."""
    return sum(
        (
            tx.amount
            for tx in transactions
            if tx.account_id == account_id
            and tx.is_real
            and tx.type == TransactionType.EXPENSE
            and start <= tx.effective_date <= end
        ),
        Decimal(0),
    )


def generate_deferred_debit_summaries(
    accounts: list[Account],
    transactions: list[Transaction],
    today: date | None = None,
    forecast_months: int = FORECAST_MONTHS,
) -> list[Transaction]:
    """Project the monthly settlement of each deferred-debit account.

    For each of the next `forecast_months` settlement dates, the billing
    cycle runs from the previous settlement date up to the day before this
    one, so consecutive cycles never overlap. Its REAL
    expenses are summed and, when positive and not already settled by a
    REAL transaction on that date, one POTENTIAL expense is emitted on the
    linked account.

    Returns:
        Generated settlement transactions.
    """
    today = today or date.today()
    deferred = [
        acc
        for acc in accounts
        if acc.type == AccountType.DEFERRED_DEBIT and acc.linked_account_id and acc.debit_day
    ]
    if not deferred:
        return []

    settled = {
        (tx.deferred_debit_source_account_id, tx.date)
        for tx in transactions
        if tx.deferred_debit_source_account_id and tx.is_real
    }
    generated: list[Transaction] = []

    for acc in deferred:
        first = _first_debit_date(acc.debit_day, today)
        for i in range(forecast_months):
            month = first.replace(day=1) + relativedelta(months=i)
            debit_date = day_in_month(month.year, month.month, acc.debit_day)
            cycle_start = _previous_debit_date(debit_date, acc.debit_day)
            cycle_end = debit_date - relativedelta(days=1)

            total = _cycle_total(acc.id, transactions, cycle_start, cycle_end)
            if total <= 0:
                continue
            if (acc.id, debit_date) in settled:
                continue

            generated.append(
                Transaction(
                    id=deferred_debit_tx_id(acc.id, debit_date),
                    description=f"Card settlement {acc.name}",
                    amount=total,
                    date=debit_date,
                    effective_date=debit_date,
                    status=TransactionStatus.POTENTIAL,
                    type=TransactionType.EXPENSE,
                    account_id=acc.linked_account_id,
                    deferred_debit_source_account_id=acc.id,
                )
            )

    return generated


def calculate_current_deferred_debit_spending(
    account: Account,
    transactions: list[Transaction],
    today: date | None = None,
) -> DeferredDebitSpending | None:
    """Running total of the open billing cycle of a deferred-debit account.

    Only REAL expenses effective up to today are counted.

    Returns:
        DeferredDebitSpending, or None if the account is not deferred-debit
        or has no debit day.
    """
    if account.type != AccountType.DEFERRED_DEBIT or not account.debit_day:
        return None

    today = today or date.today()
    next_debit = _first_debit_date(account.debit_day, today)
    cycle_start = _previous_debit_date(next_debit, account.debit_day)

    return DeferredDebitSpending(
        account_id=account.id,
        total=_cycle_total(account.id, transactions, cycle_start, today),
        cycle_start=cycle_start,
        next_debit_date=next_debit,
    )
