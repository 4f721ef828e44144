"""Balance calculation engine.

Calculates current balances from REAL transactions and 12-month
balance forecasts from the merged (REAL + POTENTIAL) transaction set.
"""

from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from fincast.core.models import (
    Account,
    ForecastSnapshot,
    Loan,
    ManualAsset,
    NetWorthSummary,
    Reserve,
    ReserveForecastPoint,
    Transaction,
)
from fincast.engine.loans import calculate_loan_remaining_balance
from fincast.engine.periods import FORECAST_MONTHS, format_month, iterate_months, month_start


def _signed_sum(transactions: Iterable[Transaction]) -> Decimal:
    return sum((tx.signed_amount for tx in transactions), Decimal(0))


def calculate_account_balance(
    account: Account,
    transactions: list[Transaction],
    up_to_date: date,
) -> Decimal:
    """Calculate the real balance of an account (inclusive of up_to_date).

    Starts from the account's initial balance and applies every REAL,
    non-simulated transaction effective on or before the cutoff.
    POTENTIAL transactions never count here.

    Args:
        account: Account to compute.
        transactions: Transactions to consider (any mix).
        up_to_date: Cutoff (inclusive) on effective_date.

    Returns:
        Current balance (can be negative).
    """
    return account.initial_balance + _signed_sum(
        tx
        for tx in transactions
        if tx.account_id == account.id
        and tx.is_real
        and tx.counts_toward_balance
        and tx.effective_date <= up_to_date
    )


def calculate_current_reserve_balance(
    reserve: Reserve,
    transactions: list[Transaction],
    up_to_date: date,
) -> Decimal:
    """Calculate the real balance of a reserve (starts from zero).

    Args:
        reserve: Reserve to compute.
        transactions: Transactions to consider.
        up_to_date: Cutoff (inclusive) on effective_date.

    Returns:
        Reserve balance; negative values are allowed.
    """
    return _signed_sum(
        tx
        for tx in transactions
        if tx.reserve_id == reserve.id
        and tx.is_real
        and tx.counts_toward_balance
        and tx.effective_date <= up_to_date
    )


def calculate_reserve_balance(
    reserve: Reserve,
    transactions: list[Transaction],
    up_to_date: date,
) -> Decimal:
    """Projected reserve balance: REAL and POTENTIAL transactions alike."""
    return _signed_sum(
        tx
        for tx in transactions
        if tx.reserve_id == reserve.id
        and tx.counts_toward_balance
        and tx.effective_date <= up_to_date
    )


def generate_forecast(
    accounts: list[Account],
    reserves: list[Reserve],
    transactions: list[Transaction],
    today: date | None = None,
    months: int = FORECAST_MONTHS,
) -> list[ForecastSnapshot]:
    """Project account and reserve balances month by month.

    Opening balances are the initial balances plus every REAL transaction
    effective before the first day of the current month. Each month then
    adds all of its transactions, REAL and POTENTIAL, INCOME adding and
    EXPENSE subtracting. Transactions on unknown accounts or reserves are
    ignored.

    Args:
        accounts: Accounts to forecast.
        reserves: Reserves to forecast.
        transactions: Merged transaction set (any order).
        today: Reference date (default: today).
        months: Number of snapshots.

    Returns:
        One snapshot per month, starting with the current month.
    """
    today = today or date.today()
    window_start = month_start(today)
    counted = [tx for tx in transactions if tx.counts_toward_balance]
    counted.sort(key=lambda tx: tx.effective_date)

    account_balances: dict[str, Decimal] = {
        acc.id: acc.initial_balance
        + _signed_sum(
            tx
            for tx in counted
            if tx.account_id == acc.id and tx.is_real and tx.effective_date < window_start
        )
        for acc in accounts
    }
    reserve_balances: dict[str, Decimal] = {
        res.id: _signed_sum(
            tx
            for tx in counted
            if tx.reserve_id == res.id and tx.is_real and tx.effective_date < window_start
        )
        for res in reserves
    }

    snapshots: list[ForecastSnapshot] = []
    for period_start, period_end in iterate_months(window_start, months):
        for tx in counted:
            if tx.effective_date < period_start:
                continue
            if tx.effective_date > period_end:
                break
            if tx.account_id in account_balances:
                account_balances[tx.account_id] += tx.signed_amount
            if tx.reserve_id and tx.reserve_id in reserve_balances:
                reserve_balances[tx.reserve_id] += tx.signed_amount

        snapshots.append(
            ForecastSnapshot(
                month=format_month(period_start),
                period_start=period_start,
                period_end=period_end,
                balances=dict(account_balances),
                reserve_balances=dict(reserve_balances),
            )
        )

    return snapshots


def generate_reserve_forecast(
    reserves: list[Reserve],
    transactions: list[Transaction],
    start: date,
    months: int = FORECAST_MONTHS,
) -> list[ReserveForecastPoint]:
    """Project reserve balances month by month from `start`'s month.

    Same accumulation rules as generate_forecast, restricted to reserves.
    """
    window_start = month_start(start)
    balances: dict[str, Decimal] = {
        res.id: _signed_sum(
            tx
            for tx in transactions
            if tx.reserve_id == res.id
            and tx.is_real
            and tx.counts_toward_balance
            and tx.effective_date < window_start
        )
        for res in reserves
    }

    points: list[ReserveForecastPoint] = []
    for period_start, period_end in iterate_months(window_start, months):
        for tx in transactions:
            if not tx.reserve_id or not tx.counts_toward_balance:
                continue
            if tx.reserve_id in balances and period_start <= tx.effective_date <= period_end:
                balances[tx.reserve_id] += tx.signed_amount

        points.append(
            ReserveForecastPoint(
                month=format_month(period_start),
                period_start=period_start,
                balances=dict(balances),
            )
        )

    return points


def calculate_net_worth(
    accounts: list[Account],
    transactions: list[Transaction],
    loans: list[Loan],
    manual_assets: list[ManualAsset],
    up_to_date: date,
) -> NetWorthSummary:
    """Calculate net worth at a date.

    Liquid assets are real account balances, liabilities the remaining
    balances of all loans.
    """
    return NetWorthSummary(
        liquid_assets=sum(
            (calculate_account_balance(acc, transactions, up_to_date) for acc in accounts),
            Decimal(0),
        ),
        other_assets=sum((asset.value for asset in manual_assets), Decimal(0)),
        liabilities=sum(
            (calculate_loan_remaining_balance(loan, transactions) for loan in loans),
            Decimal(0),
        ),
    )
