"""Loan amortization.

Fixed-rate, monthly-payment amortization in closed form:

    payment   = P * r * (1+r)^n / ((1+r)^n - 1)
    remaining = P * ((1+r)^n - (1+r)^k) / ((1+r)^n - 1)

with P the principal, r the monthly rate, n the term in months and k the
payments made. A zero rate degrades to straight-line repayment.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from uuid import uuid4

from fincast.core.models import (
    MISC_CATEGORY_ID,
    Loan,
    RecurringExpense,
    RecurringFrequency,
    Transaction,
)

_ONE = Decimal(1)


def _monthly_rate(annual_rate: Decimal) -> Decimal:
    """Annual percentage to monthly fraction (3.6 -> 0.003)."""
    return Decimal(annual_rate) / 100 / 12


def _round_payments(value: Decimal) -> int:
    return int(value.quantize(_ONE, rounding=ROUND_HALF_UP))


def calculate_monthly_payment(
    principal: Decimal,
    annual_rate: Decimal,
    term_in_months: int,
) -> Decimal:
    """Calculate the fixed monthly installment.

    Args:
        principal: Borrowed amount.
        annual_rate: Annual interest rate in percent.
        term_in_months: Number of monthly payments.

    Returns:
        Monthly payment (unrounded). principal / term when the rate is zero;
        the whole principal when the term is zero.
    """
    principal = Decimal(principal)
    if term_in_months <= 0:
        return principal
    r = _monthly_rate(annual_rate)
    if r == 0:
        return principal / term_in_months
    growth = (_ONE + r) ** term_in_months
    return principal * r * growth / (growth - _ONE)


def calculate_remaining_balance(loan: Loan, payments_made: int) -> Decimal:
    """Outstanding principal after `payments_made` installments.

    Returns:
        The principal when nothing was paid, zero once the term is reached,
        otherwise the closed-form remaining balance (never negative).
    """
    principal = loan.initial_amount
    n = loan.term_in_months
    if payments_made <= 0:
        return principal
    if payments_made >= n:
        return Decimal(0)

    r = _monthly_rate(loan.interest_rate)
    if r == 0:
        remaining = principal - payments_made * loan.monthly_payment
    else:
        growth_n = (_ONE + r) ** n
        growth_k = (_ONE + r) ** payments_made
        remaining = principal * (growth_n - growth_k) / (growth_n - _ONE)

    return max(remaining, Decimal(0))


def calculate_payments_made_from_remaining_balance(
    initial_amount: Decimal,
    annual_rate: Decimal,
    term_in_months: int,
    remaining_balance: Decimal,
) -> int:
    """Back-solve the number of payments made from a remaining balance.

    Inverse of calculate_remaining_balance, solved with logarithms:

        (1+r)^k = (1+r)^n - (B/P) * ((1+r)^n - 1)

    Returns:
        Payments made, rounded to the nearest whole payment. 0 when the
        balance is at least the principal, the full term when it is zero
        or less.
    """
    principal = Decimal(initial_amount)
    balance = Decimal(remaining_balance)
    if balance >= principal:
        return 0
    if balance <= 0:
        return term_in_months

    r = _monthly_rate(annual_rate)
    if r == 0:
        monthly_payment = principal / term_in_months if term_in_months > 0 else Decimal(0)
        if monthly_payment <= 0:
            return 0
        return _round_payments((principal - balance) / monthly_payment)

    growth_n = (_ONE + r) ** term_in_months
    term = growth_n - (balance / principal) * (growth_n - _ONE)
    if term <= 0:
        return term_in_months

    return _round_payments(term.ln() / (_ONE + r).ln())


def count_loan_payments(loan: Loan, transactions: list[Transaction]) -> int:
    """Payments made: REAL installments since the start plus initial ones."""
    booked = sum(
        1
        for tx in transactions
        if tx.recurring_expense_id == loan.linked_recurring_expense_id
        and tx.is_real
        and tx.counts_toward_balance
        and tx.date >= loan.start_date
    )
    return booked + (loan.payments_made_initially or 0)


def calculate_loan_remaining_balance(loan: Loan, transactions: list[Transaction]) -> Decimal:
    """Outstanding principal given the installments validated so far."""
    return calculate_remaining_balance(loan, count_loan_payments(loan, transactions))


def loan_installment_description(name: str) -> str:
    return f"Loan repayment: {name}"


def build_loan(
    name: str,
    initial_amount: Decimal,
    interest_rate: Decimal,
    term_in_months: int,
    start_date: date,
    account_id: str,
    category_id: str = MISC_CATEGORY_ID,
    payments_made_initially: int | None = None,
    remaining_balance: Decimal | None = None,
) -> tuple[Loan, RecurringExpense]:
    """Create a loan and the monthly recurring expense paying it.

    The two are always created, edited and deleted together.

    Args:
        account_id: Account the installments are debited from.
        category_id: Category of the installments.
        payments_made_initially: Payments made before the loan was recorded.
        remaining_balance: Outstanding principal today, as an alternative
            to payments_made_initially (takes precedence over it).

    Returns:
        (loan, installment rule)
    """
    if remaining_balance is not None:
        payments_made_initially = calculate_payments_made_from_remaining_balance(
            initial_amount, interest_rate, term_in_months, remaining_balance
        )

    monthly_payment = calculate_monthly_payment(initial_amount, interest_rate, term_in_months)
    rule = RecurringExpense(
        id=f"re-{uuid4().hex[:12]}",
        description=loan_installment_description(name),
        amount=monthly_payment,
        frequency=RecurringFrequency.MONTHLY,
        start_date=start_date,
        account_id=account_id,
        category_id=category_id,
    )
    loan = Loan(
        id=f"loan-{uuid4().hex[:12]}",
        name=name,
        initial_amount=initial_amount,
        interest_rate=interest_rate,
        term_in_months=term_in_months,
        start_date=start_date,
        monthly_payment=monthly_payment,
        linked_recurring_expense_id=rule.id,
        payments_made_initially=payments_made_initially,
    )
    return loan, rule


def update_loan(
    loan: Loan,
    rule: RecurringExpense,
    **changes: object,
) -> tuple[Loan, RecurringExpense]:
    """Apply edits to a loan and rewrite its installment rule.

    The monthly payment is recomputed; the rule follows the loan's name,
    payment and start date.

    Returns:
        (updated loan, updated installment rule)
    """
    updated = loan.model_copy(update=changes)
    monthly_payment = calculate_monthly_payment(
        updated.initial_amount, updated.interest_rate, updated.term_in_months
    )
    updated = updated.model_copy(update={"monthly_payment": monthly_payment})
    updated_rule = rule.model_copy(
        update={
            "description": loan_installment_description(updated.name),
            "amount": monthly_payment,
            "start_date": updated.start_date,
        }
    )
    return updated, updated_rule
