"""Tests for loan amortization."""

from datetime import date
from decimal import Decimal

import pytest

from conftest import make_tx
from fincast.engine.loans import (
    build_loan,
    calculate_loan_remaining_balance,
    calculate_monthly_payment,
    calculate_payments_made_from_remaining_balance,
    calculate_remaining_balance,
    count_loan_payments,
    update_loan,
)

CENT = Decimal("0.01")


def make_loan(principal: str, rate: str, term: int, **kwargs):
    return build_loan(
        name="Car",
        initial_amount=Decimal(principal),
        interest_rate=Decimal(rate),
        term_in_months=term,
        start_date=date(2024, 1, 1),
        account_id="checking",
        **kwargs,
    )


class TestMonthlyPayment:
    """Tests for calculate_monthly_payment function."""

    def test_zero_rate_is_straight_line(self) -> None:
        assert calculate_monthly_payment(Decimal("1200"), Decimal(0), 12) == Decimal("100")

    def test_with_interest(self) -> None:
        payment = calculate_monthly_payment(Decimal("10000"), Decimal("6"), 12)
        assert payment.quantize(CENT) == Decimal("860.66")

    def test_zero_term_returns_principal(self) -> None:
        assert calculate_monthly_payment(Decimal("500"), Decimal("3"), 0) == Decimal("500")


class TestRemainingBalance:
    """Tests for calculate_remaining_balance function."""

    def test_boundaries(self) -> None:
        loan, _ = make_loan("10000", "6", 12)
        assert calculate_remaining_balance(loan, 0) == Decimal("10000")
        assert calculate_remaining_balance(loan, 12) == Decimal(0)
        assert calculate_remaining_balance(loan, 20) == Decimal(0)

    def test_decreases_each_payment(self) -> None:
        loan, _ = make_loan("10000", "6", 12)
        balances = [calculate_remaining_balance(loan, k) for k in range(13)]
        assert balances == sorted(balances, reverse=True)
        assert len(set(balances)) == 13

    def test_zero_rate(self) -> None:
        loan, _ = make_loan("1200", "0", 12)
        assert calculate_remaining_balance(loan, 3) == Decimal("900")


class TestPaymentsMadeFromRemainingBalance:
    """Tests for calculate_payments_made_from_remaining_balance function."""

    @pytest.mark.parametrize(
        ("principal", "rate", "term"),
        [
            ("10000", "6", 12),
            ("250000", "3.5", 300),
            ("1000", "0", 7),
            ("15000", "12.9", 60),
        ],
    )
    def test_inverts_remaining_balance(self, principal: str, rate: str, term: int) -> None:
        loan, _ = make_loan(principal, rate, term)
        for k in range(term + 1):
            remaining = calculate_remaining_balance(loan, k)
            assert (
                calculate_payments_made_from_remaining_balance(
                    loan.initial_amount, loan.interest_rate, term, remaining
                )
                == k
            )

    def test_balance_at_or_above_principal(self) -> None:
        assert calculate_payments_made_from_remaining_balance(
            Decimal("10000"), Decimal("6"), 12, Decimal("12000")
        ) == 0

    def test_balance_paid_off(self) -> None:
        assert calculate_payments_made_from_remaining_balance(
            Decimal("10000"), Decimal("6"), 12, Decimal("-5")
        ) == 12


class TestLoanPayments:
    """Tests for counting validated installments."""

    def test_counts_real_installments_and_initial_payments(self) -> None:
        loan, rule = make_loan("1200", "0", 12, payments_made_initially=2)
        transactions = [
            make_tx("p1", "100", date(2024, 1, 1), recurring_expense_id=rule.id),
            make_tx("p2", "100", date(2024, 2, 1), recurring_expense_id=rule.id),
            make_tx("p0", "100", date(2023, 12, 1), recurring_expense_id=rule.id),
            make_tx("x", "100", date(2024, 2, 1), recurring_expense_id="other"),
        ]

        assert count_loan_payments(loan, transactions) == 4
        assert calculate_loan_remaining_balance(loan, transactions) == Decimal("800")


class TestBuildAndUpdateLoan:
    """Tests for the loan / installment rule pairing."""

    def test_build_pairs_loan_with_rule(self) -> None:
        loan, rule = make_loan("10000", "6", 12)
        assert loan.linked_recurring_expense_id == rule.id
        assert rule.amount == loan.monthly_payment
        assert rule.start_date == loan.start_date
        assert rule.account_id == "checking"
        assert rule.description == "Loan repayment: Car"

    def test_update_recomputes_payment_and_rule(self) -> None:
        loan, rule = make_loan("1200", "0", 12)

        updated, updated_rule = update_loan(
            loan, rule, name="Van", term_in_months=6, start_date=date(2024, 6, 1)
        )

        assert updated.monthly_payment == Decimal("200")
        assert updated_rule.amount == Decimal("200")
        assert updated_rule.description == "Loan repayment: Van"
        assert updated_rule.start_date == date(2024, 6, 1)
        assert updated_rule.id == rule.id

    def test_build_from_remaining_balance(self) -> None:
        """The payments already made are back-solved from the balance."""
        reference, _ = make_loan("15000", "4.5", 48)
        remaining = calculate_remaining_balance(reference, 17)

        loan, _ = make_loan("15000", "4.5", 48, remaining_balance=remaining)

        assert loan.payments_made_initially == 17
        assert calculate_loan_remaining_balance(loan, []) == remaining
