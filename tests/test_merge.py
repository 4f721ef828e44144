"""Tests for the merge and deduplication layer."""

from datetime import date
from decimal import Decimal

from conftest import TODAY, make_tx
from fincast.core.models import (
    Account,
    AppSettings,
    RecurringExpense,
    RecurringFrequency,
    RecurringTransfer,
    TransactionStatus,
)
from fincast.core.references import EntityRef
from fincast.engine.generators import (
    generate_recurring_expense_transactions,
    generate_recurring_transfer_transactions,
)
from fincast.engine.merge import (
    get_pending_transactions,
    merge_transactions,
    sort_newest_first,
    transactions_for_forecast,
)

RENT = RecurringExpense(
    id="rent",
    amount=Decimal("700"),
    frequency=RecurringFrequency.MONTHLY,
    start_date=date(2024, 1, 1),
    account_id="checking",
)


class TestMergeTransactions:
    """Tests for merge_transactions function."""

    def test_validated_occurrence_suppresses_generated(self) -> None:
        """A real transaction with the same (rule, date) replaces the placeholder."""
        real = make_tx("v1", "700", date(2024, 2, 1), recurring_expense_id="rent")
        generated = generate_recurring_expense_transactions([RENT], today=TODAY)

        merged = merge_transactions([real], generated, [], [])

        rent_on_feb = [tx for tx in merged if tx.recurring_expense_id == "rent" and tx.date == date(2024, 2, 1)]
        assert rent_on_feb == [real]
        assert len(merged) == len(generated)

    def test_no_generated_duplicate_of_any_real_key(self) -> None:
        real = [
            make_tx("v1", "700", date(2024, 1, 1), recurring_expense_id="rent"),
            make_tx("v2", "700", date(2024, 3, 1), recurring_expense_id="rent"),
        ]
        generated = generate_recurring_expense_transactions([RENT], today=TODAY)

        merged = merge_transactions(real, generated, [], [])

        keys = {(tx.recurring_expense_id, tx.date) for tx in real}
        assert not [
            tx
            for tx in merged
            if tx.status == TransactionStatus.POTENTIAL
            and (tx.recurring_expense_id, tx.date) in keys
        ]

    def test_validated_transfer_suppresses_both_legs(self) -> None:
        accounts = [Account(id="checking"), Account(id="savings")]
        rule = RecurringTransfer(
            id="rt1",
            amount=Decimal("50"),
            frequency=RecurringFrequency.MONTHLY,
            start_date=date(2024, 3, 1),
            end_date=date(2024, 4, 1),
            source_id=EntityRef.account("checking"),
            destination_id=EntityRef.account("savings"),
        )
        generated = generate_recurring_transfer_transactions([rule], accounts, [], today=TODAY)
        real = [make_tx("v1", "50", date(2024, 3, 1), recurring_transfer_id="rt1")]

        merged = merge_transactions(real, [], generated, [])

        potential_dates = [tx.date for tx in merged if tx.status == TransactionStatus.POTENTIAL]
        assert potential_dates == [date(2024, 4, 1), date(2024, 4, 1)]

    def test_sorted_newest_first(self) -> None:
        persisted = [
            make_tx("a", "1", date(2024, 3, 1)),
            make_tx("b", "1", date(2024, 3, 10)),
        ]
        generated = generate_recurring_expense_transactions([RENT], today=TODAY)

        merged = merge_transactions(persisted, generated, [], [])

        dates = [tx.date for tx in merged]
        assert dates == sorted(dates, reverse=True)

    def test_sort_is_stable(self) -> None:
        same_day = [make_tx(str(i), "1", date(2024, 3, 1)) for i in range(5)]
        assert [tx.id for tx in sort_newest_first(same_day)] == ["0", "1", "2", "3", "4"]

    def test_inputs_not_mutated(self) -> None:
        persisted = [make_tx("a", "1", date(2024, 1, 1)), make_tx("b", "1", date(2024, 2, 1))]
        snapshot = list(persisted)
        merge_transactions(persisted, [], [], [])
        assert persisted == snapshot


class TestTransactionsForForecast:
    """Tests for transactions_for_forecast function."""

    def test_disabled_returns_merged(self, checking: Account, card: Account) -> None:
        merged = [make_tx("c1", "300", date(2024, 3, 6), account_id="card")]
        result = transactions_for_forecast(
            [checking, card], merged, merged, AppSettings(), today=TODAY
        )
        assert result == merged

    def test_card_activity_replaced_by_settlement(self, checking: Account, card: Account) -> None:
        merged = [
            make_tx("c1", "300", date(2024, 3, 6), account_id="card"),
            make_tx("k1", "20", date(2024, 3, 7), account_id="checking"),
        ]
        settings = AppSettings(enable_deferred_debit=True)

        result = transactions_for_forecast([checking, card], merged, merged, settings, today=TODAY)

        assert [tx.id for tx in result] == ["dd-sum-card-2024-04-05", "k1"]
        assert result[0].amount == Decimal("300")
        assert result[0].account_id == "checking"

    def test_real_settlement_removes_summary(self, checking: Account, card: Account) -> None:
        persisted = [
            make_tx("c1", "300", date(2024, 3, 6), account_id="card"),
            make_tx("s1", "300", date(2024, 4, 5), deferred_debit_source_account_id="card"),
        ]
        settings = AppSettings(enable_deferred_debit=True)

        result = transactions_for_forecast(
            [checking, card], persisted, persisted, settings, today=TODAY
        )

        assert [tx.id for tx in result] == ["s1"]


class TestPendingTransactions:
    """Tests for get_pending_transactions function."""

    def test_overdue_potential_oldest_first(self) -> None:
        generated = generate_recurring_expense_transactions([RENT], today=TODAY)
        merged = merge_transactions(
            [make_tx("v1", "700", date(2024, 2, 1), recurring_expense_id="rent")],
            generated,
            [],
            [],
        )

        pending = get_pending_transactions(merged, today=TODAY)

        assert [tx.date for tx in pending] == [date(2024, 1, 1), date(2024, 3, 1)]

    def test_simulations_excluded(self) -> None:
        sim = make_tx(
            "s", "10", date(2024, 3, 1), status=TransactionStatus.POTENTIAL, is_simulation=True
        )
        assert get_pending_transactions([sim], today=TODAY) == []
