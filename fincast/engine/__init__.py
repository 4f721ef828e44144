"""Forecast engine: generators, merge layer, accumulator and loan math.

Every function here is pure: inputs are never mutated and every call
returns newly built sequences.
"""

from fincast.engine.aggregator import build_forecast_view
from fincast.engine.calculator import (
    calculate_account_balance,
    calculate_current_reserve_balance,
    calculate_net_worth,
    calculate_reserve_balance,
    generate_forecast,
    generate_reserve_forecast,
)
from fincast.engine.generators import (
    calculate_current_deferred_debit_spending,
    generate_deferred_debit_summaries,
    generate_recurring_expense_transactions,
    generate_recurring_transfer_transactions,
    generate_reimbursement_transactions,
)
from fincast.engine.loans import (
    calculate_loan_remaining_balance,
    calculate_monthly_payment,
    calculate_payments_made_from_remaining_balance,
    calculate_remaining_balance,
)
from fincast.engine.merge import (
    get_pending_transactions,
    merge_transactions,
    transactions_for_forecast,
)

__all__ = [
    "build_forecast_view",
    "calculate_account_balance",
    "calculate_current_deferred_debit_spending",
    "calculate_current_reserve_balance",
    "calculate_loan_remaining_balance",
    "calculate_monthly_payment",
    "calculate_net_worth",
    "calculate_payments_made_from_remaining_balance",
    "calculate_remaining_balance",
    "calculate_reserve_balance",
    "generate_deferred_debit_summaries",
    "generate_forecast",
    "generate_recurring_expense_transactions",
    "generate_recurring_transfer_transactions",
    "generate_reimbursement_transactions",
    "generate_reserve_forecast",
    "get_pending_transactions",
    "merge_transactions",
    "transactions_for_forecast",
]
