"""Shared fixtures and builders for fincast tests."""

import json
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
import structlog

from fincast.core.models import (
    Account,
    AccountType,
    Transaction,
    TransactionStatus,
    TransactionType,
)

TODAY = date(2024, 3, 15)


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo logging configuration done by CLI invocations."""
    yield
    structlog.reset_defaults()


def make_tx(
    tx_id: str,
    amount: str,
    on: date,
    account_id: str = "checking",
    type: TransactionType = TransactionType.EXPENSE,
    status: TransactionStatus = TransactionStatus.REAL,
    **fields: object,
) -> Transaction:
    """Build a transaction with sensible defaults."""
    return Transaction(
        id=tx_id,
        amount=Decimal(amount),
        date=on,
        status=status,
        type=type,
        account_id=account_id,
        **fields,
    )


@pytest.fixture
def checking() -> Account:
    return Account(id="checking", name="Checking", initial_balance=Decimal("1000"))


@pytest.fixture
def card() -> Account:
    return Account(
        id="card",
        name="Card",
        type=AccountType.DEFERRED_DEBIT,
        linked_account_id="checking",
        debit_day=5,
    )


@pytest.fixture
def sample_document() -> dict:
    """A version 2 document in its stored (camelCase) shape."""
    return {
        "version": 2,
        "activeProfileId": "p1",
        "lastUpdated": "2024-03-01T10:00:00Z",
        "iconLibrary": ["Home"],
        "profiles": [
            {
                "id": "p1",
                "name": "Alex",
                "icon": "UserCircle",
                "mainAccountId": "checking",
                "accounts": [
                    {"id": "checking", "name": "Checking", "initialBalance": 1500, "type": "COURANT"},
                    {"id": "savings", "name": "Savings", "initialBalance": 5000, "type": "EPARGNE"},
                ],
                "reserves": [
                    {"id": "trip", "name": "Trip", "accountId": "savings", "targetAmount": 1200},
                ],
                "transactions": [
                    {
                        "id": "t1",
                        "description": "Groceries",
                        "amount": 82.5,
                        "date": "2024-03-02",
                        "effectiveDate": "2024-03-02",
                        "status": "REEL",
                        "type": "DEPENSE",
                        "accountId": "checking",
                        "categoryId": "cat-exp-2",
                        "customFields": {"cf1": "note"},
                    },
                ],
                "recurringExpenses": [
                    {
                        "id": "rent",
                        "description": "Rent",
                        "amount": 700,
                        "frequency": "MENSUEL",
                        "startDate": "2024-01-01",
                        "accountId": "checking",
                        "categoryId": "cat-exp-1",
                    },
                ],
                "recurringTransfers": [
                    {
                        "id": "save",
                        "description": "",
                        "amount": 100,
                        "frequency": "MENSUEL",
                        "startDate": "2024-03-20",
                        "sourceId": "acc_checking",
                        "destinationId": "res_trip",
                    },
                ],
                "reimbursements": [],
                "loans": [],
                "manualAssets": [{"id": "car", "name": "Car", "value": 8000}],
                "appSettings": {"enableDeferredDebit": False, "useBudgetEnvelopes": False},
            }
        ],
    }


@pytest.fixture
def document_path(tmp_path: Path, sample_document: dict) -> Path:
    path = tmp_path / "fincast.json"
    path.write_text(json.dumps(sample_document), encoding="utf-8")
    return path
