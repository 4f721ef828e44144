"""Domain models for fincast.

All document and forecast structures are defined here using Pydantic v2.
Field names are snake_case in Python; the stored JSON document keeps its
camelCase keys through the alias generator on DocumentModel.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    computed_field,
    field_serializer,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from fincast.core.references import EntityRef

# Money is Decimal in memory and a plain number in the JSON document.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

MISC_CATEGORY_ID = "cat-misc"
CURRENT_APP_VERSION = 2


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------


class TransactionType(str, Enum):
    """Sign carrier of a transaction (amounts are always positive)."""

    INCOME = "REVENU"
    EXPENSE = "DEPENSE"


class TransactionStatus(str, Enum):
    """REAL transactions affect the balance; POTENTIAL ones are forecast-only."""

    POTENTIAL = "POTENTIEL"
    REAL = "REEL"


class RecurringFrequency(str, Enum):
    """Recurrence step of a recurring rule."""

    WEEKLY = "HEBDOMADAIRE"
    MONTHLY = "MENSUEL"
    ANNUAL = "ANNUEL"


class ReimbursementStatus(str, Enum):
    PENDING = "EN_ATTENTE"
    RECEIVED = "RECU"


class AccountType(str, Enum):
    """Account kinds.

    DEFERRED_DEBIT: card-like account whose expenses settle in one lump sum
                    on `debit_day` onto `linked_account_id`.
    """

    CURRENT = "COURANT"
    SAVINGS = "EPARGNE"
    DEFERRED_DEBIT = "DEBIT_DIFFERE"


# -----------------------------------------------------------------------------
# Base
# -----------------------------------------------------------------------------


class DocumentModel(BaseModel):
    """Base for everything stored in the JSON document.

    Unknown keys (custom fields, icons, import ids) are kept so that a
    load/save cycle never drops data the engine does not know about.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_document(self) -> dict:
        """Dump in the stored document shape (camelCase keys, JSON numbers)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# -----------------------------------------------------------------------------
# Accounts & Reserves
# -----------------------------------------------------------------------------


class Account(DocumentModel):
    """A bank account.

    Attributes:
        id: Unique identifier.
        name: Display name.
        initial_balance: Ledger balance before any recorded transaction.
        type: Account kind (default CURRENT).
        linked_account_id: For DEFERRED_DEBIT, the account that is debited.
        debit_day: For DEFERRED_DEBIT, day of month the settlement occurs.
    """

    id: str
    name: str = ""
    initial_balance: Money = Decimal(0)
    type: AccountType = AccountType.CURRENT
    linked_account_id: str | None = None
    debit_day: int | None = Field(default=None, ge=1, le=31)
    icon: str | None = None
    color: str | None = None

    @property
    def is_deferred_debit(self) -> bool:
        return self.type == AccountType.DEFERRED_DEBIT


class Reserve(DocumentModel):
    """A named virtual envelope inside exactly one account."""

    id: str
    name: str = ""
    account_id: str
    target_amount: Money | None = None
    target_date: date | None = None


# -----------------------------------------------------------------------------
# Transaction Model
# -----------------------------------------------------------------------------


class Transaction(DocumentModel):
    """The atomic ledger entry.

    Attributes:
        id: Unique identifier (deterministic for generated transactions).
        amount: Always non-negative; the sign comes from `type`.
        date: Nominal booking date.
        effective_date: Value date used for every balance computation.
        status: REAL (persisted, counted) or POTENTIAL (forecast only).
        account_id: Owning account.
        reserve_id: Optional reserve inside the owning account.
        transfer_id: Pairs the two legs of a transfer.
        recurring_expense_id / recurring_transfer_id: Generating rule.
        reimbursement_id: Reimbursement this projected income belongs to.
        deferred_debit_source_account_id: Card account a settlement sweeps.
        is_simulation: "What if" entry, never counted toward balances.

    Provenance Rules:
        - A generated transaction always carries exactly one provenance field.
        - A REAL transaction keeping `recurring_expense_id` or
          `recurring_transfer_id` suppresses the generated occurrence with
          the same rule and date.
    """

    id: str
    description: str = ""
    amount: Annotated[Money, Field(ge=0)]
    date: date
    effective_date: date | None = None
    status: TransactionStatus
    type: TransactionType
    account_id: str
    reserve_id: str | None = None
    category_id: str | None = None
    transfer_id: str | None = None
    recurring_expense_id: str | None = None
    recurring_transfer_id: str | None = None
    reimbursement_id: str | None = None
    deferred_debit_source_account_id: str | None = None
    is_reconciled: bool | None = None
    is_simulation: bool | None = None
    tags: list[str] | None = None

    @model_validator(mode="after")
    def default_effective_date(self) -> "Transaction":
        """Fall back to the booking date when no value date is given."""
        if self.effective_date is None:
            self.effective_date = self.date
        return self

    @property
    def signed_amount(self) -> Decimal:
        """Amount with its sign: INCOME adds, EXPENSE subtracts."""
        if self.type == TransactionType.INCOME:
            return self.amount
        return -self.amount

    @property
    def is_real(self) -> bool:
        return self.status == TransactionStatus.REAL

    @property
    def counts_toward_balance(self) -> bool:
        """Simulated "what if" entries never move a balance."""
        return not self.is_simulation


# -----------------------------------------------------------------------------
# Recurring Rules
# -----------------------------------------------------------------------------


class RecurringExpense(DocumentModel):
    """A fixed expense repeating on `frequency` from `start_date`."""

    id: str
    description: str = ""
    amount: Annotated[Money, Field(ge=0)]
    frequency: RecurringFrequency
    start_date: date
    end_date: date | None = None
    account_id: str
    category_id: str | None = None


class RecurringTransfer(DocumentModel):
    """A transfer repeating on `frequency` between two accounts or reserves.

    `source_id` and `destination_id` are stored as `acc_<id>` / `res_<id>`
    strings and parsed into EntityRef once, when the document is loaded.
    Malformed values load as UNKNOWN references that never resolve.
    """

    id: str
    description: str = ""
    amount: Annotated[Money, Field(ge=0)]
    frequency: RecurringFrequency
    start_date: date
    end_date: date | None = None
    source_id: EntityRef
    destination_id: EntityRef

    @field_validator("source_id", "destination_id", mode="before")
    @classmethod
    def parse_reference(cls, value: object) -> object:
        if isinstance(value, str):
            return EntityRef.from_document(value)
        return value

    @field_serializer("source_id", "destination_id")
    def serialize_reference(self, ref: EntityRef) -> str:
        return str(ref)


# -----------------------------------------------------------------------------
# Reimbursements
# -----------------------------------------------------------------------------


class Reimbursement(DocumentModel):
    """Expected income settling one original expense."""

    id: str
    transaction_id: str  # The original expense
    expected_amount: Annotated[Money, Field(ge=0)]
    expected_date: date
    status: ReimbursementStatus = ReimbursementStatus.PENDING
    received_amount: Money | None = None
    received_date: date | None = None
    received_transaction_id: str | None = None


# -----------------------------------------------------------------------------
# Loans & Assets
# -----------------------------------------------------------------------------


class Loan(DocumentModel):
    """A fixed-rate amortizing loan paired with one recurring expense.

    Attributes:
        initial_amount: Borrowed principal.
        interest_rate: Annual rate in percent (3.5 means 3.5%).
        term_in_months: Total number of monthly payments.
        monthly_payment: Derived from the three fields above.
        linked_recurring_expense_id: The installment rule.
        payments_made_initially: Payments made before the loan was recorded.
    """

    id: str
    name: str = ""
    initial_amount: Annotated[Money, Field(ge=0)]
    interest_rate: Annotated[Decimal, Field(ge=0)]
    term_in_months: int = Field(ge=0)
    start_date: date
    monthly_payment: Money
    linked_recurring_expense_id: str
    payments_made_initially: int | None = Field(default=None, ge=0)

    @field_serializer("interest_rate", when_used="json")
    def serialize_rate(self, rate: Decimal) -> float:
        return float(rate)


class ManualAsset(DocumentModel):
    """Asset tracked outside any account (property, vehicle...)."""

    id: str
    name: str = ""
    value: Money = Decimal(0)


class Category(DocumentModel):
    id: str
    name: str
    type: TransactionType


# -----------------------------------------------------------------------------
# Settings, Profile & Document
# -----------------------------------------------------------------------------


class AppSettings(DocumentModel):
    """Per-profile settings the engine reads.

    enable_deferred_debit: Replace deferred-debit card activity by monthly
                           settlement summaries in the forecast.
    """

    enable_deferred_debit: bool = False


class Profile(DocumentModel):
    """One user's complete financial document."""

    id: str
    name: str = ""
    accounts: list[Account] = Field(default_factory=list)
    reserves: list[Reserve] = Field(default_factory=list)
    categories: list[Category] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)
    recurring_expenses: list[RecurringExpense] = Field(default_factory=list)
    recurring_transfers: list[RecurringTransfer] = Field(default_factory=list)
    reimbursements: list[Reimbursement] = Field(default_factory=list)
    loans: list[Loan] = Field(default_factory=list)
    manual_assets: list[ManualAsset] = Field(default_factory=list)
    main_account_id: str | None = None
    app_settings: AppSettings = Field(default_factory=AppSettings)

    def get_account(self, account_id: str) -> Account | None:
        return next((a for a in self.accounts if a.id == account_id), None)


class AppData(DocumentModel):
    """Root of the stored document: versioned list of profiles."""

    version: int = CURRENT_APP_VERSION
    profiles: list[Profile] = Field(default_factory=list)
    active_profile_id: str | None = None
    last_updated: datetime | None = None


# -----------------------------------------------------------------------------
# Forecast Output Models
# -----------------------------------------------------------------------------


class ForecastSnapshot(BaseModel):
    """Balances at the end of one forecast month.

    Invariant: total_balance == sum(balances.values()).
    """

    month: str  # "2024-12"
    period_start: date
    period_end: date
    balances: dict[str, Decimal] = Field(default_factory=dict)
    reserve_balances: dict[str, Decimal] = Field(default_factory=dict)

    @computed_field  # type: ignore[misc]
    @property
    def total_balance(self) -> Decimal:
        """Sum of all account balances."""
        return sum(self.balances.values(), Decimal(0))


class ReserveForecastPoint(BaseModel):
    month: str
    period_start: date
    balances: dict[str, Decimal] = Field(default_factory=dict)


class DeferredDebitSpending(BaseModel):
    """Running total of a deferred-debit card's open billing cycle."""

    account_id: str
    total: Decimal
    cycle_start: date
    next_debit_date: date


class NetWorthSummary(BaseModel):
    """Assets minus liabilities.

    liquid_assets: Current balances of all accounts.
    other_assets: Manually tracked assets.
    liabilities: Remaining balances of all loans.
    """

    liquid_assets: Decimal = Decimal(0)
    other_assets: Decimal = Decimal(0)
    liabilities: Decimal = Decimal(0)

    @computed_field  # type: ignore[misc]
    @property
    def total_assets(self) -> Decimal:
        return self.liquid_assets + self.other_assets

    @computed_field  # type: ignore[misc]
    @property
    def net_worth(self) -> Decimal:
        return self.total_assets - self.liabilities


class ForecastView(BaseModel):
    """Everything the forecast pipeline derives from one profile.

    transactions: Persisted plus generated transactions, newest first.
    forecast_transactions: Same, with deferred-debit substitution applied.
    pending: Overdue POTENTIAL transactions awaiting validation, oldest first.
    snapshots: 12 monthly balance snapshots.
    """

    today: date
    transactions: list[Transaction] = Field(default_factory=list)
    forecast_transactions: list[Transaction] = Field(default_factory=list)
    pending: list[Transaction] = Field(default_factory=list)
    snapshots: list[ForecastSnapshot] = Field(default_factory=list)
