"""Document loading, migration and storage.

The whole financial state is one JSON document. It is migrated to the
current version before the engine ever sees it, and persisted through an
injected callable so the store itself knows nothing about files.
"""

import json
from collections.abc import Callable
from datetime import date, datetime, timezone
from decimal import Decimal
from functools import partial
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from fincast.core.exceptions import (
    DocumentFormatError,
    DocumentNotFoundError,
    LoanNotFoundError,
    MainAccountNotSetError,
    ProfileNotFoundError,
    UnsupportedVersionError,
)
from fincast.core.models import (
    CURRENT_APP_VERSION,
    MISC_CATEGORY_ID,
    AppData,
    Loan,
    Profile,
)
from fincast.engine.loans import build_loan, update_loan

logger = structlog.get_logger(__name__)

DEFAULT_DOCUMENT = "fincast.json"

# Keys of a pre-profile (version-less) backup that stay on the document
# root. Every other key moves into the migrated profile.
_LEGACY_ROOT_KEYS = ("iconLibrary", "customIcons", "pendingTransfers", "lastUpdated")


# -----------------------------------------------------------------------------
# Migration
# -----------------------------------------------------------------------------


def _migrate_legacy(raw: dict[str, Any]) -> dict[str, Any]:
    """Wrap a version-less single-user backup into a one-profile document."""
    settings = raw.get("appSettings") or {}
    profile_id = f"migrated-{int(datetime.now(timezone.utc).timestamp() * 1000)}"
    profile = {key: value for key, value in raw.items() if key not in _LEGACY_ROOT_KEYS}
    profile["id"] = profile_id
    profile["name"] = settings.get("firstName") or "Main (migrated)"
    profile.setdefault("icon", "UserCircle")

    migrated = {key: raw[key] for key in _LEGACY_ROOT_KEYS if key in raw}
    migrated.update(
        version=CURRENT_APP_VERSION,
        profiles=[profile],
        activeProfileId=profile_id,
    )
    return migrated


def migrate_data(raw: dict[str, Any]) -> AppData:
    """Bring a raw document to the current version and validate it.

    Raises:
        UnsupportedVersionError: Document written by a newer version.
        DocumentFormatError: Unknown layout or invalid content.
    """
    if not isinstance(raw, dict):
        raise DocumentFormatError("Document root must be a JSON object")

    version = raw.get("version")
    if version is None and "accounts" in raw and "profiles" not in raw:
        logger.info("document_migrated", source="legacy", target=CURRENT_APP_VERSION)
        raw = _migrate_legacy(raw)
    elif isinstance(version, int) and version > CURRENT_APP_VERSION:
        raise UnsupportedVersionError(version, CURRENT_APP_VERSION)
    elif version != CURRENT_APP_VERSION:
        raise DocumentFormatError("Unknown or corrupted document format")

    try:
        return AppData.model_validate(raw)
    except ValidationError as e:
        raise DocumentFormatError(str(e)) from e


# -----------------------------------------------------------------------------
# File I/O
# -----------------------------------------------------------------------------


def load_document(path: Path) -> AppData:
    """Read, migrate and validate the document at `path`.

    Raises:
        DocumentNotFoundError: The file does not exist.
        DocumentFormatError: The file is not valid JSON or not a document.
    """
    if not path.exists():
        raise DocumentNotFoundError(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise DocumentFormatError(f"{path}: {e}") from e
    return migrate_data(raw)


def save_document(path: Path, data: AppData) -> None:
    """Write the document in its stored shape."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(data.to_document(), indent=2, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )


# -----------------------------------------------------------------------------
# Store
# -----------------------------------------------------------------------------


class DocumentStore:
    """In-memory owner of the document.

    Explicit mutations go through the store; `save()` hands the document
    to the injected `persist` callable.
    """

    def __init__(
        self,
        data: AppData,
        persist: Callable[[AppData], None] | None = None,
    ):
        """Initialize the store.

        Args:
            data: Migrated document.
            persist: Called with the document on save (no-op if None).
        """
        self.data = data
        self._persist = persist

    @property
    def active_profile(self) -> Profile:
        """The active profile (first profile if none is marked active)."""
        if not self.data.profiles:
            raise ProfileNotFoundError(self.data.active_profile_id)
        if self.data.active_profile_id is None:
            return self.data.profiles[0]
        return self.get_profile(self.data.active_profile_id)

    def get_profile(self, profile_id: str) -> Profile:
        for profile in self.data.profiles:
            if profile.id == profile_id:
                return profile
        raise ProfileNotFoundError(profile_id)

    def profile(self, profile_id: str | None = None) -> Profile:
        """The given profile, or the active one. Never changes the selection."""
        if profile_id is None:
            return self.active_profile
        return self.get_profile(profile_id)

    # Loans -------------------------------------------------------------------

    def add_loan(
        self,
        name: str,
        initial_amount: Decimal,
        interest_rate: Decimal,
        term_in_months: int,
        start_date: date,
        category_id: str = MISC_CATEGORY_ID,
        payments_made_initially: int | None = None,
        remaining_balance: Decimal | None = None,
        profile_id: str | None = None,
    ) -> Loan:
        """Add a loan and its installment rule on the main account.

        Payments already made come either from `payments_made_initially`
        or, when given, are back-solved from `remaining_balance`.

        Raises:
            MainAccountNotSetError: The profile has no main account.
        """
        profile = self.profile(profile_id)
        if not profile.main_account_id:
            raise MainAccountNotSetError()

        loan, rule = build_loan(
            name=name,
            initial_amount=initial_amount,
            interest_rate=interest_rate,
            term_in_months=term_in_months,
            start_date=start_date,
            account_id=profile.main_account_id,
            category_id=category_id,
            payments_made_initially=payments_made_initially,
            remaining_balance=remaining_balance,
        )
        profile.recurring_expenses.append(rule)
        profile.loans.append(loan)
        logger.info("loan_added", loan=loan.id, rule=rule.id)
        return loan

    def edit_loan(self, loan_id: str, profile_id: str | None = None, **changes: object) -> Loan:
        """Edit a loan; its installment rule is rewritten accordingly."""
        profile = self.profile(profile_id)
        loan = self._find_loan(profile, loan_id)
        rule_index = next(
            (
                i
                for i, rule in enumerate(profile.recurring_expenses)
                if rule.id == loan.linked_recurring_expense_id
            ),
            None,
        )

        if rule_index is None:
            updated = loan.model_copy(update=changes)
        else:
            updated, rule = update_loan(loan, profile.recurring_expenses[rule_index], **changes)
            profile.recurring_expenses[rule_index] = rule

        profile.loans = [updated if lo.id == loan_id else lo for lo in profile.loans]
        return updated

    def delete_loan(self, loan_id: str, profile_id: str | None = None) -> None:
        """Delete a loan together with its installment rule."""
        profile = self.profile(profile_id)
        loan = self._find_loan(profile, loan_id)
        profile.loans = [lo for lo in profile.loans if lo.id != loan_id]
        profile.recurring_expenses = [
            rule
            for rule in profile.recurring_expenses
            if rule.id != loan.linked_recurring_expense_id
        ]
        logger.info("loan_deleted", loan=loan_id, rule=loan.linked_recurring_expense_id)

    @staticmethod
    def _find_loan(profile: Profile, loan_id: str) -> Loan:
        for loan in profile.loans:
            if loan.id == loan_id:
                return loan
        raise LoanNotFoundError(loan_id)

    # Persistence ---------------------------------------------------------------

    def save(self) -> None:
        """Stamp the document and hand it to the persist callable."""
        self.data.last_updated = datetime.now(timezone.utc)
        if self._persist is not None:
            self._persist(self.data)


def open_store(path: Path | None = None) -> DocumentStore:
    """Load the document at `path` into a file-backed store."""
    path = path or Path(DEFAULT_DOCUMENT)
    return DocumentStore(load_document(path), persist=partial(save_document, path))
