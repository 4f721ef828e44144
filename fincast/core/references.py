"""Account / reserve references used by recurring transfers.

The document stores transfer ends as prefixed strings (`acc_<id>` or
`res_<id>`). They are parsed once into EntityRef and resolved against the
profile's accounts and reserves when transfers are generated.
"""

from enum import Enum
from typing import TYPE_CHECKING, NamedTuple

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from fincast.core.models import Account, Reserve


class RefKind(str, Enum):
    ACCOUNT = "acc"
    RESERVE = "res"
    UNKNOWN = "unknown"  # Stored value that is neither acc_ nor res_


class EntityRef(BaseModel):
    """Either an account or a reserve, by id."""

    model_config = ConfigDict(frozen=True)

    kind: RefKind
    id: str

    @classmethod
    def parse(cls, value: str) -> "EntityRef":
        """Parse `acc_<id>` / `res_<id>`.

        Raises:
            ValueError: If the prefix is unknown or the id is empty.
        """
        prefix, sep, entity_id = value.partition("_")
        if not sep or not entity_id:
            raise ValueError(f"Invalid entity reference: {value!r}")
        try:
            kind = RefKind(prefix)
        except ValueError:
            kind = RefKind.UNKNOWN
        if kind == RefKind.UNKNOWN:
            raise ValueError(f"Unknown entity reference prefix: {value!r}")
        return cls(kind=kind, id=entity_id)

    @classmethod
    def from_document(cls, value: str) -> "EntityRef":
        """Parse a stored reference, keeping malformed values as UNKNOWN.

        An UNKNOWN reference never resolves, so the transfer rule using it
        is skipped at generation time while the rest of the document loads.
        """
        try:
            return cls.parse(value)
        except ValueError:
            return cls(kind=RefKind.UNKNOWN, id=value)

    @classmethod
    def account(cls, account_id: str) -> "EntityRef":
        return cls(kind=RefKind.ACCOUNT, id=account_id)

    @classmethod
    def reserve(cls, reserve_id: str) -> "EntityRef":
        return cls(kind=RefKind.RESERVE, id=reserve_id)

    def __str__(self) -> str:
        if self.kind == RefKind.UNKNOWN:
            return self.id
        return f"{self.kind.value}_{self.id}"


class ResolvedTarget(NamedTuple):
    """Where one leg of a transfer is booked."""

    account_id: str
    reserve_id: str | None
    name: str


def resolve_reference(
    ref: EntityRef,
    accounts: "list[Account]",
    reserves: "list[Reserve]",
) -> ResolvedTarget | None:
    """Resolve a reference to the account (and reserve) it books into.

    A reserve resolves to its owning account plus the reserve id.

    Returns:
        ResolvedTarget, or None if the account or reserve no longer exists
        or the reference is malformed.
    """
    if ref.kind == RefKind.UNKNOWN:
        return None
    if ref.kind == RefKind.ACCOUNT:
        account = next((a for a in accounts if a.id == ref.id), None)
        if account is None:
            return None
        return ResolvedTarget(account.id, None, account.name)

    reserve = next((r for r in reserves if r.id == ref.id), None)
    if reserve is None:
        return None
    account = next((a for a in accounts if a.id == reserve.account_id), None)
    if account is None:
        return None
    return ResolvedTarget(account.id, reserve.id, f"{account.name} ({reserve.name})")
