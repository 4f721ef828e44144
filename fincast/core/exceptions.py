"""Exceptions raised by fincast.

Forecast generation itself never raises for bad references: unresolvable
items are skipped and logged. These errors cover the document boundary
and explicit user actions.
"""


class FincastError(Exception):
    """Base class for all fincast errors."""


class DocumentNotFoundError(FincastError):
    """The document file does not exist."""

    def __init__(self, path: object):
        self.path = path
        super().__init__(f"No document found at {path}")


class DocumentFormatError(FincastError):
    """The document is not valid JSON or does not match the expected shape."""


class UnsupportedVersionError(FincastError):
    """The document was written by a newer version of the application."""

    def __init__(self, version: int, supported: int):
        self.version = version
        self.supported = supported
        super().__init__(
            f"Document version {version} is newer than supported version {supported}"
        )


class ProfileNotFoundError(FincastError):
    def __init__(self, profile_id: str | None):
        self.profile_id = profile_id
        super().__init__(f"Profile not found: {profile_id}")


class MainAccountNotSetError(FincastError):
    """A loan needs a main account to book its installments on."""

    def __init__(self) -> None:
        super().__init__("Set a main account before adding a loan")


class LoanNotFoundError(FincastError):
    def __init__(self, loan_id: str):
        self.loan_id = loan_id
        super().__init__(f"Loan not found: {loan_id}")
