"""
trademate.exceptions
~~~~~~~~~~~~~~~~~~~~
Exception hierarchy for the trademate library.
"""

from __future__ import annotations


class TradeMateError(Exception):
    """Base exception for all trademate errors."""

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause
        self.message = message

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message} (caused by {type(self.cause).__name__}: {self.cause})"
        return self.message


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------

class DuplicateAccountError(TradeMateError):
    """Raised when registering an email that already has an account."""


class InvalidCredentialsError(TradeMateError):
    """
    Raised when a login does not match a stored account.

    The message is identical for an unknown email and a wrong password.
    """


class AccountNotFoundError(TradeMateError):
    """Raised when an account id does not exist in the store."""


# ---------------------------------------------------------------------------
# Receipt extraction
# ---------------------------------------------------------------------------

class ExtractionError(TradeMateError):
    """
    Base class for failures at the vision-model boundary.

    Attributes:
        tag: Stable machine-readable failure tag shown to callers.
    """

    tag = "extraction_failed"


class BadImageError(ExtractionError):
    """The image was unreadable; no extracted field can be trusted."""

    tag = "bad_image"


class ExtractionFailedError(ExtractionError):
    """Any other extraction failure: transport, model quota, malformed answer."""


# ---------------------------------------------------------------------------
# Expenses / quota
# ---------------------------------------------------------------------------

class ValidationFailedError(TradeMateError):
    """Raised when user-supplied data fails business-rule validation."""


class QuotaExceededError(TradeMateError):
    """
    Raised when a standard-plan account has used its monthly allowance.

    Attributes:
        usage: Receipts created this calendar month.
        limit: The plan limit that was hit.
    """

    def __init__(self, message: str, *, usage: int, limit: int) -> None:
        super().__init__(message)
        self.usage = usage
        self.limit = limit


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

class StorageUnavailableError(TradeMateError):
    """Raised when the record store cannot be read or written."""


class CorruptStoreError(StorageUnavailableError):
    """
    Raised when a stored collection exists but cannot be decoded.

    Attributes:
        key: Name of the damaged collection.
    """

    def __init__(self, message: str, *, key: str, cause: BaseException | None = None) -> None:
        super().__init__(message, cause=cause)
        self.key = key
