"""
trademate
~~~~~~~~~
Receipt-tracking expenses for self-employed tradespeople.

Typical usage::

    from trademate import ExpenseTracker

    with ExpenseTracker() as tracker:
        account = tracker.accounts.login("sam@example.com", "secret")
        for scan in tracker.scan(account, ["receipt.jpg"]):
            if scan.success:
                tracker.save(account, scan.draft)
            else:
                print(scan.error_tag, scan.error_message)
"""

from .accounts import AccountService
from .config import Config, VisionModelConfig, cfg
from .exceptions import (
    AccountNotFoundError,
    BadImageError,
    CorruptStoreError,
    DuplicateAccountError,
    ExtractionError,
    ExtractionFailedError,
    InvalidCredentialsError,
    QuotaExceededError,
    StorageUnavailableError,
    TradeMateError,
    ValidationFailedError,
)
from .expenses import ExpenseRepository
from .models import (
    Account,
    ExpenseDraft,
    ExpenseRecord,
    KnownCategory,
    OtherCategory,
    Plan,
    ScanResult,
    ScanStatus,
    parse_category,
)
from .prompts import RECEIPT_CATEGORIES
from .tracker import Dashboard, ExpenseTracker

__all__ = [
    # Core
    "ExpenseTracker",
    "Dashboard",
    "AccountService",
    "ExpenseRepository",
    # Configuration
    "Config",
    "VisionModelConfig",
    "cfg",
    # Models
    "Account",
    "Plan",
    "ExpenseDraft",
    "ExpenseRecord",
    "KnownCategory",
    "OtherCategory",
    "parse_category",
    "ScanResult",
    "ScanStatus",
    "RECEIPT_CATEGORIES",
    # Exceptions
    "TradeMateError",
    "DuplicateAccountError",
    "InvalidCredentialsError",
    "AccountNotFoundError",
    "ExtractionError",
    "BadImageError",
    "ExtractionFailedError",
    "ValidationFailedError",
    "QuotaExceededError",
    "StorageUnavailableError",
    "CorruptStoreError",
]
