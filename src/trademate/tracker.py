"""
trademate.tracker
~~~~~~~~~~~~~~~~~
Main entry point: wires the store, accounts, expenses, quota and extraction
into the scan → confirm → save → report flow.

  1. ``scan``   — quota gate, then per-image extraction into drafts
  2. ``save``   — validate the (possibly edited) draft, quota gate, persist
  3. ``dashboard`` / ``monthly_stats`` — spend-month reporting
  4. ``export_month`` — CSV file for one spend month

Every operation takes the caller's ``Account`` (or its id) explicitly; the
session pointer is only consulted by the CLI.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

from .accounts import AccountService
from .config import Config
from .exceptions import QuotaExceededError
from .expenses import ExpenseRepository
from .extraction.vision import ImageSource, ReceiptExtractor
from .models import Account, ExpenseDraft, ExpenseRecord, ScanResult
from .reports.csv_export import write_csv
from .reports.monthly import MonthlyStats, monthly_stats
from .reports.quota import QuotaEngine, QuotaStatus
from .storage.base import RecordStore
from .storage.sqlite import SQLiteRecordStore
from .utils import utc_now

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


@dataclass
class Dashboard:
    """Everything the overview screen shows for one month."""

    stats:  MonthlyStats
    quota:  QuotaStatus
    recent: list[ExpenseRecord] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "stats":  self.stats.to_dict(),
            "quota":  self.quota.to_dict(),
            "recent": [r.to_dict() for r in self.recent],
        }


class ExpenseTracker:
    """
    Orchestrates extraction, persistence and reporting.

    Args:
        store:     Record store; defaults to SQLite at ``config.db_path``.
        config:    Optional Config instance (reads .env by default).
        extractor: Optional ReceiptExtractor; built from ``config`` if omitted.
        clock:     Returns the current UTC time; injectable for tests.
    """

    def __init__(
        self,
        store:     Optional[RecordStore] = None,
        config:    Optional[Config] = None,
        extractor: Optional[ReceiptExtractor] = None,
        clock:     Callable[[], datetime] = utc_now,
    ) -> None:
        self.config    = config or Config()
        self.store     = store if store is not None else SQLiteRecordStore(self.config.db_path)
        self.accounts  = AccountService(self.store)
        self.expenses  = ExpenseRepository(self.store, clock=clock)
        self.quota     = QuotaEngine(self.expenses, self.config.standard_monthly_limit)
        self.extractor = extractor or ReceiptExtractor(self.config)

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> "ExpenseTracker":
        return self

    def __exit__(self, *_) -> None:
        self.close()

    def close(self) -> None:
        self.store.close()

    # ------------------------------------------------------------------
    # Quota gate
    # ------------------------------------------------------------------

    def _ensure_quota(self, account: Account) -> None:
        status = self.quota.quota_status(account)
        if status.exceeded:
            raise QuotaExceededError(
                f"You've hit your {status.limit} receipt limit for this month. "
                f"It resets on {status.resets_on:%d %B}; upgrade for unlimited receipts.",
                usage=status.usage,
                limit=status.limit,
            )

    # ------------------------------------------------------------------
    # Scan / save
    # ------------------------------------------------------------------

    def scan(self, account: Account, images: Sequence[ImageSource]) -> list[ScanResult]:
        """
        Extract drafts from receipt photos.

        Raises:
            QuotaExceededError: The account is already at its monthly limit;
                no image is sent to the model.
            ValidationFailedError: Too many images for one batch.
        """
        self._ensure_quota(account)
        results = self.extractor.extract_batch(images)
        logger.info(
            "Scanned %d receipt(s): %d resolved",
            len(results), sum(1 for r in results if r.success),
        )
        return results

    def save(self, account: Account, draft: ExpenseDraft) -> ExpenseRecord:
        """
        Persist a user-confirmed draft.

        Raises:
            ValidationFailedError: Empty vendor, zero or negative amount,
                negative VAT.
            QuotaExceededError: The account is at its monthly limit.
        """
        draft.validate()
        self._ensure_quota(account)
        return self.expenses.add(account.id, draft)

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def monthly_stats(self, account_id: str, month: Union[date, datetime]) -> MonthlyStats:
        """Totals for the spend month containing ``month``."""
        return monthly_stats(self.expenses.list_by_account(account_id), month)

    def dashboard(
        self,
        account: Account,
        month: Union[date, datetime],
        now: Optional[datetime] = None,
    ) -> Dashboard:
        """Stats for ``month`` plus the quota for the *current* month."""
        return Dashboard(
            stats=self.monthly_stats(account.id, month),
            quota=self.quota.quota_status(account, now),
            recent=self.expenses.recent(account.id),
        )

    def export_month(
        self,
        account: Account,
        year: int,
        month: int,
        directory: Union[str, Path],
        category: Optional[str] = None,
    ) -> Path:
        """
        Write the spend-month records to ``<prefix>_<YYYY-MM>.csv``.

        Raises:
            ValidationFailedError: No receipts in that month.
        """
        records = self.expenses.list_for_spend_month(account.id, year, month, category)
        return write_csv(records, directory, self.config.export_prefix, year, month)
