"""
trademate.reports.quota
~~~~~~~~~~~~~~~~~~~~~~~
Monthly receipt quota for the standard plan.

Usage is counted by *creation* month (``ExpenseRecord.created_at``), always
against the real current month, never the month a user is browsing.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..expenses import ExpenseRepository
from ..models import Account
from ..utils import first_of_next_month

STANDARD_MONTHLY_LIMIT = 10


@dataclass(frozen=True)
class QuotaStatus:
    """Snapshot of an account's allowance for the current month."""

    usage:     int
    limit:     Optional[int]   # None = unlimited
    resets_on: date

    @property
    def exceeded(self) -> bool:
        return self.limit is not None and self.usage >= self.limit

    @property
    def remaining(self) -> Optional[int]:
        if self.limit is None:
            return None
        return max(self.limit - self.usage, 0)

    def to_dict(self) -> dict:
        return {
            "usage":     self.usage,
            "limit":     self.limit,
            "remaining": self.remaining,
            "exceeded":  self.exceeded,
            "resets_on": self.resets_on.isoformat(),
        }


class QuotaEngine:
    """Plan-limit checks over an ``ExpenseRepository``."""

    def __init__(
        self,
        expenses: ExpenseRepository,
        standard_limit: int = STANDARD_MONTHLY_LIMIT,
    ) -> None:
        self.expenses = expenses
        self.standard_limit = standard_limit

    def _now(self, now: Optional[datetime]) -> datetime:
        return now if now is not None else self.expenses.clock()

    def monthly_usage(self, account_id: str, now: Optional[datetime] = None) -> int:
        """Receipts created by ``account_id`` in the current calendar month."""
        return len(self.expenses.list_for_calendar_month(account_id, self._now(now)))

    def quota_limit(self, account: Account) -> Optional[int]:
        """The monthly limit, or ``None`` for unlimited (upgraded plan)."""
        return None if account.is_upgraded else self.standard_limit

    def is_quota_exceeded(self, account: Account, now: Optional[datetime] = None) -> bool:
        if account.is_upgraded:
            return False
        return self.monthly_usage(account.id, now) >= self.standard_limit

    def quota_status(self, account: Account, now: Optional[datetime] = None) -> QuotaStatus:
        now = self._now(now)
        return QuotaStatus(
            usage=self.monthly_usage(account.id, now),
            limit=self.quota_limit(account),
            resets_on=first_of_next_month(now),
        )
