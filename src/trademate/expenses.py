"""
trademate.expenses
~~~~~~~~~~~~~~~~~~
Expense repository: create and query records scoped to one account.

Records are owned by reference (``account_id``), so every query filters the
full collection. Listing order is spend date descending; records sharing a
spend date keep their store order.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from typing import Callable, Optional, Union

from .exceptions import CorruptStoreError
from .models import ExpenseDraft, ExpenseRecord, parse_category
from .storage.base import EXPENSES, RecordStore
from .utils import as_utc, month_bounds, to_money, utc_now

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class ExpenseRepository:
    """
    Args:
        store: Backing record store.
        clock: Returns the current UTC time; injectable for tests.
    """

    def __init__(self, store: RecordStore, clock: Callable[[], datetime] = utc_now) -> None:
        self.store = store
        self.clock = clock

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def add(self, account_id: str, draft: ExpenseDraft) -> ExpenseRecord:
        """
        Persist a confirmed draft.

        Assigns a fresh id and ``created_at = now``. A draft without a spend
        date is dated on its capture day. Validation is the caller's job
        (see ``ExpenseTracker.save``).
        """
        created_at = as_utc(self.clock())
        record = ExpenseRecord(
            id=uuid.uuid4().hex,
            account_id=account_id,
            vendor=draft.vendor,
            amount=to_money(draft.amount),
            vat_amount=to_money(draft.vat_amount),
            category=parse_category(draft.category),
            spend_date=draft.spend_date or created_at.date(),
            created_at=created_at,
        )
        rows = self.store.read(EXPENSES)
        rows.append(record.to_dict())
        self.store.write(EXPENSES, rows)
        logger.debug("Saved expense %s for account %s", record.id, account_id)
        return record

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _all(self) -> list[ExpenseRecord]:
        records = []
        for raw in self.store.read(EXPENSES):
            try:
                records.append(ExpenseRecord.from_dict(raw))
            except (KeyError, TypeError, ValueError) as exc:
                raise CorruptStoreError(
                    f"Malformed expense record {raw.get('id')!r}", key=EXPENSES, cause=exc
                ) from exc
        return records

    def list_by_account(self, account_id: str) -> list[ExpenseRecord]:
        """All records of ``account_id``, most recent spend date first."""
        owned = [r for r in self._all() if r.account_id == account_id]
        return sorted(owned, key=lambda r: r.spend_date, reverse=True)

    def list_for_calendar_month(
        self,
        account_id: str,
        reference: Union[date, datetime],
    ) -> list[ExpenseRecord]:
        """
        Records *created* in the UTC calendar month containing ``reference``.

        This is the quota view: it deliberately ignores the spend date so a
        back-dated receipt still counts against the month it was captured.
        """
        start, end = month_bounds(reference)
        return [
            r for r in self.list_by_account(account_id)
            if start <= as_utc(r.created_at) <= end
        ]

    def list_for_spend_month(
        self,
        account_id: str,
        year: int,
        month: int,
        category: Optional[str] = None,
    ) -> list[ExpenseRecord]:
        """
        Records *spent* in ``year``-``month``, optionally limited to one
        category label (exact match).
        """
        return [
            r for r in self.list_by_account(account_id)
            if r.spend_date.year == year
            and r.spend_date.month == month
            and (category is None or str(r.category) == category)
        ]

    def recent(self, account_id: str, limit: int = 5) -> list[ExpenseRecord]:
        return self.list_by_account(account_id)[:limit]
