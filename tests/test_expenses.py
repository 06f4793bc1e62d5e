"""
tests/test_expenses.py
~~~~~~~~~~~~~~~~~~~~~~
Tests for trademate.expenses — add, ordering, month views and ownership.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from trademate.exceptions import CorruptStoreError
from trademate.expenses import ExpenseRepository
from trademate.models import ExpenseDraft, KnownCategory, OtherCategory
from trademate.storage.base import EXPENSES


def _draft(vendor="Shell", amount="10.00", spend=date(2024, 3, 1), category=KnownCategory.FUEL):
    return ExpenseDraft(
        vendor=vendor,
        amount=Decimal(amount),
        vat_amount=Decimal("0.00"),
        category=category,
        spend_date=spend,
    )


class TestAdd:
    def test_assigns_id_and_created_at(self, repo, clock, sample_draft):
        rec = repo.add("acc", sample_draft)
        assert rec.id
        assert rec.account_id == "acc"
        assert rec.created_at == clock.now

    def test_ids_are_unique(self, repo, sample_draft):
        assert repo.add("acc", sample_draft).id != repo.add("acc", sample_draft).id

    def test_round_trip_through_store(self, repo, sample_draft):
        rec = repo.add("acc", sample_draft)
        assert repo.list_by_account("acc") == [rec]
        assert rec.vendor == "Screwfix"
        assert rec.amount == Decimal("42.50")
        assert rec.vat_amount == Decimal("7.08")
        assert rec.category is KnownCategory.TOOLS
        assert rec.spend_date == date(2024, 3, 10)

    def test_missing_spend_date_uses_capture_day(self, repo, clock):
        rec = repo.add("acc", _draft(spend=None))
        assert rec.spend_date == clock.now.date()

    def test_other_category_survives(self, repo, store):
        repo.add("acc", _draft(category=OtherCategory("Scaffold Hire")))
        assert ExpenseRepository(store).list_by_account("acc")[0].category == OtherCategory("Scaffold Hire")

    def test_amount_quantised(self, repo):
        rec = repo.add("acc", _draft(amount="3.005"))
        assert rec.amount == Decimal("3.01")


class TestListByAccount:
    def test_empty(self, repo):
        assert repo.list_by_account("nobody") == []

    def test_scoped_to_owner(self, repo):
        repo.add("a", _draft(vendor="A"))
        repo.add("b", _draft(vendor="B"))
        assert [r.vendor for r in repo.list_by_account("a")] == ["A"]

    def test_sorted_by_spend_date_desc(self, repo):
        repo.add("a", _draft(vendor="old", spend=date(2024, 1, 5)))
        repo.add("a", _draft(vendor="new", spend=date(2024, 3, 5)))
        repo.add("a", _draft(vendor="mid", spend=date(2024, 2, 5)))
        assert [r.vendor for r in repo.list_by_account("a")] == ["new", "mid", "old"]

    def test_ties_keep_insertion_order(self, repo):
        for v in ("first", "second", "third"):
            repo.add("a", _draft(vendor=v, spend=date(2024, 3, 1)))
        assert [r.vendor for r in repo.list_by_account("a")] == ["first", "second", "third"]

    def test_recent_limit(self, repo):
        for day in range(1, 8):
            repo.add("a", _draft(vendor=str(day), spend=date(2024, 3, day)))
        assert [r.vendor for r in repo.recent("a")] == ["7", "6", "5", "4", "3"]
        assert len(repo.recent("a", limit=2)) == 2

    def test_malformed_record_raises(self, repo, store):
        store.write(EXPENSES, [{"id": "x", "account_id": "a"}])
        with pytest.raises(CorruptStoreError):
            repo.list_by_account("a")


class TestCalendarMonth:
    def test_filters_by_created_at(self, repo, clock):
        clock.now = datetime(2024, 2, 28, 23, 59, tzinfo=timezone.utc)
        repo.add("a", _draft(vendor="feb", spend=date(2024, 3, 1)))
        clock.now = datetime(2024, 3, 1, 0, 0, tzinfo=timezone.utc)
        repo.add("a", _draft(vendor="mar", spend=date(2024, 2, 1)))

        feb = repo.list_for_calendar_month("a", date(2024, 2, 10))
        mar = repo.list_for_calendar_month("a", date(2024, 3, 10))
        assert [r.vendor for r in feb] == ["feb"]
        assert [r.vendor for r in mar] == ["mar"]

    def test_months_partition_all_records(self, repo, clock):
        for ts in (
            datetime(2024, 1, 31, 23, 59, 59, tzinfo=timezone.utc),
            datetime(2024, 2, 1, tzinfo=timezone.utc),
            datetime(2024, 2, 15, tzinfo=timezone.utc),
        ):
            clock.now = ts
            repo.add("a", _draft())
        jan = repo.list_for_calendar_month("a", date(2024, 1, 1))
        feb = repo.list_for_calendar_month("a", date(2024, 2, 1))
        assert len(jan) + len(feb) == len(repo.list_by_account("a"))


class TestSpendMonth:
    def test_filters_by_spend_date(self, repo):
        repo.add("a", _draft(vendor="in", spend=date(2024, 3, 31)))
        repo.add("a", _draft(vendor="out", spend=date(2024, 4, 1)))
        assert [r.vendor for r in repo.list_for_spend_month("a", 2024, 3)] == ["in"]

    def test_category_filter_is_exact(self, repo):
        repo.add("a", _draft(vendor="fuel", category=KnownCategory.FUEL))
        repo.add("a", _draft(vendor="Fuel", category=OtherCategory("Fuel")))
        assert [r.vendor for r in repo.list_for_spend_month("a", 2024, 3, "fuel")] == ["fuel"]
