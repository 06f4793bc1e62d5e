"""
tests/test_tracker.py
~~~~~~~~~~~~~~~~~~~~~
Tests for trademate.tracker — ExpenseTracker with the extractor mocked.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from trademate.config import Config
from trademate.exceptions import QuotaExceededError, ValidationFailedError
from trademate.extraction import ReceiptExtractor
from trademate.models import ExpenseDraft, KnownCategory, ScanResult, ScanStatus
from trademate.tracker import Dashboard, ExpenseTracker


@pytest.fixture
def mock_extractor() -> MagicMock:
    return MagicMock(spec=ReceiptExtractor)


@pytest.fixture
def tracker(store, default_config, mock_extractor, clock) -> ExpenseTracker:
    return ExpenseTracker(store=store, config=default_config, extractor=mock_extractor, clock=clock)


@pytest.fixture
def user(tracker):
    tracker.accounts.register("sam@example.com", "hunter2", "Sam Sparks")
    return tracker.accounts.login("sam@example.com", "hunter2")


def _draft(amount="10.00", spend=date(2024, 3, 1), category=KnownCategory.FUEL, vat="0.00"):
    return ExpenseDraft(vendor="Shell", amount=Decimal(amount), vat_amount=Decimal(vat),
                        category=category, spend_date=spend)


class TestInit:
    def test_default_store_uses_config_path(self, default_config, mock_extractor):
        with ExpenseTracker(config=default_config, extractor=mock_extractor) as t:
            assert t.store.db_path == default_config.db_path
        assert default_config.db_path.exists()

    def test_builds_extractor_from_config(self, store, default_config):
        t = ExpenseTracker(store=store, config=default_config)
        assert isinstance(t.extractor, ReceiptExtractor)
        assert t.extractor.config is default_config

    def test_quota_limit_from_config(self, store, tmp_path, mock_extractor):
        config = Config(_env_file=None, db_path=tmp_path / "q.db", standard_monthly_limit=3)  # type: ignore[call-arg]
        assert ExpenseTracker(store=store, config=config, extractor=mock_extractor).quota.standard_limit == 3


class TestSave:
    def test_save_persists(self, tracker, user):
        rec = tracker.save(user, _draft())
        assert tracker.expenses.list_by_account(user.id) == [rec]

    def test_invalid_draft_rejected(self, tracker, user):
        with pytest.raises(ValidationFailedError):
            tracker.save(user, ExpenseDraft(vendor="", amount=Decimal("5")))
        assert tracker.expenses.list_by_account(user.id) == []

    def test_quota_blocks_eleventh(self, tracker, user):
        for _ in range(10):
            tracker.save(user, _draft())
        with pytest.raises(QuotaExceededError) as exc_info:
            tracker.save(user, _draft())
        assert exc_info.value.usage == 10
        assert exc_info.value.limit == 10

    def test_upgraded_unlimited(self, tracker, user):
        upgraded = tracker.accounts.upgrade_plan(user.id)
        for _ in range(12):
            tracker.save(upgraded, _draft())
        assert len(tracker.expenses.list_by_account(user.id)) == 12

    def test_quota_resets_next_month(self, tracker, user, clock):
        for _ in range(10):
            tracker.save(user, _draft())
        clock.now = datetime(2024, 4, 1, 0, 0, 1, tzinfo=timezone.utc)
        tracker.save(user, _draft())


class TestScan:
    def test_delegates_to_extractor(self, tracker, user, mock_extractor, png_bytes):
        expected = [ScanResult(index=0, status=ScanStatus.RESOLVED, draft=_draft())]
        mock_extractor.extract_batch.return_value = expected
        assert tracker.scan(user, [png_bytes]) == expected
        mock_extractor.extract_batch.assert_called_once_with([png_bytes])

    def test_quota_checked_before_extraction(self, tracker, user, mock_extractor, png_bytes):
        for _ in range(10):
            tracker.save(user, _draft())
        with pytest.raises(QuotaExceededError):
            tracker.scan(user, [png_bytes])
        mock_extractor.extract_batch.assert_not_called()

    def test_scan_does_not_save(self, tracker, user, mock_extractor, png_bytes):
        mock_extractor.extract_batch.return_value = [
            ScanResult(index=0, status=ScanStatus.RESOLVED, draft=_draft())
        ]
        tracker.scan(user, [png_bytes])
        assert tracker.expenses.list_by_account(user.id) == []


class TestReports:
    def test_monthly_stats_example(self, tracker, user):
        tracker.save(user, _draft("100.00", date(2024, 3, 1), vat="15.00"))
        tracker.save(user, _draft("50.00", date(2024, 3, 15), vat="5.00"))
        tracker.save(user, _draft("30.00", date(2024, 2, 28), KnownCategory.FOOD, vat="3.00"))
        stats = tracker.monthly_stats(user.id, date(2024, 3, 1))
        assert stats.total_spent == Decimal("150.00")
        assert stats.total_vat == Decimal("20.00")
        assert stats.by_category == {"fuel": Decimal("150.00")}
        assert stats.receipt_count == 2

    def test_stats_scoped_to_account(self, tracker, user):
        other = tracker.accounts.register("kim@example.com", "pw")
        tracker.save(other, _draft("99.00"))
        assert tracker.monthly_stats(user.id, date(2024, 3, 1)).receipt_count == 0

    def test_dashboard(self, tracker, user):
        for day in range(1, 8):
            tracker.save(user, _draft(spend=date(2024, 3, day)))
        dash = tracker.dashboard(user, date(2024, 3, 1))
        assert isinstance(dash, Dashboard)
        assert dash.stats.receipt_count == 7
        assert dash.quota.usage == 7
        assert dash.quota.resets_on == date(2024, 4, 1)
        assert [r.spend_date.day for r in dash.recent] == [7, 6, 5, 4, 3]
        assert dash.to_dict()["quota"]["remaining"] == 3

    def test_dashboard_quota_ignores_browsed_month(self, tracker, user):
        tracker.save(user, _draft(spend=date(2024, 1, 5)))
        dash = tracker.dashboard(user, date(2024, 1, 1))
        assert dash.stats.receipt_count == 1
        assert dash.quota.usage == 1

    def test_export_month(self, tracker, user, tmp_path):
        tracker.save(user, _draft(spend=date(2024, 3, 2)))
        tracker.save(user, _draft(spend=date(2024, 4, 2)))
        path = tracker.export_month(user, 2024, 3, tmp_path)
        assert path.name == "trademate_expenses_2024-03.csv"
        lines = path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 2
        assert lines[1].startswith("2024-03-02,2024-03-15T12:00:00Z,\"Shell\",fuel,10.00,0.00")

    def test_export_empty_month(self, tracker, user, tmp_path):
        with pytest.raises(ValidationFailedError):
            tracker.export_month(user, 2024, 5, tmp_path)

    def test_export_category_filter(self, tracker, user, tmp_path):
        tracker.save(user, _draft())
        with pytest.raises(ValidationFailedError):
            tracker.export_month(user, 2024, 3, tmp_path, category="food")
