"""
tests/conftest.py
~~~~~~~~~~~~~~~~~
Shared pytest fixtures for the trademate test suite.

Every store lives under ``tmp_path``; nothing touches ~/.trademate.
"""

from __future__ import annotations

import io
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from PIL import Image

from trademate.accounts import AccountService
from trademate.config import Config
from trademate.expenses import ExpenseRepository
from trademate.models import ExpenseDraft, KnownCategory
from trademate.reports.quota import QuotaEngine
from trademate.storage.sqlite import SQLiteRecordStore


class FakeClock:
    """Callable clock whose time tests move by assigning ``now``."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


# ---------------------------------------------------------------------------
# Config / storage
# ---------------------------------------------------------------------------

@pytest.fixture
def default_config(tmp_path) -> Config:
    return Config(_env_file=None, db_path=tmp_path / "trademate.db")  # type: ignore[call-arg]


@pytest.fixture
def store(tmp_path) -> SQLiteRecordStore:
    s = SQLiteRecordStore(db_path=tmp_path / "store.db")
    yield s
    s.close()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def accounts(store) -> AccountService:
    return AccountService(store)


@pytest.fixture
def repo(store, clock) -> ExpenseRepository:
    return ExpenseRepository(store, clock=clock)


@pytest.fixture
def quota(repo) -> QuotaEngine:
    return QuotaEngine(repo)


@pytest.fixture
def account(accounts):
    return accounts.register("sam@example.com", "hunter2", "Sam Sparks")


# ---------------------------------------------------------------------------
# Expense helpers
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_draft() -> ExpenseDraft:
    return ExpenseDraft(
        vendor="Screwfix",
        amount=Decimal("42.50"),
        vat_amount=Decimal("7.08"),
        category=KnownCategory.TOOLS,
        spend_date=date(2024, 3, 10),
    )


# ---------------------------------------------------------------------------
# Extraction fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def png_bytes() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (32, 48), color=(255, 255, 255)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def model_json_response() -> dict:
    """A well-formed answer from the vision model."""
    return {
        "vendor": "Screwfix",
        "date": "2024-03-01",
        "amount": 42.5,
        "vat_amount": 7.08,
        "category": "tools",
    }
