"""
trademate.models
~~~~~~~~~~~~~~~~
Data models for accounts, expense records and extraction results.

Key design decisions
--------------------
* Money is ``Decimal`` quantised to 0.01 and serialised as a string, so
  nothing is lost on the way through the store.

* An expense carries two dates. ``spend_date`` is when the money was spent
  (user-editable, drives financial reports). ``created_at`` is when the
  record was captured (set once, drives the monthly quota).

* Categories are a tagged union: a ``KnownCategory`` value, or an
  ``OtherCategory`` wrapping whatever free text was supplied. Aggregation
  keys off ``str(category)`` so both variants group deterministically.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union

from .exceptions import ValidationFailedError
from .utils import ZERO, as_utc, format_timestamp, parse_spend_date, to_money


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------

class Plan(str, Enum):
    """Subscription tier. ``standard`` is quota-limited, ``upgraded`` is not."""

    STANDARD = "standard"
    UPGRADED = "upgraded"

    def __str__(self) -> str:
        return self.value


# ---------------------------------------------------------------------------
# Account
# ---------------------------------------------------------------------------

@dataclass
class Account:
    """
    A registered user, without credentials.

    This is the projection held in the session pointer and returned to
    callers; the password hash only ever lives in the accounts collection.
    """

    id:    str
    email: str
    name:  str
    plan:  Plan = Plan.STANDARD

    @property
    def is_upgraded(self) -> bool:
        return self.plan is Plan.UPGRADED

    def to_dict(self) -> dict:
        return {
            "id":    self.id,
            "email": self.email,
            "name":  self.name,
            "plan":  self.plan.value,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Account":
        return cls(
            id=    d["id"],
            email= d["email"],
            name=  d.get("name") or "",
            plan=  Plan(d.get("plan") or Plan.STANDARD.value),
        )


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

class KnownCategory(str, Enum):
    """The fixed category list offered to the user and to the vision model."""

    FUEL          = "fuel"
    MATERIALS     = "materials"
    TOOLS         = "tools"
    FOOD          = "food"
    HOTEL         = "hotel"
    TRAVEL        = "travel"
    TRAINING      = "training"
    MISCELLANEOUS = "miscellaneous"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class OtherCategory:
    """Free-text category kept verbatim (case and whitespace preserved)."""

    label: str

    def __str__(self) -> str:
        return self.label


Category = Union[KnownCategory, OtherCategory]


def parse_category(value: Any) -> Category:
    """
    Map a stored or user-supplied value onto the category union.

    Matching is exact: ``"Fuel"`` is not ``fuel`` and becomes
    ``OtherCategory("Fuel")``. ``None`` maps to miscellaneous.
    """
    if isinstance(value, (KnownCategory, OtherCategory)):
        return value
    if value is None:
        return KnownCategory.MISCELLANEOUS
    text = str(value)
    try:
        return KnownCategory(text)
    except ValueError:
        return OtherCategory(text)


# ---------------------------------------------------------------------------
# ExpenseDraft
# ---------------------------------------------------------------------------

@dataclass
class ExpenseDraft:
    """
    An unsaved, editable expense: the output of extraction or manual entry.

    ``spend_date`` may be ``None``; the repository then uses the capture date.
    """

    vendor:     str = ""
    amount:     Decimal = field(default_factory=lambda: ZERO)
    vat_amount: Decimal = field(default_factory=lambda: ZERO)
    category:   Category = KnownCategory.MISCELLANEOUS
    spend_date: Optional[date] = None

    def validate(self) -> None:
        """
        Raise ``ValidationFailedError`` unless the draft can be saved.

        A draft needs a vendor and a non-zero amount; neither amount nor VAT
        may be negative.
        """
        problems = []
        if not self.vendor or not self.vendor.strip():
            problems.append("vendor is required")
        try:
            amount = to_money(self.amount)
            vat = to_money(self.vat_amount)
        except ValueError as exc:
            raise ValidationFailedError(str(exc)) from exc
        if amount == 0:
            problems.append("amount must not be zero")
        elif amount < 0:
            problems.append("amount must not be negative")
        if vat < 0:
            problems.append("VAT must not be negative")
        if problems:
            raise ValidationFailedError("Cannot save expense: " + "; ".join(problems) + ".")

    def to_dict(self) -> dict:
        return {
            "vendor":     self.vendor,
            "amount":     str(self.amount),
            "vat_amount": str(self.vat_amount),
            "category":   str(self.category),
            "spend_date": self.spend_date.isoformat() if self.spend_date else None,
        }


# ---------------------------------------------------------------------------
# ExpenseRecord
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ExpenseRecord:
    """A saved expense. Never mutated once created."""

    id:         str
    account_id: str
    vendor:     str
    amount:     Decimal
    vat_amount: Decimal
    category:   Category
    spend_date: date
    created_at: datetime

    @property
    def net_amount(self) -> Decimal:
        return self.amount - self.vat_amount

    def to_dict(self) -> dict:
        return {
            "id":         self.id,
            "account_id": self.account_id,
            "vendor":     self.vendor,
            "amount":     str(self.amount),
            "vat_amount": str(self.vat_amount),
            "category":   str(self.category),
            "spend_date": self.spend_date.isoformat(),
            "created_at": as_utc(self.created_at).isoformat(),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "ExpenseRecord":
        spend_date = parse_spend_date(d.get("spend_date"))
        if spend_date is None:
            raise ValueError(f"Expense {d.get('id')!r} has no valid spend_date")
        return cls(
            id=         d["id"],
            account_id= d["account_id"],
            vendor=     d.get("vendor") or "",
            amount=     to_money(d.get("amount")),
            vat_amount= to_money(d.get("vat_amount")),
            category=   parse_category(d.get("category")),
            spend_date= spend_date,
            created_at= as_utc(datetime.fromisoformat(d["created_at"])),
        )

    def to_json(self) -> str:
        payload = self.to_dict()
        payload["created_at"] = format_timestamp(self.created_at)
        return json.dumps(payload, indent=2, ensure_ascii=False)


# ---------------------------------------------------------------------------
# ScanResult
# ---------------------------------------------------------------------------

class ScanStatus(str, Enum):
    PENDING  = "pending"
    RESOLVED = "resolved"
    FAILED   = "failed"

    def __str__(self) -> str:
        return self.value


@dataclass
class ScanResult:
    """
    Outcome of extracting one image in a batch.

    Always check ``success`` before accessing ``draft``. On failure,
    ``error_tag`` is ``"bad_image"`` (retake the photo) or
    ``"extraction_failed"`` (anything else).
    """

    index:           int
    source:          Optional[str] = None
    status:          ScanStatus = ScanStatus.PENDING
    draft:           Optional[ExpenseDraft] = None
    error_tag:       Optional[str] = None
    error_message:   Optional[str] = None
    processing_time: Optional[float] = None

    @property
    def success(self) -> bool:
        return self.status is ScanStatus.RESOLVED

    def to_dict(self) -> dict:
        return {
            "index":           self.index,
            "source":          self.source,
            "status":          self.status.value,
            "draft":           self.draft.to_dict() if self.draft else None,
            "error_tag":       self.error_tag,
            "error_message":   self.error_message,
            "processing_time": round(self.processing_time, 3) if self.processing_time else None,
        }
