"""
trademate.reports.monthly
~~~~~~~~~~~~~~~~~~~~~~~~~
Monthly spending summary for the dashboard.

Unlike the quota, this report filters by *spend* date: it answers "what did
I spend in March", regardless of when the receipts were photographed.

Usage::

    stats = monthly_stats(repo.list_by_account(account.id), date(2024, 3, 1))
    print(stats.summary())
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Union

from ..models import ExpenseRecord
from ..utils import ZERO, as_utc


@dataclass
class MonthlyStats:
    """
    Totals for one spend month.

    ``by_category`` maps each category label to the summed amount, in the
    order categories were first seen in the input.
    """

    year:          int
    month:         int
    total_spent:   Decimal = ZERO
    total_vat:     Decimal = ZERO
    by_category:   dict[str, Decimal] = field(default_factory=dict)
    receipt_count: int = 0

    @property
    def period(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def total_net(self) -> Decimal:
        return self.total_spent - self.total_vat

    def to_dict(self) -> dict:
        return {
            "period":        self.period,
            "total_spent":   f"{self.total_spent:.2f}",
            "total_vat":     f"{self.total_vat:.2f}",
            "by_category":   {k: f"{v:.2f}" for k, v in self.by_category.items()},
            "receipt_count": self.receipt_count,
        }

    def summary(self) -> str:
        W = 44
        div = "─" * W
        lines = [
            "=" * W,
            f"  Expenses — {self.period}",
            "=" * W,
            f"  Receipts       : {self.receipt_count}",
            f"  Total spent    : {self.total_spent:>10.2f}",
            f"  Total VAT      : {self.total_vat:>10.2f}",
            f"  Net (excl.VAT) : {self.total_net:>10.2f}",
        ]
        if self.by_category:
            lines.append(div)
            for label, amount in self.by_category.items():
                lines.append(f"  {label:<20} {amount:>10.2f}")
        lines.append("=" * W)
        return "\n".join(lines)


def monthly_stats(
    records: Iterable[ExpenseRecord],
    month: Union[date, datetime],
) -> MonthlyStats:
    """
    Aggregate the records whose spend date lies in the month of ``month``.

    Records from any other month, whatever their creation date, are ignored.
    Amounts are ``Decimal`` so sums are exact to the cent. A ``datetime``
    reference is read in UTC.
    """
    if isinstance(month, datetime):
        month = as_utc(month)
    stats = MonthlyStats(year=month.year, month=month.month)
    for r in records:
        if r.spend_date.year != month.year or r.spend_date.month != month.month:
            continue
        stats.total_spent += r.amount
        stats.total_vat += r.vat_amount
        label = str(r.category)
        stats.by_category[label] = stats.by_category.get(label, ZERO) + r.amount
        stats.receipt_count += 1
    return stats
