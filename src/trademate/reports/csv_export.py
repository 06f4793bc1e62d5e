"""
trademate.reports.csv_export
~~~~~~~~~~~~~~~~~~~~~~~~~~~~
CSV export of expense records.

Format
------
::

    Spend Date,Created At,Vendor,Category,Amount,VAT
    2024-03-01,2024-03-02T10:00:00Z,"Bob""s Shop",fuel,12.50,2.50

* Rows keep the order they are given in — no implicit sort.
* The vendor is always double-quoted, with embedded quotes doubled.
  Every other field is written bare.
* Lines are joined with ``\\n``; there is no trailing newline.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from ..exceptions import ValidationFailedError
from ..models import ExpenseRecord
from ..utils import format_timestamp

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

CSV_HEADER = ("Spend Date", "Created At", "Vendor", "Category", "Amount", "VAT")


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def _row(r: ExpenseRecord) -> str:
    return ",".join((
        r.spend_date.isoformat(),
        format_timestamp(r.created_at),
        _quote(r.vendor),
        str(r.category),
        f"{r.amount:.2f}",
        f"{r.vat_amount:.2f}",
    ))


def to_csv(records: Iterable[ExpenseRecord]) -> str:
    """Render ``records`` as CSV text. Same input, byte-identical output."""
    return "\n".join([",".join(CSV_HEADER), *(_row(r) for r in records)])


def export_filename(prefix: str, year: int, month: int) -> str:
    """``<prefix>_<YYYY-MM>.csv``"""
    return f"{prefix}_{year:04d}-{month:02d}.csv"


def write_csv(
    records: Iterable[ExpenseRecord],
    directory: str | Path,
    prefix: str,
    year: int,
    month: int,
) -> Path:
    """
    Write ``records`` to ``directory/<prefix>_<YYYY-MM>.csv``.

    Raises:
        ValidationFailedError: There is nothing to export.
    """
    records = list(records)
    if not records:
        raise ValidationFailedError(f"No receipts to export for {year:04d}-{month:02d}.")

    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / export_filename(prefix, year, month)
    path.write_text(to_csv(records), encoding="utf-8", newline="")
    logger.info("Exported %d expenses to %s", len(records), path)
    return path
