"""
trademate.utils
~~~~~~~~~~~~~~~
Small parsing and date helpers shared by the extraction client, the
repository and the reports.

Money is always ``Decimal`` quantised to the currency minor unit (0.01).
Timestamps are always timezone-aware UTC.
"""

from __future__ import annotations

import calendar
import json
import logging
import re
from datetime import date, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


# ---------------------------------------------------------------------------
# LLM response cleanup
# ---------------------------------------------------------------------------

def clean_json_response(response: str) -> str:
    """
    Extract a JSON object from a model response string.

    Handles markdown code fences, trailing commas and unquoted keys. The
    key-quoting pass only runs when the candidate is not already valid JSON
    so that colons inside string values are never rewritten.

    Returns ``"{}"`` on total failure so callers can always ``json.loads()``
    the result.
    """
    response = re.sub(r"```(?:json)?\s*", "", response)
    response = re.sub(r"```\s*$", "", response, flags=re.MULTILINE)
    response = response.strip()

    response = re.sub(r",\s*([}\]])", r"\1", response)

    match = re.search(r"\{.*\}", response, re.DOTALL)
    if not match:
        logger.warning("No JSON object found in model response.")
        return "{}"

    candidate = match.group(0)
    try:
        json.loads(candidate)
        return candidate
    except json.JSONDecodeError:
        pass

    fixed = re.sub(
        r'([{,]\s*)([A-Za-z_]\w*)\s*:',
        lambda m: f'{m.group(1)}"{m.group(2)}":',
        candidate,
    )
    try:
        json.loads(fixed)
        return fixed
    except json.JSONDecodeError as exc:
        logger.warning("Could not produce valid JSON after cleaning: %s", exc)
        return "{}"


# ---------------------------------------------------------------------------
# Money
# ---------------------------------------------------------------------------

def to_money(value: Any) -> Decimal:
    """
    Coerce ``value`` to a ``Decimal`` rounded half-up to two places.

    ``None`` and ``""`` become ``0.00``. Floats go through ``str`` first so
    ``12.5`` becomes ``Decimal("12.50")`` rather than a binary expansion.

    Raises:
        ValueError: When the value is not numeric.
    """
    if value is None or value == "":
        return ZERO
    if isinstance(value, bool):
        raise ValueError(f"Not an amount: {value!r}")
    try:
        d = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Not an amount: {value!r}") from exc
    if not d.is_finite():
        raise ValueError(f"Not an amount: {value!r}")
    return d.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_money(value: Any) -> Optional[Decimal]:
    """Lenient variant of :func:`to_money` for model output: ``None`` on failure."""
    try:
        return to_money(value)
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_spend_date(value: Union[str, date, datetime, None]) -> Optional[date]:
    """
    Parse a spend date.

    Accepts ``date``/``datetime`` objects, ``YYYY-MM-DD`` strings and full
    ISO timestamps (only the date part is kept). Returns ``None`` for empty
    or unparsable input.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def format_timestamp(dt: datetime) -> str:
    """
    Render a creation timestamp as UTC ISO-8601 with a ``Z`` suffix.

    Seconds precision; milliseconds are appended only when non-zero.
    """
    dt = as_utc(dt)
    precision = "milliseconds" if dt.microsecond // 1000 else "seconds"
    return dt.replace(tzinfo=None).isoformat(timespec=precision) + "Z"


def month_bounds(reference: Union[date, datetime]) -> tuple[datetime, datetime]:
    """
    First and last instant (inclusive) of the UTC calendar month of ``reference``.
    """
    if isinstance(reference, datetime):
        reference = as_utc(reference)
    last_day = calendar.monthrange(reference.year, reference.month)[1]
    start = datetime(reference.year, reference.month, 1, tzinfo=timezone.utc)
    end = datetime(
        reference.year, reference.month, last_day,
        23, 59, 59, 999999, tzinfo=timezone.utc,
    )
    return start, end


def first_of_next_month(reference: Union[date, datetime]) -> date:
    _, end = month_bounds(reference)
    return (end + timedelta(microseconds=1)).date()


def parse_month(value: str) -> tuple[int, int]:
    """
    Parse ``YYYY-MM`` into ``(year, month)``.

    Raises:
        ValueError: On any other shape or an out-of-range month.
    """
    match = _MONTH_RE.match(value.strip()) if value else None
    if not match:
        raise ValueError(f"Expected YYYY-MM, got {value!r}")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValueError(f"Month out of range in {value!r}")
    return year, month
