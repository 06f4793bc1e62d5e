"""
tests/test_utils.py
~~~~~~~~~~~~~~~~~~~
Tests for trademate.utils — JSON cleanup, money coercion and month/date helpers.
"""

from __future__ import annotations

import json
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from trademate.utils import (
    clean_json_response,
    first_of_next_month,
    format_timestamp,
    month_bounds,
    parse_money,
    parse_month,
    parse_spend_date,
    to_money,
)


class TestCleanJsonResponse:
    def test_plain_object_unchanged(self):
        raw = '{"vendor": "Shell", "amount": 60.0}'
        assert json.loads(clean_json_response(raw)) == {"vendor": "Shell", "amount": 60.0}

    def test_markdown_fences_removed(self):
        raw = '```json\n{"vendor": "Shell"}\n```'
        assert json.loads(clean_json_response(raw)) == {"vendor": "Shell"}

    def test_trailing_comma_removed(self):
        assert json.loads(clean_json_response('{"a": 1,}')) == {"a": 1}

    def test_unquoted_keys_fixed(self):
        assert json.loads(clean_json_response('{vendor: "Shell"}')) == {"vendor": "Shell"}

    def test_colon_in_string_preserved(self):
        raw = '{"vendor": "B&Q: Trade Point"}'
        assert json.loads(clean_json_response(raw))["vendor"] == "B&Q: Trade Point"

    def test_no_object_returns_empty(self):
        assert clean_json_response("sorry, I cannot help") == "{}"


class TestToMoney:
    def test_float_is_exact_to_the_cent(self):
        assert to_money(12.5) == Decimal("12.50")

    def test_rounds_half_up(self):
        assert to_money("2.675") == Decimal("2.68")

    def test_none_and_empty_are_zero(self):
        assert to_money(None) == Decimal("0.00")
        assert to_money("") == Decimal("0.00")

    @pytest.mark.parametrize("bad", ["abc", "NaN", "Infinity", True])
    def test_rejects_non_amounts(self, bad):
        with pytest.raises(ValueError):
            to_money(bad)

    def test_parse_money_is_lenient(self):
        assert parse_money("twelve") is None
        assert parse_money("3.1") == Decimal("3.10")


class TestParseSpendDate:
    def test_iso_date(self):
        assert parse_spend_date("2024-03-01") == date(2024, 3, 1)

    def test_iso_timestamp_keeps_date(self):
        assert parse_spend_date("2024-03-01T23:10:00.000Z") == date(2024, 3, 1)

    def test_datetime_object(self):
        assert parse_spend_date(datetime(2024, 3, 1, 9)) == date(2024, 3, 1)

    @pytest.mark.parametrize("bad", [None, "", "01/03/2024", "yesterday"])
    def test_unparsable_is_none(self, bad):
        assert parse_spend_date(bad) is None


class TestFormatTimestamp:
    def test_whole_seconds(self):
        dt = datetime(2024, 3, 2, 10, 0, tzinfo=timezone.utc)
        assert format_timestamp(dt) == "2024-03-02T10:00:00Z"

    def test_milliseconds_when_present(self):
        dt = datetime(2024, 3, 2, 10, 0, 0, 123456, tzinfo=timezone.utc)
        assert format_timestamp(dt) == "2024-03-02T10:00:00.123Z"

    def test_converted_to_utc(self):
        plus_two = timezone(timedelta(hours=2))
        dt = datetime(2024, 3, 2, 12, 0, tzinfo=plus_two)
        assert format_timestamp(dt) == "2024-03-02T10:00:00Z"

    def test_naive_treated_as_utc(self):
        assert format_timestamp(datetime(2024, 3, 2, 10, 0)) == "2024-03-02T10:00:00Z"


class TestMonthHelpers:
    def test_month_bounds_inclusive(self):
        start, end = month_bounds(date(2024, 2, 10))
        assert start == datetime(2024, 2, 1, tzinfo=timezone.utc)
        assert end == datetime(2024, 2, 29, 23, 59, 59, 999999, tzinfo=timezone.utc)

    def test_month_bounds_december(self):
        _, end = month_bounds(datetime(2023, 12, 31, 8, tzinfo=timezone.utc))
        assert end.date() == date(2023, 12, 31)

    def test_first_of_next_month_rolls_year(self):
        assert first_of_next_month(date(2023, 12, 5)) == date(2024, 1, 1)

    def test_parse_month(self):
        assert parse_month("2024-03") == (2024, 3)

    @pytest.mark.parametrize("bad", ["2024-13", "2024-3", "March", ""])
    def test_parse_month_rejects(self, bad):
        with pytest.raises(ValueError):
            parse_month(bad)
