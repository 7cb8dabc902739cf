"""
tests/test_cells.py

Pytest unit tests for cell normalization and date parsing.

Coverage
--------
- stringify across blanks, numbers, booleans and dates
- normalize_key quote / whitespace / case folding
- parse_date for native dates, spreadsheet serials and text
- key stability across representations of the same calendar day
"""

from __future__ import annotations

import math
from datetime import date, datetime, timedelta, timezone

import pandas as pd
import pytest

from incentives.cells import (
    UNKNOWN_DATE_KEY,
    add_days,
    decode_serial,
    format_display_date,
    is_blank,
    normalize_key,
    parse_date,
    stringify,
)


# ---------------------------------------------------------------------------
# stringify / normalize_key
# ---------------------------------------------------------------------------


class TestStringify:
    @pytest.mark.parametrize("value", [None, "", "   ", math.nan, math.inf, -math.inf, pd.NaT])
    def test_blank_like_values_become_empty(self, value: object) -> None:
        assert stringify(value) == ""
        assert is_blank(value)

    def test_integral_float_drops_trailing_zero(self) -> None:
        assert stringify(9876543210.0) == "9876543210"

    def test_fractional_float_is_kept(self) -> None:
        assert stringify(12.5) == "12.5"

    def test_booleans(self) -> None:
        assert stringify(True) == "true"
        assert stringify(False) == "false"

    def test_dates_render_as_iso(self) -> None:
        assert stringify(date(2024, 1, 2)) == "2024-01-02"
        assert stringify(datetime(2024, 1, 2, 10, 30)) == "2024-01-02T10:30:00"

    def test_text_is_trimmed(self) -> None:
        assert stringify("  Kurta  ") == "Kurta"


class TestNormalizeKey:
    def test_folds_case_and_whitespace(self) -> None:
        assert normalize_key("  Ravi\t  Kumar ") == "ravi kumar"

    def test_curly_quotes_become_straight(self) -> None:
        assert normalize_key("Men’s Ethnic") == "men's ethnic"
        assert normalize_key("“VIP”") == '"vip"'

    def test_numeric_ids_match_their_text_form(self) -> None:
        assert normalize_key(9876543210.0) == normalize_key("9876543210")


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


class TestParseDate:
    def test_blank_is_unknown(self) -> None:
        info = parse_date(None)
        assert info.key == UNKNOWN_DATE_KEY
        assert info.iso is None

        assert parse_date("  ").key == UNKNOWN_DATE_KEY

    def test_serial_number_round_trip(self) -> None:
        info = parse_date(45292)
        assert info.iso == date(2024, 1, 1)
        assert info.key == "2024-01-01"
        assert info.display == "01 Jan 2024"

    def test_serial_fraction_is_ignored(self) -> None:
        assert parse_date(45292.75).iso == date(2024, 1, 1)

    def test_serials_before_leap_bug_use_early_epoch(self) -> None:
        assert decode_serial(1) == date(1900, 1, 1)
        assert decode_serial(59) == date(1900, 2, 28)
        assert decode_serial(61) == date(1900, 3, 1)

    def test_out_of_range_serial_is_not_a_date(self) -> None:
        assert decode_serial(-1) is None
        assert decode_serial(2958466) is None

    def test_native_date_and_datetime(self) -> None:
        assert parse_date(date(2024, 3, 5)).key == "2024-03-05"
        assert parse_date(datetime(2024, 3, 5, 18, 45)).key == "2024-03-05"

    def test_aware_datetime_is_converted_to_utc_day(self) -> None:
        value = datetime(2024, 1, 1, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
        assert parse_date(value).iso == date(2024, 1, 2)

    def test_pandas_timestamp(self) -> None:
        assert parse_date(pd.Timestamp("2024-02-29 09:00")).iso == date(2024, 2, 29)

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("2024-01-02", date(2024, 1, 2)),
            ("2024-01-02T08:00:00Z", date(2024, 1, 2)),
            ("01/02/2024", date(2024, 1, 2)),
            ("13/01/2024", date(2024, 1, 13)),
            ("02-Jan-2024", date(2024, 1, 2)),
            ("2 January 2024", date(2024, 1, 2)),
        ],
    )
    def test_text_formats(self, text: str, expected: date) -> None:
        assert parse_date(text).iso == expected

    def test_unparseable_text_groups_by_normalized_text(self) -> None:
        info = parse_date("  Opening  Day ")
        assert info.iso is None
        assert info.key == "opening day"
        assert info.display == "Opening  Day"

    def test_same_day_gives_same_key_across_representations(self) -> None:
        keys = {
            parse_date(45293).key,
            parse_date(date(2024, 1, 2)).key,
            parse_date(datetime(2024, 1, 2, 15, 0)).key,
            parse_date("2024-01-02").key,
            parse_date("02 Jan 2024").key,
        }
        assert keys == {"2024-01-02"}


def test_format_display_date() -> None:
    assert format_display_date(date(2024, 1, 2)) == "02 Jan 2024"


def test_add_days_crosses_month_and_year() -> None:
    assert add_days(date(2023, 12, 29), 6) == date(2024, 1, 4)
