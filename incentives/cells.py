"""
incentives/cells.py

Cell normalization for loosely-typed spreadsheet values.

Every raw cell coming out of a worksheet (text, number, date, blank) is
reduced to either a canonical string or a ``DateInfo``. None of the
functions here raise on bad input; anomalies degrade to sentinel values.
"""

from __future__ import annotations

import math
import numbers
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any

UNKNOWN_DATE_KEY = "__unknown__"

# 1900 date system. Serials below 60 sit before the phantom 1900-02-29.
_SERIAL_EPOCH = date(1899, 12, 30)
_SERIAL_EARLY_EPOCH = date(1899, 12, 31)
_SERIAL_LEAP_BUG_DAY = 60
_SERIAL_MAX = 2958465

TEXT_DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%d.%m.%Y",
    "%d-%b-%Y",
    "%d %b %Y",
    "%d-%b-%y",
    "%d %B %Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
    "%m/%d/%Y %H:%M:%S",
    "%d/%m/%Y %H:%M:%S",
    "%d-%m-%Y %H:%M:%S",
)

_QUOTE_TRANSLATION = str.maketrans(
    {
        "‘": "'",
        "’": "'",
        "‚": "'",
        "‛": "'",
        "′": "'",
        "“": '"',
        "”": '"',
        "„": '"',
    }
)
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class DateInfo:
    """
    Grouping token plus optional calendar date for one date cell.
    """

    key: str
    iso: date | None = None
    display: str | None = None

    @property
    def iso_text(self) -> str | None:
        return self.iso.isoformat() if self.iso is not None else None


UNKNOWN_DATE = DateInfo(key=UNKNOWN_DATE_KEY)


def is_blank(value: Any) -> bool:
    """
    Return True when a cell stringifies to nothing.
    """

    return stringify(value) == ""


def stringify(value: Any) -> str:
    """
    Convert any raw cell into trimmed text.
    """

    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, numbers.Real):
        if not math.isfinite(value):
            return ""
        if not isinstance(value, numbers.Integral) and float(value).is_integer():
            return str(int(value))
        return str(value)
    if isinstance(value, datetime):
        # pandas NaT is a datetime subclass that has no isoformat of its own.
        if value != value:
            return ""
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def normalize_quotes(value: str) -> str:
    return value.translate(_QUOTE_TRANSLATION)


def normalize_key(value: Any) -> str:
    """
    Identity key used for every salesperson/customer/department comparison.
    """

    raw = normalize_quotes(stringify(value))
    return _WHITESPACE_RE.sub(" ", raw).strip().lower()


def format_display_date(value: date) -> str:
    """
    Render a calendar date as ``02 Jan 2024``.
    """

    return value.strftime("%d %b %Y")


def add_days(value: date, days: int) -> date:
    return value + timedelta(days=days)


def parse_date(value: Any) -> DateInfo:
    """
    Map any date cell onto a ``DateInfo``.

    Native dates, spreadsheet serial numbers and ISO-like text describing the
    same calendar day all produce the same key. Unparseable text groups by
    its normalized form; blanks group under the unknown sentinel.
    """

    if value is None or (isinstance(value, str) and value.strip() == ""):
        return UNKNOWN_DATE

    if isinstance(value, datetime):
        if value != value:
            return UNKNOWN_DATE
        return _from_calendar_date(_utc_date(value))

    if isinstance(value, date):
        return _from_calendar_date(value)

    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        serial_date = decode_serial(value)
        if serial_date is not None:
            return _from_calendar_date(serial_date)

    text = stringify(value)
    if text == "":
        return UNKNOWN_DATE

    parsed = parse_date_text(text)
    if parsed is not None:
        return _from_calendar_date(parsed)

    return DateInfo(key=normalize_key(text) or UNKNOWN_DATE_KEY, iso=None, display=text)


def decode_serial(value: float) -> date | None:
    """
    Decode a spreadsheet date serial (1900 system) into a calendar date.
    """

    if not math.isfinite(value) or value < 0 or value > _SERIAL_MAX:
        return None
    days = int(math.floor(value))
    if days < _SERIAL_LEAP_BUG_DAY:
        return _SERIAL_EARLY_EPOCH + timedelta(days=days)
    return _SERIAL_EPOCH + timedelta(days=days)


def parse_date_text(text: str) -> date | None:
    """
    Parse free text into a calendar date, or None.
    """

    raw = text.strip()
    if not raw:
        return None

    normalized = raw[:-1] + "+00:00" if raw.endswith("Z") else raw
    try:
        return _utc_date(datetime.fromisoformat(normalized))
    except ValueError:
        pass

    for fmt in TEXT_DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt).date()
        except ValueError:
            continue
    return None


def _utc_date(value: datetime) -> date:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.date()


def _from_calendar_date(value: date) -> DateInfo:
    iso = value.isoformat()
    return DateInfo(key=iso, iso=value, display=format_display_date(value))
