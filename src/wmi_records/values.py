"""Value rendering for WQL literals, object paths, and WMI dates.

WMI exchanges dates as DMTF text such as ``20240305143000.000000+***``.
Only the calendar fields are significant; the fraction and UTC offset
are written as fixed placeholders and ignored when read back.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from wmi_records.errors import InvalidKeyError, TranslationError

# Fraction and UTC offset placeholders written after the calendar fields
WMI_DATE_SUFFIX = ".000000+***"

_WMI_DATE_RE = re.compile(r"\A(\d{4})(\d{2})(\d{2})(\d{2})(\d{2})(\d{2})\.(\d{4})")

NULL = "NULL"
TRUE = "TRUE"
FALSE = "FALSE"


def to_wmi_date(value: Any) -> Any:
    """Encode a date or datetime as WMI date text; pass other values through.

    Every field is zero-padded, years below 1000 included.
    """
    if isinstance(value, datetime):
        hour, minute, second = value.hour, value.minute, value.second
    elif isinstance(value, date):
        hour = minute = second = 0
    else:
        return value
    return (
        f"{value.year:04d}{value.month:02d}{value.day:02d}"
        f"{hour:02d}{minute:02d}{second:02d}{WMI_DATE_SUFFIX}"
    )


def from_wmi_date(value: Any) -> Any:
    """Decode WMI date text into a datetime; pass other values through.

    Only strings starting with fourteen date-time digits, a dot and four
    fraction digits are decoded. Anything after that is ignored.
    """
    if not isinstance(value, str):
        return value
    match = _WMI_DATE_RE.match(value)
    if match is None:
        return value
    year, month, day, hour, minute, second = (int(g) for g in match.groups()[:6])
    try:
        return datetime(year, month, day, hour, minute, second)
    except ValueError:
        # Digits that are not a real calendar value (e.g. month 13)
        return value


def is_wmi_date(value: Any) -> bool:
    return isinstance(value, str) and _WMI_DATE_RE.match(value) is not None


def _render_number(value: int | float | Decimal) -> str:
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise TranslationError(f"Cannot render non-finite number {value}")
        return format(value, "f")
    if isinstance(value, float) and not math.isfinite(value):
        raise TranslationError(f"Cannot render non-finite number {value}")
    return str(value)


def quote_value(value: Any) -> str:
    """Render a value as a WQL literal.

    Strings are single-quoted with embedded quotes doubled, numbers are
    bare, dates use the WMI date encoding. Types outside that set raise
    TranslationError.
    """
    if value is None:
        return NULL
    if isinstance(value, bool):
        return TRUE if value else FALSE
    if isinstance(value, (int, float, Decimal)):
        return _render_number(value)
    if isinstance(value, str):
        return "'" + value.replace("'", "''") + "'"
    if isinstance(value, (datetime, date)):
        return "'" + to_wmi_date(value) + "'"
    raise TranslationError(
        f"Cannot render value of type {type(value).__name__} as a query literal"
    )


def quote_key(value: Any) -> str:
    """Render one key term of an object path.

    Object paths double-quote strings with backslash escapes, unlike
    WQL literals.
    """
    if value is None or value == "":
        raise InvalidKeyError("Key values must not be empty")
    if isinstance(value, bool):
        return TRUE if value else FALSE
    if isinstance(value, (int, float, Decimal)):
        return _render_number(value)
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    if isinstance(value, (datetime, date)):
        return f'"{to_wmi_date(value)}"'
    raise TranslationError(
        f"Cannot render key of type {type(value).__name__} in an object path"
    )
