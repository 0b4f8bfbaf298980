"""
Column type system for the spreadsheet.

Cells are stored as text. This module owns the conversions between that
text and the typed value a column declares:

    to_storage(value)                 → text persisted in ``values.value``
    parse(type, text)                 → typed Python value (int/float/bool/str)
    format_display(type, text)        → string shown in the grid
    validate(type, text, options)     → advisory error message or None

Validation is advisory. The value store never rejects a cell because it
does not match its column type; the view composer surfaces the messages.
"""

import json
import math
import re
from datetime import date, datetime
from enum import Enum


class ColumnType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    LINK = "link"
    BOOLEAN = "boolean"
    SELECT = "select"
    LONG_TEXT = "long-text"

    @classmethod
    def values(cls) -> list[str]:
        return [m.value for m in cls]

    @classmethod
    def coerce(cls, raw) -> "ColumnType":
        """Return the member for ``raw`` (member or wire string).

        Raises:
            ValueError: If ``raw`` is not one of the closed set.
        """
        if isinstance(raw, cls):
            return raw
        return cls(str(raw).strip().lower())


_TRUE_STRINGS = frozenset({"true", "yes", "y", "1", "on"})
_FALSE_STRINGS = frozenset({"false", "no", "n", "0", "off"})
_NUMBER_CLEAN_RE = re.compile(r"[,\s]")


def to_storage(value):
    """Coerce any incoming cell value to its stored text form.

    None stays None (NULL). Booleans become "true"/"false". Numbers use
    ``str()``. Lists and dicts are JSON-encoded. Strings are kept as-is.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (list, dict)):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def _parse_number(text):
    cleaned = _NUMBER_CLEAN_RE.sub("", text)
    if not cleaned:
        raise ValueError("empty number")
    try:
        return int(cleaned)
    except ValueError:
        number = float(cleaned)
    if not math.isfinite(number):
        raise ValueError(f"not a finite number: {text!r}")
    return number


def _parse_bool(text):
    lowered = text.strip().lower()
    if lowered in _TRUE_STRINGS:
        return True
    if lowered in _FALSE_STRINGS:
        return False
    raise ValueError(f"not a boolean: {text!r}")


def _parse_date(text):
    stripped = text.strip()
    try:
        return date.fromisoformat(stripped[:10])
    except ValueError:
        return datetime.fromisoformat(stripped).date()


def parse(col_type, text):
    """Return the typed value for stored ``text``.

    Unparseable text is returned unchanged so a bad cell never hides data.
    Dates stay ISO strings; only their format is normalised.
    """
    if text is None:
        return None
    ctype = ColumnType.coerce(col_type)
    try:
        if ctype is ColumnType.NUMBER:
            return _parse_number(text)
        if ctype is ColumnType.BOOLEAN:
            return _parse_bool(text)
        if ctype is ColumnType.DATE:
            return _parse_date(text).isoformat()
    except ValueError:
        return text
    return text


def format_display(col_type, text) -> str:
    """Render stored ``text`` for the grid. None renders as ""."""
    if text is None or text == "":
        return ""
    ctype = ColumnType.coerce(col_type)
    parsed = parse(ctype, text)
    if ctype is ColumnType.BOOLEAN and isinstance(parsed, bool):
        return "Yes" if parsed else "No"
    if ctype is ColumnType.NUMBER and isinstance(parsed, (int, float)):
        if isinstance(parsed, float) and parsed.is_integer():
            return str(int(parsed))
        return str(parsed)
    return str(parsed)


def validate(col_type, text, options=None):
    """Return a human-readable problem with ``text`` for this type, or None.

    Empty cells are always valid.
    """
    if text is None or text == "":
        return None
    ctype = ColumnType.coerce(col_type)

    if ctype is ColumnType.NUMBER:
        try:
            _parse_number(text)
        except ValueError:
            return f"'{text}' is not a number"
    elif ctype is ColumnType.BOOLEAN:
        try:
            _parse_bool(text)
        except ValueError:
            return f"'{text}' is not a yes/no value"
    elif ctype is ColumnType.DATE:
        try:
            _parse_date(text)
        except ValueError:
            return f"'{text}' is not an ISO date (YYYY-MM-DD)"
    elif ctype is ColumnType.LINK:
        if not text.lower().startswith(("http://", "https://")):
            return f"'{text}' is not an http(s) link"
    elif ctype is ColumnType.SELECT:
        if options and text not in options:
            return f"'{text}' is not one of {', '.join(options)}"
    return None
