"""Value escaping and identifier quoting.

`escape` is the only path by which a value enters statement text.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from decimal import Decimal

from nurserydb.errors import ValidationError
from nurserydb.sql.dialects import ACCESS, Dialect


def _date_literal(value: date, dialect: Dialect) -> str:
    if isinstance(value, datetime):
        # Neither store keeps a UTC offset.
        if value.utcoffset() is not None:
            raise ValidationError(
                f"cannot store timezone-aware datetime {value.isoformat()}; "
                "convert it to a naive local time first"
            )
        text = value.strftime("%Y-%m-%d %H:%M:%S")
        return f"#{text}#" if dialect.hash_dates else f"TIMESTAMP '{text}'"
    text = value.isoformat()
    return f"#{text}#" if dialect.hash_dates else f"DATE '{text}'"


def escape(value: object, dialect: Dialect = ACCESS) -> str:
    """Render a Python value as a SQL literal.

    None → NULL, bool → TRUE/FALSE, numbers unquoted, dates as date
    literals, everything else single-quoted with quotes doubled.
    """
    if value is None:
        return "NULL"
    # bool before int: True is an int.
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValidationError(f"cannot store non-finite number {value!r}")
        return repr(value)
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValidationError(f"cannot store non-finite number {value}")
        return str(value)
    if isinstance(value, date):
        return _date_literal(value, dialect)
    return "'" + str(value).replace("'", "''") + "'"


def unescape(literal: str) -> str:
    """Inverse of `escape` for quoted string literals."""
    if len(literal) < 2 or literal[0] != "'" or literal[-1] != "'":
        raise ValueError(f"not a quoted string literal: {literal!r}")
    return literal[1:-1].replace("''", "'")


def quote_identifier(name: str, dialect: Dialect = ACCESS) -> str:
    """Quote a table or column name; names containing quote characters are rejected."""
    if not isinstance(name, str) or not name.strip():
        raise ValidationError.for_field("identifier", "identifier must be a non-empty string")
    forbidden = {dialect.quote_open, dialect.quote_close, "\x00"}
    if any(ch in name for ch in forbidden):
        raise ValidationError.for_field(name, f"invalid character in identifier {name!r}")
    return f"{dialect.quote_open}{name}{dialect.quote_close}"
