"""Statement builder: table + column map (+ predicate) → SQL statement.

Each builder returns a `Statement` carrying two renderings of the same
command:

- ``text``: values inlined through `escape` (the textual contract, used
  for logging and for drivers without bind parameters)
- ``sql`` + ``params``: placeholders with the values bound separately,
  which is what the gateway executes
"""

from __future__ import annotations

import enum
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from nurserydb.errors import EmptyPayload, ValidationError
from nurserydb.sql.dialects import ACCESS, Dialect
from nurserydb.sql.escape import escape, quote_identifier


class StatementKind(enum.Enum):
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class Statement:
    kind: StatementKind
    table: str
    text: str
    sql: str
    params: tuple[object, ...] = ()
    dialect: Dialect = field(default=ACCESS, repr=False)

    @property
    def is_read(self) -> bool:
        return self.kind == StatementKind.SELECT

    def __str__(self) -> str:
        return self.text


@dataclass
class _Clause:
    text: list[str] = field(default_factory=list)
    sql: list[str] = field(default_factory=list)
    params: list[object] = field(default_factory=list)


def _require_mapping(value: object, name: str) -> Mapping[str, object]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValidationError.for_field(name, f"{name} must be an object of column/value pairs")
    return value


def _predicate_clause(predicate: Mapping[str, object], dialect: Dialect) -> _Clause:
    clause = _Clause()
    for column, value in predicate.items():
        col = quote_identifier(column, dialect)
        if value is None:
            clause.text.append(f"{col} IS NULL")
            clause.sql.append(f"{col} IS NULL")
        else:
            clause.text.append(f"{col} = {escape(value, dialect)}")
            clause.sql.append(f"{col} = {dialect.placeholder}")
            clause.params.append(value)
    return clause


def _where(
    predicate: Mapping[str, object] | None,
    dialect: Dialect,
    *,
    operation: str,
    allow_all: bool,
) -> _Clause:
    predicate = _require_mapping(predicate, "where")
    if not predicate:
        if not allow_all:
            raise EmptyPayload(
                f"{operation} requires a WHERE predicate; pass allow_all=True to "
                f"affect every row",
                [{"field": "where", "message": "predicate is empty"}],
            )
        return _Clause(text=["1=1"], sql=["1=1"])
    return _predicate_clause(predicate, dialect)


def build_where_clause(
    predicate: Mapping[str, object] | None, *, dialect: Dialect = ACCESS
) -> str:
    """WHERE fragment (without the keyword); ``1=1`` for an empty predicate."""
    clause = _where(predicate, dialect, operation="WHERE", allow_all=True)
    return " AND ".join(clause.text)


def build_insert(
    table: str, data: Mapping[str, object], *, dialect: Dialect = ACCESS
) -> Statement:
    data = _require_mapping(data, "data")
    if not data:
        raise EmptyPayload(
            "INSERT requires at least one column",
            [{"field": "data", "message": "no columns supplied"}],
        )

    tbl = quote_identifier(table, dialect)
    columns = ", ".join(quote_identifier(c, dialect) for c in data)
    values = ", ".join(escape(v, dialect) for v in data.values())
    placeholders = ", ".join(dialect.placeholder for _ in data)

    return Statement(
        kind=StatementKind.INSERT,
        table=table,
        text=f"INSERT INTO {tbl} ({columns}) VALUES ({values})",
        sql=f"INSERT INTO {tbl} ({columns}) VALUES ({placeholders})",
        params=tuple(data.values()),
        dialect=dialect,
    )


def build_update(
    table: str,
    data: Mapping[str, object],
    predicate: Mapping[str, object] | None,
    *,
    allow_all: bool = False,
    dialect: Dialect = ACCESS,
) -> Statement:
    data = _require_mapping(data, "data")
    if not data:
        raise EmptyPayload(
            "UPDATE requires at least one column to set",
            [{"field": "data", "message": "no columns supplied"}],
        )

    tbl = quote_identifier(table, dialect)
    sets = _Clause()
    for column, value in data.items():
        col = quote_identifier(column, dialect)
        sets.text.append(f"{col} = {escape(value, dialect)}")
        sets.sql.append(f"{col} = {dialect.placeholder}")
        sets.params.append(value)

    where = _where(predicate, dialect, operation="UPDATE", allow_all=allow_all)

    return Statement(
        kind=StatementKind.UPDATE,
        table=table,
        text=f"UPDATE {tbl} SET {', '.join(sets.text)} WHERE {' AND '.join(where.text)}",
        sql=f"UPDATE {tbl} SET {', '.join(sets.sql)} WHERE {' AND '.join(where.sql)}",
        params=tuple(sets.params + where.params),
        dialect=dialect,
    )


def build_delete(
    table: str,
    predicate: Mapping[str, object] | None,
    *,
    allow_all: bool = False,
    dialect: Dialect = ACCESS,
) -> Statement:
    tbl = quote_identifier(table, dialect)
    where = _where(predicate, dialect, operation="DELETE", allow_all=allow_all)

    return Statement(
        kind=StatementKind.DELETE,
        table=table,
        text=f"DELETE FROM {tbl} WHERE {' AND '.join(where.text)}",
        sql=f"DELETE FROM {tbl} WHERE {' AND '.join(where.sql)}",
        params=tuple(where.params),
        dialect=dialect,
    )


def _order_by(order_by: str | Sequence[str] | None, dialect: Dialect) -> str:
    if not order_by:
        return ""
    if isinstance(order_by, str):
        order_by = [order_by]
    parts = []
    for item in order_by:
        # "-Col" sorts descending.
        if item.startswith("-"):
            parts.append(f"{quote_identifier(item[1:], dialect)} DESC")
        else:
            parts.append(quote_identifier(item, dialect))
    return " ORDER BY " + ", ".join(parts)


def build_select(
    table: str,
    predicate: Mapping[str, object] | None = None,
    *,
    columns: Sequence[str] | None = None,
    limit: int | None = None,
    order_by: str | Sequence[str] | None = None,
    dialect: Dialect = ACCESS,
) -> Statement:
    """SELECT with an optional equality predicate, row limit and ordering."""
    if limit is not None and (isinstance(limit, bool) or not isinstance(limit, int) or limit < 1):
        raise ValidationError.for_field("limit", "limit must be a positive integer")

    tbl = quote_identifier(table, dialect)
    cols = ", ".join(quote_identifier(c, dialect) for c in columns) if columns else "*"
    top = f"TOP {limit} " if limit is not None and dialect.uses_top else ""
    tail = _order_by(order_by, dialect)
    if limit is not None and not dialect.uses_top:
        tail += f" LIMIT {limit}"

    predicate = _require_mapping(predicate, "where")
    if predicate:
        where = _predicate_clause(predicate, dialect)
        text_where = " WHERE " + " AND ".join(where.text)
        sql_where = " WHERE " + " AND ".join(where.sql)
        params = tuple(where.params)
    else:
        text_where = sql_where = ""
        params = ()

    head = f"SELECT {top}{cols} FROM {tbl}"
    return Statement(
        kind=StatementKind.SELECT,
        table=table,
        text=f"{head}{text_where}{tail}",
        sql=f"{head}{sql_where}{tail}",
        params=params,
        dialect=dialect,
    )
