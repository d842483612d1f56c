"""Safety checks on ad-hoc SQL."""

from __future__ import annotations

import sqlglot
from sqlglot import exp

from nurserydb.diagnostics import Diagnostic, codes


def check_multiple_statements(sql: str, *, dialect: str | None = None) -> Diagnostic | None:
    """Block SQL containing more than one statement (possible injection)."""
    try:
        statements = sqlglot.parse(sql, dialect=dialect)
    except sqlglot.errors.SqlglotError:
        return None

    # Trailing semicolons parse as None.
    statements = [s for s in statements if s is not None]
    if len(statements) <= 1:
        return None

    return (
        Diagnostic.error(codes.MULTIPLE_STATEMENTS, "multiple statements detected")
        .note("only single statements are allowed (possible SQL injection)")
    )


def check_constant_condition(statement: exp.Expression) -> Diagnostic | None:
    """Warn on tautologies such as WHERE 1=1 or WHERE 'a'='a'."""
    where = statement.find(exp.Where)
    if where is None:
        return None

    for node in where.this.find_all(exp.Boolean, exp.EQ):
        if isinstance(node, exp.Boolean) and node.this is True:
            return Diagnostic.warning(
                codes.CONSTANT_CONDITION, f"constant WHERE condition: {node.sql()}"
            ).note("possible SQL injection pattern or accidental tautology")

        if isinstance(node, exp.EQ):
            left, right = node.left, node.right
            if (
                isinstance(left, exp.Literal)
                and isinstance(right, exp.Literal)
                and left.is_string == right.is_string
                and left.this == right.this
            ):
                return Diagnostic.warning(
                    codes.CONSTANT_CONDITION, f"constant WHERE condition: {node.sql()}"
                ).note("possible SQL injection pattern or accidental tautology")
    return None
