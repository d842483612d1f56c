"""Row-limit injection for unbounded reads."""

from __future__ import annotations

from sqlglot import exp

from nurserydb.diagnostics import Diagnostic, codes

DEFAULT_LIMIT = 100


def inject_limit(
    statement: exp.Expression,
    *,
    limit: int = DEFAULT_LIMIT,
) -> tuple[exp.Expression, Diagnostic | None]:
    """Cap an unbounded SELECT at ``limit`` rows.

    Left alone: non-SELECTs, statements that already carry LIMIT/TOP, and
    aggregations with GROUP BY.
    """
    if not isinstance(statement, exp.Select):
        return statement, None
    if statement.args.get("limit") is not None or statement.find(exp.Limit) is not None:
        return statement, None
    if statement.find(exp.Group) is not None:
        return statement, None

    return statement.limit(limit), Diagnostic.info(
        codes.LIMIT_INJECTED, f"row limit {limit} added to unbounded SELECT"
    )
