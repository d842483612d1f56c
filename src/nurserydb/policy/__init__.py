"""Read-only policy for ad-hoc SQL: parse, classify, guard, cap."""

from __future__ import annotations

import sqlglot
from sqlglot import exp

from nurserydb.diagnostics import Diagnostic, DiagnosticResult, codes
from nurserydb.policy._types import StatementType
from nurserydb.policy.classify import classify
from nurserydb.policy.enrich import DEFAULT_LIMIT, inject_limit
from nurserydb.policy.safety import check_constant_condition, check_multiple_statements
from nurserydb.sql.dialects import ACCESS, Dialect

_BLOCKED = {
    StatementType.DML: (codes.WRITE_BLOCKED, "write operation blocked"),
    StatementType.DDL: (codes.DDL_BLOCKED, "DDL operation blocked"),
    StatementType.ADMIN: (codes.ADMIN_BLOCKED, "administrative statement blocked"),
    StatementType.UNKNOWN: (codes.ADMIN_BLOCKED, "unrecognised statement blocked"),
}


def _tables(statement: exp.Expression) -> list[str]:
    return sorted({t.name for t in statement.find_all(exp.Table) if t.name})


def check_read_only(
    sql: str,
    *,
    dialect: Dialect = ACCESS,
    limit: int | None = DEFAULT_LIMIT,
) -> DiagnosticResult:
    """Gate ad-hoc SQL so that only a single SELECT reaches the store.

    Steps: multiple-statement check, parse, classify, block anything that
    is not a read, warn on constant conditions, cap unbounded reads.
    """
    sql = sql.strip()
    diagnostics: list[Diagnostic] = []

    multi = check_multiple_statements(sql, dialect=dialect.sqlglot_dialect)
    if multi is not None:
        return DiagnosticResult(
            original_sql=sql, healed_sql=None, diagnostics=[multi], blocked=True
        )

    try:
        statement = sqlglot.parse_one(sql, dialect=dialect.sqlglot_dialect)
    except sqlglot.errors.ParseError as e:
        return DiagnosticResult(
            original_sql=sql,
            healed_sql=None,
            diagnostics=[Diagnostic.error(codes.SYNTAX_ERROR, f"SQL syntax error: {e}")],
            blocked=True,
        )

    stmt_type = classify(statement)
    if stmt_type in _BLOCKED:
        code, message = _BLOCKED[stmt_type]
        diagnostics.append(
            Diagnostic.error(code, message).note("only SELECT queries are allowed here")
        )

    constant = check_constant_condition(statement)
    if constant is not None:
        diagnostics.append(constant)

    healed_sql = None
    blocked = any(d.is_blocking for d in diagnostics)
    if not blocked and limit is not None:
        statement, limit_diag = inject_limit(statement, limit=limit)
        if limit_diag is not None:
            diagnostics.append(limit_diag)
            healed_sql = statement.sql(dialect=dialect.sqlglot_dialect)

    return DiagnosticResult(
        original_sql=sql,
        healed_sql=healed_sql,
        diagnostics=diagnostics,
        blocked=blocked,
        tables=_tables(statement),
        classification=stmt_type.value,
    )
