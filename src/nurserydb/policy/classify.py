"""Classify parsed SQL as READ, DML, DDL or ADMIN."""

from __future__ import annotations

from sqlglot import exp

from nurserydb.policy._types import StatementType

_READ_TYPES = (exp.Select, exp.Union, exp.Intersect, exp.Except)
_DML_TYPES = (exp.Insert, exp.Update, exp.Delete, exp.Merge)
_DDL_TYPES = (exp.Create, exp.Drop, exp.Alter, exp.TruncateTable)
_ADMIN_TYPES = (exp.Grant, exp.Command)


def classify(statement: exp.Expression) -> StatementType:
    """Classify a parsed statement.

    Only a positively identified read is READ. SELECT ... INTO creates a
    table in Access, so it counts as DDL; a CTE wrapping a write counts as DML.
    """
    if isinstance(statement, _ADMIN_TYPES):
        return StatementType.ADMIN
    if isinstance(statement, _READ_TYPES):
        if any(isinstance(cte.this, _DML_TYPES) for cte in statement.find_all(exp.CTE)):
            return StatementType.DML
        if isinstance(statement, exp.Select) and statement.find(exp.Into) is not None:
            return StatementType.DDL
        return StatementType.READ
    if isinstance(statement, _DML_TYPES):
        return StatementType.DML
    if isinstance(statement, _DDL_TYPES):
        return StatementType.DDL
    return StatementType.UNKNOWN
