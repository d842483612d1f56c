"""SQL statement building: escaping, identifier quoting, dialects."""

from nurserydb.sql.builder import (
    Statement,
    StatementKind,
    build_delete,
    build_insert,
    build_select,
    build_update,
    build_where_clause,
)
from nurserydb.sql.dialects import ACCESS, DUCKDB, Dialect
from nurserydb.sql.escape import escape, quote_identifier, unescape

__all__ = [
    "ACCESS",
    "DUCKDB",
    "Dialect",
    "Statement",
    "StatementKind",
    "build_delete",
    "build_insert",
    "build_select",
    "build_update",
    "build_where_clause",
    "escape",
    "quote_identifier",
    "unescape",
]
