"""Database adapters — implementations of the DatabaseAdapter protocol."""

from nurserydb.adapters._base import (
    ColumnInfo,
    ConnectionConfig,
    DatabaseAdapter,
    DatabaseType,
    Row,
)

__all__ = [
    "ColumnInfo",
    "ConnectionConfig",
    "DatabaseAdapter",
    "DatabaseType",
    "Row",
]
