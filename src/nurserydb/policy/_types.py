"""Internal types for the query policy."""

from __future__ import annotations

import enum


class StatementType(enum.Enum):
    READ = "read"
    DML = "dml"
    DDL = "ddl"
    ADMIN = "admin"      # GRANT, EXEC, raw commands
    UNKNOWN = "unknown"  # Anything we can't classify → blocked
