"""Database adapter protocol — the boundary between the gateway and drivers."""

from __future__ import annotations

import enum
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from nurserydb.sql.dialects import Dialect


class DatabaseType(enum.Enum):
    ACCESS = "access"
    DUCKDB = "duckdb"


@dataclass
class ConnectionConfig:
    name: str
    db_type: DatabaseType
    params: dict[str, str] = field(default_factory=dict)


@dataclass
class ColumnInfo:
    name: str
    data_type: str
    is_nullable: bool = True
    ordinal: int | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "type": self.data_type,
            "nullable": self.is_nullable,
            "ordinal": self.ordinal,
        }


Row = dict[str, object]


@runtime_checkable
class DatabaseAdapter(Protocol):
    async def connect(self, config: ConnectionConfig) -> None: ...
    async def close(self) -> None: ...
    async def fetch(self, sql: str, params: Sequence[object] = ()) -> list[Row]: ...
    async def execute(self, sql: str, params: Sequence[object] = ()) -> int: ...
    async def begin(self) -> None: ...
    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
    async def table_names(self) -> list[str]: ...
    async def table_schema(self, table: str) -> list[ColumnInfo]: ...
    def db_type(self) -> DatabaseType: ...
    def dialect(self) -> Dialect: ...
