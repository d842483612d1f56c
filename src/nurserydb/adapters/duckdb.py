"""DuckDB adapter — in-process store for local development and tests.

Driver calls run in a worker thread so a long query leaves the event loop free.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import duckdb as _duckdb

from nurserydb.adapters._base import ColumnInfo, ConnectionConfig, DatabaseType, Row
from nurserydb.errors import DataStoreError
from nurserydb.sql.dialects import DUCKDB, Dialect


class DuckDBAdapter:
    """DuckDB adapter — no server needed; ``path=:memory:`` by default."""

    def __init__(self) -> None:
        self._conn: _duckdb.DuckDBPyConnection | None = None

    async def connect(self, config: ConnectionConfig) -> None:
        path = config.params.get("path", ":memory:")
        try:
            self._conn = await asyncio.to_thread(_duckdb.connect, path)
        except _duckdb.Error as e:
            raise DataStoreError(str(e)) from e

    async def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _ensure_conn(self) -> _duckdb.DuckDBPyConnection:
        if self._conn is None:
            raise DataStoreError("Not connected. Call connect() first.")
        return self._conn

    def _run(self, sql: str, params: Sequence[object]) -> _duckdb.DuckDBPyConnection:
        conn = self._ensure_conn()
        try:
            return conn.execute(sql, list(params)) if params else conn.execute(sql)
        except _duckdb.Error as e:
            raise DataStoreError(str(e), sql=sql) from e

    def _fetch_sync(self, sql: str, params: Sequence[object]) -> list[Row]:
        result = self._run(sql, params)
        if not result.description:
            return []
        columns = [desc[0] for desc in result.description]
        return [dict(zip(columns, row, strict=True)) for row in result.fetchall()]

    def _execute_sync(self, sql: str, params: Sequence[object]) -> int:
        result = self._run(sql, params)
        # DML reports the affected row count as a single-row result.
        if result.description:
            row = result.fetchone()
            if row is not None and isinstance(row[0], int):
                return row[0]
        return -1

    async def fetch(self, sql: str, params: Sequence[object] = ()) -> list[Row]:
        return await asyncio.to_thread(self._fetch_sync, sql, params)

    async def execute(self, sql: str, params: Sequence[object] = ()) -> int:
        return await asyncio.to_thread(self._execute_sync, sql, params)

    async def begin(self) -> None:
        await asyncio.to_thread(self._run, "BEGIN TRANSACTION", ())

    async def commit(self) -> None:
        await asyncio.to_thread(self._run, "COMMIT", ())

    async def rollback(self) -> None:
        await asyncio.to_thread(self._run, "ROLLBACK", ())

    async def table_names(self) -> list[str]:
        rows = await self.fetch(
            "SELECT table_name FROM information_schema.tables "
            "WHERE table_schema NOT IN ('pg_catalog', 'information_schema') "
            "AND table_type = 'BASE TABLE' "
            "ORDER BY table_name"
        )
        return [r["table_name"] for r in rows]

    async def table_schema(self, table: str) -> list[ColumnInfo]:
        rows = await self.fetch(
            "SELECT column_name, data_type, is_nullable, ordinal_position "
            "FROM information_schema.columns "
            "WHERE table_name = ? "
            "ORDER BY ordinal_position",
            [table],
        )
        return [
            ColumnInfo(
                name=r["column_name"],
                data_type=r["data_type"],
                is_nullable=(r["is_nullable"] == "YES"),
                ordinal=r["ordinal_position"],
            )
            for r in rows
        ]

    def db_type(self) -> DatabaseType:
        return DatabaseType.DUCKDB

    def dialect(self) -> Dialect:
        return DUCKDB
