"""Microsoft Access adapter — ODBC via pyodbc (Windows, Access Database Engine).

pyodbc calls block, so each one runs in a worker thread. The gateway lock
keeps them sequential on the single connection.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import pyodbc

from nurserydb.adapters._base import ColumnInfo, ConnectionConfig, DatabaseType, Row
from nurserydb.errors import DataStoreError
from nurserydb.sql.dialects import ACCESS, Dialect

DRIVER = "{Microsoft Access Driver (*.mdb, *.accdb)}"

# Connection params copied into the ODBC string as-is (param key → ODBC key).
_CREDENTIAL_KEYS = {"uid": "UID", "user": "UID", "pwd": "PWD", "password": "PWD"}


def _credentials(params: dict[str, str]) -> str:
    parts = []
    for key, value in params.items():
        odbc_key = _CREDENTIAL_KEYS.get(key.lower())
        if odbc_key and value:
            parts.append(f"{odbc_key}={value};")
    return "".join(parts)


def connection_string(params: dict[str, str]) -> str:
    """Build the ODBC connection string from ``path=`` or a raw ``dsn=``.

    ``pwd``/``password`` (database password) and ``uid``/``user`` params are
    appended in either case.
    """
    credentials = _credentials(params)
    if params.get("dsn"):
        dsn = params["dsn"]
        if credentials and not dsn.endswith(";"):
            dsn += ";"
        return dsn + credentials
    path = params.get("path")
    if not path:
        raise DataStoreError("Access requires 'path' (or 'dsn') in connection params")
    return f"Driver={params.get('driver', DRIVER)};DBQ={path};" + credentials


class AccessAdapter:
    """Access adapter; statements autocommit unless inside begin()/commit()."""

    def __init__(self) -> None:
        self._conn: pyodbc.Connection | None = None

    async def connect(self, config: ConnectionConfig) -> None:
        conn_str = connection_string(config.params)
        try:
            self._conn = await asyncio.to_thread(pyodbc.connect, conn_str, autocommit=True)
        except pyodbc.Error as e:
            raise DataStoreError(str(e)) from e

    async def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _ensure_conn(self) -> pyodbc.Connection:
        if self._conn is None:
            raise DataStoreError("Not connected. Call connect() first.")
        return self._conn

    def _fetch_sync(self, sql: str, params: Sequence[object]) -> list[Row]:
        cur = self._ensure_conn().cursor()
        try:
            cur.execute(sql, *params)
            if cur.description is None:
                return []
            columns = [desc[0] for desc in cur.description]
            return [dict(zip(columns, row, strict=True)) for row in cur.fetchall()]
        except pyodbc.Error as e:
            raise DataStoreError(str(e), sql=sql) from e
        finally:
            cur.close()

    def _execute_sync(self, sql: str, params: Sequence[object]) -> int:
        cur = self._ensure_conn().cursor()
        try:
            cur.execute(sql, *params)
            return cur.rowcount
        except pyodbc.Error as e:
            raise DataStoreError(str(e), sql=sql) from e
        finally:
            cur.close()

    def _finish_sync(self, commit: bool) -> None:
        conn = self._ensure_conn()
        try:
            if commit:
                conn.commit()
            else:
                conn.rollback()
        except pyodbc.Error as e:
            raise DataStoreError(str(e)) from e
        finally:
            conn.autocommit = True

    def _catalog_sync(self, table: str | None) -> list:
        cur = self._ensure_conn().cursor()
        try:
            if table is None:
                return cur.tables(tableType="TABLE").fetchall()
            return cur.columns(table=table).fetchall()
        except pyodbc.Error as e:
            raise DataStoreError(str(e)) from e
        finally:
            cur.close()

    async def fetch(self, sql: str, params: Sequence[object] = ()) -> list[Row]:
        return await asyncio.to_thread(self._fetch_sync, sql, params)

    async def execute(self, sql: str, params: Sequence[object] = ()) -> int:
        return await asyncio.to_thread(self._execute_sync, sql, params)

    async def begin(self) -> None:
        self._ensure_conn().autocommit = False

    async def commit(self) -> None:
        await asyncio.to_thread(self._finish_sync, True)

    async def rollback(self) -> None:
        await asyncio.to_thread(self._finish_sync, False)

    async def table_names(self) -> list[str]:
        rows = await asyncio.to_thread(self._catalog_sync, None)
        # MSys* are Access system tables.
        return [r.table_name for r in rows if not r.table_name.startswith("MSys")]

    async def table_schema(self, table: str) -> list[ColumnInfo]:
        rows = await asyncio.to_thread(self._catalog_sync, table)
        return [
            ColumnInfo(
                name=r.column_name,
                data_type=r.type_name,
                is_nullable=bool(r.nullable),
                ordinal=r.ordinal_position,
            )
            for r in rows
        ]

    def db_type(self) -> DatabaseType:
        return DatabaseType.ACCESS

    def dialect(self) -> Dialect:
        return ACCESS
