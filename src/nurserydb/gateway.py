"""Database gateway — one owned connection, statements in, rows out.

The gateway connects lazily on first use and keeps that single connection
until `close()`. Every call holds an asyncio lock around its driver work,
so the connection is the serialization point between concurrent requests.
A transaction holds the lock for its whole span; inside it, use the handle
it yields. Calling back into the gateway from the same task raises
RuntimeError instead of waiting on a lock that task already holds.

Usage::

    async with Gateway(config, settings=settings) as gw:
        rows = await gw.query(build_select("Plants", {"Category": "Herb"}))
        async with gw.transaction() as tx:
            await tx.execute(build_insert("Orders", {...}))
            await tx.execute(build_update("InventoryItems", {...}, {"ID": 7}))
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import AsyncIterator

from nurserydb.adapters._base import (
    ColumnInfo,
    ConnectionConfig,
    DatabaseAdapter,
    Row,
)
from nurserydb.adapters._registry import get_adapter
from nurserydb.config import Settings
from nurserydb.errors import ValidationError
from nurserydb.sql.builder import Statement
from nurserydb.sql.dialects import Dialect

logger = logging.getLogger(__name__)


class Gateway:
    def __init__(
        self,
        config: ConnectionConfig,
        *,
        settings: Settings | None = None,
        adapter: DatabaseAdapter | None = None,
    ) -> None:
        self.config = config
        self.settings = settings or Settings()
        self._adapter = adapter
        self._connected = False
        self._lock = asyncio.Lock()
        self._tx_owner: asyncio.Task | None = None

    async def __aenter__(self) -> Gateway:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def connected(self) -> bool:
        return self._connected

    def _check_reentry(self) -> None:
        if self._tx_owner is not None and asyncio.current_task() is self._tx_owner:
            raise RuntimeError("use the transaction handle inside gateway.transaction()")

    @contextlib.asynccontextmanager
    async def _locked(self) -> AsyncIterator[None]:
        self._check_reentry()
        async with self._lock:
            yield

    async def _ensure_adapter(self) -> DatabaseAdapter:
        if self._connected and self._adapter is not None:
            return self._adapter
        if self._adapter is None:
            self._adapter = get_adapter(self.config.db_type)()
        await self._adapter.connect(self.config)
        self._connected = True
        logger.info("connected to %s (%s)", self.config.name, self.config.db_type.value)
        return self._adapter

    async def dialect(self) -> Dialect:
        async with self._locked():
            adapter = await self._ensure_adapter()
        return adapter.dialect()

    async def close(self) -> None:
        async with self._locked():
            if self._adapter is not None and self._connected:
                await self._adapter.close()
                logger.info("closed connection to %s", self.config.name)
            self._connected = False

    # -- statement execution --------------------------------------------------

    def _log(self, statement: Statement | str) -> None:
        if self.settings.is_production:
            return
        text = statement.text if isinstance(statement, Statement) else statement
        logger.info("SQL: %s", text)

    @staticmethod
    def _check_dialect(adapter: DatabaseAdapter, statement: Statement | str) -> None:
        if not isinstance(statement, Statement):
            return
        target = adapter.dialect()
        if statement.dialect.name != target.name:
            raise ValidationError(
                f"statement built for {statement.dialect.name} "
                f"cannot run on a {target.name} database"
            )

    async def _fetch(self, adapter: DatabaseAdapter, statement: Statement | str) -> list[Row]:
        self._check_dialect(adapter, statement)
        self._log(statement)
        t0 = time.monotonic()
        if isinstance(statement, Statement):
            rows = await adapter.fetch(statement.sql, statement.params)
        else:
            rows = await adapter.fetch(statement)
        logger.debug("%d rows in %.1fms", len(rows), (time.monotonic() - t0) * 1000)
        return rows

    async def _execute(self, adapter: DatabaseAdapter, statement: Statement | str) -> int:
        self._check_dialect(adapter, statement)
        self._log(statement)
        if isinstance(statement, Statement):
            return await adapter.execute(statement.sql, statement.params)
        return await adapter.execute(statement)

    async def query(self, statement: Statement | str) -> list[Row]:
        """Run a statement and return its rows as dicts."""
        async with self._locked():
            adapter = await self._ensure_adapter()
            return await self._fetch(adapter, statement)

    async def execute(self, statement: Statement | str) -> None:
        """Run a statement for its effect. Driver failures raise DataStoreError."""
        async with self._locked():
            adapter = await self._ensure_adapter()
            await self._execute(adapter, statement)

    async def scalar(self, statement: Statement | str) -> object | None:
        """First column of the first row, or None when there are no rows."""
        rows = await self.query(statement)
        if not rows:
            return None
        return next(iter(rows[0].values()), None)

    # -- introspection --------------------------------------------------------

    async def table_names(self) -> list[str]:
        async with self._locked():
            adapter = await self._ensure_adapter()
            return await adapter.table_names()

    async def table_schema(self, table: str) -> list[ColumnInfo]:
        async with self._locked():
            adapter = await self._ensure_adapter()
            return await adapter.table_schema(table)

    async def ping(self) -> bool:
        """True when the store answers a catalog call."""
        self._check_reentry()
        try:
            await self.table_names()
        except Exception:
            logger.warning("connection test failed for %s", self.config.name, exc_info=True)
            return False
        return True

    # -- transactions ---------------------------------------------------------

    @contextlib.asynccontextmanager
    async def transaction(self) -> AsyncIterator[Transaction]:
        """Apply all statements issued on the yielded handle, or none of them."""
        async with self._locked():
            adapter = await self._ensure_adapter()
            await adapter.begin()
            tx = Transaction(self, adapter)
            self._tx_owner = asyncio.current_task()
            try:
                yield tx
            except BaseException:
                logger.warning("rolling back transaction after %d statements", tx.statements)
                await adapter.rollback()
                raise
            else:
                await adapter.commit()
            finally:
                tx.closed = True
                self._tx_owner = None


class Transaction:
    """Statement handle valid inside `Gateway.transaction()` only."""

    def __init__(self, gateway: Gateway, adapter: DatabaseAdapter) -> None:
        self._gateway = gateway
        self._adapter = adapter
        self.statements = 0
        self.closed = False

    def _check_open(self) -> None:
        if self.closed:
            raise RuntimeError("transaction is already finished")

    async def query(self, statement: Statement | str) -> list[Row]:
        self._check_open()
        self.statements += 1
        return await self._gateway._fetch(self._adapter, statement)

    async def execute(self, statement: Statement | str) -> int:
        """Run a write; returns the driver's affected-row count (-1 if unknown)."""
        self._check_open()
        self.statements += 1
        return await self._gateway._execute(self._adapter, statement)

    async def scalar(self, statement: Statement | str) -> object | None:
        rows = await self.query(statement)
        if not rows:
            return None
        return next(iter(rows[0].values()), None)
