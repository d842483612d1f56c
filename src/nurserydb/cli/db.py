"""The `db` command group: guarded table access through the gateway.

Reads (tables, schema, select, query) need a staff role; writes (insert,
update, delete, batch) need a manager. Every statement is recorded in the
query log.
"""

from __future__ import annotations

import asyncio
import json
import time
from collections.abc import Awaitable, Callable

import click

from nurserydb.adapters._base import ConnectionConfig
from nurserydb.auth import Identity
from nurserydb.cli._shared import (
    DB_ENVVAR,
    TOKEN_ENVVAR,
    cli_settings,
    emit,
    fail,
    identity_for,
    parse_pairs,
    resolve_db,
)
from nurserydb.config import Settings
from nurserydb.errors import AuthorizationDenied, NotFound, NurseryError, ValidationError
from nurserydb.gateway import Gateway
from nurserydb.policy import check_read_only
from nurserydb.querylog import cleanup_old_logs, log_statement
from nurserydb.roles import ADMIN_ONLY, STAFF_ONLY, Guard
from nurserydb.sql.builder import Statement, build_select
from nurserydb.validation import (
    BatchRequest,
    DeleteRequest,
    InsertRequest,
    UpdateRequest,
    validate_payload,
)

Work = Callable[[Gateway, Identity], Awaitable[dict]]


def _record(
    config: ConnectionConfig,
    identity: Identity | None,
    statement: Statement | str,
    **fields: object,
) -> None:
    if isinstance(statement, Statement):
        fields.setdefault("table", statement.table)
        fields.setdefault("kind", statement.kind.value)
        sql = statement.text
    else:
        sql = statement
    log_statement(
        sql=sql,
        db=config.name,
        subject=identity.subject if identity else None,
        roles=list(identity.roles) if identity else None,
        **fields,
    )


async def _with_gateway(
    config: ConnectionConfig, settings: Settings, identity: Identity, work: Work
) -> dict:
    async with Gateway(config, settings=settings) as gw:
        return await work(gw, identity)


def _run(db: str | None, token: str | None, guard: Guard, action: str, work: Work) -> None:
    """Authenticate, authorize, then run ``work`` against a scoped gateway."""
    cleanup_old_logs()
    settings = cli_settings()
    config = resolve_db(db, settings)

    identity: Identity | None = None
    try:
        identity = identity_for(token, settings)
        guard(identity)
        document = asyncio.run(_with_gateway(config, settings, identity, work))
    except AuthorizationDenied as e:
        _record(config, identity, action, denied=True, error=e.message)
        fail(e, settings)
    except NurseryError as e:
        fail(e, settings)

    emit(document)


def _db_options(fn: Callable) -> Callable:
    fn = click.option(
        "--token", envvar=TOKEN_ENVVAR, default=None, help=f"Bearer token (or {TOKEN_ENVVAR})."
    )(fn)
    fn = click.option(
        "--db", envvar=DB_ENVVAR, default=None, help="Connection name or type:key=val."
    )(fn)
    return fn


@click.group("db")
def db() -> None:
    """Read and write nursery tables with role checks."""


@db.command("tables")
@_db_options
def tables(db: str | None, token: str | None) -> None:
    """List user tables."""

    async def work(gw: Gateway, identity: Identity) -> dict:
        names = await gw.table_names()
        return {"tables": names, "count": len(names)}

    _run(db, token, STAFF_ONLY, "tables", work)


@db.command("schema")
@click.argument("table")
@_db_options
def schema(table: str, db: str | None, token: str | None) -> None:
    """Show the columns of TABLE."""

    async def work(gw: Gateway, identity: Identity) -> dict:
        columns = await gw.table_schema(table)
        if not columns:
            raise NotFound(f"Table '{table}' not found")
        return {"table": table, "schema": [c.to_dict() for c in columns]}

    _run(db, token, STAFF_ONLY, f"schema {table}", work)


@db.command("select")
@click.argument("table")
@click.option("--where", "where", multiple=True, help="column=value filter (repeatable).")
@click.option("--column", "columns", multiple=True, help="Column to return (repeatable).")
@click.option("--order-by", "order_by", multiple=True, help="Sort column; prefix - for DESC.")
@click.option("--limit", type=int, default=100, help="Maximum rows (0 for no limit).")
@_db_options
def select(
    table: str,
    where: tuple[str, ...],
    columns: tuple[str, ...],
    order_by: tuple[str, ...],
    limit: int,
    db: str | None,
    token: str | None,
) -> None:
    """Read rows from TABLE."""
    predicate = parse_pairs(where, param_hint="'--where'")

    async def work(gw: Gateway, identity: Identity) -> dict:
        stmt = build_select(
            table,
            predicate,
            columns=list(columns) or None,
            limit=limit or None,
            order_by=list(order_by) or None,
            dialect=await gw.dialect(),
        )
        t0 = time.monotonic()
        rows = await gw.query(stmt)
        _record(
            gw.config, identity, stmt,
            row_count=len(rows), duration_ms=(time.monotonic() - t0) * 1000,
        )
        return {"table": table, "data": rows, "count": len(rows)}

    _run(db, token, STAFF_ONLY, f"select {table}", work)


async def _write(gw: Gateway, identity: Identity, stmt: Statement) -> None:
    t0 = time.monotonic()
    try:
        await gw.execute(stmt)
    except NurseryError as e:
        _record(gw.config, identity, stmt, error=e.message)
        raise
    _record(gw.config, identity, stmt, duration_ms=(time.monotonic() - t0) * 1000)


@db.command("insert")
@click.argument("table")
@click.argument("values", nargs=-1)
@_db_options
def insert(table: str, values: tuple[str, ...], db: str | None, token: str | None) -> None:
    """Insert one row: TABLE column=value ..."""
    data = parse_pairs(values, param_hint="'VALUES'")

    async def work(gw: Gateway, identity: Identity) -> dict:
        req = validate_payload(InsertRequest, {"table": table, "data": data})
        await _write(gw, identity, req.statement(await gw.dialect()))
        return {"message": "Data inserted successfully", "table": table}

    _run(db, token, ADMIN_ONLY, f"insert {table}", work)


@db.command("update")
@click.argument("table")
@click.argument("values", nargs=-1)
@click.option("--where", "where", multiple=True, help="column=value filter (repeatable).")
@click.option("--all", "all_rows", is_flag=True, help="Update every row (no filter).")
@_db_options
def update(
    table: str,
    values: tuple[str, ...],
    where: tuple[str, ...],
    all_rows: bool,
    db: str | None,
    token: str | None,
) -> None:
    """Update rows: TABLE column=value ... --where column=value"""
    data = parse_pairs(values, param_hint="'VALUES'")
    predicate = parse_pairs(where, param_hint="'--where'")

    async def work(gw: Gateway, identity: Identity) -> dict:
        req = validate_payload(
            UpdateRequest, {"table": table, "data": data, "where": predicate, "all": all_rows}
        )
        await _write(gw, identity, req.statement(await gw.dialect()))
        return {"message": "Data updated successfully", "table": table}

    _run(db, token, ADMIN_ONLY, f"update {table}", work)


@db.command("delete")
@click.argument("table")
@click.option("--where", "where", multiple=True, help="column=value filter (repeatable).")
@click.option("--all", "all_rows", is_flag=True, help="Delete every row (no filter).")
@_db_options
def delete(
    table: str, where: tuple[str, ...], all_rows: bool, db: str | None, token: str | None
) -> None:
    """Delete rows: TABLE --where column=value"""
    predicate = parse_pairs(where, param_hint="'--where'")

    async def work(gw: Gateway, identity: Identity) -> dict:
        req = validate_payload(
            DeleteRequest, {"table": table, "where": predicate, "all": all_rows}
        )
        await _write(gw, identity, req.statement(await gw.dialect()))
        return {"message": "Data deleted successfully", "table": table}

    _run(db, token, ADMIN_ONLY, f"delete {table}", work)


@db.command("query")
@click.argument("sql")
@click.option("--limit", type=int, default=100, help="Row cap for unbounded SELECTs (0 disables).")
@_db_options
def query(sql: str, limit: int, db: str | None, token: str | None) -> None:
    """Run a read-only SQL query (single SELECT only)."""

    async def work(gw: Gateway, identity: Identity) -> dict:
        policy = check_read_only(sql, dialect=await gw.dialect(), limit=limit or None)
        codes = [str(d.code) for d in policy.diagnostics]
        if policy.blocked:
            first = policy.first_error
            _record(gw.config, identity, sql, denied=True, diagnostics=codes)
            raise ValidationError(
                first.message if first else "query blocked",
                [{"field": "sql", "message": d.message} for d in policy.diagnostics],
            )

        rows = await gw.query(policy.effective_sql)
        _record(gw.config, identity, policy.effective_sql, kind="select",
                row_count=len(rows), diagnostics=codes)
        return {
            "effective_sql": policy.effective_sql,
            "tables": policy.tables,
            "diagnostics": [d.to_dict() for d in policy.diagnostics],
            "data": rows,
            "count": len(rows),
        }

    _run(db, token, STAFF_ONLY, "query", work)


@db.command("batch")
@click.argument("source", type=click.File("r"))
@_db_options
def batch(source, db: str | None, token: str | None) -> None:
    """Apply a JSON list of insert/update/delete operations atomically.

    \b
    Example file:
      [{"op": "insert", "table": "Orders", "data": {"ID": 1, "Status": "pending"}},
       {"op": "update", "table": "InventoryItems",
        "data": {"QuantityOnHand": 4}, "where": {"ID": 7}}]
    """
    try:
        payload = json.load(source)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"invalid JSON: {e}", param_hint="'SOURCE'") from e

    async def work(gw: Gateway, identity: Identity) -> dict:
        req = validate_payload(BatchRequest, {"operations": payload})
        dialect = await gw.dialect()
        statements = [op.statement(dialect) for op in req.operations]
        async with gw.transaction() as tx:
            for stmt in statements:
                await tx.execute(stmt)
        for stmt in statements:
            _record(gw.config, identity, stmt)
        return {
            "message": "Batch applied successfully",
            "applied": len(statements),
            "tables": sorted({s.table for s in statements}),
        }

    _run(db, token, ADMIN_ONLY, "batch", work)
