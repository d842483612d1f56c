"""`nurserydb connect`: named connections kept in ~/.nurserydb/connections.toml."""

from __future__ import annotations

import re

import click

from nurserydb.adapters._base import DatabaseType
from nurserydb.connections import list_connections, remove_connection, save_connection

# Params whose whole value is a secret.
SECRET_KEYS = frozenset({"pwd", "password"})
# Secrets embedded in a raw ODBC string (dsn=...;PWD=x;...).
_INLINE_SECRET_RE = re.compile(r"((?:PWD|Password)=)[^;]+", re.IGNORECASE)

# At least one of these must be given per store.
_LOCATION_KEYS = {DatabaseType.ACCESS: ("path", "dsn")}


def display_param(key: str, value: object) -> str:
    if key.lower() in SECRET_KEYS:
        return f"{key}=****"
    masked = _INLINE_SECRET_RE.sub(r"\1****", str(value))
    return f"{key}={masked}"


def _parse_params(params: tuple[str, ...]) -> dict[str, str]:
    parsed: dict[str, str] = {}
    for item in params:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"Expected key=value, got '{item}'", param_hint="PARAMS")
        parsed[key.strip()] = value
    return parsed


@click.group()
def connect() -> None:
    """Manage named database connections."""


@connect.command("add")
@click.argument("name")
@click.argument("db_type", type=click.Choice([t.value for t in DatabaseType]))
@click.argument("params", nargs=-1)
def connect_add(name: str, db_type: str, params: tuple[str, ...]) -> None:
    """Save NAME as a DB_TYPE connection with key=value PARAMS.

    \b
    Examples:
      nurserydb connect add nursery access path=C:\\data\\NurseryDB1.accdb pwd=secret
      nurserydb connect add local duckdb path=nursery.duckdb
    """
    parsed = _parse_params(params)
    required = _LOCATION_KEYS.get(DatabaseType(db_type), ())
    if required and not any(parsed.get(k) for k in required):
        raise click.BadParameter(
            f"{db_type} needs one of: {', '.join(required)}", param_hint="PARAMS"
        )
    target = save_connection(name, db_type, parsed)
    click.echo(f"Saved '{name}' ({db_type}) to {target}")


@connect.command("list")
def connect_list() -> None:
    """Show saved connections with secrets masked."""
    saved = list_connections()
    if not saved:
        click.echo("No connections saved. Try: nurserydb connect add <name> <type> key=value ...")
        return
    for name, entry in sorted(saved.items()):
        shown = [display_param(k, v) for k, v in entry.items() if k != "type"]
        click.echo(f"  {name} ({entry.get('type', '?')}): {', '.join(shown)}")


@connect.command("remove")
@click.argument("name")
def connect_remove(name: str) -> None:
    """Forget a saved connection."""
    if not remove_connection(name):
        raise click.ClickException(f"no saved connection named '{name}'")
    click.echo(f"Removed '{name}'.")
