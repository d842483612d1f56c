"""Shared helpers for the db and token commands."""

from __future__ import annotations

import json
from typing import NoReturn

import click

from nurserydb.adapters._base import ConnectionConfig
from nurserydb.auth import Identity, verify_token
from nurserydb.config import Settings, load_settings
from nurserydb.connections import resolve_connection
from nurserydb.errors import ConfigError, NurseryError, error_response

TOKEN_ENVVAR = "NURSERYDB_TOKEN"
DB_ENVVAR = "NURSERYDB_DB"


def cli_settings() -> Settings:
    try:
        return load_settings(strict=True)
    except ConfigError as e:
        raise click.UsageError(e.message) from e


def resolve_db(value: str | None, settings: Settings) -> ConnectionConfig:
    """Resolve --db (or NURSERYDB_DB): named connection or 'type:key=val'."""
    value = value or settings.database
    if not value:
        raise click.BadParameter(
            f"no database given; pass --db or set {DB_ENVVAR}", param_hint="'--db'"
        )
    try:
        return resolve_connection(value)
    except ConfigError as e:
        raise click.BadParameter(e.message, param_hint="'--db'") from e


def identity_for(token: str | None, settings: Settings) -> Identity:
    return verify_token(token, secret=settings.jwt_secret)


def parse_value(raw: str) -> object:
    """Command-line values: JSON scalars (42, 1.5, true, null) or plain strings."""
    try:
        value = json.loads(raw)
    except ValueError:
        return raw
    if isinstance(value, (dict, list)):
        return raw
    return value


def parse_pairs(pairs: tuple[str, ...], *, param_hint: str) -> dict[str, object]:
    parsed: dict[str, object] = {}
    for pair in pairs:
        if "=" not in pair:
            raise click.BadParameter(f"Expected column=value, got '{pair}'", param_hint=param_hint)
        k, v = pair.split("=", 1)
        parsed[k.strip()] = parse_value(v)
    return parsed


def emit(document: dict) -> None:
    click.echo(json.dumps(document, indent=2, default=str))


def fail(err: NurseryError, settings: Settings) -> NoReturn:
    status, body = error_response(err, development=settings.is_development)
    body["status"] = status
    click.echo(json.dumps(body, indent=2, default=str))
    raise SystemExit(1) from err
