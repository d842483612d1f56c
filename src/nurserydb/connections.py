"""Named database connections — ~/.nurserydb/connections.toml."""

from __future__ import annotations

import os
import stat
import tomllib
from pathlib import Path

from nurserydb.adapters._base import ConnectionConfig, DatabaseType
from nurserydb.errors import ConfigError

_CONNECTIONS_FILE = Path.home() / ".nurserydb" / "connections.toml"


def _escape_toml_value(v: str) -> str:
    return v.replace("\\", "\\\\").replace('"', '\\"')


def _write_toml(data: dict[str, dict]) -> None:
    lines: list[str] = []
    for conn_name, entry in data.items():
        lines.append(f'["{_escape_toml_value(conn_name)}"]')
        for k, v in entry.items():
            lines.append(f'{k} = "{_escape_toml_value(str(v))}"')
        lines.append("")

    _CONNECTIONS_FILE.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
    _CONNECTIONS_FILE.write_text("\n".join(lines))
    # Access paths and DSNs may embed passwords.
    os.chmod(_CONNECTIONS_FILE, stat.S_IRUSR | stat.S_IWUSR)


def _load_file() -> dict:
    if not _CONNECTIONS_FILE.exists():
        return {}
    return tomllib.loads(_CONNECTIONS_FILE.read_text())


def list_connections() -> dict[str, dict]:
    return _load_file()


def get_connection(name: str) -> ConnectionConfig | None:
    """Look up a named connection. Returns None if not found or malformed."""
    entry = _load_file().get(name)
    if entry is None or "type" not in entry:
        return None

    try:
        db_type = DatabaseType(entry["type"])
    except ValueError:
        return None

    params = {k: str(v) for k, v in entry.items() if k != "type"}
    return ConnectionConfig(name=name, db_type=db_type, params=params)


def save_connection(name: str, db_type: str, params: dict[str, str]) -> Path:
    data = _load_file()
    data[name] = {"type": db_type, **params}
    _write_toml(data)
    return _CONNECTIONS_FILE


def remove_connection(name: str) -> bool:
    """Remove a named connection. Returns True if it existed."""
    data = _load_file()
    if name not in data:
        return False
    del data[name]
    if not data:
        _CONNECTIONS_FILE.unlink(missing_ok=True)
    else:
        _write_toml(data)
    return True


def resolve_connection(value: str) -> ConnectionConfig:
    """Resolve a database reference: a named connection, or ``type:key=val,key=val``."""
    config = get_connection(value)
    if config is not None:
        return config

    if ":" not in value:
        raise ConfigError(
            f"Connection '{value}' not found in {_CONNECTIONS_FILE} "
            f"and not in 'type:key=val' format"
        )
    db_type_str, params_str = value.split(":", 1)

    try:
        db_type = DatabaseType(db_type_str)
    except ValueError as e:
        valid = ", ".join(t.value for t in DatabaseType)
        raise ConfigError(f"Unknown database type '{db_type_str}'. Valid: {valid}") from e

    params: dict[str, str] = {}
    if params_str:
        for part in params_str.split(","):
            if "=" not in part:
                raise ConfigError(f"Expected key=value pair, got '{part}'")
            k, v = part.split("=", 1)
            params[k.strip()] = v.strip()

    return ConnectionConfig(name=db_type_str, db_type=db_type, params=params)
