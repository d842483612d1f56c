"""Lazy adapter loading — imports driver modules only when needed."""

from __future__ import annotations

import importlib

from nurserydb.adapters._base import DatabaseAdapter, DatabaseType
from nurserydb.errors import DataStoreError

_ADAPTER_MAP: dict[DatabaseType, tuple[str, str]] = {
    DatabaseType.ACCESS: ("nurserydb.adapters.access", "AccessAdapter"),
    DatabaseType.DUCKDB: ("nurserydb.adapters.duckdb", "DuckDBAdapter"),
}

_EXTRAS: dict[DatabaseType, str] = {
    DatabaseType.ACCESS: "access",
    DatabaseType.DUCKDB: "all",
}


def get_adapter(db_type: DatabaseType) -> type[DatabaseAdapter]:
    """Lazy-load an adapter class by database type.

    Raises DataStoreError with an install hint if the driver package is missing.
    """
    entry = _ADAPTER_MAP.get(db_type)
    if entry is None:
        raise DataStoreError(f"No adapter registered for {db_type.value}")

    module_path, class_name = entry
    try:
        mod = importlib.import_module(module_path)
    except ImportError as e:
        extra = _EXTRAS.get(db_type, "all")
        raise DataStoreError(
            f"Missing driver for {db_type.value}. "
            f"Install with: pip install 'nurserydb[{extra}]'"
        ) from e

    return getattr(mod, class_name)
