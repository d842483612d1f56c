"""SQL dialects the builder can render for."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Dialect:
    name: str
    quote_open: str
    quote_close: str
    sqlglot_dialect: str
    # Access has no LIMIT; it uses SELECT TOP n.
    uses_top: bool = False
    # Access wraps date literals in #...#; others use typed literals.
    hash_dates: bool = False
    placeholder: str = "?"


ACCESS = Dialect(
    name="access",
    quote_open="[",
    quote_close="]",
    sqlglot_dialect="tsql",
    uses_top=True,
    hash_dates=True,
)

DUCKDB = Dialect(
    name="duckdb",
    quote_open='"',
    quote_close='"',
    sqlglot_dialect="duckdb",
)
