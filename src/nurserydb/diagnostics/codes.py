"""Stable, searchable diagnostic codes for ad-hoc queries.

Ranges:
- Q0001      — General (syntax errors)
- Q02xx      — Safety checks
- Q03xx      — Classification / access control
- Q06xx      — Enrichment (info-level)
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DiagnosticCode:
    value: int

    def __str__(self) -> str:
        return f"Q{self.value:04d}"


SYNTAX_ERROR = DiagnosticCode(1)

MULTIPLE_STATEMENTS = DiagnosticCode(202)
CONSTANT_CONDITION = DiagnosticCode(205)

WRITE_BLOCKED = DiagnosticCode(301)
DDL_BLOCKED = DiagnosticCode(302)
ADMIN_BLOCKED = DiagnosticCode(303)

LIMIT_INJECTED = DiagnosticCode(601)
