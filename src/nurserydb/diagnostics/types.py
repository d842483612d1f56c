"""Diagnostic values returned by the query policy."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from nurserydb.diagnostics.codes import DiagnosticCode


class Level(enum.IntEnum):
    INFO = 0
    WARNING = 1
    ERROR = 2


@dataclass
class Diagnostic:
    level: Level
    code: DiagnosticCode
    message: str
    notes: list[str] = field(default_factory=list)

    @classmethod
    def error(cls, code: DiagnosticCode, message: str) -> Diagnostic:
        return cls(level=Level.ERROR, code=code, message=message)

    @classmethod
    def warning(cls, code: DiagnosticCode, message: str) -> Diagnostic:
        return cls(level=Level.WARNING, code=code, message=message)

    @classmethod
    def info(cls, code: DiagnosticCode, message: str) -> Diagnostic:
        return cls(level=Level.INFO, code=code, message=message)

    def note(self, note: str) -> Diagnostic:
        self.notes.append(note)
        return self

    @property
    def is_blocking(self) -> bool:
        return self.level == Level.ERROR

    def to_dict(self) -> dict:
        return {
            "level": self.level.name.lower(),
            "code": str(self.code),
            "message": self.message,
            "notes": self.notes,
        }


@dataclass
class DiagnosticResult:
    original_sql: str
    healed_sql: str | None
    diagnostics: list[Diagnostic]
    blocked: bool
    tables: list[str] = field(default_factory=list)
    classification: str | None = None

    @property
    def effective_sql(self) -> str:
        return self.healed_sql if self.healed_sql is not None else self.original_sql

    @property
    def first_error(self) -> Diagnostic | None:
        return next((d for d in self.diagnostics if d.is_blocking), None)

    def to_dict(self) -> dict:
        return {
            "original_sql": self.original_sql,
            "effective_sql": self.effective_sql,
            "blocked": self.blocked,
            "classification": self.classification,
            "tables": self.tables,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }
