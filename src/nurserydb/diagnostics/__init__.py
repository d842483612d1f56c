"""Diagnostics produced by the raw-query policy."""

from nurserydb.diagnostics.codes import DiagnosticCode
from nurserydb.diagnostics.types import Diagnostic, DiagnosticResult, Level

__all__ = [
    "Diagnostic",
    "DiagnosticCode",
    "DiagnosticResult",
    "Level",
]
