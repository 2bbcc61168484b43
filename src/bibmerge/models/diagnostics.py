"""Diagnostics surfaced to the caller after loading and merging."""

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class DiagnosticLevel(StrEnum):
    """Severity of a diagnostic.

    Attributes
    ----------
    WARNING : str
        File parsed with anomalies; its usable records still participate.
    ERROR : str
        File skipped entirely.
    """

    WARNING = "WARNING"
    ERROR = "ERROR"


@dataclass(frozen=True)
class Diagnostic:
    """One warning or error attached to a source file.

    Attributes
    ----------
    level : DiagnosticLevel
        Severity.
    source : str
        Path of the file the diagnostic refers to.
    message : str
        Human-readable message.
    """

    level: DiagnosticLevel
    source: str
    message: str

    @classmethod
    def warning(cls, source: str, message: str) -> "Diagnostic":
        return cls(DiagnosticLevel.WARNING, source, message)

    @classmethod
    def error(cls, source: str, message: str) -> "Diagnostic":
        return cls(DiagnosticLevel.ERROR, source, message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"level": str(self.level), "source": self.source, "message": self.message}
