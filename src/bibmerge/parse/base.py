"""Base types and utilities for record-set parsers."""

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from bibmerge.models import RecordCollection

BIB_SUFFIX = ".bib"


@dataclass(frozen=True)
class ParserResult:
    """Outcome of parsing one bibliography file.

    Attributes
    ----------
    collection : RecordCollection
        Records parsed from the file, in file order. Citation keys are not
        required to be unique.
    warnings : tuple[str, ...]
        Syntax anomalies that did not prevent parsing.
    error_message : str | None
        Set when parsing failed, fully or partially.
    """

    collection: RecordCollection
    warnings: tuple[str, ...] = ()
    error_message: str | None = None

    @property
    def has_warnings(self) -> bool:
        """Whether the parser reported any warning."""
        return bool(self.warnings)

    @classmethod
    def from_error(cls, message: str) -> "ParserResult":
        """Build an empty result carrying only an error."""
        return cls(collection=RecordCollection(), error_message=message)


@runtime_checkable
class RecordSetParser(Protocol):
    """Structural protocol for bibliography parsers.

    The merge engine only consumes the resulting collection and diagnostic
    fields; the file grammar is entirely the parser's business.
    """

    def parse(self, path: Path) -> ParserResult:
        """Parse the file at *path* into a record set."""
        ...


def detect_encoding(file_bytes: bytes) -> str:
    """Detect encoding of file bytes using deterministic strategy.

    Parameters
    ----------
    file_bytes : bytes
        Complete file content as bytes.

    Returns
    -------
    str
        Detected encoding (utf-8-sig, utf-8 or latin-1).
    """
    if file_bytes.startswith(b"\xef\xbb\xbf"):
        return "utf-8-sig"

    try:
        file_bytes.decode("utf-8")
        return "utf-8"
    except UnicodeDecodeError:
        pass

    return "latin-1"


def normalize_line_endings(content: str) -> str:
    """Normalize line endings to LF."""
    content = content.replace("\r\n", "\n")
    return content.replace("\r", "\n")
