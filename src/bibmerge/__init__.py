"""Merge directories of bibliography files into one collection.

This package provides:
- Data models (bibmerge.models): records, collections, diagnostics
- Parsing (bibmerge.parse): file discovery and BibTeX loading
- Scoring (bibmerge.scoring): fuzzy duplicate detection
- Engine (bibmerge.engine): duplicate resolution, commit and orchestration
- Writer (bibmerge.writer): BibTeX output
- Audit (bibmerge.audit): JSONL event logging
- CLI (bibmerge.cli): command-line interface
- Public API (bibmerge.api): high-level convenience functions
"""

__version__ = "0.1.0"
__license__ = "MIT"

from bibmerge.api import load_library, merge_directory, write_library
from bibmerge.engine import MergeConfig, MergeOrchestrator, MergeResult, Verdict
from bibmerge.errors import (
    BibMergeError,
    DirectoryReadError,
    MergeInvariantError,
    ParseError,
    UnsafeOverwriteError,
)
from bibmerge.models import CollectionMode, Record, RecordCollection

__all__ = [
    "__version__",
    "__license__",
    "BibMergeError",
    "CollectionMode",
    "DirectoryReadError",
    "MergeConfig",
    "MergeInvariantError",
    "MergeOrchestrator",
    "MergeResult",
    "ParseError",
    "Record",
    "RecordCollection",
    "UnsafeOverwriteError",
    "Verdict",
    "load_library",
    "merge_directory",
    "write_library",
]
