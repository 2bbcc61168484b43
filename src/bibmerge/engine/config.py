"""Merge configuration and result dataclasses."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from bibmerge.engine.models import MergeBatch
from bibmerge.models import CollectionMode, Diagnostic, DiagnosticLevel, RecordCollection
from bibmerge.parse.base import BIB_SUFFIX
from bibmerge.scoring import DetectorConfig

CANDIDATE_CHECK_NAMES = ("identical", "same_key", "fuzzy")
DEFAULT_CANDIDATE_CHECKS = ("identical", "same_key")


@dataclass
class MergeConfig:
    """Configuration for a directory merge.

    Attributes
    ----------
    suffix : str
        File name suffix of bibliography files (default: ".bib").
    mode : CollectionMode
        Field conventions used by the fuzzy detector (default: BibTeX).
    candidate_checks : tuple[str, ...]
        Checks applied between new candidates of the same run. Exact
        duplicates are always collapsed; 'same_key' and 'fuzzy' are
        optional (default: identical, same_key).
    workers : int
        Threads used to load source files (default: 1).
    fuzzy : bool
        Run the fuzzy duplicate check (default: True).
    detector : DetectorConfig
        Thresholds for the default fuzzy detector.
    """

    suffix: str = BIB_SUFFIX
    mode: CollectionMode = CollectionMode.BIBTEX
    candidate_checks: tuple[str, ...] = DEFAULT_CANDIDATE_CHECKS
    workers: int = 1
    fuzzy: bool = True
    detector: DetectorConfig = field(default_factory=DetectorConfig)

    def __post_init__(self) -> None:
        """Coerce and validate."""
        self.mode = CollectionMode(self.mode)
        self.candidate_checks = tuple(self.candidate_checks)

        if not self.suffix.startswith("."):
            raise ValueError(f"suffix must start with '.', got {self.suffix!r}")

        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")

        unknown = [c for c in self.candidate_checks if c not in CANDIDATE_CHECK_NAMES]
        if unknown:
            raise ValueError(
                f"Unknown candidate checks: {', '.join(unknown)}. "
                f"Available: {', '.join(CANDIDATE_CHECK_NAMES)}"
            )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "suffix": self.suffix,
            "mode": str(self.mode),
            "candidate_checks": list(self.candidate_checks),
            "workers": self.workers,
            "fuzzy": self.fuzzy,
            "detector": self.detector.to_dict(),
        }


@dataclass
class MergeResult:
    """Results from a directory merge.

    Attributes
    ----------
    collection : RecordCollection
        The target collection, with new records appended.
    diagnostics : list[Diagnostic]
        Warnings and skipped-file errors, in file order.
    batch : MergeBatch
        Resolution partition that was committed.
    files : list[Path]
        Source files discovered, in processing order.
    """

    collection: RecordCollection
    diagnostics: list[Diagnostic]
    batch: MergeBatch
    files: list[Path] = field(default_factory=list)

    @property
    def inserted_count(self) -> int:
        """Number of records added to the target."""
        return len(self.batch.to_insert)

    @property
    def rejected_count(self) -> int:
        """Number of candidates rejected as duplicates."""
        return len(self.batch.rejected)

    @property
    def skipped_files(self) -> list[str]:
        """Files excluded because they could not be parsed."""
        return [d.source for d in self.diagnostics if d.level == DiagnosticLevel.ERROR]

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable summary."""
        return {
            "files": [str(f) for f in self.files],
            "records_total": len(self.collection),
            "inserted": self.inserted_count,
            "rejected": self.rejected_count,
            "verdicts": self.batch.counts(),
            "skipped_files": self.skipped_files,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }
