"""Data models for duplicate resolution.

This module defines verdicts, rejected records and the merge batch produced
by the resolution engine and consumed by the commit step.
"""

from collections import Counter
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from bibmerge.models import Record


class Verdict(StrEnum):
    """Outcome of comparing a candidate against existing records.

    Attributes
    ----------
    IDENTICAL : str
        Same kind and same field mapping.
    SAME_KEY : str
        Same non-empty citation key, regardless of content.
    FUZZY_DUPLICATE : str
        Judged a duplicate by the duplicate-likelihood detector.
    DISTINCT : str
        No check fired.
    """

    IDENTICAL = "IDENTICAL"
    SAME_KEY = "SAME_KEY"
    FUZZY_DUPLICATE = "FUZZY_DUPLICATE"
    DISTINCT = "DISTINCT"


@dataclass(frozen=True)
class DuplicateVerdict:
    """Result of comparing one record against others.

    Attributes
    ----------
    verdict : Verdict
        Which equivalence was found.
    rule : str | None
        Name of the check that fired, None for DISTINCT.
    matched : Record | None
        The existing record that matched.
    scope : str | None
        "target" when the match is in the target collection, "candidate"
        when it is an earlier candidate of the same run.
    """

    verdict: Verdict
    rule: str | None = None
    matched: Record | None = None
    scope: str | None = None

    @classmethod
    def distinct(cls) -> "DuplicateVerdict":
        return cls(Verdict.DISTINCT)

    @property
    def is_duplicate(self) -> bool:
        """Whether any check fired."""
        return self.verdict != Verdict.DISTINCT

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "verdict": str(self.verdict),
            "rule": self.rule,
            "scope": self.scope,
            "matched": self.matched.label() if self.matched is not None else None,
        }


@dataclass(frozen=True)
class RejectedRecord:
    """A candidate that will not be inserted, with the reason.

    Attributes
    ----------
    record : Record
        Rejected candidate.
    verdict : DuplicateVerdict
        Why it was rejected.
    """

    record: Record
    verdict: DuplicateVerdict

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = self.verdict.to_dict()
        data["record"] = self.record.label()
        if self.record.origin is not None:
            data["source"] = self.record.origin.source
            data["index"] = self.record.origin.index
        return data


@dataclass(frozen=True)
class MergeBatch:
    """Partition of the candidates of one merge run.

    Attributes
    ----------
    to_insert : tuple[Record, ...]
        Novel records in candidate order (source file, then position).
    rejected : tuple[RejectedRecord, ...]
        Duplicates with their verdicts, in candidate order.
    """

    to_insert: tuple[Record, ...] = ()
    rejected: tuple[RejectedRecord, ...] = ()

    def counts(self) -> dict[str, int]:
        """Number of candidates per verdict."""
        counter = Counter(str(r.verdict.verdict) for r in self.rejected)
        counts = {str(v): counter.get(str(v), 0) for v in Verdict}
        counts[str(Verdict.DISTINCT)] = len(self.to_insert)
        return counts

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "to_insert": [r.label() for r in self.to_insert],
            "rejected": [r.to_dict() for r in self.rejected],
            "counts": self.counts(),
        }
