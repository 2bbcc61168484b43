"""Duplicate-likelihood detectors.

A detector answers one question: are two records likely the same
publication? The resolution engine only relies on the ``DuplicateDetector``
protocol, so any implementation can be plugged in.
"""

from dataclasses import asdict, dataclass
from typing import Any, Protocol, runtime_checkable

from bibmerge.models import CollectionMode, Record
from bibmerge.scoring.comparators import FIELD_CONFIGS, FieldConfig, compare_identifiers

__all__ = [
    "DetectorConfig",
    "DuplicateDetector",
    "FieldDuplicateDetector",
]


@runtime_checkable
class DuplicateDetector(Protocol):
    """Structural protocol for fuzzy duplicate checks."""

    def is_duplicate(self, a: Record, b: Record, mode: CollectionMode) -> bool:
        """Return True if *a* and *b* likely describe the same publication."""
        ...


@dataclass(frozen=True)
class DetectorConfig:
    """Thresholds for ``FieldDuplicateDetector``.

    Attributes
    ----------
    threshold : float
        Minimum weighted field score for a duplicate (default: 0.85).
    title_floor : float
        Minimum title similarity, regardless of the other fields
        (default: 0.75).
    """

    threshold: float = 0.85
    title_floor: float = 0.75

    def __post_init__(self) -> None:
        """Validate thresholds."""
        if not 0.0 <= self.threshold <= 1.0:
            raise ValueError(f"threshold must be in [0, 1], got {self.threshold}")

        if not 0.0 <= self.title_floor <= 1.0:
            raise ValueError(f"title_floor must be in [0, 1], got {self.title_floor}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


class FieldDuplicateDetector:
    """Weighted field-similarity duplicate detector.

    Records of different kinds are never duplicates. A DOI, ISBN or eprint
    present on both records decides outright. Otherwise the title must be
    present on both sides and reach ``title_floor``, and the weighted score
    over the fields present on both sides must reach ``threshold``.

    Parameters
    ----------
    config : DetectorConfig | None, optional
        Thresholds, by default ``DetectorConfig()``.
    fields : tuple[FieldConfig, ...], optional
        Weighted comparators, by default ``FIELD_CONFIGS``.
    """

    def __init__(
        self,
        config: DetectorConfig | None = None,
        fields: tuple[FieldConfig, ...] = FIELD_CONFIGS,
    ) -> None:
        self.config = config if config is not None else DetectorConfig()
        self.fields = fields

    def score(self, a: Record, b: Record, mode: CollectionMode) -> float | None:
        """Weighted similarity over the fields both records carry.

        Parameters
        ----------
        a : Record
            First record.
        b : Record
            Second record.
        mode : CollectionMode
            Field conventions to apply.

        Returns
        -------
        float | None
            Score in [0, 1], or None if no field is comparable.
        """
        total = 0.0
        weight_sum = 0.0
        for field_config in self.fields:
            similarity = field_config.compare(a, b, mode)
            if similarity is None:
                continue
            total += field_config.weight * similarity
            weight_sum += field_config.weight
        if weight_sum == 0.0:
            return None
        return total / weight_sum

    def is_duplicate(self, a: Record, b: Record, mode: CollectionMode) -> bool:
        """Decide whether two records describe the same publication."""
        if a.kind != b.kind:
            return False

        identifiers_match = compare_identifiers(a, b)
        if identifiers_match is not None:
            return identifiers_match

        title_similarity = next(
            (f.compare(a, b, mode) for f in self.fields if f.name == "title"),
            None,
        )
        if title_similarity is None or title_similarity < self.config.title_floor:
            return False

        score = self.score(a, b, mode)
        return score is not None and score >= self.config.threshold
