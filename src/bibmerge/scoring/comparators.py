"""Field comparators for duplicate detection.

This module provides pure, deterministic functions for comparing
bibliographic record fields. Each comparator returns a similarity in
[0, 1], or None when either side lacks the field.

All functions are locale-independent and reproducible.
"""

from collections.abc import Callable
from dataclasses import dataclass

from bibmerge.models import CollectionMode, Record
from bibmerge.scoring.normalize import (
    author_signatures,
    extract_year,
    normalize_doi,
    normalize_identifier,
    normalize_isbn,
    normalize_text_for_matching,
)

# Type alias for comparator result
Similarity = float | None


@dataclass(frozen=True, slots=True)
class FieldConfig:
    """Configuration for a weighted field comparator.

    Attributes
    ----------
    name : str
        Field name (e.g., 'title').
    weight : float
        Relative weight in the combined score.
    compare : Callable[[Record, Record, CollectionMode], Similarity]
        Comparison function over a record pair.
    """

    name: str
    weight: float
    compare: Callable[[Record, Record, CollectionMode], Similarity]


# ---------------------------------------------------------------------------
# Mode-aware field access
# ---------------------------------------------------------------------------


def venue_of(record: Record, mode: CollectionMode) -> str | None:
    """Return the venue field for the collection mode.

    BibLaTeX uses ``journaltitle`` where BibTeX uses ``journal``; both fall
    back to ``booktitle``.
    """
    if mode == CollectionMode.BIBLATEX:
        names = ("journaltitle", "journal", "booktitle")
    else:
        names = ("journal", "booktitle")
    for name in names:
        value = record.get(name)
        if value:
            return value
    return None


def year_of(record: Record, mode: CollectionMode) -> int | None:
    """Return the publication year, reading ``date`` in BibLaTeX mode."""
    year = extract_year(record.get("year"))
    if year is None and mode == CollectionMode.BIBLATEX:
        year = extract_year(record.get("date"))
    return year


# ---------------------------------------------------------------------------
# Comparators
# ---------------------------------------------------------------------------


def jaccard_similarity(set_a: set[str], set_b: set[str]) -> float:
    """Calculate Jaccard similarity between two sets.

    Parameters
    ----------
    set_a : set[str]
        First set.
    set_b : set[str]
        Second set.

    Returns
    -------
    float
        Jaccard similarity (0.0-1.0).

    Notes
    -----
    Jaccard = |A ∩ B| / |A ∪ B|

    When both sets are empty the result is 1.0.
    """
    if not set_a and not set_b:
        return 1.0
    if not set_a or not set_b:
        return 0.0
    return len(set_a & set_b) / len(set_a | set_b)


def compare_identifiers(a: Record, b: Record) -> bool | None:
    """Compare strong identifiers (DOI, ISBN, eprint).

    Parameters
    ----------
    a : Record
        First record.
    b : Record
        Second record.

    Returns
    -------
    bool | None
        True if an identifier present on both sides matches, False if one is
        present on both sides and differs, None if no identifier is shared.

    Notes
    -----
    Identifiers are checked in order DOI, ISBN, eprint and the first one
    present on both records decides.
    """
    normalizers = (
        ("doi", normalize_doi),
        ("isbn", normalize_isbn),
        ("eprint", normalize_identifier),
    )
    for name, normalizer in normalizers:
        value_a = normalizer(a.get(name))
        value_b = normalizer(b.get(name))
        if value_a and value_b:
            return value_a == value_b
    return None


def compare_title(a: Record, b: Record, mode: CollectionMode) -> Similarity:
    """Token Jaccard similarity of normalized titles.

    Parameters
    ----------
    a : Record
        First record.
    b : Record
        Second record.
    mode : CollectionMode
        Collection mode (titles are mode independent).

    Returns
    -------
    float | None
        1.0 for equal normalized titles, token Jaccard otherwise, None if
        either title is missing.
    """
    title_a = normalize_text_for_matching(a.get("title"))
    title_b = normalize_text_for_matching(b.get("title"))
    if not title_a or not title_b:
        return None
    if title_a == title_b:
        return 1.0
    return jaccard_similarity(set(title_a.split()), set(title_b.split()))


def compare_authors(a: Record, b: Record, mode: CollectionMode) -> Similarity:
    """Jaccard similarity of author family-name signatures.

    Falls back to ``editor`` when ``author`` is absent.
    """
    sigs_a = author_signatures(a.get("author") or a.get("editor"))
    sigs_b = author_signatures(b.get("author") or b.get("editor"))
    if not sigs_a or not sigs_b:
        return None
    return jaccard_similarity(set(sigs_a), set(sigs_b))


def compare_year(a: Record, b: Record, mode: CollectionMode) -> Similarity:
    """1.0 for equal years, 0.0 otherwise."""
    year_a = year_of(a, mode)
    year_b = year_of(b, mode)
    if year_a is None or year_b is None:
        return None
    return 1.0 if year_a == year_b else 0.0


def compare_venue(a: Record, b: Record, mode: CollectionMode) -> Similarity:
    """Token Jaccard similarity of normalized venue names."""
    venue_a = normalize_text_for_matching(venue_of(a, mode))
    venue_b = normalize_text_for_matching(venue_of(b, mode))
    if not venue_a or not venue_b:
        return None
    return jaccard_similarity(set(venue_a.split()), set(venue_b.split()))


# ---------------------------------------------------------------------------
# Field registry - ordered tuple for deterministic iteration
# ---------------------------------------------------------------------------


FIELD_CONFIGS: tuple[FieldConfig, ...] = (
    FieldConfig(name="title", weight=0.5, compare=compare_title),
    FieldConfig(name="authors", weight=0.3, compare=compare_authors),
    FieldConfig(name="year", weight=0.1, compare=compare_year),
    FieldConfig(name="venue", weight=0.1, compare=compare_venue),
)
