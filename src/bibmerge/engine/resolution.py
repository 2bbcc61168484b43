"""Duplicate resolution engine.

Partitions candidate records into novel records and rejected duplicates.
Three checks are applied in a fixed priority order:

1. identical  -- same kind and field mapping
2. same_key   -- same non-empty citation key
3. fuzzy      -- duplicate-likelihood detector

For each candidate, every check is run against the whole target before the
next check is tried, so the verdict never depends on the order in which
target records are stored. The scan is O(|candidates| x |target|), which is
fine for bibliographies of thousands of records.
"""

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from bibmerge.engine.config import CANDIDATE_CHECK_NAMES, DEFAULT_CANDIDATE_CHECKS
from bibmerge.engine.models import DuplicateVerdict, MergeBatch, RejectedRecord, Verdict
from bibmerge.models import CollectionMode, Record, RecordCollection
from bibmerge.scoring import DuplicateDetector

__all__ = [
    "DUPLICATE_CHECKS",
    "DuplicateCheck",
    "ResolutionContext",
    "compare",
    "find_duplicate",
    "resolve",
]


@dataclass(frozen=True)
class ResolutionContext:
    """Collaborators shared by all checks of one resolution run.

    Attributes
    ----------
    detector : DuplicateDetector | None
        Fuzzy detector; the fuzzy check never fires without one.
    mode : CollectionMode
        Field conventions passed to the detector.
    """

    detector: DuplicateDetector | None = None
    mode: CollectionMode = CollectionMode.BIBTEX


CheckFn = Callable[[Record, Record, ResolutionContext], bool]


@dataclass(frozen=True, slots=True)
class DuplicateCheck:
    """One equivalence check.

    Attributes
    ----------
    rule : str
        Stable check name used in verdicts and configuration.
    verdict : Verdict
        Verdict reported when the check fires.
    matches : CheckFn
        Predicate over (candidate, existing, context).
    """

    rule: str
    verdict: Verdict
    matches: CheckFn


def _identical(candidate: Record, existing: Record, context: ResolutionContext) -> bool:
    return candidate == existing


def _same_key(candidate: Record, existing: Record, context: ResolutionContext) -> bool:
    return bool(candidate.citation_key) and candidate.citation_key == existing.citation_key


def _fuzzy(candidate: Record, existing: Record, context: ResolutionContext) -> bool:
    if context.detector is None:
        return False
    return context.detector.is_duplicate(candidate, existing, context.mode)


# Priority order, highest first
DUPLICATE_CHECKS: tuple[DuplicateCheck, ...] = (
    DuplicateCheck(rule="identical", verdict=Verdict.IDENTICAL, matches=_identical),
    DuplicateCheck(rule="same_key", verdict=Verdict.SAME_KEY, matches=_same_key),
    DuplicateCheck(rule="fuzzy", verdict=Verdict.FUZZY_DUPLICATE, matches=_fuzzy),
)


def find_duplicate(
    record: Record,
    pool: Sequence[Record],
    checks: Sequence[DuplicateCheck],
    context: ResolutionContext,
    scope: str,
) -> DuplicateVerdict | None:
    """Find the highest-priority match for *record* in *pool*.

    Parameters
    ----------
    record : Record
        Record to classify.
    pool : Sequence[Record]
        Existing records.
    checks : Sequence[DuplicateCheck]
        Checks in priority order.
    context : ResolutionContext
        Detector and mode.
    scope : str
        Label stored in the verdict ("target" or "candidate").

    Returns
    -------
    DuplicateVerdict | None
        Verdict of the first check that fires, or None if none does.
    """
    for check in checks:
        for existing in pool:
            if check.matches(record, existing, context):
                return DuplicateVerdict(
                    verdict=check.verdict,
                    rule=check.rule,
                    matched=existing,
                    scope=scope,
                )
    return None


def compare(
    a: Record,
    b: Record,
    detector: DuplicateDetector | None = None,
    mode: CollectionMode = CollectionMode.BIBTEX,
) -> DuplicateVerdict:
    """Compare two records under the full check priority.

    Parameters
    ----------
    a : Record
        Candidate record.
    b : Record
        Existing record.
    detector : DuplicateDetector | None, optional
        Fuzzy detector, by default None (fuzzy check disabled).
    mode : CollectionMode, optional
        Field conventions, by default BibTeX.

    Returns
    -------
    DuplicateVerdict
        The verdict, DISTINCT when no check fires.
    """
    context = ResolutionContext(detector=detector, mode=mode)
    verdict = find_duplicate(a, [b], DUPLICATE_CHECKS, context, scope="target")
    return verdict if verdict is not None else DuplicateVerdict.distinct()


def resolve(
    target: RecordCollection | Sequence[Record],
    candidates: Iterable[Record],
    detector: DuplicateDetector | None = None,
    mode: CollectionMode = CollectionMode.BIBTEX,
    candidate_checks: Sequence[str] = DEFAULT_CANDIDATE_CHECKS,
) -> MergeBatch:
    """Partition candidates into novel records and rejected duplicates.

    Each candidate is first checked against the target. Candidates that are
    distinct from the target are then checked against the candidates already
    accepted in this run: exact duplicates are always collapsed, and
    ``candidate_checks`` may add 'same_key' and 'fuzzy'.

    Candidates are accepted in content order (digest, then citation key), so
    the partition depends on the candidates as a set of values and not on
    the order their files were loaded. When two candidates collide, the one
    first in content order is kept. Only records equal in both content and
    key fall back to candidate order, which decides the kept copy and never
    the outcome. ``to_insert`` and ``rejected`` list records in candidate
    order.

    Parameters
    ----------
    target : RecordCollection | Sequence[Record]
        Existing collection. Not modified.
    candidates : Iterable[Record]
        Candidate records in source-file-then-position order.
    detector : DuplicateDetector | None, optional
        Fuzzy detector, by default None (fuzzy check disabled).
    mode : CollectionMode, optional
        Field conventions passed to the detector, by default BibTeX.
    candidate_checks : Sequence[str], optional
        Checks applied among candidates, by default ("identical", "same_key").

    Returns
    -------
    MergeBatch
        Records to insert in candidate order, and rejected records with
        their verdicts.

    Raises
    ------
    ValueError
        If ``candidate_checks`` names an unknown check.
    """
    unknown = [name for name in candidate_checks if name not in CANDIDATE_CHECK_NAMES]
    if unknown:
        raise ValueError(f"Unknown candidate checks: {', '.join(unknown)}")

    context = ResolutionContext(detector=detector, mode=mode)
    target_records = list(target)
    target_checks = tuple(
        c for c in DUPLICATE_CHECKS if c.rule != "fuzzy" or detector is not None
    )
    # Exact duplicates among candidates go through the digest index below
    among_checks = tuple(
        c
        for c in DUPLICATE_CHECKS
        if c.rule in candidate_checks and c.rule != "identical" and c in target_checks
    )

    candidate_list = list(candidates)
    digests = [candidate.digest() for candidate in candidate_list]
    verdicts: list[DuplicateVerdict | None] = [
        find_duplicate(candidate, target_records, target_checks, context, "target")
        for candidate in candidate_list
    ]

    # Among candidates, decisions follow content order rather than load order.
    # The stable sort leaves only records equal in content and key tied.
    decision_order = sorted(
        (i for i, verdict in enumerate(verdicts) if verdict is None),
        key=lambda i: (digests[i], candidate_list[i].citation_key),
    )

    accepted: list[Record] = []
    accepted_by_digest: dict[str, Record] = {}

    for i in decision_order:
        candidate = candidate_list[i]
        twin = accepted_by_digest.get(digests[i])
        if twin is not None:
            verdicts[i] = DuplicateVerdict(
                verdict=Verdict.IDENTICAL,
                rule="identical",
                matched=twin,
                scope="candidate",
            )
            continue

        verdicts[i] = find_duplicate(candidate, accepted, among_checks, context, "candidate")
        if verdicts[i] is None:
            accepted.append(candidate)
            accepted_by_digest[digests[i]] = candidate

    to_insert: list[Record] = []
    rejected: list[RejectedRecord] = []
    for candidate, verdict in zip(candidate_list, verdicts, strict=True):
        if verdict is None:
            to_insert.append(candidate)
        else:
            rejected.append(RejectedRecord(record=candidate, verdict=verdict))

    return MergeBatch(to_insert=tuple(to_insert), rejected=tuple(rejected))
