"""Tests for the duplicate resolution engine."""

import itertools
from collections.abc import Callable

import pytest

from bibmerge.engine import DuplicateVerdict, MergeBatch, Verdict, compare, resolve
from bibmerge.models import CollectionMode, Record, RecordCollection
from bibmerge.scoring import FieldDuplicateDetector


class TitleDetector:
    """Detector calling two records duplicates when their titles match."""

    def __init__(self) -> None:
        self.calls = 0

    def is_duplicate(self, a: Record, b: Record, mode: CollectionMode) -> bool:
        self.calls += 1
        return a.get("title") is not None and a.get("title") == b.get("title")


@pytest.fixture
def target(make_record: Callable[..., Record]) -> RecordCollection:
    return RecordCollection([make_record(key="smith2020", title="A", year="2020")])


# ---------------------------------------------------------------------------
# Checks against the target
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_resolve_identical_record_rejected(
    target: RecordCollection, make_record: Callable[..., Record]
) -> None:
    """Test a field-identical candidate is rejected even under another key."""
    candidate = make_record(key="renamed", title="A", year="2020")

    batch = resolve(target, [candidate])

    assert batch.to_insert == ()
    assert len(batch.rejected) == 1
    verdict = batch.rejected[0].verdict
    assert verdict.verdict == Verdict.IDENTICAL
    assert verdict.rule == "identical"
    assert verdict.scope == "target"
    assert verdict.matched is target[0]


@pytest.mark.unit
def test_resolve_identical_wins_over_same_key(
    target: RecordCollection, make_record: Callable[..., Record]
) -> None:
    """Test an identical record with the same key is reported as IDENTICAL."""
    candidate = make_record(key="smith2020", title="A", year="2020")

    batch = resolve(target, [candidate])

    assert batch.rejected[0].verdict.verdict == Verdict.IDENTICAL


@pytest.mark.unit
def test_resolve_key_collision_rejected(
    target: RecordCollection, make_record: Callable[..., Record]
) -> None:
    """Test a candidate reusing a target key is rejected whatever its content."""
    candidate = make_record(key="smith2020", title="B", year="1999")

    batch = resolve(target, [candidate], detector=FieldDuplicateDetector())

    assert batch.to_insert == ()
    assert batch.rejected[0].verdict.verdict == Verdict.SAME_KEY


@pytest.mark.unit
def test_resolve_fuzzy_duplicate_rejected(
    target: RecordCollection, make_record: Callable[..., Record]
) -> None:
    """Test a candidate the detector flags is rejected as FUZZY_DUPLICATE."""
    candidate = make_record(key="other", title="A", year="2021")

    batch = resolve(target, [candidate], detector=TitleDetector())

    assert batch.to_insert == ()
    assert batch.rejected[0].verdict.verdict == Verdict.FUZZY_DUPLICATE
    assert batch.rejected[0].verdict.rule == "fuzzy"


@pytest.mark.unit
def test_resolve_without_detector_skips_fuzzy(
    target: RecordCollection, make_record: Callable[..., Record]
) -> None:
    """Test the fuzzy check never fires without a detector."""
    candidate = make_record(key="other", title="A", year="2021")

    batch = resolve(target, [candidate])

    assert batch.to_insert == (candidate,)
    assert batch.rejected == ()


@pytest.mark.unit
def test_resolve_priority_independent_of_target_order(
    make_record: Callable[..., Record],
) -> None:
    """Test the highest-priority check wins regardless of target order."""
    same_key = make_record(key="k", title="Other")
    identical = make_record(key="x", title="A")
    candidate = make_record(key="k", title="A")

    for records in ([same_key, identical], [identical, same_key]):
        batch = resolve(RecordCollection(records), [candidate])
        verdict = batch.rejected[0].verdict
        assert verdict.verdict == Verdict.IDENTICAL
        assert verdict.matched is identical


@pytest.mark.unit
def test_resolve_same_key_wins_over_fuzzy(make_record: Callable[..., Record]) -> None:
    """Test SAME_KEY is preferred when a fuzzy match also exists."""
    fuzzy = make_record(key="x", title="A", year="2020")
    same_key = make_record(key="k", title="B")
    candidate = make_record(key="k", title="A", year="2021")

    batch = resolve(RecordCollection([fuzzy, same_key]), [candidate], detector=TitleDetector())

    assert batch.rejected[0].verdict.verdict == Verdict.SAME_KEY
    assert batch.rejected[0].verdict.matched is same_key


@pytest.mark.unit
def test_resolve_keyless_records_never_share_a_key(make_record: Callable[..., Record]) -> None:
    """Test two records without keys are not a key collision."""
    existing = make_record(title="A")
    candidate = make_record(title="B")

    batch = resolve(RecordCollection([existing]), [candidate])

    assert batch.to_insert == (candidate,)


# ---------------------------------------------------------------------------
# Checks among candidates
# ---------------------------------------------------------------------------


@pytest.mark.unit
@pytest.mark.parametrize("checks", [(), ("identical",), ("identical", "same_key", "fuzzy")])
def test_resolve_collapses_identical_candidates(
    make_record: Callable[..., Record], checks: tuple[str, ...]
) -> None:
    """Test exact duplicates among candidates are always collapsed."""
    first = make_record(key="a1", title="New")
    second = make_record(key="a2", title="New")

    batch = resolve(RecordCollection(), [first, second], candidate_checks=checks)

    assert batch.to_insert == (first,)
    verdict = batch.rejected[0].verdict
    assert verdict.verdict == Verdict.IDENTICAL
    assert verdict.scope == "candidate"
    assert verdict.matched is first


@pytest.mark.unit
def test_resolve_same_key_among_candidates(make_record: Callable[..., Record]) -> None:
    """Test a key repeated across candidates keeps one record by default."""
    one = make_record(key="k", title="One")
    two = make_record(key="k", title="Two")

    forward = resolve(RecordCollection(), [one, two])
    backward = resolve(RecordCollection(), [two, one])

    assert len(forward.to_insert) == 1
    assert forward.to_insert == backward.to_insert
    assert forward.rejected[0].verdict.verdict == Verdict.SAME_KEY
    assert forward.rejected[0].verdict.scope == "candidate"
    assert forward.rejected[0].verdict.matched is forward.to_insert[0]


@pytest.mark.unit
def test_resolve_same_key_among_candidates_can_be_disabled(
    make_record: Callable[..., Record],
) -> None:
    """Test without the same_key candidate check both records pass resolution."""
    first = make_record(key="k", title="One")
    second = make_record(key="k", title="Two")

    batch = resolve(RecordCollection(), [first, second], candidate_checks=("identical",))

    assert batch.to_insert == (first, second)


@pytest.mark.unit
def test_resolve_fuzzy_among_candidates_is_opt_in(make_record: Callable[..., Record]) -> None:
    """Test fuzzy matching between candidates only runs when requested."""
    first = make_record(key="a", title="Same", year="2020")
    second = make_record(key="b", title="Same", year="2021")

    default = resolve(RecordCollection(), [first, second], detector=TitleDetector())
    opted_in = resolve(
        RecordCollection(),
        [first, second],
        detector=TitleDetector(),
        candidate_checks=("identical", "same_key", "fuzzy"),
    )

    assert default.to_insert == (first, second)
    assert len(opted_in.to_insert) == 1
    assert opted_in.rejected[0].verdict.verdict == Verdict.FUZZY_DUPLICATE


@pytest.mark.unit
@pytest.mark.parametrize(
    "checks",
    [("identical", "same_key"), ("identical", "same_key", "fuzzy")],
)
def test_resolve_independent_of_candidate_order(
    make_record: Callable[..., Record], checks: tuple[str, ...]
) -> None:
    """Test key collisions and exact copies give the same partition in any order."""
    x = make_record(key="k1", title="Alpha")
    y = make_record(key="k1", title="Beta")
    z = make_record(key="k2", title="Beta")
    w = make_record(key="k3", title="Gamma")

    outcomes = {
        frozenset(
            (r.citation_key, r.get("title"))
            for r in resolve(
                RecordCollection(), order, detector=TitleDetector(), candidate_checks=checks
            ).to_insert
        )
        for order in itertools.permutations([x, y, z, w])
    }

    assert len(outcomes) == 1


@pytest.mark.unit
def test_resolve_unknown_candidate_check(make_record: Callable[..., Record]) -> None:
    """Test unknown check names are rejected."""
    with pytest.raises(ValueError, match="Unknown candidate checks: exact"):
        resolve(RecordCollection(), [make_record(title="A")], candidate_checks=("exact",))


# ---------------------------------------------------------------------------
# Batch properties
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_resolve_does_not_modify_target(
    target: RecordCollection, make_record: Callable[..., Record]
) -> None:
    """Test resolution is pure with respect to the target."""
    before = list(target)

    resolve(target, [make_record(key="new", title="New")])

    assert list(target) == before
    assert len(target) == 1


@pytest.mark.unit
def test_resolve_target_against_itself_is_empty(make_record: Callable[..., Record]) -> None:
    """Test re-offering the target's own records inserts nothing."""
    records = [make_record(key=f"k{i}", title=f"T{i}") for i in range(5)]
    target = RecordCollection(records)

    batch = resolve(target, records, detector=FieldDuplicateDetector())

    assert batch.to_insert == ()
    assert len(batch.rejected) == 5


@pytest.mark.unit
def test_resolve_preserves_candidate_order(make_record: Callable[..., Record]) -> None:
    """Test inserted and rejected records keep candidate order."""
    c = make_record(key="c", title="C")
    a = make_record(key="a", title="A")
    dup = make_record(key="z", title="A")
    b = make_record(key="b", title="B")

    batch = resolve(RecordCollection(), [c, dup, a, b])

    assert batch.to_insert == (c, a, b)
    assert [r.record for r in batch.rejected] == [dup]
    assert batch.rejected[0].verdict.matched is a


@pytest.mark.unit
def test_merge_batch_counts(make_record: Callable[..., Record]) -> None:
    """Test counts cover every verdict."""
    batch = resolve(
        RecordCollection([make_record(key="k", title="T")]),
        [make_record(key="k", title="T"), make_record(key="k", title="U"), make_record(title="V")],
    )

    assert batch.counts() == {
        "IDENTICAL": 1,
        "SAME_KEY": 1,
        "FUZZY_DUPLICATE": 0,
        "DISTINCT": 1,
    }
    assert MergeBatch().counts()["DISTINCT"] == 0


@pytest.mark.unit
def test_rejected_record_to_dict(make_record: Callable[..., Record]) -> None:
    """Test rejection serialization names the rule and matched record."""
    batch = resolve(
        RecordCollection([make_record(key="k", title="T")]),
        [make_record(key="k", title="U")],
    )

    assert batch.rejected[0].to_dict() == {
        "verdict": "SAME_KEY",
        "rule": "same_key",
        "scope": "target",
        "matched": "k",
        "record": "k",
    }


# ---------------------------------------------------------------------------
# Pairwise comparison
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_compare_pairwise(make_record: Callable[..., Record]) -> None:
    """Test compare() applies the same priority to a single pair."""
    a = make_record(key="k", title="A")

    assert compare(a, make_record(key="z", title="A")).verdict == Verdict.IDENTICAL
    assert compare(a, make_record(key="k", title="B")).verdict == Verdict.SAME_KEY
    assert compare(a, make_record(key="z", title="B")) == DuplicateVerdict.distinct()
    assert not compare(a, make_record(key="z", title="B")).is_duplicate
    assert (
        compare(a, make_record(key="z", title="A", year="1"), detector=TitleDetector()).verdict
        == Verdict.FUZZY_DUPLICATE
    )
