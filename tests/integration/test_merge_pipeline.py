"""End-to-end tests: directories of .bib files merged into a library."""

import itertools
import shutil
from collections.abc import Callable
from pathlib import Path

import pytest

from bibmerge import MergeConfig, RecordCollection, Verdict, load_library, merge_directory
from bibmerge.engine import MergeOrchestrator
from bibmerge.models import DiagnosticLevel

WriteBib = Callable[[str, str], Path]

SMITH_A = """\
@article{smith2020,
  title = {A},
  author = {Smith, John},
  year = {2020},
}
"""

SMITH_B = """\
@article{smith2020,
  title = {B},
  author = {Smith, John},
  year = {2020},
}
"""

DOE_C = """\
@article{doe2021,
  title = {C},
  author = {Doe, Jane},
  year = {2021},
}
"""

CITATION_MATCHING = """\
@article{smith2020cm,
  title = {Deep Learning for Citation Matching},
  author = {Smith, John and Doe, Jane},
  journal = {Journal of Informetrics},
  year = {2020},
}
"""

CITATION_MATCHING_COPY = """\
@article{Smith:2020,
  title = {Deep learning for citation matching.},
  author = {John Smith and Jane Doe},
  journal = {J. Informetrics},
  year = {2020},
}
"""

LINKAGE = """\
@inproceedings{lee2019,
  title = {Scalable Record Linkage with Blocking},
  author = {Lee, Kim},
  booktitle = {Proceedings of JCDL},
  year = {2019},
}
"""


def _keys(collection: RecordCollection) -> list[str]:
    return [r.citation_key for r in collection]


# ---------------------------------------------------------------------------
# Worked example
# ---------------------------------------------------------------------------


@pytest.mark.integration
def test_key_collision_and_new_record(tmp_path: Path, write_bib: WriteBib) -> None:
    """Test the colliding record is rejected and the new one inserted."""
    target = write_bib("library.bib", SMITH_A)
    write_bib("in/file1.bib", SMITH_B)
    write_bib("in/file2.bib", DOE_C)

    result = merge_directory(tmp_path / "in", target)

    library = load_library(target)
    assert _keys(library) == ["smith2020", "doe2021"]
    assert library.find_by_key("smith2020").get("title") == "A"
    assert result.batch.counts()[str(Verdict.SAME_KEY)] == 1
    assert result.inserted_count == 1
    assert result.diagnostics == []


# ---------------------------------------------------------------------------
# Merge properties
# ---------------------------------------------------------------------------


@pytest.mark.integration
def test_merge_is_idempotent(tmp_path: Path, write_bib: WriteBib) -> None:
    """Test a second merge of the same directory inserts nothing."""
    target = write_bib("library.bib", SMITH_A)
    write_bib("in/a.bib", DOE_C + "\n" + CITATION_MATCHING)
    write_bib("in/sub/b.bib", LINKAGE)

    first = merge_directory(tmp_path / "in", target)
    after_first = target.read_bytes()
    second = merge_directory(tmp_path / "in", target)

    assert first.inserted_count == 3
    assert second.inserted_count == 0
    assert second.rejected_count == 3
    assert target.read_bytes() == after_first


@pytest.mark.integration
def test_exact_duplicate_never_inserted(tmp_path: Path, write_bib: WriteBib) -> None:
    """Test a field-identical record under a new key is not inserted."""
    target = write_bib("library.bib", SMITH_A)
    write_bib("in/a.bib", SMITH_A.replace("smith2020", "renamed2020"))

    result = merge_directory(tmp_path / "in", target, config=MergeConfig(fuzzy=False))

    assert _keys(load_library(target)) == ["smith2020"]
    assert result.batch.rejected[0].verdict.verdict == Verdict.IDENTICAL


@pytest.mark.integration
def test_fuzzy_duplicate_rejected(tmp_path: Path, write_bib: WriteBib) -> None:
    """Test a reformatted copy of a target record is rejected as fuzzy duplicate."""
    target = write_bib("library.bib", CITATION_MATCHING)
    write_bib("in/a.bib", CITATION_MATCHING_COPY)

    result = merge_directory(tmp_path / "in", target)

    assert _keys(load_library(target)) == ["smith2020cm"]
    rejection = result.batch.rejected[0]
    assert rejection.verdict.verdict == Verdict.FUZZY_DUPLICATE
    assert rejection.verdict.matched.citation_key == "smith2020cm"


@pytest.mark.integration
def test_fuzzy_disabled_inserts_copy(tmp_path: Path, write_bib: WriteBib) -> None:
    """Test --no-fuzzy semantics: a near copy with a new key is inserted."""
    target = write_bib("library.bib", CITATION_MATCHING)
    write_bib("in/a.bib", CITATION_MATCHING_COPY)

    merge_directory(tmp_path / "in", target, config=MergeConfig(fuzzy=False))

    assert _keys(load_library(target)) == ["smith2020cm", "Smith:2020"]


@pytest.mark.integration
def test_cross_file_duplicates_collapse(tmp_path: Path, write_bib: WriteBib) -> None:
    """Test the same new record in two files is inserted once."""
    target = write_bib("library.bib", SMITH_A)
    write_bib("in/one.bib", LINKAGE)
    write_bib("in/two.bib", LINKAGE.replace("lee2019", "lee2019b"))

    result = merge_directory(tmp_path / "in", target)

    assert _keys(load_library(target)) == ["smith2020", "lee2019"]
    rejection = result.batch.rejected[0]
    assert rejection.verdict.verdict == Verdict.IDENTICAL
    assert rejection.verdict.scope == "candidate"


@pytest.mark.integration
def test_partial_failure_isolated(tmp_path: Path, write_bib: WriteBib) -> None:
    """Test one malformed file among three yields exactly one error diagnostic."""
    target = write_bib("library.bib", SMITH_A)
    write_bib("in/a.bib", DOE_C)
    broken = write_bib("in/b.bib", "@article{broken, title = {Never closed}\n")
    write_bib("in/c.bib", LINKAGE)

    result = merge_directory(tmp_path / "in", target)

    errors = [d for d in result.diagnostics if d.level == DiagnosticLevel.ERROR]
    assert len(errors) == 1
    assert errors[0].source == str(broken)
    assert _keys(load_library(target)) == ["smith2020", "doe2021", "lee2019"]


@pytest.mark.integration
def test_result_independent_of_file_names(tmp_path: Path, write_bib: WriteBib) -> None:
    """Test reordering source files keeps the same set of merged records."""
    fixed = {"a.bib": DOE_C, "c.bib": LINKAGE, "e.bib": CITATION_MATCHING}
    colliding = [
        "@article{k1, title = {Alpha}, year = {2001}}\n",
        "@article{k1, title = {Beta}, year = {2002}}\n",
        "@article{k2, title = {Beta}, year = {2002}}\n",
    ]

    outcomes = set()
    for i, names in enumerate(itertools.permutations(["b.bib", "d.bib", "f.bib"])):
        for name, content in [*fixed.items(), *zip(names, colliding, strict=True)]:
            write_bib(f"run{i}/{name}", content)
        target = RecordCollection()
        MergeOrchestrator().merge_directory(tmp_path / f"run{i}", target)
        outcomes.add(frozenset((r.citation_key, r.get("title")) for r in target))

    assert len(outcomes) == 1
    (merged,) = outcomes
    assert {key for key, _ in merged} >= {"doe2021", "lee2019", "smith2020cm"}


@pytest.mark.integration
def test_biblatex_mode(tmp_path: Path, write_bib: WriteBib) -> None:
    """Test BibLaTeX field conventions feed the fuzzy check."""
    target = write_bib(
        "library.bib",
        """\
        @article{a,
          title = {Citation Matching at Scale},
          author = {Smith, John},
          journaltitle = {Scientometrics},
          date = {2020-03-01},
        }
        """,
    )
    write_bib(
        "in/a.bib",
        """\
        @article{b,
          title = {Citation matching at scale},
          author = {John Smith},
          journaltitle = {Scientometrics},
          date = {2020},
        }
        """,
    )

    result = merge_directory(
        tmp_path / "in", target, config=MergeConfig(mode="biblatex", workers=2)
    )

    assert result.inserted_count == 0
    assert result.batch.rejected[0].verdict.verdict == Verdict.FUZZY_DUPLICATE


@pytest.mark.integration
def test_merge_copied_library_tree(tmp_path: Path, write_bib: WriteBib) -> None:
    """Test merging a copy of the target's own source tree changes nothing."""
    write_bib("in/a.bib", DOE_C)
    write_bib("in/sub/b.bib", LINKAGE)
    target = tmp_path / "library.bib"
    merge_directory(tmp_path / "in", target)
    shutil.copytree(tmp_path / "in", tmp_path / "copy")
    before = target.read_bytes()

    result = merge_directory(tmp_path / "copy", target)

    assert result.inserted_count == 0
    assert target.read_bytes() == before
