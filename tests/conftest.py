"""Pytest configuration and fixtures for test suite."""

import sys
import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

# Add src directory to path for imports
SRC_PATH = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(SRC_PATH))

from bibmerge.models import Record  # noqa: E402


@pytest.fixture
def make_record() -> Callable[..., Record]:
    """Factory for test records with minimal boilerplate.

    Keyword arguments other than ``kind`` and ``key`` become fields.
    """

    def _factory(kind: str = "article", key: str = "", **fields: str) -> Record:
        return Record(kind=kind, fields=fields, citation_key=key)

    return _factory


@pytest.fixture
def write_bib(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write BibTeX text to a path relative to ``tmp_path``."""

    def _write(relpath: str, content: str) -> Path:
        path = tmp_path / relpath
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content), encoding="utf-8")
        return path

    return _write
