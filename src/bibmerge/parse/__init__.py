"""Source discovery and loading.

Main entry points:
- collect_files: Recursively find bibliography files below a directory
- RecordSourceLoader: Load one file through a record-set parser
- BibtexParser: Default record-set parser for .bib files
"""

from bibmerge.parse.base import BIB_SUFFIX, ParserResult, RecordSetParser
from bibmerge.parse.bibtex import BibtexParser, parse_bibtex_text
from bibmerge.parse.collector import collect_files
from bibmerge.parse.loader import LoadResult, RecordSourceLoader

__all__ = [
    "BIB_SUFFIX",
    "BibtexParser",
    "LoadResult",
    "ParserResult",
    "RecordSetParser",
    "RecordSourceLoader",
    "collect_files",
    "parse_bibtex_text",
]
