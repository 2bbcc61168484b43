"""BibTeX writer for record collections."""

from collections.abc import Iterable
from pathlib import Path

from bibmerge.models import Record

__all__ = ["format_bibtex", "format_record", "write_bibtex"]

FIELD_INDENT = "  "


def format_record(record: Record) -> str:
    """Format one record as a BibTeX entry.

    Fields are written in record order, each value wrapped in braces.

    Parameters
    ----------
    record : Record
        Record to format.

    Returns
    -------
    str
        Entry text, e.g. ``@article{smith2020,\\n  title = {X},\\n}``.
    """
    lines = [f"@{record.kind}{{{record.citation_key},"]
    for name, value in record.fields.items():
        lines.append(f"{FIELD_INDENT}{name} = {{{value}}},")
    lines.append("}")
    return "\n".join(lines)


def format_bibtex(records: Iterable[Record]) -> str:
    """Format records as BibTeX text, entries separated by a blank line.

    Parameters
    ----------
    records : Iterable[Record]
        Records in output order (a ``RecordCollection`` works).

    Returns
    -------
    str
        BibTeX text ending with a newline, or "" for no records.
    """
    entries = [format_record(record) for record in records]
    if not entries:
        return ""
    return "\n\n".join(entries) + "\n"


def write_bibtex(records: Iterable[Record], output_path: Path) -> None:
    """Write records to a .bib file (UTF-8, LF line endings).

    Parameters
    ----------
    records : Iterable[Record]
        Records in output order.
    output_path : Path
        Output file path.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with output_path.open("w", encoding="utf-8", newline="\n") as f:
        f.write(format_bibtex(records))
