"""Record source loader: one file in, one record set plus diagnostics out."""

from dataclasses import dataclass
from pathlib import Path

from bibmerge.errors import ParseError
from bibmerge.models import Diagnostic, RecordCollection, RecordOrigin
from bibmerge.parse.base import RecordSetParser
from bibmerge.parse.bibtex import BibtexParser

__all__ = ["LoadResult", "RecordSourceLoader"]


@dataclass(frozen=True)
class LoadResult:
    """Immutable result of loading a single source file.

    Attributes
    ----------
    path : Path
        File that was loaded.
    collection : RecordCollection
        Records stamped with their origin, in file order.
    diagnostics : tuple[Diagnostic, ...]
        Warnings raised while parsing.
    """

    path: Path
    collection: RecordCollection
    diagnostics: tuple[Diagnostic, ...] = ()


class RecordSourceLoader:
    """Load source files through an injected record-set parser.

    Parameters
    ----------
    parser : RecordSetParser | None, optional
        Parser collaborator, by default ``BibtexParser()``.
    """

    def __init__(self, parser: RecordSetParser | None = None) -> None:
        self.parser = parser if parser is not None else BibtexParser()

    def load(self, path: Path) -> LoadResult:
        """Load one source file.

        Parameters
        ----------
        path : Path
            File to load.

        Returns
        -------
        LoadResult
            Parsed records and warning diagnostics.

        Raises
        ------
        ParseError
            If the file cannot be parsed at all.
        """
        source = str(path)

        try:
            result = self.parser.parse(path)
        except Exception as e:
            raise ParseError(f"Parser exception: {e}", file=source) from e

        records = list(result.collection)

        if result.error_message and not records:
            raise ParseError(
                f"Failed to parse {Path(path).name}: {result.error_message}",
                file=source,
            )

        diagnostics = [Diagnostic.warning(source, message) for message in result.warnings]
        if result.error_message:
            # Partial failure: surface the error, keep the usable records
            diagnostics.append(Diagnostic.warning(source, result.error_message))

        stamped = [
            record.with_origin(RecordOrigin(source=source, index=index))
            for index, record in enumerate(records)
        ]

        return LoadResult(
            path=Path(path),
            collection=RecordCollection.from_records(stamped, enforce_unique_keys=False),
            diagnostics=tuple(diagnostics),
        )
