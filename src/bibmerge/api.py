"""Public API for merging bibliographies.

This module provides the main public API for bibmerge, enabling:
- Loading a .bib file into a RecordCollection
- Merging every .bib file under a directory into a target bibliography
- Writing a collection back to BibTeX
"""

from __future__ import annotations

import sys
import time
from pathlib import Path

from bibmerge.audit import AuditLogger, generate_run_id
from bibmerge.engine import MergeConfig, MergeOrchestrator, MergeResult
from bibmerge.errors import BibMergeError, MergeInvariantError, UnsafeOverwriteError
from bibmerge.models import Diagnostic, RecordCollection
from bibmerge.parse import RecordSetParser, RecordSourceLoader
from bibmerge.scoring import DuplicateDetector
from bibmerge.writer import write_bibtex

__all__ = [
    "load_library",
    "merge_directory",
    "write_library",
]


def load_library(
    path: str | Path,
    *,
    parser: RecordSetParser | None = None,
) -> RecordCollection:
    """Load a bibliography file into a collection.

    Parameters
    ----------
    path : str | Path
        Path to a .bib file.
    parser : RecordSetParser | None, optional
        Parser to use, by default ``BibtexParser``.

    Returns
    -------
    RecordCollection
        Records in file order, with unique citation keys.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ParseError
        If the file cannot be parsed.
    MergeInvariantError
        If two entries of the file share a citation key.

    Examples
    --------
        >>> from bibmerge import load_library
        >>> library = load_library("thesis.bib")
        >>> print(len(library))
    """
    file_path = Path(path)

    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    result = RecordSourceLoader(parser).load(file_path)
    return RecordCollection.from_records(result.collection)


def write_library(collection: RecordCollection, path: str | Path) -> None:
    """Write a collection to a .bib file.

    Output is deterministic: records in collection order, fields in record
    order, UTF-8 with LF line endings.

    Parameters
    ----------
    collection : RecordCollection
        Records to write.
    path : str | Path
        Output file path.
    """
    write_bibtex(collection, Path(path))


def merge_directory(
    root: str | Path,
    target: str | Path | RecordCollection,
    *,
    output: str | Path | None = None,
    config: MergeConfig | None = None,
    parser: RecordSetParser | None = None,
    detector: DuplicateDetector | None = None,
    log_path: str | Path | None = None,
) -> MergeResult:
    """Merge every .bib file under *root* into *target*.

    Parameters
    ----------
    root : str | Path
        Directory searched recursively for source files.
    target : str | Path | RecordCollection
        Target collection, or path of the target .bib file. A path that
        does not exist yet starts from an empty collection.
    output : str | Path | None, optional
        Where to write the merged bibliography. Defaults to the target path
        when *target* is a path; nothing is written for an in-memory target
        without *output*. Warnings raised while loading a target file are
        prepended to the result's diagnostics.
    config : MergeConfig | None, optional
        Merge configuration, by default ``MergeConfig()``.
    parser : RecordSetParser | None, optional
        Parser for source files, by default ``BibtexParser``.
    detector : DuplicateDetector | None, optional
        Fuzzy duplicate detector, by default ``FieldDuplicateDetector``.
    log_path : str | Path | None, optional
        JSONL audit log to append events to.

    Returns
    -------
    MergeResult
        The merged target, diagnostics in file order and the committed batch.

    Raises
    ------
    DirectoryReadError
        If *root* or one of its subdirectories cannot be listed.
    ParseError
        If the target file exists but cannot be parsed.
    UnsafeOverwriteError
        If the target file would be rewritten in place although loading it
        raised warnings (skipped @string/@preamble/@comment blocks, macro
        references, repeated fields). Nothing is merged in that case.
    MergeInvariantError
        If a record to insert collides with an existing citation key.

    Examples
    --------
        >>> from bibmerge import merge_directory
        >>> result = merge_directory("incoming/", "library.bib")
        >>> print(result.inserted_count, result.rejected_count)
    """
    target_diagnostics: list[Diagnostic] = []
    if isinstance(target, RecordCollection):
        collection = target
        output_path = Path(output) if output is not None else None
    else:
        target_path = Path(target)
        collection, target_diagnostics = _load_target(target_path, parser)
        if output is None and target_diagnostics:
            reasons = tuple(d.message for d in target_diagnostics)
            more = f" and {len(reasons) - 1} more" if len(reasons) > 1 else ""
            raise UnsafeOverwriteError(
                f"Refusing to overwrite {target_path}: it holds content that would be "
                f"lost on rewrite ({reasons[0]}{more}). "
                "Write the merged bibliography to another file instead.",
                path=str(target_path),
                reasons=reasons,
            )
        output_path = Path(output) if output is not None else target_path

    config = config if config is not None else MergeConfig()
    logger = AuditLogger(generate_run_id(), Path(log_path)) if log_path is not None else None

    try:
        result = _run_merge(root, collection, output_path, config, parser, detector, logger)
    finally:
        if logger is not None:
            logger.close()

    result.diagnostics = [*target_diagnostics, *result.diagnostics]
    return result


def _load_target(
    target_path: Path,
    parser: RecordSetParser | None,
) -> tuple[RecordCollection, list[Diagnostic]]:
    if not target_path.exists():
        return RecordCollection(), []

    result = RecordSourceLoader(parser).load(target_path)
    return RecordCollection.from_records(result.collection), list(result.diagnostics)


def _run_merge(
    root: str | Path,
    collection: RecordCollection,
    output_path: Path | None,
    config: MergeConfig,
    parser: RecordSetParser | None,
    detector: DuplicateDetector | None,
    logger: AuditLogger | None,
) -> MergeResult:
    start_time = time.perf_counter()

    if logger:
        logger.run_started(command=list(sys.argv), parameters=config.to_dict())

    orchestrator = MergeOrchestrator(parser=parser, detector=detector, config=config, logger=logger)

    try:
        result = orchestrator.merge_directory(root, collection)
        if output_path is not None:
            write_bibtex(result.collection, output_path)
    except (BibMergeError, OSError) as e:
        if logger:
            # Commit failures are already logged by the orchestrator
            if not isinstance(e, MergeInvariantError):
                logger.error(type(e).__name__, str(e))
            logger.run_finished("failed", time.perf_counter() - start_time)
        raise

    if logger:
        status = "partial" if result.skipped_files else "success"
        logger.run_finished(
            status,
            time.perf_counter() - start_time,
            records_inserted=result.inserted_count,
        )

    return result
