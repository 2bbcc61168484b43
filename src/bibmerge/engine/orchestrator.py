"""Directory merge orchestrator.

Chains the merge stages into a single deterministic operation:

    collect  -> ordered list of source files under the root directory
    load     -> one candidate collection per file, failures become diagnostics
    resolve  -> partition of all candidates against the target
    commit   -> atomic insert of the novel records

A file that fails to parse never aborts the run. An unreadable directory
or a citation-key collision at commit time does.
"""

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from bibmerge.audit.logger import AuditLogger
from bibmerge.engine.commit import commit
from bibmerge.engine.config import MergeConfig, MergeResult
from bibmerge.engine.resolution import resolve
from bibmerge.errors import MergeInvariantError, ParseError
from bibmerge.models import Diagnostic, Record, RecordCollection
from bibmerge.parse import LoadResult, RecordSetParser, RecordSourceLoader, collect_files
from bibmerge.scoring import DuplicateDetector, FieldDuplicateDetector

__all__ = ["MergeOrchestrator"]


class MergeOrchestrator:
    """Merge every bibliography file under a directory into a target collection.

    Parameters
    ----------
    parser : RecordSetParser | None, optional
        Parser for source files, by default ``BibtexParser``.
    detector : DuplicateDetector | None, optional
        Fuzzy duplicate detector. By default a ``FieldDuplicateDetector``
        built from ``config.detector``; ignored when ``config.fuzzy`` is False.
    config : MergeConfig | None, optional
        Merge configuration, by default ``MergeConfig()``.
    logger : AuditLogger | None, optional
        Receives progress events when given.
    """

    def __init__(
        self,
        parser: RecordSetParser | None = None,
        detector: DuplicateDetector | None = None,
        config: MergeConfig | None = None,
        logger: AuditLogger | None = None,
    ) -> None:
        self.config = config if config is not None else MergeConfig()
        self.loader = RecordSourceLoader(parser)
        self.logger = logger

        if not self.config.fuzzy:
            self.detector: DuplicateDetector | None = None
        elif detector is not None:
            self.detector = detector
        else:
            self.detector = FieldDuplicateDetector(self.config.detector)

    # -----------------------------------------------------------------------
    # Stages
    # -----------------------------------------------------------------------

    def _collect(self, root: Path) -> list[Path]:
        files = collect_files(root, suffix=self.config.suffix)
        if self.logger:
            self.logger.files_collected(str(root), [str(f) for f in files])
        return files

    def _load_one(self, path: Path) -> LoadResult | ParseError:
        try:
            return self.loader.load(path)
        except ParseError as e:
            return e

    def _load_all(self, files: list[Path]) -> list[LoadResult | ParseError]:
        if self.config.workers > 1 and len(files) > 1:
            # map() yields in submission order whatever the completion order
            with ThreadPoolExecutor(max_workers=self.config.workers) as ex:
                return list(ex.map(self._load_one, files))
        return [self._load_one(path) for path in files]

    def _gather(
        self,
        files: list[Path],
        outcomes: list[LoadResult | ParseError],
    ) -> tuple[list[Record], list[Diagnostic]]:
        candidates: list[Record] = []
        diagnostics: list[Diagnostic] = []

        for path, outcome in zip(files, outcomes, strict=True):
            if isinstance(outcome, ParseError):
                diagnostics.append(Diagnostic.error(str(path), str(outcome)))
                if self.logger:
                    self.logger.file_skipped(str(path), str(outcome))
                continue

            diagnostics.extend(outcome.diagnostics)
            candidates.extend(outcome.collection)
            if self.logger:
                self.logger.file_loaded(
                    str(path),
                    record_count=len(outcome.collection),
                    warning_count=len(outcome.diagnostics),
                )

        return candidates, diagnostics

    # -----------------------------------------------------------------------
    # Entry point
    # -----------------------------------------------------------------------

    def merge_directory(self, root: Path | str, target: RecordCollection) -> MergeResult:
        """Merge all source files under *root* into *target*.

        Parameters
        ----------
        root : Path | str
            Directory searched recursively for source files.
        target : RecordCollection
            Collection that receives the novel records.

        Returns
        -------
        MergeResult
            The target, ordered diagnostics and the committed batch.

        Raises
        ------
        DirectoryReadError
            If *root* or one of its subdirectories cannot be listed.
        MergeInvariantError
            If a record to insert collides with an existing citation key.
            The target is left unchanged.
        """
        root = Path(root)
        files = self._collect(root)
        outcomes = self._load_all(files)
        candidates, diagnostics = self._gather(files, outcomes)

        batch = resolve(
            target,
            candidates,
            detector=self.detector,
            mode=self.config.mode,
            candidate_checks=self.config.candidate_checks,
        )

        if self.logger:
            for rejection in batch.rejected:
                self.logger.candidate_rejected(rejection.record.label(), rejection.to_dict())

        try:
            commit(target, batch)
        except MergeInvariantError as e:
            if self.logger:
                self.logger.error(type(e).__name__, str(e), stage="commit", rid=e.citation_key)
            raise

        if self.logger:
            self.logger.merge_committed(
                inserted=len(batch.to_insert),
                rejected=len(batch.rejected),
                counts=batch.counts(),
            )

        return MergeResult(
            collection=target,
            diagnostics=diagnostics,
            batch=batch,
            files=files,
        )
