"""Duplicate resolution and merge orchestration.

Main Components
---------------
- resolve: Partition candidates into novel records and rejected duplicates
- commit: Atomically insert a resolved batch into the target
- MergeOrchestrator: Collect, load, resolve and commit a whole directory
"""

from bibmerge.engine.commit import commit
from bibmerge.engine.config import (
    CANDIDATE_CHECK_NAMES,
    DEFAULT_CANDIDATE_CHECKS,
    MergeConfig,
    MergeResult,
)
from bibmerge.engine.models import DuplicateVerdict, MergeBatch, RejectedRecord, Verdict
from bibmerge.engine.orchestrator import MergeOrchestrator
from bibmerge.engine.resolution import (
    DUPLICATE_CHECKS,
    DuplicateCheck,
    ResolutionContext,
    compare,
    find_duplicate,
    resolve,
)

__all__ = [
    "CANDIDATE_CHECK_NAMES",
    "DEFAULT_CANDIDATE_CHECKS",
    "DUPLICATE_CHECKS",
    "DuplicateCheck",
    "DuplicateVerdict",
    "MergeBatch",
    "MergeConfig",
    "MergeOrchestrator",
    "MergeResult",
    "RejectedRecord",
    "ResolutionContext",
    "Verdict",
    "commit",
    "compare",
    "find_duplicate",
    "resolve",
]
