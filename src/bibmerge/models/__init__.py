"""Shared data types for bibmerge.

Domain-specific types live closer to their consumers:
- Resolution types → bibmerge.engine.models
- Audit types → bibmerge.audit.models
"""

from bibmerge.models.diagnostics import Diagnostic, DiagnosticLevel
from bibmerge.models.records import CollectionMode, Record, RecordCollection, RecordOrigin

__all__ = [
    "CollectionMode",
    "Diagnostic",
    "DiagnosticLevel",
    "Record",
    "RecordCollection",
    "RecordOrigin",
]
