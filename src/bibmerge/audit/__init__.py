"""Structured JSONL audit logging for merge runs."""

from bibmerge.audit.helpers import generate_run_id
from bibmerge.audit.logger import AuditLogger
from bibmerge.audit.models import LogEvent

__all__ = ["AuditLogger", "LogEvent", "generate_run_id"]
