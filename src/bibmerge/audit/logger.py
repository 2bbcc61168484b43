"""Structured audit logger for JSONL event logging.

Provides append-only structured event logging to JSONL files with
a persistent file handle. Writes are serialized so that loader threads
can report through the same logger.
"""

import json
import threading
from dataclasses import asdict
from pathlib import Path
from typing import Any

from bibmerge.audit.models import LogEvent
from bibmerge.utils import get_iso_timestamp

__all__ = ["AuditLogger"]


class AuditLogger:
    """JSONL audit logger with persistent file handle.

    Writes structured log events to a JSONL file (one JSON object per line).
    Events are append-only and flushed after each write.

    Attributes
    ----------
    run_id : str
        Unique run identifier.
    log_path : Path
        Path to JSONL log file.
    """

    def __init__(self, run_id: str, log_path: Path) -> None:
        """Initialize audit logger and open file handle.

        Parameters
        ----------
        run_id : str
            Unique run identifier.
        log_path : Path
            Path to JSONL log file.
        """
        self.run_id = run_id
        self.log_path = Path(log_path)

        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self._file = self.log_path.open("a", encoding="utf-8")
        self._write_lock = threading.Lock()

    def __enter__(self) -> "AuditLogger":
        """Enter context manager."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Exit context manager and close file."""
        self.close()

    def close(self) -> None:
        """Flush and close the log file handle."""
        with self._write_lock:
            if not self._file.closed:
                self._file.flush()
                self._file.close()

    def event(
        self,
        event_type: str,
        data: dict[str, Any] | None = None,
        level: str = "INFO",
        stage: str | None = None,
        rid: str | None = None,
    ) -> None:
        """Write structured event to log.

        Parameters
        ----------
        event_type : str
            Event type identifier (e.g., "file_loaded").
        data : dict[str, Any] | None, optional
            Event-specific data payload.
        level : str, optional
            Log level ("DEBUG", "INFO", "WARN", "ERROR").
        stage : str | None, optional
            Merge stage ("collect", "load", "resolve", "commit").
        rid : str | None, optional
            Record identifier if event is record-specific.
        """
        if data is None:
            data = {}

        log_event = LogEvent(
            ts=get_iso_timestamp(),
            run_id=self.run_id,
            level=level,
            event=event_type,
            data=data,
            stage=stage,
            rid=rid,
        )

        self._write_event(log_event)

    def _write_event(self, event: LogEvent) -> None:
        line = json.dumps(asdict(event), ensure_ascii=False, separators=(",", ":"))
        with self._write_lock:
            self._file.write(line + "\n")
            self._file.flush()

    def run_started(self, command: list[str], parameters: dict[str, Any]) -> None:
        """Log run_started event.

        Parameters
        ----------
        command : list[str]
            Command-line arguments.
        parameters : dict[str, Any]
            Merge configuration.
        """
        self.event(
            "run_started",
            data={"command": command, "parameters": parameters},
        )

    def run_finished(
        self,
        status: str,
        duration_seconds: float,
        records_inserted: int | None = None,
    ) -> None:
        """Log run_finished event.

        Parameters
        ----------
        status : str
            Run status ("success", "failed", "partial").
        duration_seconds : float
            Total execution time in seconds.
        records_inserted : int | None, optional
            Records added to the target.
        """
        data: dict[str, Any] = {
            "status": status,
            "duration_seconds": duration_seconds,
        }
        if records_inserted is not None:
            data["records_inserted"] = records_inserted

        self.event("run_finished", data=data)

    def files_collected(self, root: str, files: list[str]) -> None:
        """Log files_collected event."""
        self.event(
            "files_collected",
            data={"root": root, "file_count": len(files), "files": files},
            stage="collect",
        )

    def file_loaded(self, path: str, record_count: int, warning_count: int = 0) -> None:
        """Log file_loaded event.

        Parameters
        ----------
        path : str
            Source file.
        record_count : int
            Records read from the file.
        warning_count : int, optional
            Non-fatal parser diagnostics.
        """
        self.event(
            "file_loaded",
            data={"path": path, "record_count": record_count, "warning_count": warning_count},
            stage="load",
        )

    def file_skipped(self, path: str, message: str) -> None:
        """Log file_skipped event for a file that failed to parse."""
        self.event(
            "file_skipped",
            data={"path": path, "message": message},
            level="WARN",
            stage="load",
        )

    def candidate_rejected(self, rid: str, rejection: dict[str, Any]) -> None:
        """Log candidate_rejected event.

        Parameters
        ----------
        rid : str
            Citation key or marker of the rejected candidate.
        rejection : dict[str, Any]
            Serialized ``RejectedRecord``.
        """
        self.event("candidate_rejected", data=rejection, stage="resolve", rid=rid)

    def merge_committed(self, inserted: int, rejected: int, counts: dict[str, int]) -> None:
        """Log merge_committed event."""
        self.event(
            "merge_committed",
            data={"inserted": inserted, "rejected": rejected, "verdicts": counts},
            stage="commit",
        )

    def error(
        self,
        exception_class: str,
        message: str,
        stage: str | None = None,
        rid: str | None = None,
        traceback: str | None = None,
    ) -> None:
        """Log error event.

        Parameters
        ----------
        exception_class : str
            Exception class name.
        message : str
            Error message.
        stage : str | None, optional
            Stage where error occurred.
        rid : str | None, optional
            Record identifier if error is record-specific.
        traceback : str | None, optional
            Stack trace (only in debug mode).
        """
        data: dict[str, Any] = {
            "exception_class": exception_class,
            "message": message,
        }
        if traceback is not None:
            data["traceback"] = traceback

        self.event("error", data=data, stage=stage, rid=rid, level="ERROR")
