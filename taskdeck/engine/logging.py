"""
TaskDeck Logging — stdlib logger setup plus structured JSONL diagnostics.

Implements:
- setup_logging(): level/format for the ``taskdeck`` logger tree
- FileLogger: per-category JSONL files with daily rotation
- Log entry builders for backend calls
- A process-wide file logger used by the backend adapters
"""

from __future__ import annotations

import json
import logging
import threading
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger("taskdeck.engine.logging")

# Diagnostic channels, one folder each
CATEGORIES = ("tasks", "storage", "auth")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Attach a stream handler to the ``taskdeck`` logger. Safe to call twice."""
    root = logging.getLogger("taskdeck")
    root.setLevel(level.upper())
    if not any(getattr(h, "_taskdeck_handler", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._taskdeck_handler = True  # type: ignore[attr-defined]
        root.addHandler(handler)


class LogEntry:
    """A structured log entry destined for a category file."""

    __slots__ = ("category", "data")

    def __init__(self, category: str, data: Dict[str, Any]):
        self.category = category
        self.data = data

    def to_json(self) -> str:
        return json.dumps(self.data, default=str, separators=(",", ":"))


class FileLogger:
    """
    Writes structured JSON log entries to per-category files.
    Files rotate daily: {log_dir}/{category}/{YYYY-MM-DD}.jsonl

    Thread-safe — uses a lock per file path.
    """

    def __init__(self, log_dir: str = ".taskdeck/logs"):
        self._log_dir = Path(log_dir)
        self._file_locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        for cat in CATEGORIES:
            (self._log_dir / cat).mkdir(parents=True, exist_ok=True)

    def write(self, entry: LogEntry) -> None:
        """Write a single log entry to the appropriate file."""
        if entry.category not in CATEGORIES:
            raise ValueError(f"Unknown log category: {entry.category}")
        file_path = self._resolve_path(entry.category)
        key = str(file_path)

        with self._file_locks[key]:
            with open(file_path, "a", encoding="utf-8") as f:
                f.write(entry.to_json())
                f.write("\n")

    def _resolve_path(self, category: str, day: Optional[date] = None) -> Path:
        day = day or date.today()
        return self._log_dir / category / f"{day.isoformat()}.jsonl"

    @property
    def log_dir(self) -> Path:
        return self._log_dir

    def query(
        self,
        category: str,
        *,
        days: int = 7,
        filters: Optional[Dict[str, Any]] = None,
        limit: int = 500,
    ) -> List[Dict[str, Any]]:
        """
        Read entries for a category from the last ``days`` days.

        Returns:
            List of parsed entry dicts, newest first.
        """
        results: List[Dict[str, Any]] = []
        today = date.today()
        for offset in range(days):
            path = self._resolve_path(category, today - timedelta(days=offset))
            if not path.exists():
                continue
            day_entries: List[Dict[str, Any]] = []
            try:
                with open(path, "r", encoding="utf-8") as f:
                    for line in f:
                        line = line.strip()
                        if not line:
                            continue
                        try:
                            data = json.loads(line)
                        except json.JSONDecodeError:
                            continue
                        if filters and not all(data.get(k) == v for k, v in filters.items()):
                            continue
                        day_entries.append(data)
            except OSError as exc:
                logger.warning("Could not read log file %s: %s", path, exc)
                continue
            # Lines within a file are chronological
            results.extend(reversed(day_entries))
            if len(results) >= limit:
                break
        return results[:limit]


# ---------------------------------------------------------------------------
# Log Entry Builders
# ---------------------------------------------------------------------------

def log_backend_event(
    category: str,
    operation: str,
    success: bool,
    duration_ms: Optional[float] = None,
    status_code: Optional[int] = None,
    record_id: Optional[Any] = None,
    error: Optional[Dict[str, Any]] = None,
    **extra: Any,
) -> LogEntry:
    """Build a backend call log entry."""
    data: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": "INFO" if success else "ERROR",
        "event": f"{category}.{operation}",
        "operation": operation,
        "success": success,
    }
    if duration_ms is not None:
        data["duration_ms"] = round(duration_ms, 2)
    if status_code is not None:
        data["status_code"] = status_code
    if record_id is not None:
        data["record_id"] = record_id
    if error:
        data["error"] = error
    data.update(extra)
    return LogEntry(category, data)


# ---------------------------------------------------------------------------
# Convenience: process-wide file logger
# ---------------------------------------------------------------------------

_file_logger: Optional[FileLogger] = None


def init_file_logging(log_dir: str) -> FileLogger:
    """Initialize the process-wide file logger."""
    global _file_logger
    _file_logger = FileLogger(log_dir=log_dir)
    return _file_logger


def get_file_logger() -> Optional[FileLogger]:
    return _file_logger


def log(entry: LogEntry) -> bool:
    """Write an entry to the process-wide file logger, if one is set up."""
    if _file_logger is None:
        return False
    try:
        _file_logger.write(entry)
    except OSError as e:
        logger.error(f"Failed to write diagnostic entry: {e}")
        return False
    return True


def shutdown_logging() -> None:
    global _file_logger
    _file_logger = None
