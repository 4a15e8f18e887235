"""
Centralized logging for the FutureMe delivery engine.

AppLogger writes each record twice: to the standard library logger
``futureme.<source>`` and to a bounded in-memory ring. The admin routes
read the ring to show recent processor activity and delivery failures
without shell access to the host.
"""

import logging
from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from threading import Lock
from typing import Any, Deque, Dict, List, Optional


class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    @property
    def is_error(self) -> bool:
        return self in (LogLevel.ERROR, LogLevel.CRITICAL)


@dataclass(frozen=True)
class LogEntry:
    """One buffered record. Metadata holds ids and error text, never message content."""

    level: LogLevel
    message: str
    source: str = "system"
    metadata: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "level": self.level.value,
            "source": self.source,
            "message": self.message,
            "metadata": dict(self.metadata),
        }


class LogBuffer:
    """
    Ring of the most recent entries, safe to share between threads.

    Passes run on the event loop while uvicorn may serve admin reads from
    a threadpool, so all access is serialized by one lock. The error and
    warning counters cover everything since the last clear(), including
    entries that have already rotated out of the ring.
    """

    def __init__(self, max_size: int = 1000):
        self._entries: Deque[LogEntry] = deque(maxlen=max_size)
        self._lock = Lock()
        self._seen: Counter = Counter()

    def add(self, entry: LogEntry):
        with self._lock:
            self._entries.append(entry)
            self._seen[entry.level] += 1

    def _snapshot(self) -> List[LogEntry]:
        with self._lock:
            return list(self._entries)

    def get_recent(
        self,
        limit: int = 100,
        level: Optional[LogLevel] = None,
        source: Optional[str] = None,
        message_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Newest first. ``message_id`` matches the metadata key of the same name."""
        matched = []
        for entry in reversed(self._snapshot()):
            if level and entry.level != level:
                continue
            if source and entry.source != source:
                continue
            if message_id and entry.metadata.get("message_id") != message_id:
                continue
            matched.append(entry.to_dict())
            if len(matched) >= limit:
                break
        return matched

    def get_errors(self, limit: int = 50) -> List[Dict[str, Any]]:
        errors = [e for e in reversed(self._snapshot()) if e.level.is_error]
        return [e.to_dict() for e in errors[:limit]]

    def get_stats(self) -> Dict[str, Any]:
        entries = self._snapshot()
        with self._lock:
            seen = Counter(self._seen)

        return {
            "total": len(entries),
            "by_level": dict(Counter(e.level.value for e in entries)),
            "by_source": dict(Counter(e.source for e in entries)),
            "error_count": seen[LogLevel.ERROR] + seen[LogLevel.CRITICAL],
            "warning_count": seen[LogLevel.WARNING],
        }

    def clear(self):
        with self._lock:
            self._entries.clear()
            self._seen.clear()


_log_buffer = LogBuffer()


def get_log_buffer() -> LogBuffer:
    """Process-wide buffer shared by every AppLogger."""
    return _log_buffer


def _format(message: str, metadata: Dict[str, Any]) -> str:
    if not metadata:
        return message
    pairs = " ".join(f"{key}={value}" for key, value in metadata.items())
    return f"{message} | {pairs}"


class AppLogger:
    """
    Source-tagged logger. Keyword arguments become structured metadata:

        logger.error("Delivery failed", message_id=message.id, kind="transport")
    """

    def __init__(self, source: str):
        self.source = source
        self._logger = logging.getLogger(f"futureme.{source}")

    def log(self, level: LogLevel, message: str, **metadata):
        _log_buffer.add(LogEntry(level, message, self.source, metadata))
        self._logger.log(
            getattr(logging, level.name),
            _format(message, metadata),
            extra={"source": self.source},
        )

    def debug(self, message: str, **metadata):
        self.log(LogLevel.DEBUG, message, **metadata)

    def info(self, message: str, **metadata):
        self.log(LogLevel.INFO, message, **metadata)

    def warning(self, message: str, **metadata):
        self.log(LogLevel.WARNING, message, **metadata)

    def error(self, message: str, **metadata):
        self.log(LogLevel.ERROR, message, **metadata)

    def critical(self, message: str, **metadata):
        self.log(LogLevel.CRITICAL, message, **metadata)


def get_logger(source: str) -> AppLogger:
    return AppLogger(source)


def configure_logging(level: str = "INFO"):
    """Attach a stream handler to the root logger once, at process start."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


processor_logger = get_logger("processor")
email_logger = get_logger("email")
crypto_logger = get_logger("crypto")
store_logger = get_logger("store")
admin_logger = get_logger("admin")
