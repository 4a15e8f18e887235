"""
Processor statistics.

Written only by the MessageProcessor; safe to read from any thread at any
time, including while a pass is running.
"""

import time
from datetime import datetime, timezone
from threading import Lock
from typing import Optional, Dict, Any


class ProcessorStats:

    def __init__(self):
        self._lock = Lock()
        self._started_monotonic = time.monotonic()
        self.started_at = datetime.now(timezone.utc)
        self._is_processing = False
        self._pass_count = 0
        self._last_pass_completed_at: Optional[datetime] = None
        self._skipped_count = 0
        self._aborted_count = 0
        self._delivered_total = 0
        self._failed_total = 0
        self._last_pass: Optional[Dict[str, Any]] = None

    # ===== Writers (scheduler only) =====

    def set_processing(self, value: bool):
        with self._lock:
            self._is_processing = value

    def record_completed(self, summary: Dict[str, Any], completed_at: datetime):
        with self._lock:
            self._pass_count += 1
            self._last_pass_completed_at = completed_at
            self._delivered_total += summary.get("delivered", 0)
            self._failed_total += summary.get("failed", 0)
            self._last_pass = summary

    def record_aborted(self, summary: Dict[str, Any]):
        with self._lock:
            self._aborted_count += 1
            self._last_pass = summary

    def record_skipped(self):
        with self._lock:
            self._skipped_count += 1

    # ===== Readers =====

    @property
    def is_processing(self) -> bool:
        with self._lock:
            return self._is_processing

    @property
    def pass_count(self) -> int:
        with self._lock:
            return self._pass_count

    @property
    def last_pass_completed_at(self) -> Optional[datetime]:
        with self._lock:
            return self._last_pass_completed_at

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "is_processing": self._is_processing,
                "pass_count": self._pass_count,
                "last_pass_completed_at": (
                    self._last_pass_completed_at.isoformat()
                    if self._last_pass_completed_at else None
                ),
                "skipped_count": self._skipped_count,
                "aborted_count": self._aborted_count,
                "delivered_total": self._delivered_total,
                "failed_total": self._failed_total,
                "last_pass": dict(self._last_pass) if self._last_pass else None,
                "started_at": self.started_at.isoformat(),
                "uptime_seconds": round(time.monotonic() - self._started_monotonic, 1),
            }
