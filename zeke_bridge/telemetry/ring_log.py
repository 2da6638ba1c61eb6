"""Bounded in-memory log of recent upstream errors.

Served by the /debug/last-errors endpoint. Only the most recent ``capacity``
entries are kept; older ones are overwritten in place.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

BODY_SNIPPET_LIMIT = 512


def snippet(text: str, limit: int = BODY_SNIPPET_LIMIT) -> str:
    """Truncate ``text`` for logs, marking the cut."""
    if len(text) <= limit:
        return text
    return text[:limit] + "...[truncated]"


@dataclass(frozen=True)
class ErrorEntry:
    """One recorded upstream failure."""

    tool: str
    endpoint: str
    status: int = 0  # 0 when no response was received
    error: str = ""
    body: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


class _ReadWriteLock:
    """Many readers or one writer. Writers are not starved by new readers."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self):
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write(self):
        with self._cond:
            self._writers_waiting += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class RingLog:
    """Fixed-capacity circular buffer of ErrorEntry.

    Thread-safe: ``record`` takes the write lock, ``snapshot`` the read lock.

    Usage:
        log = RingLog(capacity=100)
        log.record(ErrorEntry(tool="zeke_search", endpoint=url, status=503))
        recent = log.snapshot()  # oldest first
    """

    def __init__(self, capacity: int = 100):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._entries: list[ErrorEntry] = []
        self._index = 0  # Slot holding the oldest entry once full
        self._lock = _ReadWriteLock()

    def record(self, entry: ErrorEntry) -> None:
        with self._lock.write():
            if len(self._entries) < self.capacity:
                self._entries.append(entry)
            else:
                self._entries[self._index] = entry
                self._index = (self._index + 1) % self.capacity

    def snapshot(self) -> list[ErrorEntry]:
        """Copy of the entries, oldest first."""
        with self._lock.read():
            return self._entries[self._index :] + self._entries[: self._index]

    def clear(self) -> None:
        with self._lock.write():
            self._entries = []
            self._index = 0

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._entries)
