"""Process-wide retry queue shared by callers and the drain worker.

Every mutation, and the "worker active" flag, sit behind one lock so that
the exit decision of the worker and a concurrent append can't interleave.
"""

import threading
from dataclasses import dataclass
from typing import Any


@dataclass(eq=False)
class LogEntry:
    application_key: str
    system_key: str
    payload: Any
    raise_on_failure: bool = False
    # False until a delivery attempt succeeds; a failed attempt leaves it False
    delivered: bool = False
    attempts: int = 0


class DeliveryQueue:
    def __init__(self):
        self._entries: list[LogEntry] = []
        self._lock = threading.Lock()
        self._worker_active = False

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def worker_active(self) -> bool:
        with self._lock:
            return self._worker_active

    def append(self, entry: LogEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def snapshot(self) -> list[LogEntry]:
        with self._lock:
            return list(self._entries)

    def next_pending(self) -> LogEntry | None:
        """First undelivered entry in insertion order, or None."""
        with self._lock:
            return self._first_pending()

    def pending_count(self) -> int:
        with self._lock:
            return sum(1 for e in self._entries if not e.delivered)

    def mark_delivered(self, entry: LogEntry) -> None:
        with self._lock:
            entry.delivered = True

    def prune(self) -> int:
        """Drop delivered entries. Returns how many were removed."""
        with self._lock:
            return self._prune()

    def claim_worker(self) -> bool:
        """Flip the active flag from False to True. Only the winner starts a worker."""
        with self._lock:
            if self._worker_active:
                return False
            self._worker_active = True
            return True

    def release_worker(self, force: bool = False) -> bool:
        """Prune, then clear the active flag unless undelivered work remains.

        Returns True if the flag was cleared. With force, the flag is cleared
        even when entries are still pending; they wait for the next worker.
        """
        with self._lock:
            self._prune()
            if not force and self._first_pending() is not None:
                return False
            self._worker_active = False
            return True

    def _first_pending(self) -> LogEntry | None:
        for entry in self._entries:
            if not entry.delivered:
                return entry
        return None

    def _prune(self) -> int:
        before = len(self._entries)
        self._entries = [e for e in self._entries if not e.delivered]
        return before - len(self._entries)
