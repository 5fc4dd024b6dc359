from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, Mapping

GET = "GET"
POST = "POST"
DELETE = "DELETE"


@dataclass(frozen=True)
class StatsSnapshot:
    """Point-in-time copy of the store counters."""

    total_requests: int
    data_size: int
    method_count: Dict[str, int] = field(default_factory=dict)
    errors: int = 0

    def as_dict(self) -> Dict[str, object]:
        return {
            "total_requests": self.total_requests,
            "data_size": self.data_size,
            "method_count": dict(self.method_count),
            "errors": self.errors,
        }


class KeyValueStore:
    """Thread-safe in-memory key-value store with request counters.

    Every operation holds the same lock for its whole body, so a data change
    and the counters describing it become visible together.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[str, str] = {}
        self._total_requests = 0
        self._method_count: Dict[str, int] = {}
        self._error_count = 0

    def _record(self, method: str) -> None:
        # caller holds the lock
        self._total_requests += 1
        self._method_count[method] = self._method_count.get(method, 0) + 1

    def put_many(self, pairs: Mapping[str, str]) -> None:
        with self._lock:
            for key, value in pairs.items():
                self._entries[key] = value
            self._record(POST)

    def get_all(self) -> Dict[str, str]:
        with self._lock:
            self._record(GET)
            return dict(self._entries)

    def delete_one(self, key: str) -> bool:
        """Remove ``key``. A miss changes nothing; the caller records it as an error."""
        with self._lock:
            if key not in self._entries:
                return False
            del self._entries[key]
            self._record(DELETE)
            return True

    def stats(self, record: bool = True) -> StatsSnapshot:
        """
        Take a consistent snapshot of the counters.
        With ``record`` the read counts as a GET request and is included in the snapshot.
        """
        with self._lock:
            if record:
                self._record(GET)
            return StatsSnapshot(
                total_requests=self._total_requests,
                data_size=len(self._entries),
                method_count=dict(self._method_count),
                errors=self._error_count,
            )

    def increment_error(self) -> None:
        with self._lock:
            self._error_count += 1
