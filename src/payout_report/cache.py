"""Get-or-populate lookup caches used during one collection run."""

from __future__ import annotations

import threading
from typing import Callable, Dict, Generic, TypeVar

_T = TypeVar("_T")


class LookupCache(Generic[_T]):
    """Thread-safe id-keyed cache that fetches on first access.

    The fetch itself runs outside the lock, so two workers asking for the
    same missing key may both fetch it; the last writer wins.  Both
    writers hold the same value, so that is harmless.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._entries: Dict[str, _T] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get_or_fetch(self, key: str, fetch: Callable[[str], _T]) -> _T:
        with self._lock:
            if key in self._entries:
                self.hits += 1
                return self._entries[key]
            self.misses += 1
        value = fetch(key)
        with self._lock:
            self._entries[key] = value
        return value

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
