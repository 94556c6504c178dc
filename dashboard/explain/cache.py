from __future__ import annotations
from typing import Dict, Optional
import threading


def cache_key(label: str, value: float) -> str:
    """Identity of a chart point. 2, 2.0 and "2.00" map to the same key."""
    return f"{label}-{float(value)!r}"


class ExplanationCache:
    """Explanation text by point identity. No eviction; `_evict` is the hook for one."""

    def __init__(self):
        self._entries: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, label: str, value: float) -> Optional[str]:
        with self._lock:
            return self._entries.get(cache_key(label, value))

    def put(self, label: str, value: float, text: str) -> None:
        with self._lock:
            self._entries[cache_key(label, value)] = text
            self._evict()

    def _evict(self) -> None:
        pass

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
