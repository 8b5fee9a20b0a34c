# services/cache.py
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class _Entry:
    def __init__(self, store: Any):
        self.store = store
        self.refs = 0
        self.version = 0
        self.snapshot: List[Dict[str, Any]] = []
        self.unsubscribe: Optional[Callable[[], None]] = None


class SnapshotCache:
    """One store subscription per collection, shared by every reader.

    Readers ``acquire`` a collection and pull ``snapshot()`` whenever they
    render; the store listener is attached on the first acquire and removed
    when the last holder releases.
    """

    def __init__(self):
        self._entries: Dict[str, _Entry] = {}
        self._lock = threading.RLock()
        # serialises first subscriptions; store I/O never runs under _lock
        self._attach_lock = threading.Lock()

    def acquire(self, name: str, store: Any) -> None:
        with self._attach_lock:
            with self._lock:
                entry = self._entries.get(name)
                if entry is not None:
                    if entry.store is not store:
                        raise ValueError(f"Collection {name!r} is already cached for a different store")
                    entry.refs += 1
                    return
            entry = _Entry(store)

            def on_change(docs: List[Dict[str, Any]]) -> None:
                with self._lock:
                    entry.snapshot = list(docs)
                    entry.version += 1

            # a failing subscribe leaves nothing registered
            entry.unsubscribe = store.subscribe(on_change)
            with self._lock:
                entry.refs = 1
                self._entries[name] = entry
        logger.debug(f"cache: subscribed to {name}")

    def release(self, name: str) -> None:
        with self._lock:
            entry = self._entries.get(name)
            if entry is None:
                return
            entry.refs -= 1
            if entry.refs > 0:
                return
            del self._entries[name]
        if entry.unsubscribe is not None:
            entry.unsubscribe()
        logger.debug(f"cache: unsubscribed from {name}")

    def snapshot(self, name: str) -> List[Dict[str, Any]]:
        with self._lock:
            entry = self._entries.get(name)
            return list(entry.snapshot) if entry else []

    def version(self, name: str) -> int:
        with self._lock:
            entry = self._entries.get(name)
            return entry.version if entry else 0

    def holders(self, name: str) -> int:
        with self._lock:
            entry = self._entries.get(name)
            return entry.refs if entry else 0

    @contextmanager
    def lease(self, name: str, store: Any):
        self.acquire(name, store)
        try:
            yield lambda: self.snapshot(name)
        finally:
            self.release(name)


CACHE = SnapshotCache()
