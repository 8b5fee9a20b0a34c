# services/store.py
"""Document collections the console reads and writes.

Every collection exposes the same small surface: ``subscribe`` (push of the
full current snapshot on every change), ``list``, ``create``, ``update`` and
``delete``. There is no multi-document transaction; callers rely on
last-write-wins and the next snapshot push.
"""
from __future__ import annotations

import copy
import logging
import threading
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, List

from config import settings
from services.time_utils import iso, now_utc

logger = logging.getLogger(__name__)

Snapshot = List[Dict[str, Any]]
Listener = Callable[[Snapshot], None]


class StoreError(RuntimeError):
    pass


class StoreWriteError(StoreError):
    pass


def _sort_newest_first(docs: Snapshot) -> Snapshot:
    return sorted(docs, key=lambda d: str(d.get("createdAt") or ""), reverse=True)


class MemoryCollection:
    """In-process collection with push subscriptions."""

    def __init__(self, name: str, docs: List[Dict[str, Any]] | None = None):
        self.name = name
        self._docs: Dict[str, Dict[str, Any]] = {}
        self._listeners: Dict[int, Listener] = {}
        self._next_token = 0
        self._lock = threading.RLock()
        for d in docs or []:
            d = dict(d)
            doc_id = str(d.pop("id", "") or uuid.uuid4().hex)
            self._docs[doc_id] = d

    # ---- reads ----
    def list(self) -> Snapshot:
        with self._lock:
            docs = [{"id": k, **copy.deepcopy(v)} for k, v in self._docs.items()]
        return _sort_newest_first(docs)

    def get(self, doc_id: str) -> Dict[str, Any] | None:
        with self._lock:
            d = self._docs.get(doc_id)
            return None if d is None else {"id": doc_id, **copy.deepcopy(d)}

    def subscribe(self, on_change: Listener) -> Callable[[], None]:
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._listeners[token] = on_change
        self._deliver(on_change, self.list())

        def unsubscribe() -> None:
            with self._lock:
                self._listeners.pop(token, None)

        return unsubscribe

    # ---- writes ----
    def create(self, record: Dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        stamp = iso(now_utc())
        with self._lock:
            self._docs[doc_id] = {**copy.deepcopy(record), "createdAt": stamp, "updatedAt": stamp}
        logger.debug(f"{self.name}: created {doc_id}")
        self._notify()
        return doc_id

    def update(self, doc_id: str, fields: Dict[str, Any]) -> None:
        with self._lock:
            if doc_id not in self._docs:
                raise StoreWriteError(f"{self.name}/{doc_id} does not exist")
            self._docs[doc_id].update(copy.deepcopy(fields))
            self._docs[doc_id]["updatedAt"] = iso(now_utc())
        self._notify()

    def delete(self, doc_id: str) -> None:
        with self._lock:
            self._docs.pop(doc_id, None)
        self._notify()

    # ---- fan-out ----
    def _deliver(self, listener: Listener, snapshot: Snapshot) -> None:
        try:
            listener(snapshot)
        except Exception:
            logger.exception(f"{self.name}: snapshot listener failed")

    def _notify(self) -> None:
        with self._lock:
            listeners = list(self._listeners.values())
        for fn in listeners:
            self._deliver(fn, self.list())


@dataclass
class Stores:
    duties: Any
    officers: Any
    vehicles: Any
    activities: Any

    def items(self):
        return {
            settings.DUTIES_COLLECTION: self.duties,
            settings.OFFICERS_COLLECTION: self.officers,
            settings.VEHICLES_COLLECTION: self.vehicles,
            settings.ACTIVITIES_COLLECTION: self.activities,
        }.items()


def build_stores(backend: str = settings.STORE_BACKEND) -> Stores:
    """Collections for the configured backend ("memory" or "firestore")."""
    names = (
        settings.DUTIES_COLLECTION,
        settings.OFFICERS_COLLECTION,
        settings.VEHICLES_COLLECTION,
        settings.ACTIVITIES_COLLECTION,
    )
    if backend == "firestore":
        from services.firestore_rest import FirestoreCollection

        if not settings.FIRESTORE_PROJECT:
            raise StoreError("FIRESTORE_PROJECT is required for the firestore backend")
        cols = [
            FirestoreCollection(
                project=settings.FIRESTORE_PROJECT,
                collection=n,
                api_key=settings.FIRESTORE_API_KEY or None,
                database=settings.FIRESTORE_DATABASE,
            )
            for n in names
        ]
    elif backend == "memory":
        cols = [MemoryCollection(n) for n in names]
    else:
        raise StoreError(f"Unknown store backend: {backend!r}")
    logger.info(f"Store backend: {backend}")
    return Stores(*cols)
