# services/firestore_rest.py
"""Firestore collection over the REST v1 API.

The web console listened with Firestore's realtime SDK; from Python the REST
surface is polled instead. ``subscribe`` delivers the current snapshot at
once and ``refresh()`` re-reads the collection, pushing to listeners only
when something changed. Each push is the full snapshot, never a delta.
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import requests

from config import settings
from services.store import Listener, Snapshot, StoreError, StoreWriteError, _sort_newest_first
from services.time_utils import iso, now_utc

logger = logging.getLogger(__name__)

API_ROOT = "https://firestore.googleapis.com/v1"
PAGE_SIZE = 300


# ── Typed value codec ────────────────────────────────────────────────────────
def encode_value(v: Any) -> Dict[str, Any]:
    if v is None:
        return {"nullValue": None}
    if isinstance(v, bool):
        return {"booleanValue": v}
    if isinstance(v, int):
        return {"integerValue": str(v)}
    if isinstance(v, float):
        return {"doubleValue": v}
    if isinstance(v, datetime):
        return {"timestampValue": iso(v)}
    if isinstance(v, dict):
        return {"mapValue": {"fields": encode_fields(v)}}
    if isinstance(v, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(x) for x in v]}}
    return {"stringValue": str(v)}


def encode_fields(d: Dict[str, Any]) -> Dict[str, Any]:
    return {str(k): encode_value(v) for k, v in d.items()}


def decode_value(v: Dict[str, Any]) -> Any:
    if not isinstance(v, dict) or not v:
        return None
    kind, raw = next(iter(v.items()))
    if kind == "nullValue":
        return None
    if kind == "integerValue":
        return int(raw)
    if kind == "doubleValue":
        return float(raw)
    if kind == "arrayValue":
        return [decode_value(x) for x in (raw or {}).get("values", [])]
    if kind == "mapValue":
        return decode_fields((raw or {}).get("fields", {}))
    if kind == "geoPointValue":
        return {"latitude": raw.get("latitude"), "longitude": raw.get("longitude")}
    # booleanValue, stringValue, timestampValue (kept as ISO text), referenceValue, bytesValue
    return raw


def decode_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {k: decode_value(v) for k, v in (fields or {}).items()}


def decode_document(doc: Dict[str, Any]) -> Dict[str, Any]:
    doc_id = str(doc.get("name", "")).rsplit("/", 1)[-1]
    return {"id": doc_id, **decode_fields(doc.get("fields", {}))}


# ── Collection ───────────────────────────────────────────────────────────────
class FirestoreCollection:
    def __init__(
        self,
        project: str,
        collection: str,
        api_key: Optional[str] = None,
        token: Optional[str] = None,
        database: str = "(default)",
        session: Optional[requests.Session] = None,
        timeout: int = settings.FIRESTORE_TIMEOUT_SEC,
    ):
        self.name = collection
        self.base = f"{API_ROOT}/projects/{project}/databases/{database}/documents/{collection}"
        self.api_key = api_key
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()
        self._listeners: Dict[int, Listener] = {}
        self._next_token = 0
        self._snapshot: Optional[Snapshot] = None
        self._lock = threading.RLock()

    # ---- http helpers ----
    def _headers(self) -> Dict[str, str]:
        h = {"Accept": "application/json"}
        if self.token:
            h["Authorization"] = f"Bearer {self.token}"
        return h

    def _params(self, extra: Optional[list] = None) -> list:
        params = list(extra or [])
        if self.api_key:
            params.append(("key", self.api_key))
        return params

    def _request(self, method: str, url: str, *, params=None, json=None, error=StoreError) -> Dict[str, Any]:
        try:
            r = self.session.request(
                method, url, params=self._params(params), json=json,
                headers=self._headers(), timeout=self.timeout,
            )
            r.raise_for_status()
        except requests.RequestException as e:
            raise error(f"Firestore {method} {self.name} failed: {e}") from e
        return r.json() if r.content else {}

    # ---- reads ----
    def list(self) -> Snapshot:
        docs: Snapshot = []
        page_token = None
        while True:
            extra = [("pageSize", PAGE_SIZE)]
            if page_token:
                extra.append(("pageToken", page_token))
            body = self._request("GET", self.base, params=extra)
            docs.extend(decode_document(d) for d in body.get("documents", []) or [])
            page_token = body.get("nextPageToken")
            if not page_token:
                break
        return _sort_newest_first(docs)

    def refresh(self) -> bool:
        """Re-poll the collection; push to listeners if the snapshot changed."""
        try:
            fresh = self.list()
        except StoreError as e:
            logger.warning(f"{self.name}: refresh failed, keeping last snapshot: {e}")
            return False
        with self._lock:
            if fresh == self._snapshot:
                return False
            self._snapshot = fresh
            listeners = list(self._listeners.values())
        for fn in listeners:
            self._deliver(fn, fresh)
        return True

    def subscribe(self, on_change: Listener) -> Callable[[], None]:
        with self._lock:
            primed = self._snapshot is not None
        if not primed:
            self.refresh()
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._listeners[token] = on_change
            current = list(self._snapshot or [])
        self._deliver(on_change, current)

        def unsubscribe() -> None:
            with self._lock:
                self._listeners.pop(token, None)

        return unsubscribe

    # ---- writes ----
    def create(self, record: Dict[str, Any]) -> str:
        stamp = now_utc()
        body = {"fields": encode_fields({**record, "createdAt": stamp, "updatedAt": stamp})}
        doc = self._request("POST", self.base, json=body, error=StoreWriteError)
        doc_id = str(doc.get("name", "")).rsplit("/", 1)[-1]
        self.refresh()
        return doc_id

    def update(self, doc_id: str, fields: Dict[str, Any]) -> None:
        fields = {**fields, "updatedAt": now_utc()}
        mask = [("updateMask.fieldPaths", k) for k in fields]
        mask.append(("currentDocument.exists", "true"))
        self._request(
            "PATCH", f"{self.base}/{doc_id}", params=mask,
            json={"fields": encode_fields(fields)}, error=StoreWriteError,
        )
        self.refresh()

    def delete(self, doc_id: str) -> None:
        self._request("DELETE", f"{self.base}/{doc_id}", error=StoreWriteError)
        self.refresh()

    def _deliver(self, listener: Listener, snapshot: Snapshot) -> None:
        try:
            listener(snapshot)
        except Exception:
            logger.exception(f"{self.name}: snapshot listener failed")
