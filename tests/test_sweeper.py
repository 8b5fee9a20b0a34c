from __future__ import annotations

import threading
from datetime import timedelta

from services.store import MemoryCollection, StoreWriteError
from services.sweeper import ExpirySweeper
from services.time_utils import iso


def _seed(now):
    return [
        {"id": "lapsed", "status": "incomplete", "endTime": iso(now - timedelta(minutes=5))},
        {"id": "future", "status": "incomplete", "endTime": iso(now + timedelta(hours=1))},
        {"id": "done", "status": "complete", "endTime": iso(now - timedelta(days=1))},
    ]


def test_run_once_closes_lapsed_duties(now):
    col = MemoryCollection("duties", _seed(now))
    sweeper = ExpirySweeper(col, col.list, clock=lambda: now)

    assert sweeper.run_once() == ["lapsed"]
    assert col.get("lapsed")["status"] == "completed"
    assert col.get("future")["status"] == "incomplete"
    assert col.get("done")["status"] == "complete"
    assert sweeper.run_once() == []


class FlakyStore:
    def __init__(self, docs, failing):
        self.docs = docs
        self.failing = failing
        self.updated = []

    def list(self):
        return self.docs

    def update(self, doc_id, fields):
        if doc_id in self.failing:
            raise StoreWriteError(f"{doc_id} rejected")
        self.updated.append((doc_id, fields))


def test_failed_update_is_logged_and_skipped(now, caplog):
    docs = [
        {"id": "a", "status": "incomplete", "endTime": iso(now - timedelta(minutes=1))},
        {"id": "b", "status": "active", "endTime": iso(now - timedelta(minutes=2))},
    ]
    store = FlakyStore(docs, failing={"a"})
    sweeper = ExpirySweeper(store, store.list, clock=lambda: now)

    assert sweeper.run_once() == ["b"]
    assert store.updated == [("b", {"status": "completed"})]
    assert "Failed to update expired duty a" in caplog.text


def test_polling_store_is_refreshed_first(now):
    calls = []

    class Polled(FlakyStore):
        def refresh(self):
            calls.append("refresh")

    store = Polled([], failing=set())
    ExpirySweeper(store, store.list, clock=lambda: now).run_once()
    assert calls == ["refresh"]


def test_start_runs_immediately_and_stop_joins(now):
    swept = threading.Event()

    class Signalling(FlakyStore):
        def update(self, doc_id, fields):
            super().update(doc_id, fields)
            swept.set()

    store = Signalling(_seed(now), failing=set())
    sweeper = ExpirySweeper(store, store.list, interval_sec=3600, clock=lambda: now)
    sweeper.start()
    try:
        assert swept.wait(2)
        assert sweeper.running
    finally:
        sweeper.stop()
    assert not sweeper.running
    assert store.updated == [("lapsed", {"status": "completed"})]
