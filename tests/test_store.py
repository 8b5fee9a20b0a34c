from __future__ import annotations

import pytest

from config import settings
from services.store import MemoryCollection, StoreError, StoreWriteError, build_stores


def test_subscribe_delivers_full_snapshot_on_every_change():
    col = MemoryCollection("duties")
    pushes = []
    unsubscribe = col.subscribe(pushes.append)
    assert pushes == [[]]

    first = col.create({"status": "incomplete"})
    second = col.create({"status": "active"})
    assert len(pushes) == 3
    assert {d["id"] for d in pushes[-1]} == {first, second}

    col.update(first, {"status": "completed"})
    assert col.get(first)["status"] == "completed"
    assert len(pushes) == 4

    unsubscribe()
    col.delete(second)
    assert len(pushes) == 4
    assert [d["id"] for d in col.list()] == [first]


def test_create_stamps_record():
    col = MemoryCollection("duties")
    doc_id = col.create({"status": "incomplete"})
    doc = col.get(doc_id)
    assert doc["id"] == doc_id
    assert doc["createdAt"].endswith("Z")
    assert doc["updatedAt"] == doc["createdAt"]


def test_list_newest_first():
    col = MemoryCollection("duties", [
        {"id": "old", "createdAt": "2024-01-01T00:00:00.000Z"},
        {"id": "new", "createdAt": "2024-02-01T00:00:00.000Z"},
        {"id": "undated"},
    ])
    assert [d["id"] for d in col.list()] == ["new", "old", "undated"]


def test_snapshots_are_copies():
    col = MemoryCollection("duties", [{"id": "a", "location": {"polygon": []}}])
    snap = col.list()
    snap[0]["location"]["polygon"].append({"lat": 1, "lng": 2})
    assert col.get("a")["location"]["polygon"] == []


def test_update_missing_raises():
    col = MemoryCollection("duties")
    with pytest.raises(StoreWriteError):
        col.update("ghost", {"status": "completed"})


def test_failing_listener_does_not_break_writes(caplog):
    col = MemoryCollection("duties")
    seen = []

    def boom(docs):
        raise RuntimeError("listener blew up")

    col.subscribe(boom)
    col.subscribe(seen.append)
    col.create({"status": "incomplete"})
    assert len(seen) == 2
    assert "snapshot listener failed" in caplog.text


def test_build_stores_memory():
    stores = build_stores("memory")
    names = [name for name, _ in stores.items()]
    assert names == [
        settings.DUTIES_COLLECTION,
        settings.OFFICERS_COLLECTION,
        settings.VEHICLES_COLLECTION,
        settings.ACTIVITIES_COLLECTION,
    ]
    assert isinstance(stores.duties, MemoryCollection)


def test_build_stores_rejects_bad_config(monkeypatch):
    with pytest.raises(StoreError):
        build_stores("sqlite")
    monkeypatch.setattr(settings, "FIRESTORE_PROJECT", "")
    with pytest.raises(StoreError):
        build_stores("firestore")


def test_build_stores_firestore(monkeypatch):
    from services.firestore_rest import FirestoreCollection

    monkeypatch.setattr(settings, "FIRESTORE_PROJECT", "goa-police")
    stores = build_stores("firestore")
    assert isinstance(stores.duties, FirestoreCollection)
    assert stores.duties.base.endswith("/projects/goa-police/databases/(default)/documents/duties")
