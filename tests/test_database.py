"""Tests for the SQLite record store."""

from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from server.database import RecordStore

BASE = datetime(2025, 1, 1, 9, 0, 0, tzinfo=timezone.utc)


def at(seconds):
    return BASE + timedelta(seconds=seconds)


@pytest.fixture
def store(tmp_path):
    s = RecordStore(str(tmp_path / "records.db"))
    yield s
    s.close()


def test_append_assigns_id_and_round_trips(store):
    record = store.append("hello", at(5), description="editor", embedding=np.array([0.5, -1.0]))
    assert record.id is not None
    assert record.content == "hello"
    assert record.description == "editor"
    assert record.timestamp == at(5)
    np.testing.assert_allclose(record.embedding, [0.5, -1.0])


def test_record_without_embedding(store):
    record = store.append("plain", at(0))
    assert record.embedding is None
    assert not record.has_embedding


def test_list_all_ascending_by_timestamp(store):
    store.append("late", at(30))
    store.append("early", at(10))
    store.append("middle", at(20))
    assert [r.content for r in store.list_all()] == ["early", "middle", "late"]


def test_equal_timestamps_keep_insertion_order(store):
    store.append("first", at(10))
    store.append("second", at(10))
    assert [r.content for r in store.list_all()] == ["first", "second"]


def test_list_page(store):
    for i in range(5):
        store.append(f"r{i}", at(i))
    assert [r.content for r in store.list_page(limit=2, offset=2)] == ["r2", "r3"]


def test_undecodable_embedding_loads_as_none(store):
    record = store.append("broken", at(0), embedding=np.array([1.0, 2.0]))
    store._conn.execute("UPDATE records SET embedding = ? WHERE id = ?", ("not json", record.id))
    store._conn.commit()
    assert store.get(record.id).embedding is None
    assert store.list_all()[0].content == "broken"


def test_embedding_of_other_dimension_loads_as_none(tmp_path):
    path = str(tmp_path / "records.db")
    old = RecordStore(path)
    old.append("old model", at(0), embedding=np.array([1.0, 0.0, 0.0]))
    old.close()

    store = RecordStore(path, embedding_dim=2)
    store.append("new model", at(1), embedding=np.array([0.0, 1.0]))
    loaded = store.list_all()
    store.close()

    assert [r.content for r in loaded] == ["old model", "new model"]
    assert loaded[0].embedding is None
    np.testing.assert_allclose(loaded[1].embedding, [0.0, 1.0])


def test_clear_and_count(store):
    store.append("a", at(0))
    store.append("b", at(1))
    assert store.count() == 2
    assert store.clear() == 2
    assert store.count() == 0
    assert store.list_all() == []


def test_stats(store):
    store.append("a", at(0), description="desc", embedding=np.array([1.0]))
    store.append("b", at(1), embedding=np.array([1.0]))
    store.append("c", at(2))
    assert store.stats() == {"total": 3, "with_description": 1, "with_embedding": 2}


def test_get_unknown_id(store):
    assert store.get(12345) is None
