"""
Tests for GraphStore and its backends.

Tests cover:
- Transactions committing and rolling back
- Single-or-none node and relationship lookups
- Property updates
- Backend selection from configuration
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from tether.configuration import TetherConfig
from tether.errors import GraphStoreError, MultipleFoundError
from tether.graph_store import GraphStore, Node, Relationship
from tether.graph_store.backends.memory import MemoryBackend


@pytest.fixture(params=["memory", "kuzu"])
def store(request, tmp_path):
    """Run each test against the in-memory and the Kùzu backend."""
    if request.param == "kuzu":
        pytest.importorskip("kuzu")
        graph = GraphStore(db_path=str(tmp_path / "graph.db"))
    else:
        graph = GraphStore()
    yield graph
    graph.close()


# ========== Initialization Tests ==========

def test_default_backend_is_memory():
    store = GraphStore()

    assert isinstance(store.backend, MemoryBackend)
    assert store.db_path is None


def test_config_selects_kuzu(tmp_path):
    pytest.importorskip("kuzu")
    from tether.graph_store.backends.kuzu import KuzuBackend

    config = TetherConfig.with_root(tmp_path)

    with GraphStore(config=config) as store:
        assert isinstance(store.backend, KuzuBackend)
        assert store.db_path == str(config.graph_db_path)


def test_explicit_backend_wins(tmp_path):
    backend = MemoryBackend()

    store = GraphStore(db_path=str(tmp_path / "ignored.db"), backend=backend)

    assert store.backend is backend


# ========== Transaction Tests ==========

def test_commit_on_normal_exit(store):
    with store.transaction() as tx:
        tx.create_node("Test", {"myId": "one"})

    [node] = store.nodes("Test")
    assert node.properties == {"myId": "one"}


def test_rollback_on_error(store):
    with store.transaction() as tx:
        tx.create_node("Test", {"myId": "kept"})

    with pytest.raises(ValueError):
        with store.transaction() as tx:
            tx.create_node("Test", {"myId": "dropped"})
            raise ValueError("boom")

    assert [n.properties["myId"] for n in store.nodes("Test")] == ["kept"]


def test_memory_backend_rejects_nested_transactions():
    store = GraphStore()

    with store.transaction():
        with pytest.raises(GraphStoreError, match="already open"):
            with store.transaction():
                pass


def test_transactions_from_other_threads_wait(store):
    opened = threading.Event()
    release = threading.Event()
    second_started = threading.Event()

    def first():
        with store.transaction() as tx:
            tx.create_node("Test", {"myId": "first"})
            opened.set()
            assert release.wait(5)
            raise ValueError("rolled back")

    def second():
        assert opened.wait(5)
        second_started.set()
        with store.transaction() as tx:
            tx.create_node("Test", {"myId": "second"})

    with ThreadPoolExecutor(max_workers=2) as pool:
        failing = pool.submit(first)
        waiting = pool.submit(second)
        assert second_started.wait(5)
        time.sleep(0.05)
        # second is blocked behind the open transaction
        assert not waiting.done()
        release.set()
        with pytest.raises(ValueError):
            failing.result(timeout=5)
        waiting.result(timeout=5)

    assert [n.properties["myId"] for n in store.nodes("Test")] == ["second"]


# ========== Node Tests ==========

def test_find_node_single_or_none(store):
    with store.transaction() as tx:
        created = tx.create_node("Test", {"myId": "one"})
        tx.create_node("Other", {"myId": "one"})

        assert tx.find_node("Test", "myId", "one") == created
        assert tx.find_node("Test", "myId", "two") is None
        assert tx.find_node("Test", "missing", "one") is None


def test_find_node_multiple_raises(store):
    with store.transaction() as tx:
        tx.create_node("Test", {"myId": "one"})
        tx.create_node("Test", {"myId": "one"})

    with pytest.raises(MultipleFoundError, match="Multiple nodes found"):
        with store.transaction() as tx:
            tx.find_node("Test", "myId", "one")


def test_set_properties_merges(store):
    with store.transaction() as tx:
        node = tx.create_node("Test", {"myId": "one", "city": "Paris"})
        updated = tx.set_properties(node, {"city": "Berlin", "vect": [0.5, 0.25]})

    assert isinstance(updated, Node)
    assert updated.properties == {"myId": "one", "city": "Berlin", "vect": [0.5, 0.25]}
    assert store.nodes("Test")[0].properties == updated.properties


def test_set_properties_unknown_node(store):
    ghost = Node(id="missing", label="Test")

    with pytest.raises(GraphStoreError, match="Node not found"):
        with store.transaction() as tx:
            tx.set_properties(ghost, {"a": 1})


# ========== Relationship Tests ==========

def test_relationship_lookup_and_update(store):
    with store.transaction() as tx:
        start = tx.create_node("Person", {"name": "a"})
        end = tx.create_node("Person", {"name": "b"})
        rel = tx.create_relationship(start, "KNOWS", end, {"myId": "r1"})

    with store.transaction() as tx:
        found = tx.find_relationship("KNOWS", "myId", "r1")
        updated = tx.set_properties(found, {"since": 2020})

    assert isinstance(updated, Relationship)
    assert found.id == rel.id
    assert (found.start_id, found.end_id) == (start.id, end.id)
    assert updated.properties == {"myId": "r1", "since": 2020}
    assert updated.to_dict()["start"] == start.id


def test_find_relationship_multiple_raises(store):
    with store.transaction() as tx:
        a = tx.create_node("Person", {})
        b = tx.create_node("Person", {})
        tx.create_relationship(a, "KNOWS", b, {"myId": "r1"})
        tx.create_relationship(b, "KNOWS", a, {"myId": "r1"})

    with pytest.raises(MultipleFoundError, match="Multiple relationships found"):
        with store.transaction() as tx:
            tx.find_relationship("KNOWS", "myId", "r1")


def test_relationship_needs_existing_nodes(store):
    with store.transaction() as tx:
        a = tx.create_node("Person", {})

    with pytest.raises(GraphStoreError):
        with store.transaction() as tx:
            tx.create_relationship(a, "KNOWS", Node(id="missing", label="Person"))


def test_clear(store):
    with store.transaction() as tx:
        a = tx.create_node("Person", {})
        b = tx.create_node("Person", {})
        tx.create_relationship(a, "KNOWS", b)

    store.clear()

    assert store.nodes() == []
    assert store.relationships() == []


def test_kuzu_persists_across_instances(tmp_path):
    pytest.importorskip("kuzu")
    path = str(tmp_path / "graph.db")

    with GraphStore(db_path=path) as store:
        with store.transaction() as tx:
            tx.create_node("Test", {"myId": "one"})

    with GraphStore(db_path=path) as store:
        assert [n.properties for n in store.nodes("Test")] == [{"myId": "one"}]
