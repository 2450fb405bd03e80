"""Tests for materializing metadata onto graph entities."""

import numpy as np
import pytest

from tether.errors import MappingError, MultipleFoundError
from tether.graph_store import Node
from tether.vectordb import EntityMappingMaterializer, MappingConfig

NODE_MAPPING = MappingConfig(prop="myId", label="Test", id="foo", create=True)
METADATA = {"city": "Berlin", "foo": "one"}


def test_no_mapping_returns_none(graph_store):
    with graph_store.transaction() as tx:
        assert EntityMappingMaterializer(tx).materialize(None, METADATA, None) is None


@pytest.mark.parametrize("metadata", [None, {}])
def test_empty_metadata_raises(graph_store, metadata):
    with pytest.raises(MappingError, match="metadata should not be empty"):
        with graph_store.transaction() as tx:
            EntityMappingMaterializer(tx).materialize(NODE_MAPPING, metadata, None)


def test_creates_missing_node(graph_store):
    with graph_store.transaction() as tx:
        node = EntityMappingMaterializer(tx).materialize(NODE_MAPPING, METADATA, None)

    assert isinstance(node, Node)
    assert node.label == "Test"
    assert node.properties == {"myId": "one", "city": "Berlin", "foo": "one"}
    assert len(graph_store.nodes("Test")) == 1


def test_updates_existing_node(graph_store):
    with graph_store.transaction() as tx:
        existing = tx.create_node("Test", {"myId": "one", "city": "Paris", "other": 1})

    with graph_store.transaction() as tx:
        node = EntityMappingMaterializer(tx).materialize(NODE_MAPPING, METADATA, None)

    assert node.id == existing.id
    assert node.properties == {"myId": "one", "city": "Berlin", "foo": "one", "other": 1}
    assert len(graph_store.nodes("Test")) == 1


def test_missing_node_without_create(graph_store):
    mapping = MappingConfig(prop="myId", label="Test", id="foo")

    with graph_store.transaction() as tx:
        assert EntityMappingMaterializer(tx).materialize(mapping, METADATA, None) is None

    assert graph_store.nodes("Test") == []


def test_embedding_attached_as_single_precision(graph_store):
    mapping = MappingConfig(prop="myId", label="Test", id="foo", embedding_prop="vect", create=True)
    vector = [0.05, 0.61, 0.76, 0.74]

    with graph_store.transaction() as tx:
        node = EntityMappingMaterializer(tx).materialize(mapping, METADATA, vector)

    expected = np.asarray(vector, dtype=np.float32).tolist()
    assert node.properties["vect"] == expected
    assert node.properties["vect"] != vector


def test_embedding_prop_without_vector_raises(graph_store):
    mapping = MappingConfig(prop="myId", label="Test", id="foo", embedding_prop="vect", create=True)

    with pytest.raises(MappingError, match="allResults: true"):
        with graph_store.transaction() as tx:
            EntityMappingMaterializer(tx).materialize(mapping, METADATA, None)

    assert graph_store.nodes("Test") == []


def test_multiple_nodes_raise(graph_store):
    with graph_store.transaction() as tx:
        tx.create_node("Test", {"myId": "one"})
        tx.create_node("Test", {"myId": "one"})

    with pytest.raises(MultipleFoundError, match="Multiple nodes found"):
        with graph_store.transaction() as tx:
            EntityMappingMaterializer(tx).materialize(NODE_MAPPING, METADATA, None)


# ========== Relationships ==========

def _related_pair(graph_store, **properties):
    with graph_store.transaction() as tx:
        start = tx.create_node("Start", {})
        end = tx.create_node("End", {})
        return tx.create_relationship(start, "TEST", end, properties)


def test_updates_existing_relationship(graph_store):
    rel = _related_pair(graph_store, myId="one")
    mapping = MappingConfig(prop="myId", type="TEST", id="foo")

    with graph_store.transaction() as tx:
        updated = EntityMappingMaterializer(tx).materialize(mapping, METADATA, None)

    assert updated.id == rel.id
    assert updated.properties == {"myId": "one", "city": "Berlin", "foo": "one"}


def test_relationship_never_created(graph_store):
    mapping = MappingConfig(prop="myId", type="TEST", id="foo", create=True)

    with graph_store.transaction() as tx:
        assert EntityMappingMaterializer(tx).materialize(mapping, METADATA, None) is None

    assert graph_store.relationships("TEST") == []


def test_multiple_relationships_raise(graph_store):
    _related_pair(graph_store, myId="one")
    _related_pair(graph_store, myId="one")
    mapping = MappingConfig(prop="myId", type="TEST", id="foo")

    with pytest.raises(MultipleFoundError, match="Multiple relationships found"):
        with graph_store.transaction() as tx:
            EntityMappingMaterializer(tx).materialize(mapping, METADATA, None)
