"""
MemoryBackend: in-process implementation of GraphStoreBackend.

Keeps nodes and relationships in dictionaries. Transactions snapshot the
whole graph on :meth:`begin` and restore it on :meth:`rollback`.
"""

from __future__ import annotations

import copy
import uuid
from typing import Any, Dict, List, Optional

from tether.errors import GraphStoreError
from tether.graph_store.base import GraphStoreBackend
from tether.graph_store.types import Node, Relationship


class MemoryBackend(GraphStoreBackend):
    """Dictionary-backed graph, used for tests and ephemeral sessions."""

    def __init__(self) -> None:
        self._nodes: Dict[str, Node] = {}
        self._relationships: Dict[str, Relationship] = {}
        self._snapshot: Optional[tuple] = None

    def close(self) -> None:
        self._snapshot = None

    # ========== Transactions ==========

    def begin(self) -> None:
        if self._snapshot is not None:
            raise GraphStoreError("A transaction is already open")
        self._snapshot = (
            copy.deepcopy(self._nodes),
            copy.deepcopy(self._relationships),
        )

    def commit(self) -> None:
        self._snapshot = None

    def rollback(self) -> None:
        if self._snapshot is None:
            return
        self._nodes, self._relationships = self._snapshot
        self._snapshot = None

    # ========== Node Operations ==========

    def create_node(self, label: str, properties: Optional[Dict[str, Any]] = None) -> Node:
        node = Node(id=str(uuid.uuid4()), label=label, properties=dict(properties or {}))
        self._nodes[node.id] = node
        return copy.deepcopy(node)

    def find_nodes(self, label: str, prop: str, value: Any) -> List[Node]:
        return [
            copy.deepcopy(node)
            for node in self._nodes.values()
            if node.label == label and prop in node.properties and node.properties[prop] == value
        ]

    def set_node_properties(self, node_id: str, properties: Dict[str, Any]) -> Node:
        node = self._nodes.get(node_id)
        if node is None:
            raise GraphStoreError(f"Node not found: {node_id}")
        node.properties.update(copy.deepcopy(properties))
        return copy.deepcopy(node)

    def nodes(self, label: Optional[str] = None) -> List[Node]:
        return [
            copy.deepcopy(node)
            for node in self._nodes.values()
            if label is None or node.label == label
        ]

    # ========== Relationship Operations ==========

    def create_relationship(
        self,
        start_id: str,
        rel_type: str,
        end_id: str,
        properties: Optional[Dict[str, Any]] = None,
    ) -> Relationship:
        if start_id not in self._nodes or end_id not in self._nodes:
            raise GraphStoreError("Nodes do not exist")
        rel = Relationship(
            id=str(uuid.uuid4()),
            type=rel_type,
            start_id=start_id,
            end_id=end_id,
            properties=dict(properties or {}),
        )
        self._relationships[rel.id] = rel
        return copy.deepcopy(rel)

    def find_relationships(self, rel_type: str, prop: str, value: Any) -> List[Relationship]:
        return [
            copy.deepcopy(rel)
            for rel in self._relationships.values()
            if rel.type == rel_type and prop in rel.properties and rel.properties[prop] == value
        ]

    def set_relationship_properties(
        self, rel_id: str, properties: Dict[str, Any]
    ) -> Relationship:
        rel = self._relationships.get(rel_id)
        if rel is None:
            raise GraphStoreError(f"Relationship not found: {rel_id}")
        rel.properties.update(copy.deepcopy(properties))
        return copy.deepcopy(rel)

    def relationships(self, rel_type: Optional[str] = None) -> List[Relationship]:
        return [
            copy.deepcopy(rel)
            for rel in self._relationships.values()
            if rel_type is None or rel.type == rel_type
        ]

    def clear(self) -> None:
        self._nodes.clear()
        self._relationships.clear()
