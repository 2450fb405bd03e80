"""
KuzuBackend: Kùzu database implementation of GraphStoreBackend.

This module provides the Kùzu-specific implementation of the graph store backend,
using the Kùzu embedded graph database for persistent storage. Kùzu tables
need a fixed schema, so every node lives in one ``GraphNode`` table and every
relationship in one ``GraphRel`` table; labels, types and JSON-encoded
properties are columns.
"""

import uuid
from typing import Any, Dict, List, Optional

try:
    import kuzu
except ImportError:
    raise ImportError(
        "Kùzu is required for persistent graph storage. "
        "Install it with: pip install kuzu>=0.7.0"
    )

from tether.errors import GraphStoreError
from tether.graph_store.base import GraphStoreBackend
from tether.graph_store.types import Node, Relationship
from tether.graph_store.utils import dump_properties, load_properties, record_graph_event


class KuzuBackend(GraphStoreBackend):
    """
    Kùzu-based implementation of GraphStoreBackend.

    Property lookups load the candidate rows for a label or type and compare
    the decoded properties in Python.
    """

    def __init__(self, db_path: str):
        """
        Initialize Kùzu backend.

        Args:
            db_path: Path to the Kùzu database file
        """
        self.db_path = db_path
        self.db = None
        self.conn = None
        self.initialize(db_path)

    def initialize(self, db_path: str) -> None:
        """Open the database and create the schema if needed."""
        record_graph_event("database.initialize.start", {"db_path": db_path})
        try:
            self.db = kuzu.Database(db_path)
            self.conn = kuzu.Connection(self.db)
            self._create_schema()
        except Exception as exc:
            record_graph_event(
                "database.initialize.error",
                {
                    "db_path": db_path,
                    "error": str(exc),
                },
            )
            raise
        record_graph_event("database.initialize.complete", {"db_path": db_path})

    def _create_schema(self) -> None:
        self.conn.execute(
            "CREATE NODE TABLE IF NOT EXISTS GraphNode("
            "id STRING, "
            "label STRING, "
            "properties STRING, "
            "PRIMARY KEY(id)"
            ")"
        )
        self.conn.execute(
            "CREATE REL TABLE IF NOT EXISTS GraphRel("
            "FROM GraphNode TO GraphNode, "
            "id STRING, "
            "type STRING, "
            "properties STRING"
            ")"
        )

    def close(self) -> None:
        """Close database connection."""
        if self.conn:
            self.conn = None
        if self.db:
            self.db = None

    def _rows(self, query: str, parameters: Optional[Dict[str, Any]] = None) -> List[list]:
        try:
            result = self.conn.execute(query, parameters=parameters or {})
        except RuntimeError as exc:
            raise GraphStoreError(str(exc)) from exc
        rows = []
        while result.has_next():
            rows.append(result.get_next())
        return rows

    # ========== Transactions ==========

    def begin(self) -> None:
        self._rows("BEGIN TRANSACTION")

    def commit(self) -> None:
        self._rows("COMMIT")

    def rollback(self) -> None:
        self._rows("ROLLBACK")

    # ========== Node Operations ==========

    def create_node(self, label: str, properties: Optional[Dict[str, Any]] = None) -> Node:
        node = Node(id=str(uuid.uuid4()), label=label, properties=dict(properties or {}))
        self._rows(
            "CREATE (n:GraphNode {id: $id, label: $label, properties: $properties})",
            {
                "id": node.id,
                "label": label,
                "properties": dump_properties(node.properties),
            },
        )
        return node

    def find_nodes(self, label: str, prop: str, value: Any) -> List[Node]:
        return [
            node
            for node in self.nodes(label)
            if prop in node.properties and node.properties[prop] == value
        ]

    def _get_node(self, node_id: str) -> Node:
        rows = self._rows(
            "MATCH (n:GraphNode) WHERE n.id = $id RETURN n.id, n.label, n.properties",
            {"id": node_id},
        )
        if not rows:
            raise GraphStoreError(f"Node not found: {node_id}")
        return Node(id=rows[0][0], label=rows[0][1], properties=load_properties(rows[0][2]))

    def set_node_properties(self, node_id: str, properties: Dict[str, Any]) -> Node:
        node = self._get_node(node_id)
        node.properties.update(properties)
        self._rows(
            "MATCH (n:GraphNode) WHERE n.id = $id SET n.properties = $properties",
            {"id": node_id, "properties": dump_properties(node.properties)},
        )
        return node

    def nodes(self, label: Optional[str] = None) -> List[Node]:
        if label is None:
            rows = self._rows("MATCH (n:GraphNode) RETURN n.id, n.label, n.properties")
        else:
            rows = self._rows(
                "MATCH (n:GraphNode) WHERE n.label = $label RETURN n.id, n.label, n.properties",
                {"label": label},
            )
        return [
            Node(id=row[0], label=row[1], properties=load_properties(row[2]))
            for row in rows
        ]

    # ========== Relationship Operations ==========

    def create_relationship(
        self,
        start_id: str,
        rel_type: str,
        end_id: str,
        properties: Optional[Dict[str, Any]] = None,
    ) -> Relationship:
        rel = Relationship(
            id=str(uuid.uuid4()),
            type=rel_type,
            start_id=start_id,
            end_id=end_id,
            properties=dict(properties or {}),
        )
        self._get_node(start_id)
        self._get_node(end_id)
        self._rows(
            "MATCH (a:GraphNode), (b:GraphNode) WHERE a.id = $start AND b.id = $end_id "
            "CREATE (a)-[:GraphRel {id: $id, type: $type, properties: $properties}]->(b)",
            {
                "start": start_id,
                "end_id": end_id,
                "id": rel.id,
                "type": rel_type,
                "properties": dump_properties(rel.properties),
            },
        )
        return rel

    def find_relationships(self, rel_type: str, prop: str, value: Any) -> List[Relationship]:
        return [
            rel
            for rel in self.relationships(rel_type)
            if prop in rel.properties and rel.properties[prop] == value
        ]

    def set_relationship_properties(
        self, rel_id: str, properties: Dict[str, Any]
    ) -> Relationship:
        rows = self._rows(
            "MATCH (a:GraphNode)-[r:GraphRel]->(b:GraphNode) WHERE r.id = $id "
            "RETURN r.id, r.type, a.id, b.id, r.properties",
            {"id": rel_id},
        )
        if not rows:
            raise GraphStoreError(f"Relationship not found: {rel_id}")
        rel = self._to_relationship(rows[0])
        rel.properties.update(properties)
        self._rows(
            "MATCH ()-[r:GraphRel]->() WHERE r.id = $id SET r.properties = $properties",
            {"id": rel_id, "properties": dump_properties(rel.properties)},
        )
        return rel

    def relationships(self, rel_type: Optional[str] = None) -> List[Relationship]:
        query = "MATCH (a:GraphNode)-[r:GraphRel]->(b:GraphNode) "
        params: Dict[str, Any] = {}
        if rel_type is not None:
            query += "WHERE r.type = $type "
            params["type"] = rel_type
        query += "RETURN r.id, r.type, a.id, b.id, r.properties"
        return [self._to_relationship(row) for row in self._rows(query, params)]

    @staticmethod
    def _to_relationship(row: list) -> Relationship:
        return Relationship(
            id=row[0],
            type=row[1],
            start_id=row[2],
            end_id=row[3],
            properties=load_properties(row[4]),
        )

    def clear(self) -> None:
        self._rows("MATCH ()-[r:GraphRel]->() DELETE r")
        self._rows("MATCH (n:GraphNode) DELETE n")
