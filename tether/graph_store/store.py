"""
GraphStore: Facade class for graph database operations.

This module provides the GraphStore class that delegates to a backend
implementation, and the GraphTransaction handle that vector database
procedures receive to find, create and update entities.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from threading import RLock
from typing import Any, Dict, Iterator, List, Optional

from tether.configuration import TetherConfig
from tether.errors import MultipleFoundError
from tether.graph_store.base import GraphStoreBackend
from tether.graph_store.backends.memory import MemoryBackend
from tether.graph_store.types import Entity, Node, Relationship
from tether.graph_store.utils import record_graph_event


class GraphTransaction:
    """
    Write handle bound to one open backend transaction.

    Lookups follow single-or-none semantics: no match returns ``None``, more
    than one match raises :class:`~tether.errors.MultipleFoundError`.
    """

    def __init__(self, backend: GraphStoreBackend):
        self._backend = backend

    def find_node(self, label: str, prop: str, value: Any) -> Optional[Node]:
        matches = self._backend.find_nodes(label, prop, value)
        if len(matches) > 1:
            raise MultipleFoundError("Multiple nodes found")
        return matches[0] if matches else None

    def find_relationship(self, rel_type: str, prop: str, value: Any) -> Optional[Relationship]:
        matches = self._backend.find_relationships(rel_type, prop, value)
        if len(matches) > 1:
            raise MultipleFoundError("Multiple relationships found")
        return matches[0] if matches else None

    def create_node(self, label: str, properties: Optional[Dict[str, Any]] = None) -> Node:
        node = self._backend.create_node(label, properties)
        record_graph_event("node.created", {"label": label, "id": node.id})
        return node

    def create_relationship(
        self,
        start: Node,
        rel_type: str,
        end: Node,
        properties: Optional[Dict[str, Any]] = None,
    ) -> Relationship:
        return self._backend.create_relationship(start.id, rel_type, end.id, properties)

    def set_properties(self, entity: Entity, properties: Dict[str, Any]) -> Entity:
        """Overwrite the given properties on a node or relationship."""
        if isinstance(entity, Node):
            return self._backend.set_node_properties(entity.id, properties)
        return self._backend.set_relationship_properties(entity.id, properties)


class GraphStore:
    """
    Graph database used as the target of vector database mappings.

    Example:
        >>> from tether.graph_store import GraphStore
        >>>
        >>> store = GraphStore()  # in-memory
        >>> with store.transaction() as tx:
        ...     tx.create_node("Test", {"myId": "one"})
        >>>
        >>> # Persistent Kùzu database
        >>> with GraphStore(db_path="/tmp/graph.db") as store:
        ...     print(store.nodes("Test"))
    """

    def __init__(
        self,
        db_path: Optional[str] = None,
        *,
        config: Optional[TetherConfig] = None,
        backend: Optional[GraphStoreBackend] = None,
    ):
        """
        Initialize GraphStore with backend.

        Args:
            db_path: Path of a Kùzu database. When omitted and no config asks
                for Kùzu, an in-memory backend is used.
            config: Optional TetherConfig choosing the backend and database path.
            backend: Optional GraphStoreBackend instance, takes precedence over
                ``db_path`` and ``config``.
        """
        self.db_path = db_path
        # held from begin until commit or rollback; backends keep one open transaction
        self._lock = RLock()
        if backend is not None:
            self._backend = backend
        elif db_path is not None:
            self._backend = self._kuzu_backend(db_path)
        elif config is not None and config.graph_store.backend == "kuzu":
            config.storage.ensure_directories()
            self.db_path = str(config.graph_db_path)
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            self._backend = self._kuzu_backend(self.db_path)
        else:
            self._backend = MemoryBackend()

        record_graph_event(
            "init.complete",
            {"db_path": self.db_path, "backend": type(self._backend).__name__},
        )

    @staticmethod
    def _kuzu_backend(db_path: str) -> GraphStoreBackend:
        from tether.graph_store.backends.kuzu import KuzuBackend

        return KuzuBackend(db_path)

    @property
    def backend(self) -> GraphStoreBackend:
        return self._backend

    @contextmanager
    def transaction(self) -> Iterator[GraphTransaction]:
        """
        Open a transaction; commits on normal exit, rolls back on error.

        Transactions opened from other threads wait until this one ends.
        """
        with self._lock:
            self._backend.begin()
            try:
                yield GraphTransaction(self._backend)
            except BaseException:
                self._backend.rollback()
                record_graph_event("transaction.rollback", {"db_path": self.db_path})
                raise
            self._backend.commit()

    # ========== Inspection ==========

    def nodes(self, label: Optional[str] = None) -> List[Node]:
        with self._lock:
            return self._backend.nodes(label)

    def relationships(self, rel_type: Optional[str] = None) -> List[Relationship]:
        with self._lock:
            return self._backend.relationships(rel_type)

    def clear(self) -> None:
        """Delete every node and relationship."""
        with self._lock:
            self._backend.clear()

    def close(self) -> None:
        if self._backend:
            self._backend.close()

    def __enter__(self) -> "GraphStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
