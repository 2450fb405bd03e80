"""
GraphStoreBackend: Abstract base class for graph database backends.

This module provides the abstract base class that all graph store backend
implementations must follow. Backends store labelled nodes and typed
relationships carrying free-form properties, which is what the vector
database mapping needs to find or create entities from remote metadata.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from tether.graph_store.types import Node, Relationship


class GraphStoreBackend(ABC):
    """
    Abstract base class for graph store backend implementations.

    All backends must implement the methods defined here to work with the
    GraphStore facade and its transactions.
    """

    @abstractmethod
    def close(self) -> None:
        """Close database connection and cleanup resources."""

    # ========== Transactions ==========

    @abstractmethod
    def begin(self) -> None:
        """Start a write transaction."""

    @abstractmethod
    def commit(self) -> None:
        """Commit the current transaction."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard every change made since :meth:`begin`."""

    # ========== Node Operations ==========

    @abstractmethod
    def create_node(self, label: str, properties: Optional[Dict[str, Any]] = None) -> Node:
        """
        Create a node.

        Args:
            label: Node label
            properties: Initial properties

        Returns:
            The created node
        """

    @abstractmethod
    def find_nodes(self, label: str, prop: str, value: Any) -> List[Node]:
        """
        Return every node with ``label`` whose ``prop`` equals ``value``.
        """

    @abstractmethod
    def set_node_properties(self, node_id: str, properties: Dict[str, Any]) -> Node:
        """
        Merge ``properties`` into the node's properties.

        Returns:
            The node after the update
        """

    @abstractmethod
    def nodes(self, label: Optional[str] = None) -> List[Node]:
        """Retrieve all nodes, optionally restricted to one label."""

    # ========== Relationship Operations ==========

    @abstractmethod
    def create_relationship(
        self,
        start_id: str,
        rel_type: str,
        end_id: str,
        properties: Optional[Dict[str, Any]] = None,
    ) -> Relationship:
        """Create a relationship between two existing nodes."""

    @abstractmethod
    def find_relationships(self, rel_type: str, prop: str, value: Any) -> List[Relationship]:
        """
        Return every relationship of ``rel_type`` whose ``prop`` equals ``value``.
        """

    @abstractmethod
    def set_relationship_properties(
        self, rel_id: str, properties: Dict[str, Any]
    ) -> Relationship:
        """Merge ``properties`` into the relationship's properties."""

    @abstractmethod
    def relationships(self, rel_type: Optional[str] = None) -> List[Relationship]:
        """Retrieve all relationships, optionally restricted to one type."""

    @abstractmethod
    def clear(self) -> None:
        """Delete every node and relationship."""
