"""
GraphStore: embedded graph storage for vector database mappings.

Key Features:
- Abstract backend base class for extensibility
- Kùzu implementation for persistent embedded storage
- In-memory implementation for tests and ephemeral use
- Explicit transactions with single-or-none entity lookups
"""

from tether.graph_store.base import GraphStoreBackend
from tether.graph_store.store import GraphStore, GraphTransaction
from tether.graph_store.types import Entity, Node, Relationship

__all__ = [
    "Entity",
    "GraphStore",
    "GraphStoreBackend",
    "GraphTransaction",
    "Node",
    "Relationship",
]
