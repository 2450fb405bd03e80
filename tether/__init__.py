"""
Tether: vector database procedures for an embedded graph store

Calls Chroma, Qdrant and Weaviate over REST, normalises their answers into
uniform embedding results, and optionally materializes result metadata as
graph nodes and relationships.

Main Components:
- VectorDbProcedures: per-product collection and record operations
- VectorDb: generic REST calls and host/credential registrations
- GraphStore: embedded graph storage, Kùzu or in-memory
- TetherConfig: storage, transport and logging configuration

Example:
    >>> from tether import GraphStore, VectorDbProcedures
    >>>
    >>> qdrant = VectorDbProcedures("qdrant")
    >>> graph = GraphStore()
    >>> with graph.transaction() as tx:
    ...     for row in qdrant.query("localhost:6333", "test", [0.2, 0.1, 0.9, 0.7],
    ...                             limit=5, configuration={"allResults": True}, tx=tx):
    ...         print(row.id, row.score)
"""

from tether.configuration import (
    ConfigurationError,
    GraphStoreSettings,
    HttpSettings,
    ObservabilitySettings,
    TetherConfig,
    default_config,
    load_config_from_file,
)
from tether.errors import (
    GraphStoreError,
    MappingError,
    MultipleFoundError,
    TetherError,
    TransportError,
    VectorDbConfigError,
)
from tether.graph_store import GraphStore
from tether.rest import RequestExecutor, RestApiConfig
from tether.vectordb import (
    EmbeddingResult,
    RegistrationStore,
    VectorDb,
    VectorDbProcedures,
)

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "EmbeddingResult",
    "GraphStore",
    "GraphStoreError",
    "GraphStoreSettings",
    "HttpSettings",
    "MappingError",
    "MultipleFoundError",
    "ObservabilitySettings",
    "RegistrationStore",
    "RequestExecutor",
    "RestApiConfig",
    "TetherConfig",
    "TetherError",
    "TransportError",
    "VectorDb",
    "VectorDbConfigError",
    "VectorDbProcedures",
    "default_config",
    "load_config_from_file",
]
