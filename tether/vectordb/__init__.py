"""
Vector database procedures.

Key Features:
- Configuration-driven REST calls against Chroma, Qdrant and Weaviate
- Output projection so vectors and metadata are only fetched when used
- Declarative mapping of result metadata onto graph nodes and relationships
- Stored registrations of host, credentials and default mapping per product
"""

from tether.vectordb.backends import BACKENDS, VectorBackend, get_backend
from tether.vectordb.config import (
    EmbeddingConfig,
    FieldKeys,
    MappingConfig,
    VectorDbConfig,
    parse_configuration,
)
from tether.vectordb.mapping import EntityMappingMaterializer
from tether.vectordb.procedures import VectorDb, VectorDbProcedures
from tether.vectordb.projection import Projection, build_embedding_result
from tether.vectordb.registration import RegistrationRecord, RegistrationStore
from tether.vectordb.resolver import resolve_vector_db_info
from tether.vectordb.types import EmbeddingResult

__all__ = [
    "BACKENDS",
    "EmbeddingConfig",
    "EmbeddingResult",
    "EntityMappingMaterializer",
    "FieldKeys",
    "MappingConfig",
    "Projection",
    "RegistrationRecord",
    "RegistrationStore",
    "VectorBackend",
    "VectorDb",
    "VectorDbConfig",
    "VectorDbProcedures",
    "build_embedding_result",
    "get_backend",
    "parse_configuration",
    "resolve_vector_db_info",
]
