"""
Vector database product adapters.

``BACKENDS`` maps a product name to its adapter instance.
"""

from typing import Dict

from tether.errors import VectorDbConfigError
from tether.vectordb.backends.base import VectorBackend
from tether.vectordb.backends.chroma import ChromaBackend
from tether.vectordb.backends.qdrant import QdrantBackend
from tether.vectordb.backends.weaviate import WeaviateBackend

BACKENDS: Dict[str, VectorBackend] = {
    backend.name: backend
    for backend in (ChromaBackend(), QdrantBackend(), WeaviateBackend())
}


def get_backend(name: str) -> VectorBackend:
    """Look up an adapter by product name, case-insensitively."""
    try:
        return BACKENDS[name.lower()]
    except KeyError:
        raise VectorDbConfigError(
            f"Unknown vector database {name!r}; expected one of {', '.join(sorted(BACKENDS))}"
        ) from None


__all__ = [
    "BACKENDS",
    "ChromaBackend",
    "QdrantBackend",
    "VectorBackend",
    "WeaviateBackend",
    "get_backend",
]
