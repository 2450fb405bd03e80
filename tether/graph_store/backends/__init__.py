"""
Graph store backend implementations.

This module provides concrete implementations of GraphStoreBackend.
The Kùzu backend is only exported when ``kuzu`` is installed.
"""

from tether.graph_store.backends.memory import MemoryBackend

try:
    from tether.graph_store.backends.kuzu import KuzuBackend
    _KUZU_AVAILABLE = True
except ImportError:
    KuzuBackend = None
    _KUZU_AVAILABLE = False

__all__ = ["MemoryBackend"]

if _KUZU_AVAILABLE:
    __all__.append("KuzuBackend")
