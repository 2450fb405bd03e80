"""
Shared utilities for graph store operations.

This module provides backend-agnostic helpers used across graph store
implementations.
"""

from typing import Any, Dict
import json

from tether.observability import get_event_recorder


def record_graph_event(name: str, payload: Dict[str, Any]) -> None:
    """Record a graph store event for observability."""
    get_event_recorder("graph_store").record(name=name, payload=payload)


def dump_properties(properties: Dict[str, Any]) -> str:
    """Serialize entity properties for backends that store them as text."""
    return json.dumps(properties, sort_keys=True)


def load_properties(raw: str | None) -> Dict[str, Any]:
    """Inverse of :func:`dump_properties`; empty values become ``{}``."""
    return json.loads(raw) if raw else {}
