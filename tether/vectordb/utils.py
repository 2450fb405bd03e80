"""Shared helpers for vector database procedures."""

from __future__ import annotations

from typing import Any, Dict

from tether.observability import get_event_recorder


def record_vectordb_event(name: str, payload: Dict[str, Any]) -> None:
    get_event_recorder("vectordb").record(name=name, payload=payload)


def to_float(value: Any) -> float | None:
    """Coerce a numeric score, leaving absent values as ``None``."""
    if value is None:
        return None
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None
