"""Result records produced by vector database procedures."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from tether.graph_store import Node, Relationship

RESULT_FIELDS = ("id", "score", "vector", "metadata", "text", "node", "rel")


@dataclass(frozen=True, slots=True)
class EmbeddingResult:
    """One record returned by a ``get`` or ``query`` call.

    Fields the caller did not project, or that the backend did not return,
    are ``None``. ``node`` and ``rel`` are only set when a mapping resolved to
    a graph entity.
    """

    id: Any = None
    score: Optional[float] = None
    vector: Optional[List[float]] = None
    metadata: Optional[Dict[str, Any]] = None
    text: Optional[str] = None
    node: Optional[Node] = None
    rel: Optional[Relationship] = None

    def as_dict(self, fields: Optional[Iterable[str]] = None) -> Dict[str, Any]:
        """Return the projected columns; entities are rendered as dicts."""
        selected = RESULT_FIELDS if fields is None else [f for f in RESULT_FIELDS if f in set(fields)]
        data: Dict[str, Any] = {}
        for name in selected:
            value = getattr(self, name)
            if isinstance(value, (Node, Relationship)):
                value = value.to_dict()
            data[name] = value
        return data
