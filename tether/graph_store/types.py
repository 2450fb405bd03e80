"""Entity references returned by graph store backends."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(slots=True)
class Node:
    """A labelled graph node and a snapshot of its properties."""

    id: str
    label: str
    properties: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.properties.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "label": self.label, "properties": dict(self.properties)}


@dataclass(slots=True)
class Relationship:
    """A typed, directed relationship between two nodes."""

    id: str
    type: str
    start_id: str
    end_id: str
    properties: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.properties.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "start": self.start_id,
            "end": self.end_id,
            "properties": dict(self.properties),
        }


Entity = Node | Relationship
