"""
Decide which result columns to compute and build :class:`EmbeddingResult`.

Vectors can be large, so they are only read from a record when the caller
projected ``vector`` *and* asked for ``allResults``. Metadata is only read
when projected. ``id`` and ``text`` follow ``allResults`` alone.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, FrozenSet, Iterable, Mapping, Optional

from tether.graph_store import Node, Relationship
from tether.vectordb.config import EmbeddingConfig
from tether.vectordb.mapping import EntityMappingMaterializer
from tether.vectordb.types import RESULT_FIELDS, EmbeddingResult
from tether.vectordb.utils import to_float


@dataclass(frozen=True)
class Projection:
    """Output columns bound by the caller, combined with ``allResults``."""

    fields: FrozenSet[str]
    all_results: bool = False

    @classmethod
    def from_fields(cls, fields: Optional[Iterable[str]], all_results: bool) -> "Projection":
        """``fields=None`` selects every output column."""
        selected = frozenset(RESULT_FIELDS if fields is None else fields)
        return cls(fields=selected, all_results=bool(all_results))

    @property
    def has_vector(self) -> bool:
        return "vector" in self.fields and self.all_results

    @property
    def has_metadata(self) -> bool:
        return "metadata" in self.fields

    @property
    def has_text(self) -> bool:
        return "text" in self.fields and self.all_results

    @property
    def has_score(self) -> bool:
        return "score" in self.fields


def build_embedding_result(
    config: EmbeddingConfig,
    record: Mapping[str, Any],
    projection: Projection,
    materializer: EntityMappingMaterializer,
) -> EmbeddingResult:
    """Assemble one result from a reshaped backend record."""
    keys = config.keys
    vector = record.get(keys.vector) if projection.has_vector else None
    metadata = record.get(keys.metadata) if projection.has_metadata else None
    entity = materializer.materialize(config.mapping, metadata, vector)

    return EmbeddingResult(
        id=record.get(keys.id) if config.all_results else None,
        # get responses of some products carry no score at all
        score=to_float(record.get(keys.score)),
        vector=list(vector) if vector is not None else None,
        metadata=dict(metadata) if metadata is not None else None,
        text=record.get(keys.text) if config.all_results else None,
        node=entity if isinstance(entity, Node) else None,
        rel=entity if isinstance(entity, Relationship) else None,
    )
