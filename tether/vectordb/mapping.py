"""
Materialize vector database metadata as graph entities.

Given a :class:`~tether.vectordb.config.MappingConfig`, each result record's
metadata is matched against a node (by label) or a relationship (by type).
Nodes may be created when missing; relationships never are, since there is
no way to know their endpoints.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

import numpy as np

from tether.errors import MappingError, VectorDbConfigError
from tether.graph_store import Entity, GraphTransaction, Node, Relationship
from tether.vectordb.config import ALL_RESULTS_KEY, MappingConfig
from tether.vectordb.utils import record_vectordb_event

LOGGER = logging.getLogger(__name__)


def to_single_precision(vector: Sequence[float]) -> list[float]:
    """Round a vector to float32 values."""
    return np.asarray(vector, dtype=np.float32).tolist()


class EntityMappingMaterializer:
    """Finds, creates and updates graph entities from result metadata."""

    def __init__(self, tx: Optional[GraphTransaction]):
        self.tx = tx

    def materialize(
        self,
        mapping: Optional[MappingConfig],
        metadata: Optional[Mapping[str, Any]],
        vector: Optional[Sequence[float]],
    ) -> Optional[Entity]:
        """
        Apply ``mapping`` for one record.

        Returns the matched (or created) entity, or ``None`` when no mapping is
        configured or nothing matched.

        Raises:
            MappingError: If metadata is empty, or an embedding property is
                configured but the vector was not fetched.
            MultipleFoundError: If the lookup matches more than one entity.
        """
        if mapping is None:
            return None
        if not metadata:
            raise MappingError(
                "To use mapping config, the metadata should not be empty. "
                "Make sure `metadata` is included in the requested fields"
            )
        if self.tx is None:
            raise VectorDbConfigError("A graph transaction is required to use mapping config")

        properties = dict(metadata)
        if mapping.label is not None:
            return self._map_node(mapping, properties, vector)
        if mapping.type is not None:
            return self._map_relationship(mapping, properties, vector)
        raise VectorDbConfigError("Mapping conf has to contain either label or type key")

    def _map_node(
        self,
        mapping: MappingConfig,
        properties: dict,
        vector: Optional[Sequence[float]],
    ) -> Optional[Node]:
        value = properties.get(mapping.id)
        node = self.tx.find_node(mapping.label, mapping.prop, value)
        if node is None and mapping.create:
            node = self.tx.create_node(mapping.label, {mapping.prop: value})
            record_vectordb_event(
                "mapping.node_created",
                {"label": mapping.label, "prop": mapping.prop, "value": value},
            )
        if node is None:
            LOGGER.debug("No %s node with %s=%r", mapping.label, mapping.prop, value)
            return None
        return self.tx.set_properties(node, self._entity_properties(mapping, properties, vector))

    def _map_relationship(
        self,
        mapping: MappingConfig,
        properties: dict,
        vector: Optional[Sequence[float]],
    ) -> Optional[Relationship]:
        value = properties.get(mapping.id)
        rel = self.tx.find_relationship(mapping.type, mapping.prop, value)
        if rel is None:
            LOGGER.debug("No %s relationship with %s=%r", mapping.type, mapping.prop, value)
            return None
        return self.tx.set_properties(rel, self._entity_properties(mapping, properties, vector))

    @staticmethod
    def _entity_properties(
        mapping: MappingConfig,
        properties: dict,
        vector: Optional[Sequence[float]],
    ) -> dict:
        if mapping.embedding_prop is None:
            return properties
        if vector is None:
            raise MappingError(
                "The embedding value is null. Make sure `vector` is included in the "
                f"requested fields and you configured `{ALL_RESULTS_KEY}: true`"
            )
        # embedding overrides a metadata key of the same name
        return {**properties, mapping.embedding_prop: to_single_precision(vector)}
