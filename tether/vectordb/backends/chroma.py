"""Chroma adapter (REST API v1)."""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence

from tether.rest import RestApiConfig
from tether.vectordb.backends.base import VectorBackend
from tether.vectordb.config import EmbeddingConfig, VectorDbConfig
from tether.vectordb.projection import Projection


def _vector_of(record: Mapping[str, Any]) -> Any:
    return record["vector"] if "vector" in record else record.get("embedding")


class ChromaBackend(VectorBackend):
    """
    Chroma stores records columnar: ``get`` and ``query`` answer with parallel
    ``ids`` / ``embeddings`` / ``metadatas`` / ``documents`` lists (nested one
    more level for ``query``, one inner list per query vector).

    Record operations address a collection by its id, not its name.
    """

    name = "chroma"
    base_path = "/api/v1"
    templates = {
        "create": "{base_url}/collections",
        "delete_collection": "{base_url}/collections/{collection}",
        "upsert": "{base_url}/collections/{collection}/upsert",
        "delete": "{base_url}/collections/{collection}/delete",
        "get": "{base_url}/collections/{collection}/get",
        "query": "{base_url}/collections/{collection}/query",
    }

    def build_create_request(
        self,
        config: VectorDbConfig,
        collection: str,
        similarity: str,
        size: int,
    ) -> RestApiConfig:
        body = {"name": collection, "metadata": {"hnsw:space": similarity, "size": size}}
        return config.rest_config(body, default_method="POST")

    def build_delete_collection_request(
        self, config: VectorDbConfig, collection: str
    ) -> RestApiConfig:
        return config.rest_config(default_method="DELETE")

    def build_upsert_requests(
        self,
        config: VectorDbConfig,
        collection: str,
        records: Sequence[Mapping[str, Any]],
    ) -> List[RestApiConfig]:
        body = {
            "ids": [str(record.get("id")) for record in records],
            "embeddings": [_vector_of(record) for record in records],
            "metadatas": [record.get("metadata") for record in records],
            "documents": [record.get("text") for record in records],
        }
        return [config.rest_config(body, default_method="POST")]

    def build_delete_requests(
        self, config: VectorDbConfig, collection: str, ids: Sequence[Any]
    ) -> List[RestApiConfig]:
        body = {"ids": [str(item) for item in ids]}
        return [config.rest_config(body, default_method="POST")]

    def requested_ids(self, ids: Sequence[Any]) -> List[Any]:
        return [str(item) for item in ids]

    def build_get_requests(
        self,
        config: VectorDbConfig,
        collection: str,
        ids: Sequence[Any],
        projection: Projection,
    ) -> List[EmbeddingConfig]:
        body = {
            "ids": [str(item) for item in ids],
            "include": self._include(projection, with_distances=False),
        }
        return [self.embedding_config(config, config.rest_config(body, default_method="POST"))]

    def build_query_request(
        self,
        config: VectorDbConfig,
        collection: str,
        vector: Sequence[float],
        filter: Any,
        limit: int,
        projection: Projection,
    ) -> EmbeddingConfig:
        body = {
            "query_embeddings": [list(vector)],
            "where": filter,
            "n_results": limit,
            "include": self._include(projection, with_distances=True),
        }
        return self.embedding_config(config, config.rest_config(body, default_method="POST"))

    @staticmethod
    def _include(projection: Projection, *, with_distances: bool) -> List[str]:
        include = []
        if projection.has_metadata:
            include.append("metadatas")
        if projection.has_text:
            include.append("documents")
        if projection.has_vector:
            include.append("embeddings")
        if with_distances and projection.has_score:
            include.append("distances")
        return include

    def reshape_response(
        self,
        value: Any,
        config: EmbeddingConfig,
        collection: Optional[str] = None,
    ) -> Iterator[Dict[str, Any]]:
        if not isinstance(value, Mapping):
            return
        ids = value.get("ids") or []
        nested = bool(ids) and isinstance(ids[0], list)
        columns = {
            config.keys.id: ids,
            config.keys.score: value.get("distances"),
            config.keys.vector: value.get("embeddings"),
            config.keys.metadata: value.get("metadatas"),
            config.keys.text: value.get("documents"),
        }
        if nested:
            columns = {key: column[0] if column else None for key, column in columns.items()}

        for index in range(len(columns[config.keys.id] or [])):
            yield {
                key: column[index] if column is not None and index < len(column) else None
                for key, column in columns.items()
            }
