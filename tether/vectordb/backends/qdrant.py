"""Qdrant adapter."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Sequence

from tether.rest import RestApiConfig
from tether.vectordb.backends.base import VectorBackend
from tether.vectordb.config import EmbeddingConfig, FieldKeys, VectorDbConfig
from tether.vectordb.projection import Projection


class QdrantBackend(VectorBackend):
    """Qdrant returns points under ``result`` with metadata in ``payload``."""

    name = "qdrant"
    templates = {
        "create": "{base_url}/collections/{collection}",
        "delete_collection": "{base_url}/collections/{collection}",
        "upsert": "{base_url}/collections/{collection}/points",
        "delete": "{base_url}/collections/{collection}/points/delete",
        "get": "{base_url}/collections/{collection}/points",
        "query": "{base_url}/collections/{collection}/points/search",
    }
    field_keys = FieldKeys(metadata="payload")

    def credential_headers(self, credentials: Any) -> Dict[str, str]:
        if credentials is None:
            return {}
        return {"api-key": str(credentials)}

    def build_create_request(
        self,
        config: VectorDbConfig,
        collection: str,
        similarity: str,
        size: int,
    ) -> RestApiConfig:
        body = {"vectors": {"size": size, "distance": similarity}}
        return config.rest_config(body, default_method="PUT")

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
        points = []
        for record in records:
            point = {key: value for key, value in record.items() if key != "metadata"}
            if "payload" not in point and "metadata" in record:
                point["payload"] = record["metadata"]
            points.append(point)
        return [config.rest_config({"points": points}, default_method="PUT")]

    def build_delete_requests(
        self, config: VectorDbConfig, collection: str, ids: Sequence[Any]
    ) -> List[RestApiConfig]:
        return [config.rest_config({"points": list(ids)}, default_method="POST")]

    def build_get_requests(
        self,
        config: VectorDbConfig,
        collection: str,
        ids: Sequence[Any],
        projection: Projection,
    ) -> List[EmbeddingConfig]:
        body = {
            "ids": list(ids),
            "with_payload": projection.has_metadata,
            "with_vector": projection.has_vector,
        }
        return [self.embedding_config(config, self._rest_config(config, body))]

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
            "vector": list(vector),
            "filter": filter,
            "limit": limit,
            "with_payload": projection.has_metadata,
            "with_vector": projection.has_vector,
        }
        return self.embedding_config(config, self._rest_config(config, body))

    @staticmethod
    def _rest_config(config: VectorDbConfig, body: Mapping[str, Any]) -> RestApiConfig:
        api = config.rest_config(body, default_method="POST")
        if api.json_path is None:
            api = api.with_json_path("result")
        return api
