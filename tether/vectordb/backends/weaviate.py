"""Weaviate adapter (REST ``/v1`` plus GraphQL for similarity search)."""

from __future__ import annotations

import json
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence

from tether.errors import TransportError, VectorDbConfigError
from tether.rest import RestApiConfig
from tether.vectordb.backends.base import VectorBackend
from tether.vectordb.config import FIELDS_KEY, EmbeddingConfig, FieldKeys, VectorDbConfig
from tether.vectordb.projection import Projection

OBJECT_TEMPLATE = "{base_url}/objects/{collection}/{id}"

GRAPHQL_TEMPLATE = """{{
  Get {{
    {collection}({arguments}) {{
      {fields}
      _additional {{ {additional} }}
    }}
  }}
}}"""


class WeaviateBackend(VectorBackend):
    """
    Weaviate has no batched upsert, delete or get over REST, so those issue one
    request per record or id. Queries go through GraphQL and need the list of
    properties to return in the ``fields`` option.
    """

    name = "weaviate"
    base_path = "/v1"
    templates = {
        "create": "{base_url}/schema",
        "delete_collection": "{base_url}/schema/{collection}",
        "upsert": "{base_url}/objects",
        "delete": "{base_url}/schema",
        "get": "{base_url}/schema",
        "query": "{base_url}/graphql",
    }
    field_keys = FieldKeys(metadata="properties")

    def build_create_request(
        self,
        config: VectorDbConfig,
        collection: str,
        similarity: str,
        size: int,
    ) -> RestApiConfig:
        body = {
            "class": collection,
            "vectorIndexConfig": {"distance": similarity, "size": size},
        }
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
        requests = []
        for record in records:
            body: Dict[str, Any] = {"class": collection}
            body.update({key: value for key, value in record.items() if key != "metadata"})
            body["properties"] = record.get("metadata")
            requests.append(config.rest_config(body, default_method="POST"))
        return requests

    def build_delete_requests(
        self, config: VectorDbConfig, collection: str, ids: Sequence[Any]
    ) -> List[RestApiConfig]:
        api = config.rest_config(default_method="DELETE")
        return [
            api.with_endpoint(self._object_url(config, collection, item))
            for item in ids
        ]

    def build_get_requests(
        self,
        config: VectorDbConfig,
        collection: str,
        ids: Sequence[Any],
        projection: Projection,
    ) -> List[EmbeddingConfig]:
        # verb left unset unless configured; the executor then sends a bodiless GET
        api = config.rest_config(default_method=None)
        suffix = "?include=vector" if projection.has_vector else ""
        return [
            self.embedding_config(
                config,
                api.with_endpoint(self._object_url(config, collection, item) + suffix),
            )
            for item in ids
        ]

    def build_query_request(
        self,
        config: VectorDbConfig,
        collection: str,
        vector: Sequence[float],
        filter: Any,
        limit: int,
        projection: Projection,
    ) -> EmbeddingConfig:
        if not config.fields:
            raise VectorDbConfigError(
                f"You have to define the `{FIELDS_KEY}` config to query Weaviate"
            )
        arguments = [f"limit: {int(limit)}", f"nearVector: {{vector: {json.dumps(list(vector))}}}"]
        if filter:
            arguments.append(f"where: {filter}")
        additional = ["id", "distance"]
        if projection.has_vector:
            additional.append("vector")

        query = GRAPHQL_TEMPLATE.format(
            collection=collection,
            arguments=", ".join(arguments),
            fields=" ".join(config.fields),
            additional=" ".join(additional),
        )
        api = config.rest_config({"query": query}, default_method="POST")
        return self.embedding_config(config, api)

    def reshape_response(
        self,
        value: Any,
        config: EmbeddingConfig,
        collection: Optional[str] = None,
    ) -> Iterator[Mapping[str, Any]]:
        if not isinstance(value, Mapping):
            return
        if "data" not in value and "errors" not in value:
            # plain REST object from a get request
            yield value
            return
        if value.get("errors"):
            raise TransportError(
                f"Weaviate GraphQL query failed: {value['errors']}",
                endpoint=config.endpoint,
                response_text=json.dumps(value["errors"]),
            )

        items = ((value.get("data") or {}).get("Get") or {}).get(collection) or []
        keys = config.keys
        for item in items:
            properties = dict(item)
            additional = properties.pop("_additional", None) or {}
            yield {
                keys.metadata: properties,
                keys.score: additional.get("distance"),
                keys.id: additional.get("id"),
                keys.vector: additional.get("vector"),
            }

    @staticmethod
    def _object_url(config: VectorDbConfig, collection: str, item: Any) -> str:
        return OBJECT_TEMPLATE.format(base_url=config.base_url, collection=collection, id=item)
