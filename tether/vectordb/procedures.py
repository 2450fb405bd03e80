"""
Vector database procedures.

`VectorDb` holds the product-independent calls (``custom``, ``custom_get``,
``store``); `VectorDbProcedures` exposes the per-product collection and
record operations.

Every call validates its configuration and builds its requests before
returning, so configuration errors surface immediately. The returned
iterators are lazy: requests go out as results are pulled, one at a time and
in input order. ``delete`` is the exception and sends all of its requests
before returning the requested ids.

Example:
    >>> from tether.graph_store import GraphStore
    >>> from tether.vectordb import VectorDbProcedures
    >>>
    >>> chroma = VectorDbProcedures("chroma")
    >>> graph = GraphStore()
    >>> with graph.transaction() as tx:
    ...     rows = list(chroma.query(
    ...         "localhost:8000", collection_id, [0.2, 0.1, 0.9, 0.7],
    ...         limit=5, configuration={"allResults": True}, tx=tx,
    ...     ))
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Iterator, List, Mapping, Optional, Sequence

from tether.errors import VectorDbConfigError
from tether.graph_store import GraphTransaction
from tether.rest import RequestExecutor, RestApiConfig
from tether.vectordb.backends import VectorBackend, get_backend
from tether.vectordb.config import EmbeddingConfig, MappingConfig, parse_configuration
from tether.vectordb.mapping import EntityMappingMaterializer
from tether.vectordb.projection import Projection, build_embedding_result
from tether.vectordb.registration import RegistrationRecord, RegistrationStore
from tether.vectordb.resolver import resolve_custom_endpoint, resolve_vector_db_info
from tether.vectordb.types import EmbeddingResult
from tether.vectordb.utils import record_vectordb_event

LOGGER = logging.getLogger(__name__)

Configuration = Optional[Mapping[str, Any]]
Reshaper = Callable[[Any, EmbeddingConfig], Iterable[Mapping[str, Any]]]


def _records(value: Any) -> Iterator[Mapping[str, Any]]:
    if isinstance(value, list):
        for item in value:
            yield from _records(item)
    elif isinstance(value, Mapping):
        yield value


def stream_embedding_results(
    executor: RequestExecutor,
    configs: Sequence[EmbeddingConfig],
    projection: Projection,
    tx: Optional[GraphTransaction],
    reshape: Optional[Reshaper] = None,
) -> Iterator[EmbeddingResult]:
    """
    Execute ``configs`` in order and turn every reshaped record into a result.

    Without ``reshape``, dict records are read from the (possibly nested) lists
    of each response.

    Endpoints are checked for all requests before the first one is sent.
    """
    for conf in configs:
        if not conf.endpoint:
            raise VectorDbConfigError("Endpoint must be specified")
    materializer = EntityMappingMaterializer(tx)

    def _generate() -> Iterator[EmbeddingResult]:
        for conf in configs:
            for value in executor.execute(conf.api):
                records = reshape(value, conf) if reshape else _records(value)
                for record in records:
                    yield build_embedding_result(conf, record, projection, materializer)

    return _generate()


def _chain(executor: RequestExecutor, requests: Sequence[RestApiConfig]) -> Iterator[Any]:
    for api in requests:
        if not api.endpoint:
            raise VectorDbConfigError("Endpoint must be specified")

    def _generate() -> Iterator[Any]:
        for api in requests:
            yield from executor.execute(api)

    return _generate()


class VectorDb:
    """Product-independent vector database procedures."""

    def __init__(
        self,
        executor: Optional[RequestExecutor] = None,
        store: Optional[RegistrationStore] = None,
    ):
        self.executor = executor or RequestExecutor()
        self.registrations = store

    def custom(self, host: Optional[str], configuration: Configuration = None) -> Iterator[Any]:
        """
        Call an arbitrary REST endpoint and yield the decoded JSON values.

        ``host`` is used as the endpoint unless ``configuration`` sets one.
        """
        config = resolve_custom_endpoint(host, parse_configuration(configuration))
        record_vectordb_event("custom.start", {"endpoint": config.endpoint})
        return self.executor.execute(config.rest_config())

    def custom_get(
        self,
        host: Optional[str],
        configuration: Configuration = None,
        fields: Optional[Iterable[str]] = None,
        tx: Optional[GraphTransaction] = None,
    ) -> Iterator[EmbeddingResult]:
        """
        Call an endpoint whose response is a list of result records.

        Records are read with the ``idKey``/``scoreKey``/``vectorKey``/
        ``metadataKey``/``textKey`` options, projected on ``fields`` and mapped
        onto the graph through ``tx`` when a mapping is configured.
        """
        config = resolve_custom_endpoint(host, parse_configuration(configuration))
        conf = config.embedding_config(config.rest_config())
        projection = Projection.from_fields(fields, conf.all_results)
        record_vectordb_event("custom_get.start", {"endpoint": conf.endpoint})
        return stream_embedding_results(self.executor, [conf], projection, tx)

    def store(
        self,
        vector_name: str,
        host: Optional[str],
        credentials: Any = None,
        mapping: Optional[Mapping[str, Any]] = None,
    ) -> RegistrationRecord:
        """
        Register ``host``, ``credentials`` and a default ``mapping`` for a product.

        Later calls passing ``None`` (or the product name) as host use this
        registration. Overwrites any previous one.
        """
        if self.registrations is None:
            raise VectorDbConfigError("No registration store configured")
        backend = get_backend(vector_name)
        MappingConfig.from_mapping(mapping)
        return self.registrations.put(backend.name, host, credentials, dict(mapping or {}))


class VectorDbProcedures:
    """Collection and record procedures for one vector database product."""

    def __init__(
        self,
        backend_name: str,
        executor: Optional[RequestExecutor] = None,
        store: Optional[RegistrationStore] = None,
    ):
        self.backend: VectorBackend = get_backend(backend_name)
        self.executor = executor or RequestExecutor()
        self.registrations = store

    def _resolve(
        self,
        operation: str,
        host: Optional[str],
        collection: Optional[str],
        configuration: Configuration,
    ):
        record_vectordb_event(
            f"{operation}.start",
            {"backend": self.backend.name, "collection": collection},
        )
        return resolve_vector_db_info(
            self.backend,
            host,
            collection,
            configuration,
            self.backend.endpoint_template(operation),
            self.registrations,
        )

    def create_collection(
        self,
        host: Optional[str],
        collection: str,
        similarity: str,
        size: int,
        configuration: Configuration = None,
    ) -> Iterator[Any]:
        config = self._resolve("create", host, collection, configuration)
        api = self.backend.build_create_request(config, collection, similarity, size)
        return _chain(self.executor, [api])

    def delete_collection(
        self,
        host: Optional[str],
        collection: str,
        configuration: Configuration = None,
    ) -> Iterator[Any]:
        config = self._resolve("delete_collection", host, collection, configuration)
        api = self.backend.build_delete_collection_request(config, collection)
        return _chain(self.executor, [api])

    def upsert(
        self,
        host: Optional[str],
        collection: str,
        records: Sequence[Mapping[str, Any]],
        configuration: Configuration = None,
    ) -> Iterator[Any]:
        """Insert or replace ``records`` (each with ``id``, ``vector``, ``metadata``)."""
        config = self._resolve("upsert", host, collection, configuration)
        requests = self.backend.build_upsert_requests(config, collection, records)
        return _chain(self.executor, requests)

    def delete(
        self,
        host: Optional[str],
        collection: str,
        ids: Sequence[Any],
        configuration: Configuration = None,
    ) -> List[Any]:
        """
        Delete ``ids`` and return the ids that were requested.

        The list does not tell whether the product actually held those ids.
        """
        config = self._resolve("delete", host, collection, configuration)
        requests = self.backend.build_delete_requests(config, collection, ids)
        for _ in _chain(self.executor, requests):
            pass
        requested = self.backend.requested_ids(ids)
        LOGGER.debug("Sent %d delete request(s) to %s", len(requests), self.backend.name)
        record_vectordb_event(
            "delete.complete",
            {"backend": self.backend.name, "collection": collection, "ids": requested},
        )
        return requested

    def get(
        self,
        host: Optional[str],
        collection: str,
        ids: Sequence[Any],
        configuration: Configuration = None,
        fields: Optional[Iterable[str]] = None,
        tx: Optional[GraphTransaction] = None,
    ) -> Iterator[EmbeddingResult]:
        """Fetch records by id; ``fields`` is the caller's output projection."""
        config = self._resolve("get", host, collection, configuration)
        projection = Projection.from_fields(fields, config.all_results)
        configs = self.backend.build_get_requests(config, collection, ids, projection)
        return stream_embedding_results(
            self.executor, configs, projection, tx, self._reshaper(collection)
        )

    def query(
        self,
        host: Optional[str],
        collection: str,
        vector: Sequence[float],
        filter: Any = None,
        limit: int = 10,
        configuration: Configuration = None,
        fields: Optional[Iterable[str]] = None,
        tx: Optional[GraphTransaction] = None,
    ) -> Iterator[EmbeddingResult]:
        """Similarity search; ``filter`` is passed through in the product's syntax."""
        config = self._resolve("query", host, collection, configuration)
        projection = Projection.from_fields(fields, config.all_results)
        conf = self.backend.build_query_request(
            config, collection, vector, filter, limit, projection
        )
        return stream_embedding_results(
            self.executor, [conf], projection, tx, self._reshaper(collection)
        )

    def _reshaper(self, collection: str) -> Reshaper:
        def _reshape(value: Any, conf: EmbeddingConfig) -> Iterable[Mapping[str, Any]]:
            return self.backend.reshape_response(value, conf, collection)

        return _reshape


__all__ = [
    "VectorDb",
    "VectorDbProcedures",
    "stream_embedding_results",
]
