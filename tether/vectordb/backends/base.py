"""
Abstract base class for vector database product adapters.

An adapter turns a resolved :class:`~tether.vectordb.config.VectorDbConfig`
into product-specific requests and reshapes the product's responses into
flat records keyed by the configured field keys. It never performs I/O
itself; :mod:`tether.vectordb.procedures` executes what it builds.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, Iterator, List, Mapping, Optional, Sequence

from tether.rest import RestApiConfig
from tether.vectordb.config import EmbeddingConfig, FieldKeys, VectorDbConfig
from tether.vectordb.projection import Projection


class VectorBackend(ABC):
    """
    Request builder and response reshaper for one vector database product.

    Subclasses set ``name``, ``base_path``, the endpoint ``templates`` used by
    the resolver for each operation, and ``field_keys`` defaults.
    """

    name: ClassVar[str]
    base_path: ClassVar[str] = ""
    templates: ClassVar[Dict[str, str]] = {}
    field_keys: ClassVar[FieldKeys] = FieldKeys()

    def endpoint_template(self, operation: str) -> str:
        return self.templates[operation]

    def normalize_url(self, host: str) -> str:
        """Prefix ``http://`` when the host has no scheme and append ``base_path``."""
        url = host.rstrip("/")
        if "://" not in url:
            url = f"http://{url}"
        if self.base_path and not url.endswith(self.base_path):
            url = f"{url}{self.base_path}"
        return url

    def credential_headers(self, credentials: Any) -> Dict[str, str]:
        """Translate stored credentials into request headers."""
        if credentials is None:
            return {}
        return {"Authorization": f"Bearer {credentials}"}

    # ========== Collections ==========

    @abstractmethod
    def build_create_request(
        self,
        config: VectorDbConfig,
        collection: str,
        similarity: str,
        size: int,
    ) -> RestApiConfig:
        """Request creating ``collection``."""
        pass

    @abstractmethod
    def build_delete_collection_request(
        self, config: VectorDbConfig, collection: str
    ) -> RestApiConfig:
        """Request dropping ``collection``."""
        pass

    # ========== Records ==========

    @abstractmethod
    def build_upsert_requests(
        self,
        config: VectorDbConfig,
        collection: str,
        records: Sequence[Mapping[str, Any]],
    ) -> List[RestApiConfig]:
        """Requests inserting or replacing ``records``, in input order."""
        pass

    @abstractmethod
    def build_delete_requests(
        self, config: VectorDbConfig, collection: str, ids: Sequence[Any]
    ) -> List[RestApiConfig]:
        """Requests deleting ``ids``, in input order."""
        pass

    @abstractmethod
    def build_get_requests(
        self,
        config: VectorDbConfig,
        collection: str,
        ids: Sequence[Any],
        projection: Projection,
    ) -> List[EmbeddingConfig]:
        """Requests fetching ``ids``; only asks for the projected data."""
        pass

    @abstractmethod
    def build_query_request(
        self,
        config: VectorDbConfig,
        collection: str,
        vector: Sequence[float],
        filter: Any,
        limit: int,
        projection: Projection,
    ) -> EmbeddingConfig:
        """Similarity search request; only asks for the projected data."""
        pass

    def requested_ids(self, ids: Sequence[Any]) -> List[Any]:
        """Ids reported back by ``delete``, as they were sent."""
        return list(ids)

    # ========== Responses ==========

    def reshape_response(
        self,
        value: Any,
        config: EmbeddingConfig,
        collection: Optional[str] = None,
    ) -> Iterator[Mapping[str, Any]]:
        """Turn one decoded response value into flat records."""
        if isinstance(value, list):
            yield from value
        elif isinstance(value, Mapping):
            yield value

    def embedding_config(
        self, config: VectorDbConfig, api: RestApiConfig
    ) -> EmbeddingConfig:
        return config.embedding_config(api, self.field_keys)
