"""
Resolve host, credentials and mapping for a vector database call.

A call either names a literal host or refers to a stored registration. The
registration is used when ``host_or_key`` is ``None`` or equals the product
name (case-insensitively) and a record exists; the caller's configuration is
then layered over the stored values.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Mapping, Optional

from tether.errors import VectorDbConfigError
from tether.vectordb.config import MappingConfig, VectorDbConfig, parse_configuration
from tether.vectordb.registration import RegistrationStore

if TYPE_CHECKING:
    from tether.vectordb.backends.base import VectorBackend

LOGGER = logging.getLogger(__name__)


def resolve_vector_db_info(
    backend: "VectorBackend",
    host_or_key: Optional[str],
    collection: Optional[str],
    configuration: Optional[Mapping[str, Any] | VectorDbConfig],
    template: str,
    store: Optional[RegistrationStore] = None,
) -> VectorDbConfig:
    """
    Produce the configuration a backend builds its requests from.

    Args:
        backend: Product adapter; normalises the URL and translates
            credentials into headers
        host_or_key: Literal host, the product name, or ``None``
        collection: Collection name substituted into ``template``
        configuration: Raw caller options or an already parsed config
        template: Endpoint template with ``{base_url}`` and ``{collection}``
        store: Registration store consulted for the fallback

    Raises:
        VectorDbConfigError: When neither a host nor a registration is available,
            or the configuration is malformed.
    """
    config = parse_configuration(configuration)

    record = None
    if store is not None and (host_or_key is None or host_or_key.lower() == backend.name):
        record = store.get(backend.name)

    headers = dict(config.headers)
    mapping = config.mapping
    if record is not None:
        host = record.host
        headers = backend.credential_headers(record.credentials)
        headers.update(config.headers)
        if mapping is None:
            mapping = MappingConfig.from_mapping(record.mapping)
        LOGGER.debug("Using stored registration for %s", backend.name)
    else:
        host = host_or_key

    if not host:
        raise VectorDbConfigError(
            f"No host given and no registration stored for {backend.name}"
        )

    base_url = backend.normalize_url(host)
    endpoint = config.endpoint or template.format(base_url=base_url, collection=collection)
    return replace(
        config,
        endpoint=endpoint,
        base_url=base_url,
        headers=headers,
        mapping=mapping,
    )


def resolve_custom_endpoint(host: Optional[str], configuration: VectorDbConfig) -> VectorDbConfig:
    """For generic calls the host itself is the endpoint unless one is configured."""
    if configuration.endpoint:
        return configuration
    return replace(configuration, endpoint=host)
