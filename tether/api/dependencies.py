"""Dependency injection helpers for FastAPI."""

import os
from functools import lru_cache

from tether.configuration import TetherConfig, default_config, load_config_from_file
from tether.graph_store import GraphStore
from tether.rest import RequestExecutor
from tether.vectordb import RegistrationStore, VectorDb, VectorDbProcedures

CONFIG_PATH_ENV = "TETHER_CONFIG_PATH"


@lru_cache(maxsize=1)
def get_config() -> TetherConfig:
    """Load the config file named by ``TETHER_CONFIG_PATH``, or the defaults.

    Returns:
        Process-wide configuration
    """
    path = os.environ.get(CONFIG_PATH_ENV)
    if path:
        return load_config_from_file(path)
    return default_config()


@lru_cache(maxsize=1)
def get_graph_store() -> GraphStore:
    return GraphStore(config=get_config())


@lru_cache(maxsize=1)
def get_registration_store() -> RegistrationStore:
    config = get_config()
    config.storage.ensure_directories()
    return RegistrationStore(config.storage.registry_url)


@lru_cache(maxsize=1)
def get_executor() -> RequestExecutor:
    return RequestExecutor(settings=get_config().http)


def build_vector_db(
    executor: RequestExecutor,
    store: RegistrationStore,
) -> VectorDb:
    return VectorDb(executor=executor, store=store)


def build_procedures(
    backend: str,
    executor: RequestExecutor,
    store: RegistrationStore,
) -> VectorDbProcedures:
    """Procedures for ``backend``.

    Raises:
        VectorDbConfigError: If the product is unknown
    """
    return VectorDbProcedures(backend, executor=executor, store=store)
