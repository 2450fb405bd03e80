"""
Unified configuration primitives for Tether storage, transport and logging.

The `TetherConfig` dataclass is the single entry point that downstream
components use to determine where the graph store and the vector database
registration records live, how REST calls to vector databases are issued,
and how verbose logging should be.

Example usage::

    from pathlib import Path
    from tether.configuration import TetherConfig

    config = TetherConfig.with_root(Path.cwd() / "tether_storage")
    print(config.storage.registry_url)

The configuration loader can execute a user supplied `config.py` file::

    from tether.configuration import load_config_from_file

    config = load_config_from_file("/path/to/config.py")

The file must define a variable named ``TETHER_CONFIG`` that is an instance
of :class:`TetherConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import textwrap
from types import MappingProxyType
from typing import Any, Mapping, MutableMapping


DEFAULT_STORAGE_ROOT_NAME = "tether_storage"
CONFIG_SYMBOL_NAME = "TETHER_CONFIG"
GRAPH_BACKENDS = ("kuzu", "memory")


class ConfigurationError(RuntimeError):
    """Raised when loading a configuration file fails."""


def _ensure_path(path: Path | str) -> Path:
    result = Path(path).expanduser()
    if not result.is_absolute():
        result = result.resolve()
    return result


@dataclass(slots=True)
class StoragePaths:
    """Filesystem locations used by Tether."""

    root: Path
    graph_store_path: Path
    registry_path: Path
    log_dir: Path

    def ensure_directories(self) -> None:
        """Create directories represented by this configuration."""
        dirs = {
            self.root,
            self.log_dir,
            Path(self.graph_store_path).parent,
            self.registry_path.parent,
        }
        for directory in dirs:
            directory.mkdir(parents=True, exist_ok=True)

    @property
    def registry_url(self) -> str:
        """Return the SQLAlchemy URL for the vector database registrations."""
        return f"sqlite:///{self.registry_path}"


@dataclass(slots=True)
class HttpSettings:
    """Transport settings applied to every vector database REST call."""

    timeout: float | None = 30.0
    verify_ssl: bool = True
    default_headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class ObservabilitySettings:
    """Global observability and logging configuration."""

    log_level: str = "INFO"
    log_events: bool = True


@dataclass(slots=True)
class GraphStoreSettings:
    """Defaults for graph store persistence."""

    backend: str = "kuzu"
    db_path_override: Path | None = None

    def __post_init__(self) -> None:
        if self.backend not in GRAPH_BACKENDS:
            raise ConfigurationError(
                f"Unknown graph store backend {self.backend!r}; "
                f"expected one of {', '.join(GRAPH_BACKENDS)}"
            )
        if self.db_path_override is not None:
            self.db_path_override = _ensure_path(self.db_path_override)


@dataclass(slots=True)
class TetherConfig:
    """
    Root configuration structure for Tether.

    Attributes:
        storage: Filesystem paths for the graph store and registration database.
        http: Transport settings for vector database REST calls.
        observability: Logging and event configuration.
        graph_store: Graph database persistence settings.
        extras: User-defined metadata dictionary.
    """

    storage: StoragePaths
    http: HttpSettings = field(default_factory=HttpSettings)
    observability: ObservabilitySettings = field(default_factory=ObservabilitySettings)
    graph_store: GraphStoreSettings = field(default_factory=GraphStoreSettings)
    extras: Mapping[str, Any] = field(default_factory=dict)

    @property
    def graph_db_path(self) -> Path:
        """Path of the Kùzu database, honouring ``db_path_override``."""
        return self.graph_store.db_path_override or self.storage.graph_store_path

    @classmethod
    def with_root(
        cls,
        root: Path | str,
        *,
        http: HttpSettings | None = None,
        observability: ObservabilitySettings | None = None,
        graph_store: GraphStoreSettings | None = None,
        extras: Mapping[str, Any] | None = None,
    ) -> "TetherConfig":
        """
        Create a TetherConfig with storage paths derived from a root directory.

        Args:
            root: Root directory for all storage backends.
            http: Optional transport settings.
            observability: Optional observability settings.
            graph_store: Optional graph store settings.
            extras: Optional user-defined metadata.

        Returns:
            Configured TetherConfig instance.
        """
        root_path = _ensure_path(root)
        storage = StoragePaths(
            root=root_path,
            graph_store_path=root_path / "graph" / "graph.db",
            registry_path=root_path / "system" / "registrations.db",
            log_dir=root_path / "logs",
        )
        return cls(
            storage=storage,
            http=http or HttpSettings(),
            observability=observability or ObservabilitySettings(),
            graph_store=graph_store or GraphStoreSettings(),
            extras=MappingProxyType(dict(extras or {})),
        )


def default_config(root: Path | None = None) -> TetherConfig:
    """Return a default configuration rooted at the provided directory."""
    if root is None:
        root = Path.cwd() / DEFAULT_STORAGE_ROOT_NAME
    return TetherConfig.with_root(root)


def render_default_config(root: Path | None = None) -> str:
    """
    Render the canonical ``config.py`` contents for a user workspace.

    Parameters
    ----------
    root:
        Optional storage root. Defaults to ``<cwd>/tether_storage`` when not
        supplied.

    Returns
    -------
    str
        The string content for a `config.py` file.
    """
    config = default_config(root)
    return textwrap.dedent(
        f"""\
        from pathlib import Path

        from tether.configuration import (
            GraphStoreSettings,
            HttpSettings,
            ObservabilitySettings,
            TetherConfig,
        )


        storage_root = Path({str(config.storage.root)!r})

        http = HttpSettings(
            timeout={config.http.timeout!r},
            verify_ssl={config.http.verify_ssl!r},
            default_headers={{}},
        )

        observability = ObservabilitySettings(
            log_level={config.observability.log_level!r},
            log_events={config.observability.log_events!r},
        )

        # backend is "kuzu" (persistent) or "memory"
        graph_store = GraphStoreSettings(
            backend={config.graph_store.backend!r},
            db_path_override=None,
        )

        TETHER_CONFIG = TetherConfig.with_root(
            storage_root,
            http=http,
            observability=observability,
            graph_store=graph_store,
        )
        """
    )


def load_config_from_file(path: Path | str) -> TetherConfig:
    """
    Execute a user provided config module and return ``TetherConfig``.

    The target file must define a global named ``TETHER_CONFIG`` that is an
    instance of :class:`TetherConfig`.
    """
    path = Path(path).expanduser()
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    namespace: MutableMapping[str, Any] = {}
    code = path.read_text()
    compiled = compile(code, str(path), "exec")
    exec(compiled, namespace, namespace)  # noqa: S102 (exec used for config loading)

    if CONFIG_SYMBOL_NAME not in namespace:
        raise ConfigurationError(
            f"Configuration file {path} must define `{CONFIG_SYMBOL_NAME}`"
        )

    config_obj = namespace[CONFIG_SYMBOL_NAME]
    if not isinstance(config_obj, TetherConfig):
        raise ConfigurationError(
            f"{CONFIG_SYMBOL_NAME} in {path} must be a TetherConfig, "
            f"got {type(config_obj)!r}"
        )

    return config_obj


__all__ = [
    "CONFIG_SYMBOL_NAME",
    "ConfigurationError",
    "DEFAULT_STORAGE_ROOT_NAME",
    "GraphStoreSettings",
    "HttpSettings",
    "ObservabilitySettings",
    "StoragePaths",
    "TetherConfig",
    "default_config",
    "load_config_from_file",
    "render_default_config",
]
