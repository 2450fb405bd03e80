"""
Typed configuration for vector database procedures.

Raw configuration mappings coming from callers are validated once by
:func:`parse_configuration` and turned into a :class:`VectorDbConfig`.
Backends then derive a :class:`~tether.rest.RestApiConfig` and an
:class:`EmbeddingConfig` from it; nothing past this module reads the raw
mapping.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional

from tether.errors import VectorDbConfigError
from tether.rest import (
    BASE_URL_KEY,
    BODY_KEY,
    DEFAULT_METHOD,
    ENDPOINT_KEY,
    HEADERS_KEY,
    JSON_PATH_KEY,
    METHOD_KEY,
    RestApiConfig,
)

ALL_RESULTS_KEY = "allResults"
MAPPING_KEY = "mapping"
FIELDS_KEY = "fields"

ID_KEY = "idKey"
SCORE_KEY = "scoreKey"
VECTOR_KEY = "vectorKey"
METADATA_KEY = "metadataKey"
TEXT_KEY = "textKey"

FIELD_KEY_NAMES = {
    ID_KEY: "id",
    SCORE_KEY: "score",
    VECTOR_KEY: "vector",
    METADATA_KEY: "metadata",
    TEXT_KEY: "text",
}

RECOGNIZED_KEYS = frozenset(
    {
        ENDPOINT_KEY,
        METHOD_KEY,
        HEADERS_KEY,
        BODY_KEY,
        JSON_PATH_KEY,
        BASE_URL_KEY,
        ALL_RESULTS_KEY,
        MAPPING_KEY,
        FIELDS_KEY,
        *FIELD_KEY_NAMES,
    }
)

MAPPING_KEYS = frozenset({"label", "type", "prop", "id", "embeddingProp", "create"})


@dataclass(frozen=True)
class FieldKeys:
    """Where each datum lives inside a raw result record."""

    id: str = "id"
    score: str = "score"
    vector: str = "vector"
    metadata: str = "metadata"
    text: str = "text"

    def override(self, overrides: Mapping[str, str]) -> "FieldKeys":
        """Apply ``idKey``-style overrides on top of these defaults."""
        changes = {FIELD_KEY_NAMES[key]: value for key, value in overrides.items()}
        return replace(self, **changes)


@dataclass(frozen=True)
class MappingConfig:
    """
    Declarative rule for materializing result metadata as a graph entity.

    Exactly one of ``label`` (node) and ``type`` (relationship) is set.
    """

    prop: str
    label: Optional[str] = None
    type: Optional[str] = None
    id: Optional[str] = None
    embedding_prop: Optional[str] = None
    create: bool = False

    @property
    def targets_node(self) -> bool:
        return self.label is not None

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping[str, Any]]) -> Optional["MappingConfig"]:
        """
        Parse a ``mapping`` option. Returns ``None`` for an absent or empty one.

        Raises:
            VectorDbConfigError: On unknown keys, a missing ``prop``, or unless
                exactly one of ``label`` and ``type`` is given.
        """
        if not mapping:
            return None
        if not isinstance(mapping, Mapping):
            raise VectorDbConfigError(f"`{MAPPING_KEY}` must be a map, got {type(mapping).__name__}")

        unknown = set(mapping) - MAPPING_KEYS
        if unknown:
            raise VectorDbConfigError(f"Unknown mapping keys: {', '.join(sorted(unknown))}")

        label = mapping.get("label") or None
        rel_type = mapping.get("type") or None
        if (label is None) == (rel_type is None):
            raise VectorDbConfigError("Mapping conf has to contain either label or type key")
        if not mapping.get("prop"):
            raise VectorDbConfigError("Mapping conf has to contain the prop key")

        create = mapping.get("create", False)
        if not isinstance(create, bool):
            raise VectorDbConfigError("Mapping `create` must be a boolean")

        return cls(
            prop=mapping["prop"],
            label=label,
            type=rel_type,
            id=mapping.get("id"),
            embedding_prop=mapping.get("embeddingProp"),
            create=create,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialisable form using the option names callers pass in."""
        data: Dict[str, Any] = {"prop": self.prop, "create": self.create}
        for key, value in (
            ("label", self.label),
            ("type", self.type),
            ("id", self.id),
            ("embeddingProp", self.embedding_prop),
        ):
            if value is not None:
                data[key] = value
        return data


@dataclass(frozen=True)
class VectorDbConfig:
    """
    Validated procedure configuration.

    ``method_given`` records whether the caller supplied a ``method`` key at
    all, so that an explicit ``None`` stays distinguishable from an absent key.
    """

    endpoint: Optional[str] = None
    method: Optional[str] = None
    method_given: bool = False
    headers: Dict[str, str] = field(default_factory=dict)
    body: Dict[str, Any] = field(default_factory=dict)
    json_path: Optional[str] = None
    base_url: Optional[str] = None
    all_results: bool = False
    mapping: Optional[MappingConfig] = None
    fields: Optional[List[str]] = None
    key_overrides: Dict[str, str] = field(default_factory=dict)

    def rest_config(
        self,
        extra_body: Optional[Mapping[str, Any]] = None,
        *,
        default_method: Optional[str] = DEFAULT_METHOD,
    ) -> RestApiConfig:
        """Build the HTTP request, layering the caller's body over ``extra_body``."""
        return RestApiConfig.from_mapping(
            self.rest_mapping(), extra_body, default_method=default_method
        )

    def rest_mapping(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.endpoint is not None:
            data[ENDPOINT_KEY] = self.endpoint
        if self.method_given:
            data[METHOD_KEY] = self.method
        if self.headers:
            data[HEADERS_KEY] = dict(self.headers)
        if self.body:
            data[BODY_KEY] = dict(self.body)
        if self.json_path is not None:
            data[JSON_PATH_KEY] = self.json_path
        if self.base_url is not None:
            data[BASE_URL_KEY] = self.base_url
        return data

    def field_keys(self, defaults: Optional[FieldKeys] = None) -> FieldKeys:
        return (defaults or FieldKeys()).override(self.key_overrides)

    def embedding_config(
        self,
        api: RestApiConfig,
        defaults: Optional[FieldKeys] = None,
    ) -> "EmbeddingConfig":
        return EmbeddingConfig(
            api=api,
            keys=self.field_keys(defaults),
            all_results=self.all_results,
            mapping=self.mapping,
        )


@dataclass(frozen=True)
class EmbeddingConfig:
    """Request plus everything needed to turn its records into results."""

    api: RestApiConfig
    keys: FieldKeys = field(default_factory=FieldKeys)
    all_results: bool = False
    mapping: Optional[MappingConfig] = None

    @property
    def endpoint(self) -> Optional[str]:
        return self.api.endpoint

    def with_api(self, api: RestApiConfig) -> "EmbeddingConfig":
        return replace(self, api=api)


def _expect(key: str, value: Any, expected: type, label: str) -> Any:
    if not isinstance(value, expected):
        raise VectorDbConfigError(
            f"`{key}` must be {label}, got {type(value).__name__}"
        )
    return value


def _string_map(key: str, value: Any) -> Dict[str, str]:
    _expect(key, value, Mapping, "a map")
    result = {}
    for name, item in value.items():
        if not isinstance(name, str):
            raise VectorDbConfigError(f"`{key}` keys must be strings")
        result[name] = item if isinstance(item, str) else str(item)
    return result


def parse_configuration(configuration: Optional[Mapping[str, Any]]) -> VectorDbConfig:
    """
    Validate a raw configuration mapping.

    Args:
        configuration: Caller options; ``None`` is treated as empty

    Returns:
        The typed configuration

    Raises:
        VectorDbConfigError: On unknown keys or wrongly typed values
    """
    if configuration is None:
        return VectorDbConfig()
    if isinstance(configuration, VectorDbConfig):
        return configuration
    _expect("configuration", configuration, Mapping, "a map")

    unknown = set(configuration) - RECOGNIZED_KEYS
    if unknown:
        raise VectorDbConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

    values: Dict[str, Any] = {}
    for key in (ENDPOINT_KEY, JSON_PATH_KEY, BASE_URL_KEY):
        if configuration.get(key) is not None:
            values[key] = _expect(key, configuration[key], str, "a string")

    method_given = METHOD_KEY in configuration
    method = configuration.get(METHOD_KEY)
    if method is not None:
        _expect(METHOD_KEY, method, str, "a string")

    headers = {}
    if configuration.get(HEADERS_KEY) is not None:
        headers = _string_map(HEADERS_KEY, configuration[HEADERS_KEY])

    body: Dict[str, Any] = {}
    if configuration.get(BODY_KEY) is not None:
        body = dict(_expect(BODY_KEY, configuration[BODY_KEY], Mapping, "a map"))

    all_results = configuration.get(ALL_RESULTS_KEY, False)
    if all_results is None:
        all_results = False
    _expect(ALL_RESULTS_KEY, all_results, bool, "a boolean")

    fields = configuration.get(FIELDS_KEY)
    if fields is not None:
        if isinstance(fields, str) or not isinstance(fields, (list, tuple)):
            raise VectorDbConfigError(f"`{FIELDS_KEY}` must be a list of strings")
        if not all(isinstance(item, str) for item in fields):
            raise VectorDbConfigError(f"`{FIELDS_KEY}` must be a list of strings")
        fields = list(fields)

    key_overrides = {}
    for key in FIELD_KEY_NAMES:
        if configuration.get(key) is not None:
            key_overrides[key] = _expect(key, configuration[key], str, "a string")

    return VectorDbConfig(
        endpoint=values.get(ENDPOINT_KEY),
        method=method.upper() if method else None,
        method_given=method_given,
        headers=headers,
        body=body,
        json_path=values.get(JSON_PATH_KEY),
        base_url=values.get(BASE_URL_KEY),
        all_results=all_results,
        mapping=MappingConfig.from_mapping(configuration.get(MAPPING_KEY)),
        fields=fields,
        key_overrides=key_overrides,
    )
