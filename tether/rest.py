"""
REST request descriptor and executor.

`RestApiConfig` describes one HTTP call (endpoint, verb, headers, JSON body,
optional JSON path). `RequestExecutor` performs it with ``requests`` and
yields the decoded JSON values lazily: nothing goes over the wire until the
first value is pulled.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterator, Mapping, Optional

import requests

from tether.configuration import HttpSettings
from tether.errors import TransportError, VectorDbConfigError
from tether.observability import get_event_recorder

LOGGER = logging.getLogger(__name__)

ENDPOINT_KEY = "endpoint"
METHOD_KEY = "method"
HEADERS_KEY = "headers"
BODY_KEY = "body"
JSON_PATH_KEY = "jsonPath"
BASE_URL_KEY = "baseUrl"

DEFAULT_METHOD = "POST"


def record_rest_event(name: str, payload: Dict[str, Any]) -> None:
    get_event_recorder("rest").record(name=name, payload=payload)


@dataclass(frozen=True)
class RestApiConfig:
    """
    One HTTP request.

    ``method`` is ``None`` when the configuration explicitly left the verb
    unset. In that case no verb is forced: a body implies ``POST``, no body
    implies ``GET``. This is not the same as ``method="GET"``, which is sent
    as-is together with any body.
    """

    endpoint: Optional[str]
    method: Optional[str] = DEFAULT_METHOD
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[Dict[str, Any]] = None
    json_path: Optional[str] = None
    base_url: Optional[str] = None

    @classmethod
    def from_mapping(
        cls,
        config: Mapping[str, Any],
        extra_body: Optional[Mapping[str, Any]] = None,
        *,
        default_method: Optional[str] = DEFAULT_METHOD,
    ) -> "RestApiConfig":
        """
        Build a request from a configuration mapping.

        Args:
            config: Configuration with optional ``endpoint``, ``method``,
                ``headers``, ``body``, ``jsonPath`` and ``baseUrl`` keys
            extra_body: Computed body fields; entries of the caller's ``body``
                win over them
            default_method: Verb used when ``config`` has no ``method`` key
        """
        method = config[METHOD_KEY] if METHOD_KEY in config else default_method
        headers = {"content-type": "application/json"}
        headers.update(config.get(HEADERS_KEY) or {})

        body: Optional[Dict[str, Any]] = None
        if extra_body or config.get(BODY_KEY):
            body = dict(extra_body or {})
            body.update(config.get(BODY_KEY) or {})

        return cls(
            endpoint=config.get(ENDPOINT_KEY),
            method=method.upper() if method else None,
            headers=headers,
            body=body,
            json_path=config.get(JSON_PATH_KEY),
            base_url=config.get(BASE_URL_KEY),
        )

    def with_endpoint(self, endpoint: str) -> "RestApiConfig":
        return replace(self, endpoint=endpoint)

    def with_json_path(self, json_path: Optional[str]) -> "RestApiConfig":
        return replace(self, json_path=json_path)

    def resolved_method(self) -> str:
        if self.method:
            return self.method
        return "POST" if self.body is not None else "GET"


def extract_json_path(value: Any, path: Optional[str]) -> Any:
    """
    Resolve a dotted JSON path such as ``$.result`` or ``data.Get.Items``.

    Integer segments index into lists. Raises ``KeyError`` when the path does
    not exist.
    """
    if not path:
        return value
    segments = [segment for segment in path.lstrip("$").split(".") if segment]
    current = value
    for segment in segments:
        if isinstance(current, list) and segment.lstrip("-").isdigit():
            try:
                current = current[int(segment)]
            except IndexError as exc:
                raise KeyError(segment) from exc
        elif isinstance(current, dict) and segment in current:
            current = current[segment]
        else:
            raise KeyError(segment)
    return current


class RequestExecutor:
    """
    Performs REST calls described by :class:`RestApiConfig`.

    No retries are attempted. Timeouts come from :class:`HttpSettings`.
    """

    def __init__(
        self,
        settings: Optional[HttpSettings] = None,
        session: Optional[requests.Session] = None,
    ):
        self.settings = settings or HttpSettings()
        self._session = session or requests.Session()

    def execute(self, config: RestApiConfig) -> Iterator[Any]:
        """
        Validate ``config`` and return a lazy iterator over decoded values.

        Raises:
            VectorDbConfigError: If the endpoint is missing. Raised here, before
                any network activity.
        """
        if not config.endpoint:
            raise VectorDbConfigError("Endpoint must be specified")
        return self._stream(config)

    def _stream(self, config: RestApiConfig) -> Iterator[Any]:
        payload = self._send(config)
        if payload is _EMPTY:
            return
        try:
            value = extract_json_path(payload, config.json_path)
        except KeyError:
            LOGGER.debug("JSON path %s not found in response from %s", config.json_path, config.endpoint)
            return
        if isinstance(value, list):
            yield from value
        else:
            yield value

    def _send(self, config: RestApiConfig) -> Any:
        method = config.resolved_method()
        headers = dict(self.settings.default_headers)
        headers.update(config.headers)
        send_body = config.body is not None and (config.method is not None or method != "GET")

        record_rest_event("request.start", {"method": method, "endpoint": config.endpoint})
        try:
            response = self._session.request(
                method,
                config.endpoint,
                headers=headers,
                json=config.body if send_body else None,
                timeout=self.settings.timeout,
                verify=self.settings.verify_ssl,
            )
        except requests.RequestException as exc:
            record_rest_event(
                "request.error", {"endpoint": config.endpoint, "error": str(exc)}
            )
            raise TransportError(
                f"Request to {config.endpoint} failed: {exc}", endpoint=config.endpoint
            ) from exc

        if not 200 <= response.status_code < 300:
            text = response.text or ""
            record_rest_event(
                "request.error",
                {
                    "endpoint": config.endpoint,
                    "status_code": response.status_code,
                    "error": text,
                },
            )
            raise TransportError(
                f"Server returned HTTP response code: {response.status_code} "
                f"for URL: {config.endpoint}. {text}".strip(),
                status_code=response.status_code,
                endpoint=config.endpoint,
                response_text=text,
            )

        record_rest_event(
            "request.complete",
            {"endpoint": config.endpoint, "status_code": response.status_code},
        )
        if not response.content or not response.content.strip():
            return _EMPTY
        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(
                f"Malformed JSON response from {config.endpoint}: {exc}",
                status_code=response.status_code,
                endpoint=config.endpoint,
                response_text=response.text or "",
            ) from exc

    def close(self) -> None:
        self._session.close()


_EMPTY = object()
