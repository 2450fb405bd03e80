"""Pytest configuration and shared fixtures for Tether tests."""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import pytest
import requests

from tether.configuration import HttpSettings
from tether.graph_store import GraphStore
from tether.observability import reset_event_recorder
from tether.rest import RequestExecutor
from tether.vectordb import RegistrationStore

_NO_BODY = object()


class FakeResponse:
    """Just enough of ``requests.Response`` for the executor."""

    def __init__(self, status_code: int = 200, payload: Any = _NO_BODY, text: Optional[str] = None):
        self.status_code = status_code
        if text is not None:
            self.content = text.encode("utf-8")
        elif payload is _NO_BODY:
            self.content = b""
        else:
            self.content = json.dumps(payload).encode("utf-8")
        self.text = self.content.decode("utf-8")

    def json(self) -> Any:
        return json.loads(self.content)


@dataclass
class RecordedCall:
    method: str
    url: str
    headers: Dict[str, str]
    json: Any
    timeout: Any
    verify: Any


class FakeSession:
    """
    Stand-in for ``requests.Session``.

    Responses are queued per (method, url); the last queued response for a
    route is reused once the queue runs dry. Unrouted requests fail the test.
    """

    def __init__(self) -> None:
        self.calls: List[RecordedCall] = []
        self._routes: Dict[tuple, list] = {}
        self.closed = False

    def add(
        self,
        method: str,
        url: str,
        payload: Any = _NO_BODY,
        *,
        status_code: int = 200,
        text: Optional[str] = None,
        error: Optional[Exception] = None,
    ) -> "FakeSession":
        response = error if error is not None else FakeResponse(status_code, payload, text)
        self._routes.setdefault((method.upper(), url), []).append(response)
        return self

    def request(self, method, url, headers=None, json=None, timeout=None, verify=None):
        self.calls.append(
            RecordedCall(
                method=method,
                url=url,
                headers=dict(headers or {}),
                json=json,
                timeout=timeout,
                verify=verify,
            )
        )
        queue = self._routes.get((method.upper(), url))
        if not queue:
            raise AssertionError(f"Unexpected request: {method} {url}")
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, Exception):
            raise response
        return response

    def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def clean_event_recorder():
    """Give every test a fresh global event recorder."""
    reset_event_recorder()
    yield
    reset_event_recorder()


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def executor(fake_session):
    return RequestExecutor(settings=HttpSettings(timeout=5.0), session=fake_session)


@pytest.fixture
def graph_store():
    """In-memory graph store."""
    store = GraphStore()
    yield store
    store.close()


@pytest.fixture
def registration_store(tmp_path):
    store = RegistrationStore(f"sqlite:///{tmp_path / 'registrations.db'}")
    yield store
    store.close()


@pytest.fixture
def connection_error():
    return requests.ConnectionError("connection refused")


@pytest.fixture
def berlin_london():
    """Two records shaped the way callers upsert them."""
    return [
        {
            "id": "1",
            "vector": [0.05, 0.61, 0.76, 0.74],
            "metadata": {"city": "Berlin", "foo": "one"},
            "text": "ajeje",
        },
        {
            "id": "2",
            "vector": [0.19, 0.81, 0.75, 0.11],
            "metadata": {"city": "London", "foo": "two"},
            "text": "brazorf",
        },
    ]


@pytest.fixture
def skip_if_no_kuzu():
    pytest.importorskip("kuzu")


@pytest.fixture
def temp_db_path(tmp_path):
    return str(tmp_path / "graph.db")
