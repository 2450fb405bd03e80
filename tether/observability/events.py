"""Event primitives and dispatcher for Tether observability."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import RLock
from typing import Any, Dict, Iterator, List, Optional, Tuple

Metadata = Dict[str, Any]
EventObserver = Callable[["ServiceEvent"], None]
ServicePath = Tuple[str, ...]


@dataclass(slots=True, frozen=True)
class ServiceEvent:
    """Event emitted by a Tether component, e.g. ``rest`` / ``request.error``."""

    timestamp: datetime
    service: str
    name: str
    payload: Metadata = field(default_factory=dict)

    @property
    def is_error(self) -> bool:
        return self.name.endswith(".error")

    def matches(self, service: ServicePath) -> bool:
        """True when the event was recorded under ``service`` or a child of it."""
        parts = tuple(self.service.split(".")) if self.service else ()
        return parts[: len(service)] == service


@dataclass(slots=True)
class _Subscription:
    observer: EventObserver
    service: ServicePath


class _Hub:
    """Subscriptions shared by a root recorder and every recorder scoped from it."""

    def __init__(self) -> None:
        self.lock = RLock()
        self.subscriptions: List[_Subscription] = []

    def snapshot(self) -> Tuple[_Subscription, ...]:
        with self.lock:
            return tuple(self.subscriptions)


class EventRecorder:
    """
    Records service events and hands them to subscribed observers.

    ``recorder.scoped("vectordb")`` returns a recorder sharing the same
    subscriptions that records under ``vectordb``. An observer registered with
    ``service="rest"`` only sees events recorded under ``rest`` or below it.
    """

    __slots__ = ("_path", "_hub")

    def __init__(self, service: Sequence[str] | str | None = None, *, _hub: Optional[_Hub] = None) -> None:
        self._path = _split_service(service)
        self._hub = _hub or _Hub()

    @property
    def service(self) -> str:
        return ".".join(self._path)

    def scoped(self, service: Sequence[str] | str) -> "EventRecorder":
        return EventRecorder(self._path + _split_service(service), _hub=self._hub)

    def register(self, observer: EventObserver, *, service: Sequence[str] | str | None = None) -> None:
        """Subscribe ``observer``; ``service`` limits it to that subtree."""
        path = _split_service(service)
        with self._hub.lock:
            if not any(s.observer == observer and s.service == path for s in self._hub.subscriptions):
                self._hub.subscriptions.append(_Subscription(observer, path))

    def unregister(self, observer: EventObserver) -> None:
        with self._hub.lock:
            self._hub.subscriptions = [
                s for s in self._hub.subscriptions if s.observer != observer
            ]

    @contextmanager
    def temporary_observer(
        self,
        observer: EventObserver,
        *,
        service: Sequence[str] | str | None = None,
    ) -> Iterator[None]:
        self.register(observer, service=service)
        try:
            yield
        finally:
            self.unregister(observer)

    def record(
        self,
        name: str,
        payload: Metadata | None = None,
        *,
        timestamp: Optional[datetime] = None,
    ) -> ServiceEvent:
        event = ServiceEvent(
            timestamp=timestamp or datetime.now(timezone.utc),
            service=self.service,
            name=name,
            payload=dict(payload or {}),
        )
        for subscription in self._hub.snapshot():
            if not event.matches(subscription.service):
                continue
            try:
                subscription.observer(event)
            except Exception:
                # observers are best-effort
                continue
        return event


def _split_service(service: Sequence[str] | str | None) -> ServicePath:
    if service is None:
        return ()
    if isinstance(service, str):
        service = service.split(".")
    return tuple(part for part in service if part)


_GLOBAL_RECORDER = EventRecorder()


def get_event_recorder(service: Sequence[str] | str | None = None) -> EventRecorder:
    """Return the global event recorder, or a recorder scoped under ``service``."""
    if service is None:
        return _GLOBAL_RECORDER
    return _GLOBAL_RECORDER.scoped(service)


def set_event_recorder(recorder: EventRecorder) -> None:
    global _GLOBAL_RECORDER
    _GLOBAL_RECORDER = recorder


def reset_event_recorder() -> None:
    """Replace the global recorder with one that has no observers."""
    set_event_recorder(EventRecorder())


__all__ = [
    "EventObserver",
    "EventRecorder",
    "ServiceEvent",
    "get_event_recorder",
    "reset_event_recorder",
    "set_event_recorder",
]
