"""Observability primitives for Tether components."""

from tether.observability.events import (
    EventObserver,
    EventRecorder,
    ServiceEvent,
    get_event_recorder,
    reset_event_recorder,
    set_event_recorder,
)
from tether.observability.logging import (
    attach_logging_observer,
    configure_logging,
    logging_observer,
)

__all__ = [
    "EventObserver",
    "EventRecorder",
    "ServiceEvent",
    "attach_logging_observer",
    "configure_logging",
    "get_event_recorder",
    "logging_observer",
    "reset_event_recorder",
    "set_event_recorder",
]
