"""Forward service events to the standard logging module."""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from tether.observability.events import EventRecorder, ServiceEvent


LOGGER = logging.getLogger("tether.events")


def logging_observer(event: ServiceEvent) -> None:
    if event.is_error:
        LOGGER.warning(
            "%s %s failed: %s",
            event.service,
            event.name,
            event.payload.get("error"),
        )
    else:
        LOGGER.debug("%s %s %s", event.service, event.name, event.payload)


def attach_logging_observer(
    recorder: EventRecorder,
    service: Sequence[str] | str | None = None,
) -> Callable[[], None]:
    """Register :func:`logging_observer` and return a remover callback.

    ``service`` restricts logging to one subtree, e.g. ``"rest"``.
    """

    recorder.register(logging_observer, service=service)

    def _remove() -> None:
        recorder.unregister(logging_observer)

    return _remove


def configure_logging(level: str = "INFO") -> None:
    """Set the level of the ``tether`` logger hierarchy."""

    logging.getLogger("tether").setLevel(level.upper())
