"""Exception hierarchy for Tether."""

from __future__ import annotations

from typing import Optional


class TetherError(Exception):
    """Base error for Tether failures."""


class VectorDbConfigError(TetherError):
    """Raised when a procedure configuration is missing or malformed."""


class TransportError(TetherError):
    """Raised when a remote REST call fails or returns a non-success status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        endpoint: Optional[str] = None,
        response_text: str = "",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.endpoint = endpoint
        self.response_text = response_text


class MappingError(TetherError):
    """Raised when vector metadata cannot be materialized onto graph entities."""


class MultipleFoundError(TetherError):
    """Raised when a lookup that must be unique matches more than one entity."""


class GraphStoreError(TetherError):
    """Raised when a graph store backend operation fails."""
