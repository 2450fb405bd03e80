"""Tether REST API module.

Provides FastAPI-based REST endpoints for the vector database procedures:
- Collection creation and deletion
- Record upsert, delete, get and similarity query
- Generic REST calls
- Host and credential registrations
"""

from tether.api.main import app

__all__ = ["app"]
