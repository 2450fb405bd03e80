"""Pydantic models for API request/response schemas."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ============================================================================
# Common Models
# ============================================================================


class ErrorResponse(BaseModel):
    """Standard error response."""

    code: str = Field(..., description="Error code")
    message: str = Field(..., description="Error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="Check timestamp")
    backends: List[str] = Field(default_factory=list, description="Supported vector databases")


# ============================================================================
# Procedure Requests
# ============================================================================


class ProcedureRequest(BaseModel):
    """Host (or registration key) plus procedure configuration."""

    host: Optional[str] = Field(
        None, description="Host URL; omit or pass the product name to use the stored registration"
    )
    configuration: Dict[str, Any] = Field(default_factory=dict, description="Procedure configuration")


class CreateCollectionRequest(ProcedureRequest):
    """Request to create a collection."""

    collection: str = Field(..., description="Collection name")
    similarity: str = Field(..., description="Similarity metric in the product's naming")
    size: int = Field(..., gt=0, description="Vector dimension")


class UpsertRequest(ProcedureRequest):
    """Records to insert or replace."""

    vectors: List[Dict[str, Any]] = Field(
        ..., description="Records with id, vector and metadata (optionally text)"
    )


class DeleteRequest(ProcedureRequest):
    """Ids to delete."""

    ids: List[Any] = Field(..., description="Record ids")


class GetRequest(ProcedureRequest):
    """Ids to fetch."""

    ids: List[Any] = Field(..., description="Record ids")
    fields: Optional[List[str]] = Field(
        None, description="Result columns to return; all when omitted"
    )


class QueryRequest(ProcedureRequest):
    """Similarity search."""

    vector: List[float] = Field(..., description="Query vector")
    filter: Any = Field(None, description="Filter in the product's own syntax")
    limit: int = Field(10, gt=0, description="Maximum number of results")
    fields: Optional[List[str]] = Field(
        None, description="Result columns to return; all when omitted"
    )


class CustomGetRequest(ProcedureRequest):
    """Generic call returning result records."""

    fields: Optional[List[str]] = Field(
        None, description="Result columns to return; all when omitted"
    )


class RegistrationRequest(BaseModel):
    """Host, credentials and default mapping to store for a product."""

    host: str = Field(..., description="Host URL")
    credentials: Any = Field(None, description="Credentials turned into request headers")
    mapping: Dict[str, Any] = Field(default_factory=dict, description="Default mapping")


# ============================================================================
# Procedure Responses
# ============================================================================


class ValuesResponse(BaseModel):
    """Decoded JSON values returned by a remote call."""

    values: List[Any] = Field(default_factory=list)


class ResultsResponse(BaseModel):
    """Projected embedding results."""

    results: List[Dict[str, Any]] = Field(default_factory=list)


class DeleteResponse(BaseModel):
    """Ids a delete was requested for."""

    ids: List[Any] = Field(default_factory=list)


class RegistrationResponse(BaseModel):
    """Stored registration, without its credentials."""

    product: str
    host: Optional[str] = None
    has_credentials: bool = False
    mapping: Dict[str, Any] = Field(default_factory=dict)
