"""Main FastAPI application for the Tether REST API."""

from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from tether.api.dependencies import get_config
from tether.api.models import ErrorResponse, HealthResponse
from tether.errors import (
    GraphStoreError,
    MappingError,
    MultipleFoundError,
    TransportError,
    VectorDbConfigError,
)
from tether.observability import attach_logging_observer, configure_logging, get_event_recorder
from tether.vectordb import BACKENDS


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = get_config()
    configure_logging(config.observability.log_level)
    remove = None
    if config.observability.log_events:
        remove = attach_logging_observer(get_event_recorder())
    yield
    if remove is not None:
        remove()


app = FastAPI(
    title="Tether API",
    description="REST API for vector database procedures backed by a graph store",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


# ============================================================================
# Exception Handlers
# ============================================================================


def _error(status_code: int, code: str, exc: Exception, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(code=code, message=str(exc), details=details).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions with structured error response."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            code=f"HTTP_{exc.status_code}",
            message=str(exc.detail),
            details={"headers": dict(exc.headers)} if exc.headers else None,
        ).model_dump(),
    )


@app.exception_handler(VectorDbConfigError)
async def config_error_handler(request: Request, exc: VectorDbConfigError):
    return _error(status.HTTP_400_BAD_REQUEST, "CONFIGURATION_ERROR", exc)


@app.exception_handler(MappingError)
async def mapping_error_handler(request: Request, exc: MappingError):
    return _error(status.HTTP_400_BAD_REQUEST, "MAPPING_ERROR", exc)


@app.exception_handler(MultipleFoundError)
async def multiple_found_handler(request: Request, exc: MultipleFoundError):
    return _error(status.HTTP_409_CONFLICT, "MULTIPLE_FOUND", exc)


@app.exception_handler(TransportError)
async def transport_error_handler(request: Request, exc: TransportError):
    """Remote failures; the remote status is kept in the details."""
    return _error(
        status.HTTP_502_BAD_GATEWAY,
        "TRANSPORT_ERROR",
        exc,
        details={
            "status_code": exc.status_code,
            "endpoint": exc.endpoint,
            "response": exc.response_text,
        },
    )


@app.exception_handler(GraphStoreError)
async def graph_store_error_handler(request: Request, exc: GraphStoreError):
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "GRAPH_STORE_ERROR", exc)


# ============================================================================
# Health Check
# ============================================================================


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Check API health status.

    Returns:
        Health status information
    """
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        backends=sorted(BACKENDS),
    )


# ============================================================================
# Router Registration
# ============================================================================

from tether.api.routers import vectordb  # noqa: E402

app.include_router(vectordb.router, prefix="/api/vectordb", tags=["Vector Databases"])


# ============================================================================
# Main Entry Point
# ============================================================================

def main():
    """Run the API server."""
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
