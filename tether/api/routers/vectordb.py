"""API endpoints for vector database procedures."""

from typing import List, Optional

from fastapi import APIRouter, Depends, status

from tether.api.dependencies import (
    build_procedures,
    build_vector_db,
    get_executor,
    get_graph_store,
    get_registration_store,
)
from tether.api.models import (
    CreateCollectionRequest,
    CustomGetRequest,
    DeleteRequest,
    DeleteResponse,
    GetRequest,
    ProcedureRequest,
    QueryRequest,
    RegistrationRequest,
    RegistrationResponse,
    ResultsResponse,
    UpsertRequest,
    ValuesResponse,
)
from tether.graph_store import GraphStore
from tether.rest import RequestExecutor
from tether.vectordb import RegistrationStore


router = APIRouter()


def _results(rows, fields: Optional[List[str]]) -> ResultsResponse:
    return ResultsResponse(results=[row.as_dict(fields) for row in rows])


# =============================================================================
# Generic Procedures
# =============================================================================


@router.post("/custom", response_model=ValuesResponse)
def custom(
    request: ProcedureRequest,
    executor: RequestExecutor = Depends(get_executor),
    store: RegistrationStore = Depends(get_registration_store),
):
    """Call an arbitrary REST endpoint and return the decoded values."""
    vector_db = build_vector_db(executor, store)
    return ValuesResponse(values=list(vector_db.custom(request.host, request.configuration)))


@router.post("/custom/get", response_model=ResultsResponse)
def custom_get(
    request: CustomGetRequest,
    executor: RequestExecutor = Depends(get_executor),
    store: RegistrationStore = Depends(get_registration_store),
    graph: GraphStore = Depends(get_graph_store),
):
    """Call an endpoint returning result records and project them."""
    vector_db = build_vector_db(executor, store)
    with graph.transaction() as tx:
        rows = list(
            vector_db.custom_get(request.host, request.configuration, request.fields, tx)
        )
    return _results(rows, request.fields)


@router.put("/registrations/{vector_name}", response_model=RegistrationResponse)
def store_registration(
    vector_name: str,
    request: RegistrationRequest,
    executor: RequestExecutor = Depends(get_executor),
    store: RegistrationStore = Depends(get_registration_store),
):
    """Store host, credentials and default mapping for a product."""
    record = build_vector_db(executor, store).store(
        vector_name, request.host, request.credentials, request.mapping
    )
    return RegistrationResponse(
        product=record.product,
        host=record.host,
        has_credentials=record.credentials is not None,
        mapping=record.mapping,
    )


# =============================================================================
# Collections
# =============================================================================


@router.post(
    "/{backend}/collections",
    response_model=ValuesResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_collection(
    backend: str,
    request: CreateCollectionRequest,
    executor: RequestExecutor = Depends(get_executor),
    store: RegistrationStore = Depends(get_registration_store),
):
    procedures = build_procedures(backend, executor, store)
    values = procedures.create_collection(
        request.host,
        request.collection,
        request.similarity,
        request.size,
        request.configuration,
    )
    return ValuesResponse(values=list(values))


@router.delete("/{backend}/collections/{collection}", response_model=ValuesResponse)
def delete_collection(
    backend: str,
    collection: str,
    request: Optional[ProcedureRequest] = None,
    executor: RequestExecutor = Depends(get_executor),
    store: RegistrationStore = Depends(get_registration_store),
):
    request = request or ProcedureRequest()
    procedures = build_procedures(backend, executor, store)
    values = procedures.delete_collection(request.host, collection, request.configuration)
    return ValuesResponse(values=list(values))


# =============================================================================
# Records
# =============================================================================


@router.post("/{backend}/collections/{collection}/upsert", response_model=ValuesResponse)
def upsert(
    backend: str,
    collection: str,
    request: UpsertRequest,
    executor: RequestExecutor = Depends(get_executor),
    store: RegistrationStore = Depends(get_registration_store),
):
    procedures = build_procedures(backend, executor, store)
    values = procedures.upsert(request.host, collection, request.vectors, request.configuration)
    return ValuesResponse(values=list(values))


@router.post("/{backend}/collections/{collection}/delete", response_model=DeleteResponse)
def delete(
    backend: str,
    collection: str,
    request: DeleteRequest,
    executor: RequestExecutor = Depends(get_executor),
    store: RegistrationStore = Depends(get_registration_store),
):
    """Delete records; returns the ids that were requested."""
    procedures = build_procedures(backend, executor, store)
    ids = procedures.delete(request.host, collection, request.ids, request.configuration)
    return DeleteResponse(ids=ids)


@router.post("/{backend}/collections/{collection}/get", response_model=ResultsResponse)
def get(
    backend: str,
    collection: str,
    request: GetRequest,
    executor: RequestExecutor = Depends(get_executor),
    store: RegistrationStore = Depends(get_registration_store),
    graph: GraphStore = Depends(get_graph_store),
):
    procedures = build_procedures(backend, executor, store)
    with graph.transaction() as tx:
        rows = list(
            procedures.get(
                request.host,
                collection,
                request.ids,
                request.configuration,
                fields=request.fields,
                tx=tx,
            )
        )
    return _results(rows, request.fields)


@router.post("/{backend}/collections/{collection}/query", response_model=ResultsResponse)
def query(
    backend: str,
    collection: str,
    request: QueryRequest,
    executor: RequestExecutor = Depends(get_executor),
    store: RegistrationStore = Depends(get_registration_store),
    graph: GraphStore = Depends(get_graph_store),
):
    procedures = build_procedures(backend, executor, store)
    with graph.transaction() as tx:
        rows = list(
            procedures.query(
                request.host,
                collection,
                request.vector,
                request.filter,
                request.limit,
                request.configuration,
                fields=request.fields,
                tx=tx,
            )
        )
    return _results(rows, request.fields)
