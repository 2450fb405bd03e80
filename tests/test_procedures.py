"""End-to-end tests for the vector database procedures against a fake HTTP session."""

import pytest

from tether.errors import MappingError, TransportError, VectorDbConfigError
from tether.observability import get_event_recorder
from tether.vectordb import VectorDb, VectorDbProcedures

CHROMA_QUERY_URL = "http://localhost:8000/api/v1/collections/cid/query"
NODE_MAPPING = {"label": "Test", "prop": "myId", "id": "foo", "create": True}


def _chroma_query_response(berlin_london):
    return {
        "ids": [[r["id"] for r in berlin_london]],
        "distances": [[0.1, 0.2]],
        "metadatas": [[r["metadata"] for r in berlin_london]],
        "embeddings": [[r["vector"] for r in berlin_london]],
        "documents": [[r["text"] for r in berlin_london]],
    }


@pytest.fixture
def chroma(executor):
    return VectorDbProcedures("chroma", executor)


# ========== Query ==========

def test_query_with_all_results(chroma, fake_session, berlin_london):
    fake_session.add("POST", CHROMA_QUERY_URL, _chroma_query_response(berlin_london))

    results = list(
        chroma.query("localhost:8000", "cid", [0.2, 0.1, 0.9, 0.7], configuration={"allResults": True})
    )

    assert [r.id for r in results] == ["1", "2"]
    assert [r.metadata["city"] for r in results] == ["Berlin", "London"]
    assert [r.score for r in results] == [0.1, 0.2]
    assert results[0].vector == [0.05, 0.61, 0.76, 0.74]
    assert results[1].text == "brazorf"
    assert fake_session.calls[0].json["include"] == [
        "metadatas",
        "documents",
        "embeddings",
        "distances",
    ]


def test_query_without_all_results_hides_id_and_vector(chroma, fake_session, berlin_london):
    fake_session.add("POST", CHROMA_QUERY_URL, _chroma_query_response(berlin_london))

    results = list(chroma.query("localhost:8000", "cid", [0.2, 0.1, 0.9, 0.7]))

    assert [r.id for r in results] == [None, None]
    assert [r.vector for r in results] == [None, None]
    assert results[0].metadata == {"city": "Berlin", "foo": "one"}
    assert fake_session.calls[0].json["include"] == ["metadatas", "distances"]


def test_query_is_lazy(chroma, fake_session, berlin_london):
    fake_session.add("POST", CHROMA_QUERY_URL, _chroma_query_response(berlin_london))

    results = chroma.query("localhost:8000", "cid", [0.2, 0.1])

    assert fake_session.calls == []
    next(results)
    assert len(fake_session.calls) == 1


def test_query_maps_onto_graph_without_duplicates(chroma, fake_session, berlin_london, graph_store):
    fake_session.add("POST", CHROMA_QUERY_URL, _chroma_query_response(berlin_london))
    configuration = {"allResults": True, "mapping": NODE_MAPPING}

    for _ in range(2):
        with graph_store.transaction() as tx:
            results = list(
                chroma.query("localhost:8000", "cid", [0.2, 0.1], configuration=configuration, tx=tx)
            )

    assert [r.node.properties["myId"] for r in results] == ["one", "two"]
    assert results[0].node.properties["city"] == "Berlin"
    assert results[0].rel is None
    assert sorted(n.properties["myId"] for n in graph_store.nodes("Test")) == ["one", "two"]


def test_mapping_without_metadata_rolls_back(chroma, fake_session, berlin_london, graph_store):
    fake_session.add("POST", CHROMA_QUERY_URL, _chroma_query_response(berlin_london))
    configuration = {"allResults": True, "mapping": NODE_MAPPING}

    with pytest.raises(MappingError, match="metadata should not be empty"):
        with graph_store.transaction() as tx:
            list(
                chroma.query(
                    "localhost:8000",
                    "cid",
                    [0.2, 0.1],
                    configuration=configuration,
                    fields=["id", "score"],
                    tx=tx,
                )
            )

    assert graph_store.nodes("Test") == []


def test_mapping_without_transaction_raises(chroma, fake_session, berlin_london):
    fake_session.add("POST", CHROMA_QUERY_URL, _chroma_query_response(berlin_london))

    results = chroma.query(
        "localhost:8000", "cid", [0.2], configuration={"mapping": NODE_MAPPING}
    )

    with pytest.raises(VectorDbConfigError):
        list(results)


def test_http_error_propagates(chroma, fake_session):
    fake_session.add("POST", CHROMA_QUERY_URL, status_code=403, text="forbidden")

    with pytest.raises(TransportError) as excinfo:
        list(chroma.query("localhost:8000", "cid", [0.2]))

    assert excinfo.value.status_code == 403
    assert "Server returned HTTP response code: 403" in str(excinfo.value)


def test_missing_host_fails_before_any_request(executor, fake_session):
    qdrant = VectorDbProcedures("qdrant", executor)

    with pytest.raises(VectorDbConfigError, match="No host given"):
        qdrant.query(None, "test", [0.2])

    assert fake_session.calls == []


def test_invalid_configuration_fails_before_any_request(chroma, fake_session):
    with pytest.raises(VectorDbConfigError):
        chroma.query("localhost:8000", "cid", [0.2], configuration={"allResults": "yes"})

    assert fake_session.calls == []


# ========== Get ==========

def test_qdrant_get_has_no_score(executor, fake_session):
    fake_session.add(
        "POST",
        "http://localhost:6333/collections/test/points",
        {"result": [{"id": 1, "payload": {"city": "Berlin"}, "vector": [0.5, 0.5]}]},
    )
    qdrant = VectorDbProcedures("qdrant", executor)

    [result] = qdrant.get("localhost:6333", "test", [1], configuration={"allResults": True})

    assert result.id == 1
    assert result.score is None
    assert result.metadata == {"city": "Berlin"}
    assert result.vector == [0.5, 0.5]


def test_get_is_repeatable(chroma, fake_session):
    fake_session.add(
        "POST",
        "http://localhost:8000/api/v1/collections/cid/get",
        {"ids": ["1"], "metadatas": [{"city": "Berlin"}], "embeddings": None, "documents": None},
    )

    first = list(chroma.get("localhost:8000", "cid", ["1"]))
    second = list(chroma.get("localhost:8000", "cid", ["1"]))

    assert first == second
    assert first[0].metadata == {"city": "Berlin"}


def test_weaviate_get_sends_bodiless_get_per_id(executor, fake_session):
    for item in ("a", "b"):
        fake_session.add(
            "GET",
            f"http://localhost:8080/v1/objects/Coll/{item}?include=vector",
            {"id": item, "properties": {"name": item}, "vector": [1.0]},
        )
    weaviate = VectorDbProcedures("weaviate", executor)

    results = list(weaviate.get("localhost:8080", "Coll", ["a", "b"], configuration={"allResults": True}))

    assert [r.id for r in results] == ["a", "b"]
    assert [r.metadata for r in results] == [{"name": "a"}, {"name": "b"}]
    assert all(call.json is None for call in fake_session.calls)


# ========== Upsert / delete ==========

def test_weaviate_upsert_sends_one_request_per_record(executor, fake_session, berlin_london):
    fake_session.add("POST", "http://localhost:8080/v1/objects", {"ok": True})
    weaviate = VectorDbProcedures("weaviate", executor)

    list(weaviate.upsert("localhost:8080", "Coll", berlin_london))

    assert [call.json["id"] for call in fake_session.calls] == ["1", "2"]
    assert fake_session.calls[0].json["properties"] == {"city": "Berlin", "foo": "one"}


def test_chroma_delete_returns_requested_ids(chroma, fake_session):
    fake_session.add("POST", "http://localhost:8000/api/v1/collections/cid/delete", ["3"])

    assert chroma.delete("localhost:8000", "cid", [3]) == ["3"]
    assert fake_session.calls[0].json == {"ids": ["3"]}


def test_weaviate_delete_sends_every_request(executor, fake_session):
    for item in ("a", "b"):
        fake_session.add("DELETE", f"http://localhost:8080/v1/objects/Coll/{item}", status_code=204)
    weaviate = VectorDbProcedures("weaviate", executor)

    events = []
    with get_event_recorder().temporary_observer(events.append):
        deleted = weaviate.delete("localhost:8080", "Coll", ["a", "b"])

    assert deleted == ["a", "b"]
    assert [call.method for call in fake_session.calls] == ["DELETE", "DELETE"]
    assert events[-1].name == "delete.complete"
    assert events[-1].service == "vectordb"


def test_create_and_delete_collection(executor, fake_session):
    fake_session.add("PUT", "http://localhost:6333/collections/test", {"result": True})
    fake_session.add("DELETE", "http://localhost:6333/collections/test", {"result": True})
    qdrant = VectorDbProcedures("qdrant", executor)

    created = list(qdrant.create_collection("localhost:6333", "test", "Cosine", 4))
    dropped = list(qdrant.delete_collection("localhost:6333", "test"))

    assert created == [{"result": True}]
    assert dropped == [{"result": True}]
    assert fake_session.calls[0].json == {"vectors": {"size": 4, "distance": "Cosine"}}


# ========== Registrations ==========

def test_store_then_call_without_host(executor, fake_session, registration_store, graph_store):
    VectorDb(executor, registration_store).store(
        "Qdrant", "localhost:6333", "secret", {"label": "Test", "prop": "myId", "id": "foo", "create": True}
    )
    fake_session.add(
        "POST",
        "http://localhost:6333/collections/test/points/search",
        {"result": [{"id": 1, "score": 0.9, "payload": {"foo": "one"}}]},
    )
    qdrant = VectorDbProcedures("qdrant", executor, registration_store)

    with graph_store.transaction() as tx:
        [result] = qdrant.query(None, "test", [0.1], tx=tx)

    assert fake_session.calls[0].headers["api-key"] == "secret"
    assert result.node.properties == {"myId": "one", "foo": "one"}


def test_store_requires_registration_store(executor):
    with pytest.raises(VectorDbConfigError, match="No registration store"):
        VectorDb(executor).store("chroma", "localhost:8000")


def test_store_validates_product_and_mapping(executor, registration_store):
    vector_db = VectorDb(executor, registration_store)

    with pytest.raises(VectorDbConfigError, match="Unknown vector database"):
        vector_db.store("pinecone", "localhost")
    with pytest.raises(VectorDbConfigError):
        vector_db.store("chroma", "localhost", None, {"prop": "myId"})
    assert registration_store.get("chroma") is None


# ========== Custom ==========

def test_custom_uses_host_as_endpoint(executor, fake_session):
    fake_session.add("GET", "http://host/api/items", [{"a": 1}, {"a": 2}])

    values = list(VectorDb(executor).custom("http://host/api/items", {"method": "GET"}))

    assert values == [{"a": 1}, {"a": 2}]


def test_custom_requires_endpoint(executor, fake_session):
    with pytest.raises(VectorDbConfigError, match="Endpoint must be specified"):
        VectorDb(executor).custom(None, {})

    assert fake_session.calls == []


def test_custom_get_with_key_overrides(executor, fake_session):
    fake_session.add(
        "POST",
        "http://host/search",
        {"hits": [{"_id": "x", "distance": "0.5", "payload": {"k": "v"}, "doc": "text"}]},
    )
    configuration = {
        "allResults": True,
        "jsonPath": "hits",
        "body": {"q": 1},
        "idKey": "_id",
        "scoreKey": "distance",
        "metadataKey": "payload",
        "textKey": "doc",
    }

    [result] = VectorDb(executor).custom_get("http://host/search", configuration)

    assert (result.id, result.score, result.metadata, result.text) == ("x", 0.5, {"k": "v"}, "text")
    assert fake_session.calls[0].json == {"q": 1}
