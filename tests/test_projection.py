"""Tests for result projection."""

import pytest

from tether.rest import RestApiConfig
from tether.vectordb import EmbeddingResult, EntityMappingMaterializer, Projection, build_embedding_result
from tether.vectordb.config import EmbeddingConfig, FieldKeys

RECORD = {
    "id": "1",
    "score": 0.25,
    "vector": [0.05, 0.61, 0.76, 0.74],
    "metadata": {"city": "Berlin"},
    "text": "ajeje",
}


def _config(all_results: bool, keys: FieldKeys = FieldKeys()) -> EmbeddingConfig:
    return EmbeddingConfig(
        api=RestApiConfig(endpoint="http://localhost/x"),
        keys=keys,
        all_results=all_results,
    )


def _build(record, fields, all_results, keys=FieldKeys()):
    projection = Projection.from_fields(fields, all_results)
    return build_embedding_result(
        _config(all_results, keys), record, projection, EntityMappingMaterializer(None)
    )


@pytest.mark.parametrize(
    "fields,all_results,has_vector,has_metadata,has_text",
    [
        (["id", "vector", "metadata"], True, True, True, False),
        (["vector"], False, False, False, False),
        (["metadata", "text"], True, False, True, True),
        (None, True, True, True, True),
        (None, False, False, True, False),
    ],
)
def test_projection_flags(fields, all_results, has_vector, has_metadata, has_text):
    projection = Projection.from_fields(fields, all_results)

    assert projection.has_vector is has_vector
    assert projection.has_metadata is has_metadata
    assert projection.has_text is has_text


def test_all_columns_with_all_results():
    result = _build(RECORD, None, True)

    assert result == EmbeddingResult(
        id="1",
        score=0.25,
        vector=[0.05, 0.61, 0.76, 0.74],
        metadata={"city": "Berlin"},
        text="ajeje",
    )


def test_id_and_text_need_all_results():
    result = _build(RECORD, None, False)

    assert result.id is None
    assert result.text is None
    assert result.metadata == {"city": "Berlin"}
    assert result.score == 0.25


def test_vector_not_read_when_not_projected():
    result = _build(RECORD, ["id", "metadata", "score"], True)

    assert result.vector is None
    assert result.id == "1"


def test_vector_not_read_without_all_results():
    result = _build(RECORD, ["vector", "metadata"], False)

    assert result.vector is None


def test_metadata_not_read_when_not_projected():
    result = _build(RECORD, ["id", "score"], True)

    assert result.metadata is None


def test_absent_score_is_none():
    record = {key: value for key, value in RECORD.items() if key != "score"}

    assert _build(record, None, True).score is None


def test_integer_score_becomes_float():
    result = _build({**RECORD, "score": 1}, None, True)

    assert result.score == 1.0
    assert isinstance(result.score, float)


def test_custom_field_keys():
    record = {"_id": 7, "distance": "0.5", "embedding": [1.0], "payload": {"a": 1}, "doc": "t"}
    keys = FieldKeys(id="_id", score="distance", vector="embedding", metadata="payload", text="doc")

    result = _build(record, None, True, keys)

    assert result == EmbeddingResult(id=7, score=0.5, vector=[1.0], metadata={"a": 1}, text="t")


def test_as_dict_respects_projection():
    result = _build(RECORD, None, True)

    assert result.as_dict(["id", "metadata"]) == {"id": "1", "metadata": {"city": "Berlin"}}
    assert set(result.as_dict()) == {"id", "score", "vector", "metadata", "text", "node", "rel"}
