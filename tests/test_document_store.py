"""
Tests for the SQLite document store and its pairing invariant.
"""

import numpy as np
import pytest

from semsearch.core.document_store import DocumentStore
from semsearch.core.errors import DimensionMismatch, IngestError, UnknownId
from semsearch.vector.types import Document, EmbeddingVector

DIM = 8


def vec(doc_id, fill=0.5, dim=DIM):
    return EmbeddingVector(owner_id=doc_id, values=np.full(dim, fill, dtype=np.float32))


@pytest.fixture
def store():
    s = DocumentStore(dimension=DIM, db_path=":memory:")
    yield s
    s.close()


def test_insert_assigns_sequential_ids(store):
    ids = [store.insert(text) for text in ("a", "b", "c")]
    assert ids == [1, 2, 3]


def test_attach_then_all_pairs_yields_one_vector_per_document(store):
    contents = ["hello world", "good morning", "hola mundo"]
    for i, content in enumerate(contents):
        doc_id = store.insert(content)
        store.attach_vector(doc_id, vec(doc_id, fill=float(i)))

    pairs = list(store.all_pairs())

    assert [doc_id for doc_id, _ in pairs] == [1, 2, 3]
    for doc_id, vector in pairs:
        assert vector.owner_id == doc_id
        assert len(vector) == DIM
    assert store.count() == 3


def test_vector_values_survive_storage(store):
    values = np.linspace(-1.0, 1.0, DIM, dtype=np.float32)
    doc_id = store.insert("doc")
    store.attach_vector(doc_id, EmbeddingVector(owner_id=doc_id, values=values))

    [(_, stored)] = list(store.all_pairs())
    np.testing.assert_array_equal(stored.values, values)


def test_attach_unknown_id(store):
    with pytest.raises(UnknownId):
        store.attach_vector(42, vec(42))


def test_attach_wrong_dimension(store):
    doc_id = store.insert("doc")
    with pytest.raises(DimensionMismatch):
        store.attach_vector(doc_id, vec(doc_id, dim=DIM + 1))


def test_attach_twice_rejected(store):
    doc_id = store.insert("doc")
    store.attach_vector(doc_id, vec(doc_id))

    with pytest.raises(IngestError):
        store.attach_vector(doc_id, vec(doc_id))


def test_get_content(store):
    doc_id = store.insert("good morning")
    assert store.get_content(doc_id) == "good morning"

    with pytest.raises(UnknownId):
        store.get_content(doc_id + 1)


def test_get_document(store):
    doc_id = store.insert("hola mundo")
    assert store.get_document(doc_id) == Document(id=doc_id, content="hola mundo")


def test_documents_without_vectors_are_not_exposed(store):
    """A dangling insert never reaches all_pairs."""
    first = store.insert("paired")
    store.attach_vector(first, vec(first))
    store.insert("dangling")

    assert [doc_id for doc_id, _ in store.all_pairs()] == [first]
    assert store.count() == 1


def test_all_pairs_is_restartable(store):
    for content in ("a", "b"):
        doc_id = store.insert(content)
        store.attach_vector(doc_id, vec(doc_id))

    assert [d for d, _ in store.all_pairs()] == [d for d, _ in store.all_pairs()] == [1, 2]


def test_unit_of_work_commits_complete_pair(store):
    with store.unit_of_work():
        doc_id = store.insert("doc")
        store.attach_vector(doc_id, vec(doc_id))

    assert store.get_content(doc_id) == "doc"
    assert store.count() == 1


def test_unit_of_work_rolls_back_on_error(store):
    with pytest.raises(RuntimeError):
        with store.unit_of_work():
            doc_id = store.insert("doc")
            raise RuntimeError("embedding failed")

    with pytest.raises(UnknownId):
        store.get_content(doc_id)
    assert list(store.all_pairs()) == []

    # Rolled-back ids are not burned
    assert store.insert("next") == doc_id


def test_unit_of_work_rejects_missing_vector(store):
    with pytest.raises(IngestError):
        with store.unit_of_work():
            doc_id = store.insert("doc")

    with pytest.raises(UnknownId):
        store.get_content(doc_id)


def test_unit_of_work_not_nested(store):
    with pytest.raises(IngestError):
        with store.unit_of_work():
            with store.unit_of_work():
                pass


def test_reset_discards_everything_and_restarts_ids(store):
    doc_id = store.insert("doc")
    store.attach_vector(doc_id, vec(doc_id))

    store.reset()

    assert store.count() == 0
    assert list(store.all_pairs()) == []
    assert store.insert("fresh") == 1


def test_health_check(store):
    assert store.health_check() is True
