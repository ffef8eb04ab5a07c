"""
Tests for the HTTP surface.
"""

import time

import pytest
from fastapi.testclient import TestClient

from semsearch.api.main import create_app
from semsearch.core.errors import DimensionMismatch

from conftest import TEST_DIM, RecordingProvider, make_orchestrator

API_DEBOUNCE_MS = 200
CORPUS = ["hello world", "good morning", "hola mundo"]


def wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return False


@pytest.fixture
def orchestrator():
    return make_orchestrator(debounce_ms=API_DEBOUNCE_MS)


@pytest.fixture
def client(orchestrator):
    app = create_app(orchestrator=orchestrator, corpus=CORPUS, background_init=False)
    with TestClient(app) as test_client:
        yield test_client


def test_health_reports_readiness(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["embedder_ready"] is True
    assert data["index_ready"] is True
    assert data["document_count"] == 3
    assert data["error"] is None


def test_search_returns_ranked_results(client):
    response = client.post("/search", json={"text": "good morning", "k": 2})

    assert response.status_code == 200
    data = response.json()
    assert data["query"] == "good morning"
    assert len(data["results"]) == 2
    assert data["results"][0]["content"] == "good morning"
    assert data["results"][0]["id"] == 2
    assert data["results"][0]["distance"] <= data["results"][1]["distance"]


def test_search_empty_text(client):
    response = client.post("/search", json={"text": ""})

    assert response.status_code == 200
    assert response.json()["results"] == []


def test_search_rejects_invalid_k(client):
    response = client.post("/search", json={"text": "hello", "k": 0})
    assert response.status_code == 422


def test_search_query_error_is_503(client, orchestrator, monkeypatch):
    def broken(vector, k):
        raise DimensionMismatch(TEST_DIM, 3)

    monkeypatch.setattr(orchestrator.index, "search", broken)
    response = client.post("/search", json={"text": "hello"})

    assert response.status_code == 503


def test_debounced_query_publishes_results(client):
    for text in ("h", "he", "hello"):
        response = client.post("/query", json={"text": text})
        assert response.status_code == 202
        assert response.json()["debounce_ms"] == API_DEBOUNCE_MS

    assert wait_for(lambda: client.get("/results").json()["generation"] > 0)

    data = client.get("/results").json()
    assert data["generation"] == 1
    assert data["results"][0]["content"] == "hello world"


def test_empty_query_clears_results(client):
    client.post("/query", json={"text": "hello"})
    assert wait_for(lambda: client.get("/results").json()["results"])

    client.post("/query", json={"text": ""})
    assert client.get("/results").json()["results"] == []


def test_corpus_reload(client):
    response = client.post("/corpus", json={"documents": ["vector search", "nice weather"]})

    assert response.status_code == 200
    assert response.json() == {"success": True, "ids": [1, 2], "document_count": 2}
    assert client.get("/health").json()["document_count"] == 2

    results = client.post("/search", json={"text": "vector search"}).json()["results"]
    assert results[0]["content"] == "vector search"


def test_corpus_rejects_blank_documents(client):
    response = client.post("/corpus", json={"documents": ["ok", "   "]})
    assert response.status_code == 422


def test_corpus_ingest_failure_is_422(client, orchestrator):
    orchestrator.embedder.provider.fail_on = "poison"

    response = client.post("/corpus", json={"documents": ["fine", "poison"]})

    assert response.status_code == 422
    health = client.get("/health").json()
    assert health["index_ready"] is False
    assert health["document_count"] == 0
    assert health["status"] == "unhealthy"
    assert "Ingest failed" in health["error"]


def test_successful_reload_clears_failure(client, orchestrator):
    orchestrator.embedder.provider.fail_on = "poison"
    assert client.post("/corpus", json={"documents": ["poison"]}).status_code == 422

    orchestrator.embedder.provider.fail_on = None
    assert client.post("/corpus", json={"documents": ["fine"]}).status_code == 200

    health = client.get("/health").json()
    assert health["status"] == "healthy"
    assert health["error"] is None


def test_reload_recovers_from_failed_startup():
    provider = RecordingProvider(fail_on="hello world")
    app = create_app(orchestrator=make_orchestrator(provider), corpus=CORPUS, background_init=False)

    with TestClient(app) as client:
        assert client.get("/health").json()["status"] == "unhealthy"

        response = client.post("/corpus", json={"documents": ["good morning", "hola mundo"]})
        assert response.status_code == 200

        health = client.get("/health").json()
        assert health["status"] == "healthy"
        assert health["error"] is None
        assert health["document_count"] == 2


def test_initialization_failure_reported_on_health():
    orchestrator = make_orchestrator(RecordingProvider(fail_on="hello world"))
    app = create_app(orchestrator=orchestrator, corpus=CORPUS, background_init=False)

    with TestClient(app) as client:
        health = client.get("/health").json()
        assert health["status"] == "unhealthy"
        assert "Ingest failed" in health["error"]

        # Not ready is not an error for queries
        response = client.post("/search", json={"text": "hello"})
        assert response.status_code == 200
        assert response.json()["results"] == []
        assert response.json()["index_ready"] is False


class SlowLoadingProvider(RecordingProvider):
    def load(self) -> None:
        time.sleep(0.3)


def test_shutdown_waits_for_cancelled_initialization():
    app = create_app(orchestrator=make_orchestrator(SlowLoadingProvider()), corpus=CORPUS)

    with TestClient(app) as client:
        assert client.get("/health").json()["status"] == "initializing"

    assert app.state.init_task.done()
    assert app.state.init_task.cancelled()


def test_background_initialization():
    orchestrator = make_orchestrator()
    app = create_app(orchestrator=orchestrator, corpus=CORPUS)

    with TestClient(app) as client:
        assert wait_for(lambda: client.get("/health").json()["status"] == "healthy")
        assert client.get("/health").json()["document_count"] == 3
