"""
Shared fixtures: small-dimension pipelines built on the hashed n-gram embedder.
"""

import asyncio

import pytest

from semsearch.core.document_store import DocumentStore
from semsearch.core.search_service import SearchOrchestrator
from semsearch.vector.embeddings import Embedder, HashedNgramEmbedding
from semsearch.vector.index import ExactVectorIndex

TEST_DIM = 128
TEST_DEBOUNCE_MS = 40


class RecordingProvider(HashedNgramEmbedding):
    """Hashed n-gram provider that records every text it embeds."""

    def __init__(self, dimension: int = TEST_DIM, fail_on: str = None):
        super().__init__(dimension=dimension)
        self.calls = []
        self.fail_on = fail_on

    def embed_text(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail_on is not None and text == self.fail_on:
            raise RuntimeError(f"cannot embed {text!r}")
        return super().embed_text(text)


def make_orchestrator(provider=None, index=None, dimension: int = TEST_DIM,
                      debounce_ms: int = TEST_DEBOUNCE_MS, top_k: int = 10) -> SearchOrchestrator:
    provider = provider or RecordingProvider(dimension)
    embedder = Embedder(provider, dimension)
    store = DocumentStore(dimension, ":memory:")
    index = index or ExactVectorIndex(dimension)
    return SearchOrchestrator(embedder, store, index, top_k=top_k, debounce_ms=debounce_ms)


@pytest.fixture
def provider():
    return RecordingProvider()


@pytest.fixture
def orchestrator(provider):
    orch = make_orchestrator(provider)
    yield orch
    orch.store.close()


@pytest.fixture
def ready_orchestrator(orchestrator):
    """Orchestrator initialized with a three-document corpus."""
    asyncio.run(orchestrator.initialize(["hello world", "good morning", "hola mundo"]))
    orchestrator.embedder.provider.calls.clear()
    return orchestrator
