"""
Search orchestrator: embeds debounced query text, searches the vector index
and joins hits back to document content.

Readiness is two independent flags (embedder, index). Searching before both
are set is not an error: it yields no results.
"""

import asyncio
import time
from typing import Callable, Iterable, List, Optional

from .config import DEBOUNCE_MS, SEARCH_TOP_K, get_embedding_provider, get_vector_index
from .debounce import QueryDebouncer
from .document_store import DocumentStore
from .errors import InitializationError, IngestError, NotReadyError, QueryError, SemanticSearchError
from ..util.logging import logger
from ..vector.embeddings import Embedder
from ..vector.index import IVectorIndex
from ..vector.types import SearchResult

ResultListener = Callable[[List[SearchResult]], None]


class SearchOrchestrator:
    """Owns the ingest and query flow over an embedder, a document store and an index."""

    def __init__(self, embedder: Embedder, store: DocumentStore, index: IVectorIndex,
                 top_k: int = None, debounce_ms: int = None):
        if embedder.dimension != index.dimension or embedder.dimension != store.dimension:
            raise InitializationError(
                f"Dimension mismatch: embedder={embedder.dimension}, "
                f"store={store.dimension}, index={index.dimension}"
            )

        self.embedder = embedder
        self.store = store
        self.index = index
        self.top_k = top_k if top_k is not None else SEARCH_TOP_K
        self.debouncer = QueryDebouncer(self.dispatch, debounce_ms if debounce_ms is not None else DEBOUNCE_MS)

        self._ingesting = False
        # Bumped by every ingest; a search spanning a change is stale
        self._corpus_version = 0
        self._generation = 0
        self._results: List[SearchResult] = []
        self._results_generation = 0
        self._listeners: List[ResultListener] = []
        self._inflight = set()
        self.last_error: Optional[Exception] = None

    # Readiness

    @property
    def embedder_ready(self) -> bool:
        return self.embedder.is_ready

    @property
    def index_ready(self) -> bool:
        return self.index.is_built and not self._ingesting

    def readiness(self) -> dict:
        return {"embedder_ready": self.embedder_ready, "index_ready": self.index_ready}

    # Initialization and ingest

    async def initialize(self, corpus: Iterable[str]) -> List[int]:
        """Load the model (once) and ingest the corpus."""
        await self.embedder.load_model()
        return await self.ingest(corpus)

    async def ingest(self, corpus: Iterable[str]) -> List[int]:
        """Replace the corpus, all-or-nothing, and rebuild the index.

        On any failure the store and index are emptied and IngestError is
        raised; a partial corpus is never served.
        """
        if not self.embedder.is_ready:
            raise NotReadyError("Embedder must be loaded before ingest")
        if self._ingesting:
            raise IngestError("Ingest already in progress")

        documents = list(corpus)
        self._ingesting = True
        self._corpus_version += 1
        self.index.clear()
        self.store.reset()

        ids = []
        try:
            for content in documents:
                with self.store.unit_of_work():
                    doc_id = self.store.insert(content)
                    vector = await self.embedder.embed(content, owner_id=doc_id)
                    self.store.attach_vector(doc_id, vector)
                ids.append(doc_id)

            pairs = list(self.store.all_pairs())
            start_time = time.monotonic()
            await asyncio.to_thread(self.index.build, pairs)
            logger.log_index_build(
                getattr(self.index, "index_type", type(self.index).__name__),
                self.index.size,
                (time.monotonic() - start_time) * 1000
            )
        except Exception as e:
            self.index.clear()
            self.store.reset()
            logger.log_ingest(len(documents), "failed", {"ingested": len(ids), "error": str(e)})
            raise IngestError(f"Ingest failed after {len(ids)} of {len(documents)} documents: {e}") from e
        finally:
            self._ingesting = False

        logger.log_ingest(len(ids))
        return ids

    # Query flow

    async def search(self, text: str, k: int = None) -> List[SearchResult]:
        """Embed text and return up to k results ranked by ascending distance.

        Empty text and a not-yet-ready pipeline both yield [] without
        touching the embedder or the index.
        """
        results = await self._search(text, k)
        return [] if results is None else results

    async def _search(self, text: str, k: int = None) -> Optional[List[SearchResult]]:
        """Like search(), but None when a reload overlapped the query."""
        k = self.top_k if k is None else k
        if not text or not text.strip():
            return []

        if not (self.embedder_ready and self.index_ready):
            logger.log_search(text, 0, status="not_ready")
            return []

        corpus_version = self._corpus_version
        try:
            query_vector = await self.embedder.embed(text)
            hits = await asyncio.to_thread(self.index.search, query_vector, k)
        except NotReadyError:
            if corpus_version != self._corpus_version:
                logger.log_search(text, 0, status="stale")
                return None
            logger.log_search(text, 0, status="not_ready")
            return []
        except QueryError as e:
            logger.error(f"Query failed against index: {e}")
            raise

        # Hits from a replaced or half-built corpus are never joined
        if corpus_version != self._corpus_version or not self.index_ready:
            logger.log_search(text, 0, status="stale")
            return None

        results = [
            SearchResult(id=hit.id, content=self.store.get_content(hit.id), distance=hit.distance)
            for hit in hits
        ]
        logger.log_search(text, len(results))
        return results

    def submit_query(self, text: str) -> None:
        """Feed the latest query text from the caller.

        Non-empty text goes through the debouncer. Empty text cancels any
        pending or in-flight cycle and clears the displayed results at once.
        """
        if not text or not text.strip():
            self.debouncer.cancel()
            self._generation += 1
            self._publish([], self._generation)
            return

        self.debouncer.submit(text)

    def dispatch(self, text: str) -> asyncio.Task:
        """Start a search cycle; only the newest dispatched cycle may publish."""
        self._generation += 1
        task = asyncio.ensure_future(self._run_cycle(text, self._generation))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    async def _run_cycle(self, text: str, generation: int) -> Optional[List[SearchResult]]:
        try:
            results = await self._search(text)
        except SemanticSearchError as e:
            self.last_error = e
            logger.error(f"Search cycle {generation} failed: {e}")
            return None

        if results is None:
            return None

        if generation != self._generation:
            logger.log_search(text, len(results), generation, status="superseded")
            return None

        self._publish(results, generation)
        return results

    def _publish(self, results: List[SearchResult], generation: int) -> None:
        self._results = results
        self._results_generation = generation

        for listener in list(self._listeners):
            try:
                listener(results)
            except Exception as e:
                logger.error(f"Result listener failed: {e}")

    @property
    def results(self) -> List[SearchResult]:
        """Latest displayed results."""
        return list(self._results)

    @property
    def results_generation(self) -> int:
        return self._results_generation

    def add_listener(self, listener: ResultListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: ResultListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def close(self) -> None:
        """Teardown: cancel the debounce timer and any in-flight cycles."""
        self.debouncer.close()
        tasks = list(self._inflight)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)


def build_orchestrator(provider: str = None, index_type: str = None, dimension: int = None,
                       top_k: int = None, debounce_ms: int = None, db_path: str = None) -> SearchOrchestrator:
    """Assemble an orchestrator from configuration."""
    from .config import EMBED_DIM
    dimension = dimension or EMBED_DIM

    embedder = Embedder(get_embedding_provider(provider, dimension), dimension)
    store = DocumentStore(dimension, db_path)
    index = get_vector_index(index_type, dimension)
    return SearchOrchestrator(embedder, store, index, top_k=top_k, debounce_ms=debounce_ms)
