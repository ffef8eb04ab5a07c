"""
HTTP surface over the search orchestrator.

The pipeline initializes in the background at startup; until both readiness
flags are set, queries return no results rather than errors.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Iterable, Optional

from fastapi import FastAPI, HTTPException, Request, status

from .. import VERSION
from ..core.config import debug_enabled
from ..core.corpus import DEFAULT_CORPUS
from ..core.errors import IngestError, InitializationError, NotReadyError, QueryError
from ..core.search_service import SearchOrchestrator, build_orchestrator
from ..util.logging import logger
from .schemas import (
    CorpusRequest,
    CorpusResponse,
    HealthResponse,
    QueryAccepted,
    QueryRequest,
    ResultsResponse,
    SearchRequest,
    SearchResponse,
    SearchResultItem,
)


def _items(results):
    return [SearchResultItem(id=r.id, content=r.content, distance=r.distance) for r in results]


async def _initialize(app: FastAPI, corpus) -> None:
    orchestrator: SearchOrchestrator = app.state.orchestrator
    try:
        await orchestrator.initialize(corpus)
        logger.info("Search pipeline initialized")
    except (InitializationError, IngestError) as e:
        app.state.init_error = str(e)
        logger.error(f"Search pipeline initialization failed: {e}")


def create_app(orchestrator: Optional[SearchOrchestrator] = None,
               corpus: Optional[Iterable[str]] = None,
               background_init: bool = True) -> FastAPI:
    """Build the FastAPI application.

    Args:
        orchestrator: Pre-built orchestrator; built from configuration if omitted
        corpus: Documents ingested at startup, defaults to the demo corpus
        background_init: Initialize without blocking startup
    """
    startup_corpus = list(corpus) if corpus is not None else list(DEFAULT_CORPUS)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.orchestrator = orchestrator or build_orchestrator()
        app.state.init_error = None
        app.state.init_task = None

        if background_init:
            app.state.init_task = asyncio.create_task(_initialize(app, startup_corpus))
        else:
            await _initialize(app, startup_corpus)

        try:
            yield
        finally:
            if app.state.init_task is not None and not app.state.init_task.done():
                app.state.init_task.cancel()
                await asyncio.gather(app.state.init_task, return_exceptions=True)
            await app.state.orchestrator.close()

    app = FastAPI(
        title="Semantic Search API",
        version=VERSION,
        description="Debounced semantic search over a small in-memory corpus",
        docs_url="/docs" if debug_enabled() else None,
        redoc_url="/redoc" if debug_enabled() else None,
        lifespan=lifespan
    )

    @app.get("/health", response_model=HealthResponse)
    async def health_check_endpoint(request: Request):
        """Report readiness of the embedder and index."""
        orch: SearchOrchestrator = request.app.state.orchestrator
        init_error = request.app.state.init_error
        readiness = orch.readiness()

        if init_error:
            state = "unhealthy"
        elif readiness["embedder_ready"] and readiness["index_ready"]:
            state = "healthy"
        else:
            state = "initializing"

        return HealthResponse(
            status=state,
            version=VERSION,
            document_count=orch.store.count(),
            error=init_error,
            **readiness
        )

    @app.post("/query", response_model=QueryAccepted, status_code=status.HTTP_202_ACCEPTED)
    async def submit_query_endpoint(req: QueryRequest, request: Request):
        """Feed the debouncer with the caller's latest query text."""
        orch: SearchOrchestrator = request.app.state.orchestrator
        orch.submit_query(req.text)
        return QueryAccepted(accepted=True, debounce_ms=orch.debouncer.interval_ms)

    @app.get("/results", response_model=ResultsResponse)
    async def results_endpoint(request: Request):
        """Latest displayed results from debounced queries."""
        orch: SearchOrchestrator = request.app.state.orchestrator
        return ResultsResponse(generation=orch.results_generation, results=_items(orch.results))

    @app.post("/search", response_model=SearchResponse)
    async def search_endpoint(req: SearchRequest, request: Request):
        """Immediate search, bypassing the debouncer."""
        orch: SearchOrchestrator = request.app.state.orchestrator
        try:
            results = await orch.search(req.text, req.k)
        except QueryError as e:
            raise HTTPException(status_code=503, detail=str(e))

        return SearchResponse(query=req.text, results=_items(results), **orch.readiness())

    @app.post("/corpus", response_model=CorpusResponse)
    async def corpus_endpoint(req: CorpusRequest, request: Request):
        """Replace the corpus and rebuild the index."""
        orch: SearchOrchestrator = request.app.state.orchestrator
        try:
            ids = await orch.ingest(req.documents)
        except NotReadyError as e:
            raise HTTPException(status_code=503, detail=str(e))
        except IngestError as e:
            # The store and index were emptied; report it until the next good ingest
            request.app.state.init_error = str(e)
            raise HTTPException(status_code=422, detail=str(e))

        request.app.state.init_error = None
        return CorpusResponse(success=True, ids=ids, document_count=len(ids))

    return app


app = create_app()
