#!/usr/bin/env python3
"""
Corpus query utility.

Ingests a corpus (one document per line, or the demo corpus) into a fresh
pipeline and prints the ranked results for each query.
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add repo root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from semsearch.core.config import SEARCH_TOP_K, validate_config
from semsearch.core.corpus import DEFAULT_CORPUS, DEFAULT_QUERY, load_corpus_file
from semsearch.core.errors import IngestError, InitializationError, QueryError
from semsearch.core.search_service import build_orchestrator


def format_results(query, results):
    """Render results as a table: id, distance, content."""
    lines = [f"Query: {query}", f"{'ID':>4}  {'Distance':>8}  Content"]
    for result in results:
        lines.append(f"{result.id:>4}  {result.distance:>8.4f}  {result.content}")
    if not results:
        lines.append("  (no results)")
    return "\n".join(lines)


async def run(corpus, queries, top_k, provider=None, index_type=None):
    orchestrator = build_orchestrator(provider=provider, index_type=index_type, top_k=top_k)
    try:
        ids = await orchestrator.initialize(corpus)
        print(f"✓ Ingested {len(ids)} documents")

        for query in queries:
            results = await orchestrator.search(query)
            print(format_results(query, results))
            print()
    finally:
        await orchestrator.close()
        orchestrator.store.close()


def main(argv=None):
    parser = argparse.ArgumentParser(description="Run semantic queries against a corpus")
    parser.add_argument("queries", nargs="*", help=f"Query texts (default: {DEFAULT_QUERY!r})")
    parser.add_argument("--corpus", help="Corpus file, one document per line (default: demo corpus)")
    parser.add_argument("--top-k", type=int, default=SEARCH_TOP_K, help=f"Results per query (default: {SEARCH_TOP_K})")
    parser.add_argument("--provider", choices=["hash", "sentence_transformer"], help="Embedding provider override")
    parser.add_argument("--index", choices=["hnsw", "flat"], help="Vector index override")

    args = parser.parse_args(argv)

    issues = validate_config()
    if issues:
        print(f"ERROR: Invalid configuration: {issues}")
        sys.exit(1)

    corpus = load_corpus_file(args.corpus) if args.corpus else DEFAULT_CORPUS
    queries = args.queries or [DEFAULT_QUERY]

    try:
        asyncio.run(run(corpus, queries, args.top_k, args.provider, args.index))
    except (InitializationError, IngestError, QueryError) as e:
        print(f"ERROR: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
