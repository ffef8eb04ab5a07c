"""
Pipeline configuration read from the environment.

Embedding dimensionality is fixed once per deployment and must match the
configured model's output exactly.
"""

import os

from .errors import InitializationError

# Embedding configuration
EMBED_DIM = int(os.getenv("EMBED_DIM", "512"))
EMBED_PROVIDER = os.getenv("EMBED_PROVIDER", "hash")  # hash|sentence_transformer
EMBED_MODEL_NAME = os.getenv(
    "EMBED_MODEL_NAME", "sentence-transformers/distiluse-base-multilingual-cased-v2"
)
EMBED_NGRAM_SIZE = int(os.getenv("EMBED_NGRAM_SIZE", "3"))

# Vector index configuration
INDEX_TYPE = os.getenv("INDEX_TYPE", "hnsw")  # hnsw|flat
HNSW_M = int(os.getenv("HNSW_M", "32"))
HNSW_EF_CONSTRUCTION = int(os.getenv("HNSW_EF_CONSTRUCTION", "40"))
HNSW_EF_SEARCH = int(os.getenv("HNSW_EF_SEARCH", "64"))

# Query configuration
DEBOUNCE_MS = int(os.getenv("DEBOUNCE_MS", "800"))
SEARCH_TOP_K = int(os.getenv("SEARCH_TOP_K", "10"))

# Document store; in-process only
DB_PATH = os.getenv("DB_PATH", ":memory:")

DEBUG = os.getenv("DEBUG", "false").lower() == "true"

VALID_PROVIDERS = ("hash", "sentence_transformer")
VALID_INDEX_TYPES = ("hnsw", "flat")


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "false").lower() == "true"


def get_embedding_provider(provider: str = None, dimension: int = None):
    """Get configured embedding provider implementation."""
    provider = provider or EMBED_PROVIDER
    dimension = dimension or EMBED_DIM

    if provider == "hash":
        from ..vector.embeddings import HashedNgramEmbedding
        return HashedNgramEmbedding(dimension=dimension, ngram_size=EMBED_NGRAM_SIZE)
    elif provider == "sentence_transformer":
        from ..vector.embeddings import SentenceTransformerEmbedding
        return SentenceTransformerEmbedding(EMBED_MODEL_NAME)

    raise InitializationError(f"Unknown embedding provider '{provider}', expected one of {VALID_PROVIDERS}")


def get_vector_index(index_type: str = None, dimension: int = None):
    """Get configured vector index implementation."""
    index_type = index_type or INDEX_TYPE
    dimension = dimension or EMBED_DIM

    if index_type == "flat":
        from ..vector.index import ExactVectorIndex
        return ExactVectorIndex(dimension)
    elif index_type == "hnsw":
        from ..vector.faiss_index import FaissHNSWIndex
        return FaissHNSWIndex(
            dimension,
            m=HNSW_M,
            ef_construction=HNSW_EF_CONSTRUCTION,
            ef_search=HNSW_EF_SEARCH,
        )

    raise InitializationError(f"Unknown index type '{index_type}', expected one of {VALID_INDEX_TYPES}")


def validate_config():
    """Validate pipeline configuration and return any issues."""
    issues = []

    if EMBED_DIM <= 0:
        issues.append(f"EMBED_DIM must be positive, got {EMBED_DIM}")

    if EMBED_PROVIDER not in VALID_PROVIDERS:
        issues.append(f"EMBED_PROVIDER must be one of {VALID_PROVIDERS}, got '{EMBED_PROVIDER}'")

    if INDEX_TYPE not in VALID_INDEX_TYPES:
        issues.append(f"INDEX_TYPE must be one of {VALID_INDEX_TYPES}, got '{INDEX_TYPE}'")

    if DEBOUNCE_MS <= 0:
        issues.append(f"DEBOUNCE_MS must be positive, got {DEBOUNCE_MS}")

    if SEARCH_TOP_K <= 0:
        issues.append(f"SEARCH_TOP_K must be positive, got {SEARCH_TOP_K}")

    if EMBED_NGRAM_SIZE <= 0:
        issues.append(f"EMBED_NGRAM_SIZE must be positive, got {EMBED_NGRAM_SIZE}")

    return issues
