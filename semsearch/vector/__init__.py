"""
Vector layer: embeddings and nearest-neighbour indexes derived from the
document store.
"""

from .index import IVectorIndex, ExactVectorIndex
from .faiss_index import FaissHNSWIndex
from .types import Document, EmbeddingVector, SearchHit, SearchResult, QUERY_OWNER_ID
from .embeddings import IEmbeddingProvider, HashedNgramEmbedding, SentenceTransformerEmbedding, Embedder

__all__ = [
    'IVectorIndex',
    'ExactVectorIndex',
    'FaissHNSWIndex',
    'Document',
    'EmbeddingVector',
    'SearchHit',
    'SearchResult',
    'QUERY_OWNER_ID',
    'IEmbeddingProvider',
    'HashedNgramEmbedding',
    'SentenceTransformerEmbedding',
    'Embedder'
]
