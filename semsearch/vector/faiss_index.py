"""
FAISS HNSW implementation of IVectorIndex.
"""

from typing import Iterable, List, Tuple

import numpy as np

from .index import IVectorIndex, rank_exact, stack_pairs
from .types import EmbeddingVector, SearchHit


class FaissHNSWIndex(IVectorIndex):
    """HNSW graph index with exact re-ranking of its candidate pool.

    FAISS reports squared L2 and gives no ordering guarantee between equal
    distances, so the graph only proposes candidates; final distances are
    recomputed from the stored float32 matrix and sorted by (distance, id).
    """

    index_type = "hnsw"

    def __init__(self, dimension: int = 512, m: int = 32, ef_construction: int = 40, ef_search: int = 64):
        """
        Initialize FAISS HNSW index.

        Args:
            dimension: Dimension of the vectors
            m: Graph neighbours per node
            ef_construction: Candidate list size while building
            ef_search: Candidate list size while searching
        """
        try:
            import faiss
            self.faiss = faiss
        except ImportError:
            raise ImportError("FAISS not installed. Please install faiss-cpu package.")

        self.dimension = dimension
        self.m = m
        self.ef_construction = ef_construction
        self.ef_search = ef_search

        # (faiss index, ids by position, float32 matrix); swapped as one unit
        self._state = None

    def build(self, pairs: Iterable[Tuple[int, EmbeddingVector]]) -> None:
        ids, matrix = stack_pairs(pairs, self.dimension)

        index = self.faiss.IndexHNSWFlat(self.dimension, self.m)
        index.hnsw.efConstruction = self.ef_construction
        index.hnsw.efSearch = max(self.ef_search, 1)
        if matrix.shape[0]:
            index.add(matrix)

        self._state = (index, ids, matrix)

    def _pool_size(self, k: int, total: int) -> int:
        return min(total, max(2 * k, k + 16))

    def search(self, query_vector: EmbeddingVector, k: int) -> List[SearchHit]:
        index, ids, matrix = self._snapshot(query_vector)

        total = ids.shape[0]
        if k <= 0 or total == 0:
            return []

        pool = self._pool_size(k, total)
        if pool >= total:
            # Small corpus: the whole index is the candidate pool
            return rank_exact(ids, matrix, query_vector.values, k)

        query = np.ascontiguousarray(query_vector.values.reshape(1, -1), dtype=np.float32)
        _, positions = index.search(query, pool)
        positions = positions[0]
        positions = positions[positions >= 0]

        return rank_exact(ids[positions], matrix[positions], query_vector.values, k)

    def clear(self) -> None:
        self._state = None

    @property
    def is_built(self) -> bool:
        return self._state is not None

    @property
    def size(self) -> int:
        state = self._state
        return 0 if state is None else int(state[1].shape[0])
