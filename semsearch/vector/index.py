"""
Vector index interface and an exact (linear scan) L2 implementation.

Indexes are derived structures: they reference document ids but own nothing,
and can always be discarded and rebuilt from the document store.
"""

from abc import ABC, abstractmethod
from typing import Iterable, List, Tuple

import numpy as np

from ..core.errors import DimensionMismatch, IndexNotBuilt, IngestError
from .types import EmbeddingVector, SearchHit


def stack_pairs(pairs: Iterable[Tuple[int, EmbeddingVector]], dimension: int) -> Tuple[np.ndarray, np.ndarray]:
    """Validate (id, vector) pairs and stack them into (ids, matrix) arrays."""
    ids = []
    rows = []
    seen = set()

    for doc_id, vector in pairs:
        if doc_id in seen:
            raise IngestError(f"Duplicate document id in index build: {doc_id}")
        if len(vector) != dimension:
            raise DimensionMismatch(dimension, len(vector))
        seen.add(doc_id)
        ids.append(doc_id)
        rows.append(vector.values)

    if not rows:
        return np.zeros(0, dtype=np.int64), np.zeros((0, dimension), dtype=np.float32)

    return np.asarray(ids, dtype=np.int64), np.vstack(rows).astype(np.float32)


def rank_exact(ids: np.ndarray, matrix: np.ndarray, query: np.ndarray, k: int) -> List[SearchHit]:
    """Rank rows by Euclidean distance to query; ties go to the lower id."""
    if k <= 0 or ids.shape[0] == 0:
        return []

    diffs = matrix.astype(np.float64) - query.astype(np.float64)
    distances = np.sqrt(np.einsum("ij,ij->i", diffs, diffs))

    # lexsort sorts by the last key first
    order = np.lexsort((ids, distances))[:k]
    return [SearchHit(id=int(ids[i]), distance=float(distances[i])) for i in order]


class IVectorIndex(ABC):
    """Abstract interface for a rebuildable nearest-neighbour index."""

    dimension: int
    _state = None

    @abstractmethod
    def build(self, pairs: Iterable[Tuple[int, EmbeddingVector]]) -> None:
        """Build the index from a complete snapshot of (id, vector) pairs."""
        pass

    @abstractmethod
    def search(self, query_vector: EmbeddingVector, k: int) -> List[SearchHit]:
        """Return up to k hits ordered by ascending distance, then id."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Discard the index; it must be rebuilt before the next search."""
        pass

    @property
    @abstractmethod
    def is_built(self) -> bool:
        pass

    @property
    @abstractmethod
    def size(self) -> int:
        pass

    def _snapshot(self, query_vector: EmbeddingVector):
        """Read the built state once; a concurrent clear() cannot change it afterwards."""
        state = self._state
        if state is None:
            raise IndexNotBuilt("Vector index has not been built")
        if len(query_vector) != self.dimension:
            raise DimensionMismatch(self.dimension, len(query_vector))
        return state


class ExactVectorIndex(IVectorIndex):
    """Exact L2 index backed by a numpy matrix scan."""

    index_type = "flat"

    def __init__(self, dimension: int = 512):
        self.dimension = dimension
        # (ids, matrix); swapped as one unit
        self._state = None

    def build(self, pairs: Iterable[Tuple[int, EmbeddingVector]]) -> None:
        self._state = stack_pairs(pairs, self.dimension)

    def search(self, query_vector: EmbeddingVector, k: int) -> List[SearchHit]:
        ids, matrix = self._snapshot(query_vector)
        return rank_exact(ids, matrix, query_vector.values, k)

    def clear(self) -> None:
        self._state = None

    @property
    def is_built(self) -> bool:
        return self._state is not None

    @property
    def size(self) -> int:
        state = self._state
        return 0 if state is None else int(state[0].shape[0])
