"""
Data types shared by the document store, vector index and orchestrator.
"""

from dataclasses import dataclass

import numpy as np

# owner_id carried by query vectors, which belong to no document
QUERY_OWNER_ID = -1


@dataclass(frozen=True)
class Document:
    """A corpus document. Immutable once ingested."""

    id: int
    """Sequentially assigned identifier"""

    content: str
    """Document text"""


@dataclass(eq=False)
class EmbeddingVector:
    """Embedding of a document or query."""

    owner_id: int
    """Id of the owning document, QUERY_OWNER_ID for queries"""

    values: np.ndarray
    """float32 array of length D"""

    def __post_init__(self):
        self.values = np.asarray(self.values, dtype=np.float32).reshape(-1)

    def __len__(self):
        return int(self.values.shape[0])

    @property
    def is_query(self) -> bool:
        return self.owner_id == QUERY_OWNER_ID


@dataclass(frozen=True)
class SearchHit:
    """Raw index hit, before joining back to document content."""

    id: int
    distance: float


@dataclass(frozen=True)
class SearchResult:
    """One ranked search result."""

    id: int
    content: str
    distance: float

    def to_dict(self):
        return {"id": self.id, "content": self.content, "distance": self.distance}
