"""
Text embedding providers and the async Embedder adapter.

Providers are synchronous and may be CPU-bound; the Embedder runs them in a
worker thread so model load and per-text embedding never block the event loop.
"""

from abc import ABC, abstractmethod
import asyncio
import hashlib

import numpy as np

from ..core.errors import (
    DimensionMismatch,
    EmbeddingFailed,
    InitializationError,
    ModelLoadFailed,
    NotReadyError,
)
from ..util.logging import logger
from .types import EmbeddingVector, QUERY_OWNER_ID


class IEmbeddingProvider(ABC):
    """Abstract interface for embedding providers."""

    def load(self) -> None:
        """Load model assets. Providers without assets need not override."""
        pass

    @abstractmethod
    def embed_text(self, text: str) -> list[float]:
        """Generate embedding vector for given text."""
        pass

    @abstractmethod
    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        pass


class HashedNgramEmbedding(IEmbeddingProvider):
    """Deterministic character n-gram embedding.

    Each character n-gram of the lowercased, space-padded text is hashed into
    one of ``dimension`` buckets and the bucket counts are L2-normalised.
    Strings that share most of their n-grams map to nearby vectors, which is
    enough for tests and offline runs without downloading a model.
    """

    def __init__(self, dimension: int = 512, ngram_size: int = 3):
        if dimension <= 0:
            raise ValueError(f"dimension must be positive: {dimension}")
        if ngram_size <= 0:
            raise ValueError(f"ngram_size must be positive: {ngram_size}")
        self.dimension = dimension
        self.ngram_size = ngram_size

    def _bucket(self, gram: str) -> int:
        digest = hashlib.md5(gram.encode("utf-8")).hexdigest()
        return int(digest[:8], 16) % self.dimension

    def embed_text(self, text: str) -> list[float]:
        """Generate deterministic embedding vector from hashed n-grams."""
        padded = f" {text.lower().strip()} "
        vector = np.zeros(self.dimension, dtype=np.float32)

        for i in range(len(padded) - self.ngram_size + 1):
            vector[self._bucket(padded[i:i + self.ngram_size])] += 1.0

        norm = np.linalg.norm(vector)
        if norm > 0:
            vector /= norm

        return vector.tolist()

    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        return self.dimension


class SentenceTransformerEmbedding(IEmbeddingProvider):
    """Sentence transformers embedding provider using pre-trained models.

    The default deployment uses a 512-d multilingual model so mixed
    Japanese/English corpora embed into one space.
    """

    def __init__(self, model_name: str = "sentence-transformers/distiluse-base-multilingual-cased-v2"):
        self.model_name = model_name
        self._model = None
        self._dimension = None

    def load(self) -> None:
        from sentence_transformers import SentenceTransformer
        self._model = SentenceTransformer(self.model_name)

    @property
    def model(self):
        if self._model is None:
            self.load()
        return self._model

    def embed_text(self, text: str) -> list[float]:
        """Generate embedding vector using sentence transformers."""
        embedding = self.model.encode(text, convert_to_numpy=True)
        return embedding.tolist()

    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        if self._dimension is None:
            dimension = self.model.get_sentence_embedding_dimension()
            if dimension is None:
                # Some models cannot report it; measure a dummy encoding
                dimension = len(self.model.encode("test", convert_to_numpy=True))
            self._dimension = int(dimension)
        return self._dimension


class Embedder:
    """Async adapter over an embedding provider with a one-time model load."""

    def __init__(self, provider: IEmbeddingProvider, dimension: int = None):
        if dimension is None:
            from ..core.config import EMBED_DIM
            dimension = EMBED_DIM
        self.provider = provider
        self.dimension = dimension
        self._ready = False

    @property
    def is_ready(self) -> bool:
        return self._ready

    def _load_and_measure(self) -> int:
        self.provider.load()
        return self.provider.get_dimension()

    async def load_model(self) -> bool:
        """Load the model and verify its output dimension. Returns True once ready."""
        if self._ready:
            return True

        try:
            actual = await asyncio.to_thread(self._load_and_measure)
        except Exception as e:
            logger.error(f"Embedding model load failed: {e}")
            raise ModelLoadFailed(f"Failed to load embedding model: {e}") from e

        if actual != self.dimension:
            raise InitializationError(
                f"Embedding model outputs {actual} dimensions, deployment expects {self.dimension}"
            )

        self._ready = True
        logger.log_operation("embedder.load", "success", {
            "provider": type(self.provider).__name__,
            "dimension": self.dimension
        })
        return True

    async def embed(self, text: str, owner_id: int = QUERY_OWNER_ID) -> EmbeddingVector:
        """Embed text into a vector of length D."""
        if not self._ready:
            raise NotReadyError("Embedder model is not loaded")

        try:
            values = await asyncio.to_thread(self.provider.embed_text, text)
        except Exception as e:
            raise EmbeddingFailed(f"Failed to embed text: {e}") from e

        vector = EmbeddingVector(owner_id=owner_id, values=values)
        if len(vector) != self.dimension:
            raise DimensionMismatch(self.dimension, len(vector))
        return vector

    def unload(self) -> None:
        """Mark the model as unloaded; a new load_model() is required."""
        self._ready = False
