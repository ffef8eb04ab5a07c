"""
Exception types raised by the semantic search pipeline.

Initialization and ingest errors are surfaced to the caller; not-ready
conditions are absorbed by the orchestrator and reported as "no results yet".
"""


class SemanticSearchError(Exception):
    """Base class for all pipeline errors"""

    pass


class InitializationError(SemanticSearchError):
    """Pipeline could not be initialized (model load, dimension misconfiguration)"""

    pass


class ModelLoadFailed(InitializationError):
    """Embedding model asset could not be loaded"""

    pass


class EmbeddingFailed(SemanticSearchError):
    """The embedding model rejected its input"""

    pass


class IngestError(SemanticSearchError):
    """Bulk ingest failed; partial corpus state has been discarded"""

    pass


class UnknownId(SemanticSearchError):
    """No document exists with the requested id"""

    def __init__(self, doc_id):
        super().__init__(f"Unknown document id: {doc_id}")
        self.doc_id = doc_id


class NotReadyError(SemanticSearchError):
    """A component was used before its initialization completed"""

    pass


class IndexNotBuilt(NotReadyError):
    """Vector index searched before build()"""

    pass


class QueryError(SemanticSearchError):
    """Query could not be served against the index (configuration bug)"""

    pass


class DimensionMismatch(QueryError):
    """Vector length does not match the deployment dimensionality"""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"Vector dimension {actual} does not match expected dimension {expected}")
        self.expected = expected
        self.actual = actual
