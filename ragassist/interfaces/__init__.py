"""Abstract interfaces for ragassist's external collaborators.

Providers implement these contracts; the orchestrator depends only on the
interfaces so every backend can be replaced or mocked.
"""

from ragassist.interfaces.embedding_provider import IEmbeddingProvider
from ragassist.interfaces.llm_provider import ILLMProvider
from ragassist.interfaces.record_store import IRecordStore
from ragassist.interfaces.vector_store_provider import IVectorStoreProvider

__all__ = [
    "IEmbeddingProvider",
    "ILLMProvider",
    "IRecordStore",
    "IVectorStoreProvider",
]
