"""Abstract base class for vector-store providers.

Two implementations share this contract: the remote ChromaDB index and the
SQLite linear-scan fallback.  Both persist the owner tag with every chunk
and both score with cosine similarity, so results from either store can be
merged and compared directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ragassist.models.rag import StoredChunk, VectorSearchResult


# Concrete implementations: ChromaDBProvider, SQLiteVectorProvider
# Located in: ragassist/providers/vector_store/
class IVectorStoreProvider(ABC):
    """Contract for vector stores used by the retrieval pipeline.

    All methods that touch storage are async so network-backed stores do not
    block the event loop.
    """

    @abstractmethod
    async def store(self, chunks: list[StoredChunk]) -> int:
        """Persist pre-embedded chunks.

        Parameters
        ----------
        chunks:
            Chunks with embeddings.  ``chunk_id`` is the primary key; storing
            an existing id overwrites it.

        Returns
        -------
        int
            Number of chunks written.

        Raises
        ------
        ragassist.utils.errors.StorageError
            If the write fails.
        """

    @abstractmethod
    async def search(
        self,
        query_embedding: list[float],
        top_k: int,
        owner_id: str | None = None,
    ) -> list[VectorSearchResult]:
        """Return the *top_k* most similar chunks, highest score first.

        Parameters
        ----------
        query_embedding:
            The query vector; same dimension as the stored vectors.
        top_k:
            Maximum number of results.
        owner_id:
            When given, only chunks tagged with this owner are considered.

        Raises
        ------
        ragassist.utils.errors.SearchError
            If the search fails.
        """

    @abstractmethod
    async def delete_by_document(self, document_id: str) -> int:
        """Delete every chunk of *document_id*.  Returns the number removed."""

    @abstractmethod
    async def delete_by_owner(self, owner_id: str) -> int:
        """Delete every chunk tagged with *owner_id*.  Returns the number removed."""

    @abstractmethod
    async def count(self) -> int:
        """Return the total number of stored chunks."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""

    @abstractmethod
    async def is_available(self) -> bool:
        """Return ``True`` if the store can be reached right now."""
