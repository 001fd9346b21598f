"""Abstract base class for the relational record store.

Holds documents, their ordered chunk texts, and chat records.  Chunk texts
are kept here for every document regardless of which vector store holds
the embeddings, so quiz generation and chunk counts never depend on the
remote index.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ragassist.models.rag import StorageMethod, StoredChunk
from ragassist.models.records import ChatRecord, Document


# Concrete implementation: SQLiteRecordStore (ragassist/providers/records/)
class IRecordStore(ABC):
    """Contract for document, chunk-text and chat persistence."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables and indices if they don't exist."""

    # -- Documents ---------------------------------------------------------

    @abstractmethod
    async def create_document(self, owner_id: str, name: str) -> Document:
        """Create an empty document (no chunks, no storage method)."""

    @abstractmethod
    async def get_document(self, owner_id: str, document_id: str) -> Document | None:
        """Return the document if it exists *and* belongs to *owner_id*."""

    @abstractmethod
    async def list_documents(self, owner_id: str) -> list[Document]:
        """Return the owner's documents newest first, with chunk counts."""

    @abstractmethod
    async def mark_stored(
        self,
        document_id: str,
        chunks: list[StoredChunk],
        storage_method: StorageMethod,
    ) -> None:
        """Record the chunk texts (in order) and the chosen storage method.

        Runs in one transaction: either both are recorded or neither is.
        """

    @abstractmethod
    async def discard_chunks(self, document_id: str) -> int:
        """Delete the document's chunk rows, keeping the document.  Returns rows removed."""

    @abstractmethod
    async def get_storage_methods(self, owner_id: str) -> set[StorageMethod]:
        """Return the storage methods used by the owner's stored documents."""

    @abstractmethod
    async def get_chunk_texts(self, document_id: str, limit: int | None = None) -> list[str]:
        """Return the document's chunk texts in original order."""

    @abstractmethod
    async def delete_document(self, document_id: str) -> bool:
        """Delete the document; its chunk rows cascade.  ``False`` if absent."""

    @abstractmethod
    async def delete_owner(self, owner_id: str) -> int:
        """Delete all of the owner's documents and chats.  Returns documents removed."""

    # -- Chats -------------------------------------------------------------

    @abstractmethod
    async def create_chat_record(self, owner_id: str, query: str, answer: str) -> ChatRecord:
        """Persist a query/answer exchange."""

    @abstractmethod
    async def get_chat_history(self, owner_id: str, limit: int = 50) -> list[ChatRecord]:
        """Return the owner's chats newest first."""

    @abstractmethod
    async def clear_chat_history(self, owner_id: str) -> int:
        """Delete the owner's chats.  Returns the number removed."""

    @abstractmethod
    async def count_chats(self, owner_id: str) -> int:
        """Return the number of chats the owner has."""

    @abstractmethod
    async def count_documents(self, owner_id: str) -> int:
        """Return the number of documents the owner has."""
