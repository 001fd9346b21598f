"""Retrieval data models for ragassist.

Defines Pydantic v2 models for stored chunks, embedding results, search
results and the outputs of the ingestion and query flows.  All models use
frozen config so that values passed between flows cannot be mutated.

Retrieval-augmented generation in ragassist:

    1. INGESTION: an uploaded document is extracted to plain text, cleaned
       and split into sentence-aligned chunks of roughly 500 tokens.
    2. EMBEDDING: every chunk is turned into a vector in one batch call.
    3. STORAGE: chunks + vectors go to the remote ChromaDB index, or to the
       SQLite fallback when the index is unavailable.
    4. RETRIEVAL: a query is embedded and the owner's chunks are ranked by
       cosine similarity; weak matches are dropped.
    5. GENERATION: the surviving chunk texts become the context of a
       completion that is told to answer only from that context.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class StorageMethod(str, Enum):
    """Which vector store holds a document's chunks."""

    REMOTE = "remote"
    RELATIONAL = "relational"


class StoredChunk(BaseModel):
    """A chunk of document text together with its embedding.

    Both vector stores persist the ``owner_id`` alongside the vector so that
    searches scoped to one owner never surface another owner's chunk.
    """

    model_config = ConfigDict(frozen=True)

    chunk_id: str = Field(description="Unique identifier (UUID) for this chunk.")
    document_id: str = Field(description="Identifier of the parent document.")
    document_name: str = Field(description="Display name of the parent document.")
    owner_id: str = Field(description="Owner of the parent document.")
    position: int = Field(default=0, ge=0, description="Zero-based order within the document.")
    text: str = Field(description="The chunk's textual content.")
    embedding: list[float] = Field(description="Embedding vector for the chunk text.")


class EmbeddingResult(BaseModel):
    """A single embedding plus its apportioned share of the call's token usage."""

    model_config = ConfigDict(frozen=True)

    embedding: list[float]
    tokens: int = Field(default=0, ge=0)


class VectorSearchResult(BaseModel):
    """A chunk returned by a similarity search.

    ``score`` is cosine similarity in ``[-1, 1]``; higher is more similar.
    """

    model_config = ConfigDict(frozen=True)

    chunk_id: str
    text: str
    score: float
    document_id: str
    document_name: str

    @property
    def metadata(self) -> dict[str, str]:
        return {"document_id": self.document_id, "document_name": self.document_name}


class IngestionResult(BaseModel):
    """Outcome of ingesting one document."""

    model_config = ConfigDict(frozen=True)

    document_id: str
    document_name: str
    chunks_created: int = Field(ge=0)
    storage_method: StorageMethod
    file_extension: str
    text_length: int = Field(ge=0, description="Length of the extracted text before cleaning.")
    processed_at: datetime


class QueryResult(BaseModel):
    """Grounded answer with its supporting references."""

    model_config = ConfigDict(frozen=True)

    answer: str
    references: list[str] = Field(default_factory=list)
    chat_id: str | None = Field(
        default=None,
        description="Identifier of the saved chat record, or None when saving failed.",
    )
