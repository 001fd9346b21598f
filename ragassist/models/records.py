"""Relational record models: documents, chat records and per-owner stats."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ragassist.models.rag import StorageMethod


class Document(BaseModel):
    """An uploaded document owned by exactly one owner.

    ``storage_method`` stays ``None`` until the document's chunks have been
    stored; a document whose chunk storage failed keeps ``None`` and zero
    chunks, and is still eligible for deletion.
    """

    model_config = ConfigDict(frozen=True)

    document_id: str
    owner_id: str
    name: str
    created_at: datetime
    storage_method: StorageMethod | None = None
    chunk_count: int = Field(default=0, ge=0)


class ChatRecord(BaseModel):
    """A persisted query/answer exchange."""

    model_config = ConfigDict(frozen=True)

    chat_id: str
    owner_id: str
    query: str
    answer: str
    created_at: datetime


class ChatStats(BaseModel):
    """Per-owner activity summary."""

    model_config = ConfigDict(frozen=True)

    total_chats: int = Field(ge=0)
    total_documents: int = Field(ge=0)
    recent_chats: list[ChatRecord] = Field(default_factory=list)
