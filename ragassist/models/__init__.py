"""Pydantic models shared across ragassist's flows."""

from ragassist.models.quiz import AnswerResult, QuizQuestion, QuizResult, QuizScore
from ragassist.models.rag import (
    EmbeddingResult,
    IngestionResult,
    QueryResult,
    StorageMethod,
    StoredChunk,
    VectorSearchResult,
)
from ragassist.models.records import ChatRecord, ChatStats, Document

__all__ = [
    "AnswerResult",
    "ChatRecord",
    "ChatStats",
    "Document",
    "EmbeddingResult",
    "IngestionResult",
    "QueryResult",
    "QuizQuestion",
    "QuizResult",
    "QuizScore",
    "StorageMethod",
    "StoredChunk",
    "VectorSearchResult",
]
