"""Retrieval orchestrator: ingestion, grounded query and quiz flows.

Coordinates the text extractor, chunker, embedding and completion
providers, the vector store router and the record store.  Every
collaborator is injected, so the same flows run against real backends
in :mod:`ragassist.main` and against mocks in the tests.

Error reporting follows one rule per stage:

    * quota exhaustion always surfaces as QuotaExceededError, unwrapped
    * other provider failures are wrapped in the flow's stage error
      (EmbeddingError, CompletionError, GenerationError)
    * validation and ownership errors are raised before any provider call
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import datetime, timezone

import structlog

from ragassist.config.loader import RetrievalConfig
from ragassist.interfaces.embedding_provider import IEmbeddingProvider
from ragassist.interfaces.llm_provider import ILLMProvider
from ragassist.interfaces.record_store import IRecordStore
from ragassist.models.quiz import QuizQuestion, QuizResult, QuizScore
from ragassist.models.rag import (
    IngestionResult,
    QueryResult,
    StorageMethod,
    StoredChunk,
    VectorSearchResult,
)
from ragassist.models.records import ChatRecord, ChatStats, Document
from ragassist.pipeline.store_router import VectorStoreRouter
from ragassist.services.ingestion.chunker import TextChunker
from ragassist.services.ingestion.extractor import TextExtractor, file_extension
from ragassist.services.quiz_service import validate_quiz_answers
from ragassist.utils.errors import (
    CompletionError,
    DocumentNotFoundError,
    EmbeddingError,
    EmptyContentError,
    EmptyInputError,
    GenerationError,
    InvalidQueryError,
    InvalidQuizRequestError,
    NoContentError,
    ProviderError,
    QuotaExceededError,
    RagAssistError,
    StorageError,
)
from ragassist.utils.logging import get_logger

NO_ANSWER_SENTENCE = (
    "I don't have enough information in the provided documents to answer this question."
)

SYSTEM_PROMPT = f"""\
You are a helpful study assistant. Your task is to answer questions based ONLY on the provided context information.

Instructions:
- Use only the information provided in the context to answer questions
- If the context doesn't contain enough information to answer the question, say "{NO_ANSWER_SENTENCE}"
- Be accurate and concise in your responses
- If you quote directly from the context, use quotation marks
- Provide helpful explanations when possible"""

_REFERENCE_PREVIEW_CHARS = 100
_RECENT_CHATS = 5


def format_reference(hit: VectorSearchResult) -> str:
    """Render a search hit as ``"<first 100 chars>... (Score: 0.873)"``."""
    return f"{hit.text[:_REFERENCE_PREVIEW_CHARS]}... (Score: {hit.score:.3f})"


class RetrievalOrchestrator:
    """Runs the ingestion, query, quiz and document-management flows."""

    def __init__(
        self,
        extractor: TextExtractor,
        chunker: TextChunker,
        embedding_provider: IEmbeddingProvider,
        llm_provider: ILLMProvider,
        record_store: IRecordStore,
        router: VectorStoreRouter,
        config: RetrievalConfig | None = None,
    ) -> None:
        self._extractor = extractor
        self._chunker = chunker
        self._embedding_provider = embedding_provider
        self._llm_provider = llm_provider
        self._record_store = record_store
        self._router = router
        self._config = config or RetrievalConfig()
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    async def ingest(
        self,
        owner_id: str,
        data: bytes,
        content_type: str,
        file_name: str,
    ) -> IngestionResult:
        """Extract, chunk, embed and store one document.

        A Document record is created before embedding.  If embedding or
        storage then fails, the record stays behind with no chunks and no
        storage method; callers may delete it and retry.
        """
        text = await self._extractor.extract(data, content_type)
        cleaned = self._chunker.clean(text)
        if not cleaned:
            raise EmptyContentError()

        texts = self._chunker.split(cleaned, self._config.max_tokens_per_chunk)
        if not texts:
            raise EmptyContentError(message="No text chunks could be created from the file")

        document = await self._record_store.create_document(owner_id, file_name)
        self._logger.info(
            "ingestion_started",
            document_id=document.document_id,
            owner_id=owner_id,
            chunks=len(texts),
            text_length=len(text),
        )

        try:
            embeddings = await self._embedding_provider.embed(texts)
        except QuotaExceededError:
            raise
        except (ProviderError, EmptyInputError) as exc:
            raise EmbeddingError(
                message=f"Failed to generate embeddings: {exc.message}",
                provider_name=exc.provider_name,
            ) from exc
        if len(embeddings) != len(texts):
            raise EmbeddingError(
                message=f"Expected {len(texts)} embeddings, got {len(embeddings)}",
                provider_name=self._embedding_provider.get_provider_name(),
            )

        chunks = [
            StoredChunk(
                chunk_id=str(uuid.uuid4()),
                document_id=document.document_id,
                document_name=document.name,
                owner_id=owner_id,
                position=position,
                text=chunk_text,
                embedding=result.embedding,
            )
            for position, (chunk_text, result) in enumerate(zip(texts, embeddings))
        ]

        method = await self._router.store(chunks)
        try:
            await self._record_store.mark_stored(document.document_id, chunks, method)
        except StorageError:
            await self._discard_vectors(method, document.document_id)
            await self._discard_chunk_rows(document.document_id)
            raise

        self._logger.info(
            "document_ingested",
            document_id=document.document_id,
            chunks=len(chunks),
            storage_method=method.value,
        )
        return IngestionResult(
            document_id=document.document_id,
            document_name=document.name,
            chunks_created=len(chunks),
            storage_method=method,
            file_extension=file_extension(content_type),
            text_length=len(text),
            processed_at=datetime.now(timezone.utc),
        )

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    async def query(self, owner_id: str, text: str) -> QueryResult:
        """Answer *text* from the owner's documents."""
        if not text or not text.strip():
            raise InvalidQueryError(message="Query is required")
        if len(text) > self._config.max_query_length:
            raise InvalidQueryError(
                message=f"Query too long (max {self._config.max_query_length} characters)"
            )

        try:
            query_embedding = await self._embedding_provider.embed_single(text)
        except QuotaExceededError:
            raise
        except (ProviderError, EmptyInputError) as exc:
            raise EmbeddingError(
                message=f"Failed to process query: {exc.message}",
                provider_name=exc.provider_name,
            ) from exc

        methods = await self._record_store.get_storage_methods(owner_id)
        hits = await self._router.search(
            query_embedding,
            self._config.top_k,
            owner_id=owner_id,
            methods=methods,
        )
        relevant = [h for h in hits if h.score > self._config.similarity_threshold]
        relevant = relevant[: self._config.top_k]
        context = "\n\n".join(h.text for h in relevant)

        try:
            answer = await self._llm_provider.complete(SYSTEM_PROMPT, text, context)
        except QuotaExceededError:
            raise
        except ProviderError as exc:
            raise CompletionError(
                message=f"Failed to generate response: {exc.message}",
                provider_name=exc.provider_name,
            ) from exc

        chat_id: str | None = None
        try:
            chat = await self._record_store.create_chat_record(owner_id, text, answer)
            chat_id = chat.chat_id
        except Exception as exc:
            self._logger.warning("chat_record_save_failed", owner_id=owner_id, error=str(exc))

        self._logger.info(
            "query_answered",
            owner_id=owner_id,
            candidates=len(hits),
            relevant=len(relevant),
            chat_saved=chat_id is not None,
        )
        return QueryResult(
            answer=answer,
            references=[format_reference(h) for h in relevant],
            chat_id=chat_id,
        )

    # ------------------------------------------------------------------
    # Quiz
    # ------------------------------------------------------------------

    async def generate_quiz(
        self,
        owner_id: str,
        document_id: str,
        num_questions: int = 5,
    ) -> QuizResult:
        """Generate multiple-choice questions from the start of one document."""
        if not 1 <= num_questions <= self._config.quiz_max_questions:
            raise InvalidQuizRequestError(
                message=f"Number of questions must be between 1 and {self._config.quiz_max_questions}"
            )

        document = await self._require_document(owner_id, document_id)
        texts = await self._record_store.get_chunk_texts(
            document_id, limit=self._config.quiz_context_chunks
        )
        if not texts:
            raise NoContentError()
        context = "\n\n".join(texts)

        try:
            questions = await self._llm_provider.generate_quiz(context, num_questions)
        except QuotaExceededError:
            raise
        except ProviderError as exc:
            raise GenerationError(
                message=f"Failed to generate quiz questions: {exc.message}",
                provider_name=exc.provider_name,
            ) from exc

        self._logger.info(
            "quiz_generated",
            document_id=document_id,
            requested=num_questions,
            generated=len(questions),
        )
        return QuizResult(
            document_id=document.document_id,
            document_name=document.name,
            questions=questions,
        )

    @staticmethod
    def validate_quiz_answers(
        answers: Sequence[int], questions: Sequence[QuizQuestion]
    ) -> QuizScore:
        return validate_quiz_answers(answers, questions)

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def list_documents(self, owner_id: str) -> list[Document]:
        return await self._record_store.list_documents(owner_id)

    async def list_quiz_documents(self, owner_id: str) -> list[Document]:
        """Documents that have at least one chunk to build a quiz from."""
        documents = await self._record_store.list_documents(owner_id)
        return [d for d in documents if d.chunk_count > 0]

    async def delete_document(self, owner_id: str, document_id: str) -> None:
        """Remove a document's vectors and its records.

        Vector deletion is best-effort; the document record is deleted
        regardless, which cascades to its chunk rows.
        """
        document = await self._require_document(owner_id, document_id)
        if document.storage_method is not None:
            await self._discard_vectors(document.storage_method, document_id)
        await self._record_store.delete_document(document_id)
        self._logger.info("document_removed", document_id=document_id, owner_id=owner_id)

    async def delete_owner(self, owner_id: str) -> int:
        """Remove every vector and record belonging to *owner_id*."""
        vectors = await self._router.delete_owner(owner_id)
        documents = await self._record_store.delete_owner(owner_id)
        self._logger.info("owner_removed", owner_id=owner_id, documents=documents, vectors=vectors)
        return documents

    async def index_stats(self) -> dict[str, int]:
        return await self._router.index_stats()

    # ------------------------------------------------------------------
    # Chat history
    # ------------------------------------------------------------------

    async def get_chat_history(self, owner_id: str, limit: int | None = None) -> list[ChatRecord]:
        return await self._record_store.get_chat_history(
            owner_id, self._config.chat_history_limit if limit is None else limit
        )

    async def clear_chat_history(self, owner_id: str) -> int:
        return await self._record_store.clear_chat_history(owner_id)

    async def get_chat_stats(self, owner_id: str) -> ChatStats:
        return ChatStats(
            total_chats=await self._record_store.count_chats(owner_id),
            total_documents=await self._record_store.count_documents(owner_id),
            recent_chats=await self._record_store.get_chat_history(owner_id, _RECENT_CHATS),
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _require_document(self, owner_id: str, document_id: str) -> Document:
        document = await self._record_store.get_document(owner_id, document_id)
        if document is None:
            raise DocumentNotFoundError()
        return document

    async def _discard_vectors(self, method: StorageMethod, document_id: str) -> None:
        try:
            await self._router.delete_document(method, document_id)
        except RagAssistError as exc:
            self._logger.warning(
                "vector_delete_failed",
                document_id=document_id,
                storage_method=method.value,
                error=str(exc),
            )

    async def _discard_chunk_rows(self, document_id: str) -> None:
        try:
            await self._record_store.discard_chunks(document_id)
        except StorageError as exc:
            self._logger.warning("chunk_rows_discard_failed", document_id=document_id, error=str(exc))
