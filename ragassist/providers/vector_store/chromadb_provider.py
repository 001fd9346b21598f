"""ChromaDB vector store provider adapter (the remote index).

Talks to a ChromaDB server through ``chromadb.HttpClient`` when
``CHROMA_HOST`` is set, otherwise to an embedded ``PersistentClient`` at
``CHROMADB_PERSIST_DIR``.  The collection uses cosine distance; scores are
reported as ``1 - distance`` so they line up with the SQLite fallback.

The chromadb client is synchronous, so every call is pushed to a worker
thread with :func:`asyncio.to_thread`.  The collection is opened lazily:
an unreachable server surfaces from :meth:`is_available` (or as a
StorageError / SearchError) instead of from the constructor.
"""

from __future__ import annotations

import asyncio
import os
from typing import Any

# Disable ChromaDB's anonymous telemetry before the client is imported.
os.environ["ANONYMIZED_TELEMETRY"] = "False"

import chromadb
import structlog

from ragassist.interfaces.vector_store_provider import IVectorStoreProvider
from ragassist.models.rag import StoredChunk, VectorSearchResult
from ragassist.utils.errors import SearchError, StorageError

logger = structlog.get_logger(logger_name=__name__)

_UPSERT_BATCH_SIZE = 500


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """No-op embedding function that prevents ChromaDB from loading a model.

    ragassist always passes pre-computed embeddings, so ChromaDB's built-in
    embedding is never invoked.  Without this, ChromaDB downloads its
    default ONNX model on collection creation.
    """

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError(
            "ragassist uses pre-computed embeddings; "
            "ChromaDB's built-in embedding should never be called."
        )

    def name(self) -> str:
        return "noop_precomputed"


class ChromaDBProvider(IVectorStoreProvider):
    """Vector store backed by a ChromaDB collection with cosine distance.

    Each record stores the chunk text as the Chroma document and
    ``{document_id, document_name, owner_id}`` as metadata.
    """

    def __init__(
        self,
        collection_name: str = "ragassist_chunks",
        persist_directory: str = "./data/chromadb",
        host: str = "",
        port: int = 8000,
        client: Any | None = None,
    ) -> None:
        self._collection_name = collection_name
        self._persist_directory = persist_directory
        self._host = host
        self._port = port
        self._client = client
        self._collection: Any | None = None

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    def _open_collection(self) -> Any:
        """Create the client and collection on first use (runs in a worker thread)."""
        if self._collection is not None:
            return self._collection

        if self._client is None:
            telemetry_off = chromadb.config.Settings(anonymized_telemetry=False)
            if self._host:
                self._client = chromadb.HttpClient(
                    host=self._host, port=self._port, settings=telemetry_off
                )
            else:
                self._client = chromadb.PersistentClient(
                    path=self._persist_directory, settings=telemetry_off
                )

        # A collection created by another tool may have a different
        # persisted embedding function; open it without one in that case.
        try:
            self._collection = self._client.get_or_create_collection(
                name=self._collection_name,
                metadata={"hnsw:space": "cosine"},
                embedding_function=_NoopEmbeddingFunction(),
            )
        except ValueError:
            self._collection = self._client.get_or_create_collection(
                name=self._collection_name,
                metadata={"hnsw:space": "cosine"},
            )
        return self._collection

    # ------------------------------------------------------------------
    # IVectorStoreProvider implementation
    # ------------------------------------------------------------------

    async def store(self, chunks: list[StoredChunk]) -> int:
        """Upsert chunks in batches of 500."""
        if not chunks:
            return 0
        try:
            return await asyncio.to_thread(self._store_sync, chunks)
        except Exception as exc:
            raise StorageError(
                message=f"ChromaDB upsert failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def _store_sync(self, chunks: list[StoredChunk]) -> int:
        collection = self._open_collection()
        total = 0
        for start in range(0, len(chunks), _UPSERT_BATCH_SIZE):
            batch = chunks[start : start + _UPSERT_BATCH_SIZE]
            collection.upsert(
                ids=[c.chunk_id for c in batch],
                embeddings=[c.embedding for c in batch],
                documents=[c.text for c in batch],
                metadatas=[
                    {
                        "document_id": c.document_id,
                        "document_name": c.document_name,
                        "owner_id": c.owner_id,
                    }
                    for c in batch
                ],
            )
            total += len(batch)
        logger.info("chromadb_store", count=total)
        return total

    async def search(
        self,
        query_embedding: list[float],
        top_k: int,
        owner_id: str | None = None,
    ) -> list[VectorSearchResult]:
        try:
            return await asyncio.to_thread(self._search_sync, query_embedding, top_k, owner_id)
        except Exception as exc:
            raise SearchError(
                message=f"ChromaDB query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def _search_sync(
        self,
        query_embedding: list[float],
        top_k: int,
        owner_id: str | None,
    ) -> list[VectorSearchResult]:
        collection = self._open_collection()
        if top_k <= 0 or collection.count() == 0:
            return []

        kwargs: dict[str, Any] = {
            "query_embeddings": [query_embedding],
            "n_results": top_k,
            "include": ["documents", "metadatas", "distances"],
        }
        if owner_id is not None:
            kwargs["where"] = {"owner_id": owner_id}

        results = collection.query(**kwargs)
        if not results["ids"] or not results["ids"][0]:
            return []

        ids = results["ids"][0]
        documents = results["documents"][0] if results["documents"] else [""] * len(ids)
        metadatas = results["metadatas"][0] if results["metadatas"] else [{}] * len(ids)
        distances = results["distances"][0] if results["distances"] else [1.0] * len(ids)

        hits = [
            VectorSearchResult(
                chunk_id=chunk_id,
                text=text or "",
                score=1.0 - distance,
                document_id=(meta or {}).get("document_id", ""),
                document_name=(meta or {}).get("document_name", ""),
            )
            for chunk_id, text, meta, distance in zip(ids, documents, metadatas, distances, strict=True)
        ]
        hits.sort(key=lambda h: h.score, reverse=True)

        logger.info(
            "chromadb_query",
            owner_id=owner_id,
            results_count=len(hits),
            top_score=hits[0].score if hits else 0.0,
        )
        return hits[:top_k]

    async def delete_by_document(self, document_id: str) -> int:
        return await self._delete_where({"document_id": document_id})

    async def delete_by_owner(self, owner_id: str) -> int:
        return await self._delete_where({"owner_id": owner_id})

    async def _delete_where(self, where: dict[str, str]) -> int:
        try:
            return await asyncio.to_thread(self._delete_where_sync, where)
        except Exception as exc:
            raise StorageError(
                message=f"ChromaDB delete failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def _delete_where_sync(self, where: dict[str, str]) -> int:
        collection = self._open_collection()
        existing = collection.get(where=where)
        ids = existing["ids"] or []
        if ids:
            collection.delete(ids=ids)
        logger.info("chromadb_delete", where=where, deleted_count=len(ids))
        return len(ids)

    async def count(self) -> int:
        try:
            return await asyncio.to_thread(lambda: self._open_collection().count())
        except Exception as exc:
            raise StorageError(
                message=f"ChromaDB count failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def get_provider_name(self) -> str:
        return "chromadb"

    async def is_available(self) -> bool:
        """Return ``True`` if the collection can be opened and the server answers."""
        try:
            await asyncio.to_thread(self._ping)
        except Exception as exc:
            logger.warning("chromadb_unavailable", error=str(exc), host=self._host or None)
            return False
        return True

    def _ping(self) -> None:
        self._open_collection()
        self._client.heartbeat()
