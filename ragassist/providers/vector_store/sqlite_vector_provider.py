"""SQLite vector store provider (the relational fallback).

Stores each embedding as a JSON array on its ``chunks`` row and ranks by
cosine similarity computed inside the query: a scalar SQL function closed
over the query vector is registered on the connection, the query joins
``documents`` for the owner filter and document name, then orders by the
score and applies ``LIMIT``.

This is a linear scan over the owner's chunks.  It is the baseline the
remote index's ranking is checked against.
"""

from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import structlog

from ragassist.interfaces.vector_store_provider import IVectorStoreProvider
from ragassist.models.rag import StoredChunk, VectorSearchResult
from ragassist.providers.records.schema import connect, create_schema
from ragassist.utils.errors import SearchError, StorageError

logger = structlog.get_logger(logger_name=__name__)

_UPSERT_CHUNK_SQL = """\
INSERT INTO chunks (id, document_id, position, text, embedding)
VALUES (?, ?, ?, ?, ?)
ON CONFLICT(id) DO UPDATE SET position  = excluded.position,
                              text      = excluded.text,
                              embedding = excluded.embedding;
"""

_SEARCH_SQL = """\
SELECT c.id, c.text, c.document_id, d.name AS document_name,
       query_similarity(c.embedding) AS score
FROM chunks c
JOIN documents d ON d.id = c.document_id
WHERE c.embedding IS NOT NULL {owner_clause}
ORDER BY score DESC
LIMIT ?
"""


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Cosine similarity of two vectors; 0.0 when either has zero magnitude."""
    norm_a = float(np.linalg.norm(a))
    norm_b = float(np.linalg.norm(b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return float(np.dot(a, b) / (norm_a * norm_b))


class SQLiteVectorProvider(IVectorStoreProvider):
    """Vector store backed by the ``chunks`` table of the record database."""

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        await create_schema(self._db_path)

    # ------------------------------------------------------------------
    # IVectorStoreProvider implementation
    # ------------------------------------------------------------------

    async def store(self, chunks: list[StoredChunk]) -> int:
        if not chunks:
            return 0
        try:
            async with connect(self._db_path) as db:
                await db.executemany(
                    _UPSERT_CHUNK_SQL,
                    [
                        (c.chunk_id, c.document_id, c.position, c.text, json.dumps(c.embedding))
                        for c in chunks
                    ],
                )
                await db.commit()
        except Exception as exc:
            raise StorageError(
                message=f"SQLite chunk insert failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("sqlite_vector_store", count=len(chunks))
        return len(chunks)

    async def search(
        self,
        query_embedding: list[float],
        top_k: int,
        owner_id: str | None = None,
    ) -> list[VectorSearchResult]:
        if top_k <= 0:
            return []
        query_vector = np.asarray(query_embedding, dtype=np.float64)

        def _score(raw: str | None) -> float:
            if raw is None:
                return 0.0
            return cosine_similarity(query_vector, np.asarray(json.loads(raw), dtype=np.float64))

        owner_clause = "AND d.owner_id = ?" if owner_id is not None else ""
        params: tuple = (owner_id, top_k) if owner_id is not None else (top_k,)
        try:
            async with connect(self._db_path) as db:
                await db.create_function("query_similarity", 1, _score, deterministic=True)
                cursor = await db.execute(_SEARCH_SQL.format(owner_clause=owner_clause), params)
                rows = await cursor.fetchall()
        except Exception as exc:
            raise SearchError(
                message=f"SQLite similarity search failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        hits = [
            VectorSearchResult(
                chunk_id=r["id"],
                text=r["text"],
                score=r["score"],
                document_id=r["document_id"],
                document_name=r["document_name"],
            )
            for r in rows
        ]
        logger.info(
            "sqlite_vector_query",
            owner_id=owner_id,
            results_count=len(hits),
            top_score=hits[0].score if hits else 0.0,
        )
        return hits

    async def delete_by_document(self, document_id: str) -> int:
        """Clear stored vectors for *document_id*; the rows themselves go with the document."""
        return await self._clear_embeddings(
            "UPDATE chunks SET embedding = NULL WHERE document_id = ? AND embedding IS NOT NULL",
            document_id,
        )

    async def delete_by_owner(self, owner_id: str) -> int:
        return await self._clear_embeddings(
            "UPDATE chunks SET embedding = NULL WHERE embedding IS NOT NULL AND document_id IN "
            "(SELECT id FROM documents WHERE owner_id = ?)",
            owner_id,
        )

    async def _clear_embeddings(self, sql: str, key: str) -> int:
        try:
            async with connect(self._db_path) as db:
                cursor = await db.execute(sql, (key,))
                await db.commit()
                cleared = cursor.rowcount
        except Exception as exc:
            raise StorageError(
                message=f"SQLite vector delete failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("sqlite_vector_delete", key=key, cleared=cleared)
        return cleared

    async def count(self) -> int:
        try:
            async with connect(self._db_path) as db:
                cursor = await db.execute("SELECT COUNT(*) FROM chunks WHERE embedding IS NOT NULL")
                row = await cursor.fetchone()
        except Exception as exc:
            raise StorageError(
                message=f"SQLite vector count failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return row[0]

    def get_provider_name(self) -> str:
        return "sqlite"

    async def is_available(self) -> bool:
        try:
            async with connect(self._db_path) as db:
                await db.execute("SELECT 1")
        except Exception as exc:
            logger.warning("sqlite_vector_unavailable", error=str(exc))
            return False
        return True
