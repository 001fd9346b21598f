"""Explicit storage-method selection across the two vector stores.

The remote index is included only when it was configured and reachable at
startup; the relational store is always present.  The choice made at
ingestion is recorded per document, and searches go only to the stores
that actually hold the owner's chunks.  A failing store is reported as a
failure; searches never quietly switch to the other store.
"""

from __future__ import annotations

import asyncio

import structlog

from ragassist.interfaces.vector_store_provider import IVectorStoreProvider
from ragassist.models.rag import StorageMethod, StoredChunk, VectorSearchResult
from ragassist.utils.errors import SearchError, StorageError

logger = structlog.get_logger(logger_name=__name__)


class VectorStoreRouter:
    """Routes chunk writes, searches and deletes to the right vector store."""

    def __init__(
        self,
        relational: IVectorStoreProvider,
        remote: IVectorStoreProvider | None = None,
    ) -> None:
        self._relational = relational
        self._remote = remote

    @property
    def primary_method(self) -> StorageMethod:
        return StorageMethod.REMOTE if self._remote is not None else StorageMethod.RELATIONAL

    def store_for(self, method: StorageMethod) -> IVectorStoreProvider | None:
        if method is StorageMethod.REMOTE:
            return self._remote
        return self._relational

    async def store(self, chunks: list[StoredChunk]) -> StorageMethod:
        """Write *chunks* to the remote index, falling back to the relational store.

        Returns the method that accepted the chunks.

        Raises
        ------
        StorageError
            If both stores reject the chunks.
        """
        if self._remote is not None:
            try:
                await self._remote.store(chunks)
                return StorageMethod.REMOTE
            except StorageError as exc:
                logger.warning(
                    "remote_store_failed_falling_back",
                    error=str(exc),
                    chunks=len(chunks),
                )
                await self._discard_partial_remote_write(chunks)

        try:
            await self._relational.store(chunks)
        except StorageError as exc:
            logger.error("relational_store_failed", error=str(exc), chunks=len(chunks))
            raise StorageError(
                message=f"Failed to store embeddings: {exc.message}",
                provider_name=exc.provider_name,
            ) from exc
        return StorageMethod.RELATIONAL

    async def _discard_partial_remote_write(self, chunks: list[StoredChunk]) -> None:
        """Remove any batches the remote index accepted before it failed."""
        for document_id in dict.fromkeys(c.document_id for c in chunks):
            try:
                await self._remote.delete_by_document(document_id)
            except StorageError as exc:
                logger.error(
                    "remote_partial_write_cleanup_failed",
                    document_id=document_id,
                    error=str(exc),
                )

    async def search(
        self,
        query_embedding: list[float],
        top_k: int,
        owner_id: str,
        methods: set[StorageMethod],
    ) -> list[VectorSearchResult]:
        """Search every store in *methods* and merge the hits by score.

        Raises
        ------
        SearchError
            If a store in *methods* is not configured or its search fails.
        """
        stores: list[IVectorStoreProvider] = []
        for method in sorted(methods, key=lambda m: m.value):
            store = self.store_for(method)
            if store is None:
                raise SearchError(
                    message=(
                        f"Chunks for owner are held in the {method.value} store, "
                        "which is not available"
                    ),
                )
            stores.append(store)

        if not stores:
            return []

        batches = await asyncio.gather(
            *(store.search(query_embedding, top_k, owner_id=owner_id) for store in stores)
        )
        merged = [hit for batch in batches for hit in batch]
        merged.sort(key=lambda h: h.score, reverse=True)
        return merged[:top_k]

    async def delete_document(self, method: StorageMethod, document_id: str) -> int:
        store = self.store_for(method)
        if store is None:
            raise StorageError(
                message=f"The {method.value} store is not available",
            )
        return await store.delete_by_document(document_id)

    async def delete_owner(self, owner_id: str) -> int:
        removed = await self._relational.delete_by_owner(owner_id)
        if self._remote is not None:
            removed += await self._remote.delete_by_owner(owner_id)
        return removed

    async def index_stats(self) -> dict[str, int]:
        """Return the number of stored vectors per available store."""
        stats = {StorageMethod.RELATIONAL.value: await self._relational.count()}
        if self._remote is not None:
            stats[StorageMethod.REMOTE.value] = await self._remote.count()
        return stats
