"""SQLite-backed record store.

Persists documents, ordered chunk texts and chat records to a local SQLite
database at ``data/ragassist.db``.  Uses ``aiosqlite`` for async I/O.
Deleting a document cascades to its chunk rows.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite
import structlog

from ragassist.interfaces.record_store import IRecordStore
from ragassist.models.rag import StorageMethod, StoredChunk
from ragassist.models.records import ChatRecord, Document
from ragassist.providers.records.schema import connect, create_schema
from ragassist.utils.errors import StorageError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/ragassist.db")

_INSERT_DOCUMENT_SQL = """\
INSERT INTO documents (id, owner_id, name, storage_method, created_at)
VALUES (?, ?, ?, NULL, ?);
"""

_SELECT_DOCUMENTS_SQL = """\
SELECT d.id, d.owner_id, d.name, d.storage_method, d.created_at,
       COUNT(c.id) AS chunk_count
FROM documents d
LEFT JOIN chunks c ON c.document_id = d.id
WHERE d.owner_id = ?
"""

# Keeps an existing embedding when the relational vector store already
# wrote the row.
_UPSERT_CHUNK_TEXT_SQL = """\
INSERT INTO chunks (id, document_id, position, text)
VALUES (?, ?, ?, ?)
ON CONFLICT(id) DO UPDATE SET position = excluded.position,
                              text     = excluded.text;
"""

_INSERT_CHAT_SQL = """\
INSERT INTO chats (id, owner_id, query, answer, created_at)
VALUES (?, ?, ?, ?, ?);
"""


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _row_to_document(row: aiosqlite.Row) -> Document:
    method = row["storage_method"]
    return Document(
        document_id=row["id"],
        owner_id=row["owner_id"],
        name=row["name"],
        created_at=datetime.fromisoformat(row["created_at"]),
        storage_method=StorageMethod(method) if method else None,
        chunk_count=row["chunk_count"],
    )


def _row_to_chat(row: aiosqlite.Row) -> ChatRecord:
    return ChatRecord(
        chat_id=row["id"],
        owner_id=row["owner_id"],
        query=row["query"],
        answer=row["answer"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


class SQLiteRecordStore(IRecordStore):
    """SQLite-backed document, chunk-text and chat persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        await create_schema(self._db_path)
        logger.info("record_store_initialized", path=str(self._db_path))

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def create_document(self, owner_id: str, name: str) -> Document:
        document_id = str(uuid.uuid4())
        created_at = _now()
        async with connect(self._db_path) as db:
            await db.execute(
                _INSERT_DOCUMENT_SQL,
                (document_id, owner_id, name, created_at.isoformat()),
            )
            await db.commit()
        logger.info("document_created", document_id=document_id, owner_id=owner_id, name=name)
        return Document(
            document_id=document_id,
            owner_id=owner_id,
            name=name,
            created_at=created_at,
        )

    async def get_document(self, owner_id: str, document_id: str) -> Document | None:
        async with connect(self._db_path) as db:
            cursor = await db.execute(
                _SELECT_DOCUMENTS_SQL + " AND d.id = ? GROUP BY d.id",
                (owner_id, document_id),
            )
            row = await cursor.fetchone()
        return _row_to_document(row) if row else None

    async def list_documents(self, owner_id: str) -> list[Document]:
        async with connect(self._db_path) as db:
            cursor = await db.execute(
                _SELECT_DOCUMENTS_SQL + " GROUP BY d.id ORDER BY d.created_at DESC, d.rowid DESC",
                (owner_id,),
            )
            rows = await cursor.fetchall()
        return [_row_to_document(r) for r in rows]

    async def mark_stored(
        self,
        document_id: str,
        chunks: list[StoredChunk],
        storage_method: StorageMethod,
    ) -> None:
        try:
            async with connect(self._db_path) as db:
                await db.executemany(
                    _UPSERT_CHUNK_TEXT_SQL,
                    [(c.chunk_id, document_id, c.position, c.text) for c in chunks],
                )
                await db.execute(
                    "UPDATE documents SET storage_method = ? WHERE id = ?",
                    (storage_method.value, document_id),
                )
                await db.commit()
        except aiosqlite.Error as exc:
            raise StorageError(
                message=f"Failed to record chunks for document {document_id}: {exc}",
                provider_name="sqlite",
            ) from exc
        logger.info(
            "document_marked_stored",
            document_id=document_id,
            chunks=len(chunks),
            storage_method=storage_method.value,
        )

    async def discard_chunks(self, document_id: str) -> int:
        try:
            async with connect(self._db_path) as db:
                cursor = await db.execute("DELETE FROM chunks WHERE document_id = ?", (document_id,))
                await db.commit()
                removed = cursor.rowcount
        except aiosqlite.Error as exc:
            raise StorageError(
                message=f"Failed to discard chunks for document {document_id}: {exc}",
                provider_name="sqlite",
            ) from exc
        logger.info("document_chunks_discarded", document_id=document_id, removed=removed)
        return removed

    async def get_storage_methods(self, owner_id: str) -> set[StorageMethod]:
        async with connect(self._db_path) as db:
            cursor = await db.execute(
                "SELECT DISTINCT storage_method FROM documents "
                "WHERE owner_id = ? AND storage_method IS NOT NULL",
                (owner_id,),
            )
            rows = await cursor.fetchall()
        return {StorageMethod(r["storage_method"]) for r in rows}

    async def get_chunk_texts(self, document_id: str, limit: int | None = None) -> list[str]:
        sql = "SELECT text FROM chunks WHERE document_id = ? ORDER BY position ASC"
        params: tuple = (document_id,)
        if limit is not None:
            sql += " LIMIT ?"
            params = (document_id, limit)
        async with connect(self._db_path) as db:
            cursor = await db.execute(sql, params)
            rows = await cursor.fetchall()
        return [r["text"] for r in rows]

    async def delete_document(self, document_id: str) -> bool:
        async with connect(self._db_path) as db:
            cursor = await db.execute("DELETE FROM documents WHERE id = ?", (document_id,))
            await db.commit()
            deleted = cursor.rowcount > 0
        logger.info("document_deleted", document_id=document_id, deleted=deleted)
        return deleted

    async def delete_owner(self, owner_id: str) -> int:
        async with connect(self._db_path) as db:
            cursor = await db.execute("DELETE FROM documents WHERE owner_id = ?", (owner_id,))
            documents_removed = cursor.rowcount
            await db.execute("DELETE FROM chats WHERE owner_id = ?", (owner_id,))
            await db.commit()
        logger.info("owner_records_deleted", owner_id=owner_id, documents=documents_removed)
        return documents_removed

    # ------------------------------------------------------------------
    # Chats
    # ------------------------------------------------------------------

    async def create_chat_record(self, owner_id: str, query: str, answer: str) -> ChatRecord:
        chat = ChatRecord(
            chat_id=str(uuid.uuid4()),
            owner_id=owner_id,
            query=query,
            answer=answer,
            created_at=_now(),
        )
        async with connect(self._db_path) as db:
            await db.execute(
                _INSERT_CHAT_SQL,
                (chat.chat_id, owner_id, query, answer, chat.created_at.isoformat()),
            )
            await db.commit()
        return chat

    async def get_chat_history(self, owner_id: str, limit: int = 50) -> list[ChatRecord]:
        async with connect(self._db_path) as db:
            cursor = await db.execute(
                "SELECT id, owner_id, query, answer, created_at FROM chats "
                "WHERE owner_id = ? ORDER BY created_at DESC, rowid DESC LIMIT ?",
                (owner_id, limit),
            )
            rows = await cursor.fetchall()
        return [_row_to_chat(r) for r in rows]

    async def clear_chat_history(self, owner_id: str) -> int:
        async with connect(self._db_path) as db:
            cursor = await db.execute("DELETE FROM chats WHERE owner_id = ?", (owner_id,))
            await db.commit()
            removed = cursor.rowcount
        logger.info("chat_history_cleared", owner_id=owner_id, removed=removed)
        return removed

    async def count_chats(self, owner_id: str) -> int:
        async with connect(self._db_path) as db:
            cursor = await db.execute("SELECT COUNT(*) FROM chats WHERE owner_id = ?", (owner_id,))
            row = await cursor.fetchone()
        return row[0]

    async def count_documents(self, owner_id: str) -> int:
        async with connect(self._db_path) as db:
            cursor = await db.execute(
                "SELECT COUNT(*) FROM documents WHERE owner_id = ?", (owner_id,)
            )
            row = await cursor.fetchone()
        return row[0]
