"""SQLite schema shared by the record store and the relational vector store.

Both providers open the same database file.  ``chunks.embedding`` is a JSON
array for chunks whose vectors live in SQLite and NULL for chunks whose
vectors live in the remote index.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

_CREATE_TABLES_SQL = [
    """\
CREATE TABLE IF NOT EXISTS documents (
    id              TEXT PRIMARY KEY,
    owner_id        TEXT NOT NULL,
    name            TEXT NOT NULL,
    storage_method  TEXT,
    created_at      TEXT NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS chunks (
    id           TEXT PRIMARY KEY,
    document_id  TEXT NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
    position     INTEGER NOT NULL DEFAULT 0,
    text         TEXT NOT NULL,
    embedding    TEXT
);
""",
    """\
CREATE TABLE IF NOT EXISTS chats (
    id          TEXT PRIMARY KEY,
    owner_id    TEXT NOT NULL,
    query       TEXT NOT NULL,
    answer      TEXT NOT NULL,
    created_at  TEXT NOT NULL
);
""",
]

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_documents_owner ON documents(owner_id);",
    "CREATE INDEX IF NOT EXISTS idx_chunks_document ON chunks(document_id, position);",
    "CREATE INDEX IF NOT EXISTS idx_chats_owner ON chats(owner_id, created_at);",
]


@asynccontextmanager
async def connect(db_path: str | Path) -> AsyncIterator[aiosqlite.Connection]:
    """Open a connection with row access by name and foreign keys enforced."""
    async with aiosqlite.connect(str(db_path)) as db:
        db.row_factory = aiosqlite.Row
        await db.execute("PRAGMA foreign_keys = ON")
        yield db


async def create_schema(db_path: str | Path) -> None:
    """Create all tables and indices if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    async with connect(db_path) as db:
        for table_sql in _CREATE_TABLES_SQL:
            await db.execute(table_sql)
        for idx_sql in _CREATE_INDICES_SQL:
            await db.execute(idx_sql)
        await db.commit()
