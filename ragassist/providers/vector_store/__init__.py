"""Vector store provider implementations.

ChromaDBProvider is the primary (remote) index.  SQLiteVectorProvider is
the relational fallback that shares the record database and scans the
owner's chunks with an in-query cosine similarity.
"""

from ragassist.providers.vector_store.chromadb_provider import ChromaDBProvider
from ragassist.providers.vector_store.sqlite_vector_provider import SQLiteVectorProvider

__all__ = ["ChromaDBProvider", "SQLiteVectorProvider"]
