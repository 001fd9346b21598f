"""Embedding provider implementations.

Embeddings convert text into numeric vectors that capture semantic meaning.
They are stored in ChromaDB or SQLite and compared with cosine similarity
at query time.
"""

from ragassist.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["OpenAIEmbeddingProvider"]
