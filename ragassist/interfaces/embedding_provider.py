"""Abstract base class for text-embedding service providers.

Defines the contract for turning text into embedding vectors.  The
orchestrator only ever talks to this interface, so the OpenAI adapter can
be swapped for any OpenAI-compatible endpoint or a test double.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ragassist.models.rag import EmbeddingResult


# Concrete implementation: OpenAIEmbeddingProvider (ragassist/providers/embedding/)
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by the retrieval pipeline."""

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[EmbeddingResult]:
        """Generate embeddings for a batch of texts.

        Parameters
        ----------
        texts:
            Texts to embed.  Whitespace-only entries are dropped before the
            provider call; the returned list is positionally aligned with the
            non-blank inputs.

        Returns
        -------
        list[EmbeddingResult]
            One result per non-blank input, each carrying its share of the
            call's token usage.  An empty input list yields an empty list.

        Raises
        ------
        ragassist.utils.errors.EmptyInputError
            If *texts* is non-empty but every entry is blank.
        ragassist.utils.errors.QuotaExceededError
            If the provider account quota is exhausted.
        ragassist.utils.errors.ProviderError
            If the provider call fails after the shared retry policy.
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text (e.g. a query).

        Raises
        ------
        ragassist.utils.errors.EmptyInputError
            If *text* is blank.
        """

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality of the embedding vectors."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this embedding provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured (credentials present)."""
