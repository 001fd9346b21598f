"""OpenAI-compatible embedding provider adapter.

Wraps the ``openai`` async client to implement :class:`IEmbeddingProvider`.
Supports real OpenAI and OpenAI-compatible endpoints via ``openai_base_url``.
Every API call runs under the shared retry policy in
:mod:`ragassist.utils.retry`.
"""

from __future__ import annotations

import openai
import structlog

from ragassist.config.settings import Settings
from ragassist.interfaces.embedding_provider import IEmbeddingProvider
from ragassist.models.rag import EmbeddingResult
from ragassist.utils.errors import EmptyInputError
from ragassist.utils.retry import with_retries

logger = structlog.get_logger(logger_name=__name__)

_OPENAI_BATCH_LIMIT = 2048

# Known embedding model dimensions.
_MODEL_DIMENSIONS: dict[str, int] = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
    "BAAI/bge-base-en-v1.5": 768,
    "BAAI/bge-large-en-v1.5": 1024,
}


def apportion_tokens(total_tokens: int, count: int) -> int:
    """Split a call's token usage evenly, rounding half up."""
    if count <= 0:
        return 0
    return int(total_tokens / count + 0.5)


class OpenAIEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by an OpenAI-compatible embeddings API.

    Uses ``text-embedding-3-small`` (1536 dims) by default.  Inputs beyond
    the per-call limit are split into several calls; order is preserved.
    """

    def __init__(self, settings: Settings, client: openai.AsyncOpenAI | None = None) -> None:
        self._settings = settings
        self._api_key = settings.openai_api_key

        if client is None:
            client_kwargs: dict = {
                "api_key": self._api_key,
                "timeout": settings.openai_timeout,
                # Retries are handled by with_retries, not the SDK.
                "max_retries": 0,
            }
            if settings.openai_base_url:
                client_kwargs["base_url"] = settings.openai_base_url
            client = openai.AsyncOpenAI(**client_kwargs)

        self._client = client
        self._model = settings.openai_embedding_model or "text-embedding-3-small"
        self._dimension = _MODEL_DIMENSIONS.get(self._model, 1536)
        self._max_retries = settings.provider_max_retries
        self._base_delay = settings.provider_base_delay
        self._provider_label = (
            "openai-compatible_embedding" if settings.openai_base_url else "openai_embedding"
        )

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed(self, texts: list[str]) -> list[EmbeddingResult]:
        """Generate embeddings for the non-blank entries of *texts*."""
        if not texts:
            return []

        inputs = [t for t in texts if t.strip()]
        if not inputs:
            raise EmptyInputError(provider_name=self.get_provider_name())

        results: list[EmbeddingResult] = []
        for start in range(0, len(inputs), _OPENAI_BATCH_LIMIT):
            batch = inputs[start : start + _OPENAI_BATCH_LIMIT]
            response = await with_retries(
                lambda batch=batch: self._client.embeddings.create(
                    input=batch,
                    model=self._model,
                ),
                provider_name=self.get_provider_name(),
                max_retries=self._max_retries,
                base_delay=self._base_delay,
            )
            total_tokens = response.usage.total_tokens if response.usage else 0
            per_item = apportion_tokens(total_tokens, len(batch))
            results.extend(
                EmbeddingResult(embedding=list(item.embedding), tokens=per_item)
                for item in response.data
            )
            logger.info(
                "openai_embedding_batch",
                model=self._model,
                provider=self._provider_label,
                batch_size=len(batch),
                tokens=total_tokens,
            )
        return results

    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string."""
        if not text.strip():
            raise EmptyInputError(
                message="Cannot embed blank text",
                provider_name=self.get_provider_name(),
            )
        result = await self.embed([text])
        return result[0].embedding

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return self._provider_label

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)
