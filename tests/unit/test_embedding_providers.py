"""Unit tests for the OpenAI embedding provider adapter."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from ragassist.config.settings import Settings
from ragassist.providers.embedding.openai_embedding_provider import (
    OpenAIEmbeddingProvider,
    apportion_tokens,
)
from ragassist.utils.errors import EmptyInputError, QuotaExceededError, TransientProviderError


def _settings(**overrides) -> Settings:
    defaults = {
        "openai_api_key": "sk-test",
        "openai_base_url": "",
        "openai_embedding_model": "text-embedding-3-small",
        "provider_max_retries": 2,
        "provider_base_delay": 0.0,
    }
    defaults.update(overrides)
    return Settings(**defaults)


def _response(vectors: list[list[float]], total_tokens: int | None = 12) -> MagicMock:
    response = MagicMock()
    response.data = [MagicMock(embedding=v) for v in vectors]
    response.usage = MagicMock(total_tokens=total_tokens) if total_tokens is not None else None
    return response


def _client(*side_effect) -> MagicMock:
    client = MagicMock()
    client.embeddings.create = AsyncMock(side_effect=list(side_effect))
    return client


class TestApportionTokens:
    def test_even_split(self) -> None:
        assert apportion_tokens(12, 3) == 4

    def test_rounds_half_up(self) -> None:
        assert apportion_tokens(5, 2) == 3
        assert apportion_tokens(10, 3) == 3

    def test_zero_count(self) -> None:
        assert apportion_tokens(10, 0) == 0


class TestOpenAIEmbeddingProvider:
    def test_metadata(self) -> None:
        provider = OpenAIEmbeddingProvider(_settings(), client=MagicMock())
        assert provider.get_dimension() == 1536
        assert provider.get_provider_name() == "openai_embedding"
        assert provider.is_available() is True

    def test_unavailable_without_key(self) -> None:
        provider = OpenAIEmbeddingProvider(_settings(openai_api_key=""), client=MagicMock())
        assert provider.is_available() is False

    def test_compatible_label(self) -> None:
        provider = OpenAIEmbeddingProvider(
            _settings(openai_base_url="https://api.together.xyz/v1"), client=MagicMock()
        )
        assert provider.get_provider_name() == "openai-compatible_embedding"

    @pytest.mark.asyncio
    async def test_embed_empty_list(self) -> None:
        client = _client()
        provider = OpenAIEmbeddingProvider(_settings(), client=client)

        assert await provider.embed([]) == []
        client.embeddings.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_embed_all_blank_raises(self) -> None:
        client = _client()
        provider = OpenAIEmbeddingProvider(_settings(), client=client)

        with pytest.raises(EmptyInputError):
            await provider.embed(["", "   ", "\n"])
        client.embeddings.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_embed_filters_blank_and_apportions_tokens(self) -> None:
        client = _client(_response([[0.1, 0.2], [0.3, 0.4]], total_tokens=9))
        provider = OpenAIEmbeddingProvider(_settings(), client=client)

        results = await provider.embed(["first", "  ", "second"])

        assert [r.embedding for r in results] == [[0.1, 0.2], [0.3, 0.4]]
        assert [r.tokens for r in results] == [5, 5]
        kwargs = client.embeddings.create.await_args.kwargs
        assert kwargs["input"] == ["first", "second"]
        assert kwargs["model"] == "text-embedding-3-small"

    @pytest.mark.asyncio
    async def test_embed_missing_usage(self) -> None:
        client = _client(_response([[1.0]], total_tokens=None))
        provider = OpenAIEmbeddingProvider(_settings(), client=client)

        results = await provider.embed(["text"])

        assert results[0].tokens == 0

    @pytest.mark.asyncio
    async def test_embed_single(self) -> None:
        client = _client(_response([[0.5, 0.5]]))
        provider = OpenAIEmbeddingProvider(_settings(), client=client)

        assert await provider.embed_single("query") == [0.5, 0.5]

    @pytest.mark.asyncio
    async def test_embed_single_blank(self) -> None:
        provider = OpenAIEmbeddingProvider(_settings(), client=_client())
        with pytest.raises(EmptyInputError):
            await provider.embed_single("   ")

    @pytest.mark.asyncio
    async def test_retries_server_errors(self, make_api_error) -> None:
        client = _client(make_api_error(500), _response([[1.0, 0.0]]))
        provider = OpenAIEmbeddingProvider(_settings(), client=client)

        results = await provider.embed(["text"])

        assert len(results) == 1
        assert client.embeddings.create.await_count == 2

    @pytest.mark.asyncio
    async def test_quota_surfaces_immediately(self, make_api_error) -> None:
        client = _client(make_api_error(429, body={"code": "insufficient_quota"}))
        provider = OpenAIEmbeddingProvider(_settings(), client=client)

        with pytest.raises(QuotaExceededError):
            await provider.embed(["text"])
        assert client.embeddings.create.await_count == 1

    @pytest.mark.asyncio
    async def test_gives_up_after_configured_retries(self, make_api_error) -> None:
        client = _client(*(make_api_error(503) for _ in range(3)))
        provider = OpenAIEmbeddingProvider(_settings(provider_max_retries=2), client=client)

        with pytest.raises(TransientProviderError):
            await provider.embed(["text"])
        assert client.embeddings.create.await_count == 3
