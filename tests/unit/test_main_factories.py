"""Unit tests for the composition root in ragassist.main.

The remote store is disabled or mocked so no server or API key is needed.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from ragassist.main import _build_remote_store, build_services, close_services
from ragassist.models.rag import StorageMethod
from ragassist.pipeline.orchestrator import RetrievalOrchestrator


class TestBuildRemoteStore:
    @pytest.mark.asyncio
    async def test_disabled(self, settings) -> None:
        assert await _build_remote_store(settings) is None

    @pytest.mark.asyncio
    async def test_unreachable_falls_back(self, settings) -> None:
        enabled = settings.model_copy(update={"chroma_enabled": True, "chroma_host": "chroma.invalid"})
        with patch(
            "ragassist.main.ChromaDBProvider.is_available", AsyncMock(return_value=False)
        ):
            assert await _build_remote_store(enabled) is None

    @pytest.mark.asyncio
    async def test_reachable(self, settings) -> None:
        enabled = settings.model_copy(update={"chroma_enabled": True})
        with patch("ragassist.main.ChromaDBProvider.is_available", AsyncMock(return_value=True)):
            store = await _build_remote_store(enabled)
        assert store is not None
        assert store.get_provider_name() == "chromadb"


class TestBuildServices:
    @pytest.mark.asyncio
    async def test_relational_only(self, settings) -> None:
        services = await build_services(settings)
        try:
            assert isinstance(services["orchestrator"], RetrievalOrchestrator)
            assert services["router"].primary_method is StorageMethod.RELATIONAL
            assert services["config"].top_k == 5
            assert services["embedding_provider"].get_provider_name() == "openai_embedding"
        finally:
            await close_services(services)

    @pytest.mark.asyncio
    async def test_close_services_tolerates_missing_client(self) -> None:
        await close_services({})
