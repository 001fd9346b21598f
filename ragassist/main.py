"""ragassist composition root.

Wires providers, stores and the orchestrator together via explicit
dependency injection.  Nothing here is a module-level singleton: every
caller (the CLI, tests, an embedding web layer) builds its own set of
components with :func:`build_services` and releases them with
:func:`close_services`.

Storage selection happens once, here: the remote ChromaDB index is used as
the primary store only if it is enabled and answers at startup.  Otherwise
the relational store takes every write and the degradation is logged.
"""

from __future__ import annotations

from typing import Any

import httpx
import openai
import structlog

from ragassist.config.loader import RetrievalConfig, load_config
from ragassist.config.settings import Settings
from ragassist.interfaces.embedding_provider import IEmbeddingProvider
from ragassist.interfaces.llm_provider import ILLMProvider
from ragassist.interfaces.vector_store_provider import IVectorStoreProvider
from ragassist.pipeline.orchestrator import RetrievalOrchestrator
from ragassist.pipeline.store_router import VectorStoreRouter
from ragassist.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from ragassist.providers.llm.openai_provider import OpenAILLMProvider
from ragassist.providers.records.sqlite_record_store import SQLiteRecordStore
from ragassist.providers.vector_store.chromadb_provider import ChromaDBProvider
from ragassist.providers.vector_store.sqlite_vector_provider import SQLiteVectorProvider
from ragassist.services.ingestion.chunker import TextChunker
from ragassist.services.ingestion.extractor import TextExtractor
from ragassist.utils.logging import configure_logging

logger = structlog.get_logger(logger_name=__name__)


# ---------------------------------------------------------------------------
# Provider factories
# ---------------------------------------------------------------------------


def _build_openai_client(app_settings: Settings, http_client: httpx.AsyncClient) -> openai.AsyncOpenAI:
    """One SDK client shared by the embedding and completion providers.

    SDK-level retries are disabled; the shared retry policy owns retrying.
    """
    client_kwargs: dict[str, Any] = {
        "api_key": app_settings.openai_api_key,
        "max_retries": 0,
        "http_client": http_client,
    }
    if app_settings.openai_base_url:
        client_kwargs["base_url"] = app_settings.openai_base_url
    return openai.AsyncOpenAI(**client_kwargs)


def _build_embedding_provider(app_settings: Settings, client: openai.AsyncOpenAI) -> IEmbeddingProvider:
    provider = OpenAIEmbeddingProvider(settings=app_settings, client=client)
    if not provider.is_available():
        logger.warning("embedding_provider_unconfigured", provider=provider.get_provider_name())
    return provider


def _build_llm_provider(app_settings: Settings, client: openai.AsyncOpenAI) -> ILLMProvider:
    provider = OpenAILLMProvider(settings=app_settings, client=client)
    if not provider.is_available():
        logger.warning("llm_provider_unconfigured", provider=provider.get_provider_name())
    return provider


async def _build_remote_store(app_settings: Settings) -> IVectorStoreProvider | None:
    """Return the ChromaDB store if it is enabled and reachable, else ``None``."""
    if not app_settings.remote_store_configured():
        logger.info("remote_store_disabled")
        return None

    store = ChromaDBProvider(
        collection_name=app_settings.chromadb_collection,
        persist_directory=app_settings.chromadb_persist_dir,
        host=app_settings.chroma_host,
        port=app_settings.chroma_port,
    )
    if not await store.is_available():
        logger.warning(
            "remote_store_unreachable_using_relational",
            host=app_settings.chroma_host or None,
            persist_dir=app_settings.chromadb_persist_dir,
        )
        return None
    return store


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


async def build_services(custom_settings: Settings | None = None) -> dict[str, Any]:
    """Construct every provider and the orchestrator.

    Returns a flat dict of named components; pass it to
    :func:`close_services` when done.
    """
    app_settings = custom_settings or Settings()
    configure_logging(
        log_level=app_settings.log_level,
        json_output=app_settings.app_env == "production",
    )
    config = load_config(settings=app_settings)
    retrieval_config = RetrievalConfig.from_config(config)

    http_client = httpx.AsyncClient(timeout=app_settings.openai_timeout)
    openai_client = _build_openai_client(app_settings, http_client)

    record_store = SQLiteRecordStore(db_path=app_settings.database_path)
    await record_store.initialize()
    relational_store = SQLiteVectorProvider(db_path=app_settings.database_path)
    remote_store = await _build_remote_store(app_settings)
    router = VectorStoreRouter(relational=relational_store, remote=remote_store)

    embedding_provider = _build_embedding_provider(app_settings, openai_client)
    llm_provider = _build_llm_provider(app_settings, openai_client)

    orchestrator = RetrievalOrchestrator(
        extractor=TextExtractor(),
        chunker=TextChunker(max_tokens_per_chunk=retrieval_config.max_tokens_per_chunk),
        embedding_provider=embedding_provider,
        llm_provider=llm_provider,
        record_store=record_store,
        router=router,
        config=retrieval_config,
    )

    logger.info(
        "services_built",
        storage_primary=router.primary_method.value,
        embedding_provider=embedding_provider.get_provider_name(),
        llm_provider=llm_provider.get_provider_name(),
        database=app_settings.database_path,
    )
    return {
        "settings": app_settings,
        "config": retrieval_config,
        "http_client": http_client,
        "record_store": record_store,
        "router": router,
        "embedding_provider": embedding_provider,
        "llm_provider": llm_provider,
        "orchestrator": orchestrator,
    }


async def close_services(services: dict[str, Any]) -> None:
    """Release network resources held by :func:`build_services` output."""
    http_client: httpx.AsyncClient | None = services.get("http_client")
    if http_client is not None:
        await http_client.aclose()
