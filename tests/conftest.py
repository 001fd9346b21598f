"""Shared pytest fixtures for the ragassist test suite."""

from __future__ import annotations

import re
from collections.abc import Callable
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import httpx
import numpy as np
import openai
import pytest
import pytest_asyncio

from ragassist.config.settings import Settings
from ragassist.interfaces.embedding_provider import IEmbeddingProvider
from ragassist.interfaces.llm_provider import ILLMProvider
from ragassist.models.quiz import QuizQuestion
from ragassist.models.rag import EmbeddingResult
from ragassist.providers.records.sqlite_record_store import SQLiteRecordStore
from ragassist.providers.vector_store.sqlite_vector_provider import SQLiteVectorProvider

# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing every store at a temp directory."""
    return Settings(
        openai_api_key="sk-test",
        openai_base_url="",
        chroma_enabled=False,
        chromadb_persist_dir=str(tmp_path / "chromadb"),
        database_path=str(tmp_path / "ragassist.db"),
        provider_max_retries=5,
        provider_base_delay=0.0,
        config_path=str(tmp_path / "missing.yaml"),
    )


# ---------------------------------------------------------------------------
# OpenAI SDK error factory
# ---------------------------------------------------------------------------


@pytest.fixture
def make_api_error() -> Callable[..., openai.APIStatusError]:
    """Build real ``openai`` status errors with a given status, body and headers."""

    def _make(
        status: int,
        message: str = "request failed",
        body: dict | None = None,
        headers: dict[str, str] | None = None,
    ) -> openai.APIStatusError:
        request = httpx.Request("POST", "https://api.openai.com/v1/embeddings")
        response = httpx.Response(status, headers=headers or {}, request=request)
        if status == 429:
            cls = openai.RateLimitError
        elif status >= 500:
            cls = openai.InternalServerError
        else:
            cls = openai.BadRequestError
        return cls(message, response=response, body=body)

    return _make


@pytest.fixture
def sleep_recorder() -> tuple[list[float], Callable]:
    """An ``asyncio.sleep`` stand-in that records requested delays."""
    delays: list[float] = []

    async def _sleep(seconds: float) -> None:
        delays.append(seconds)

    return delays, _sleep


# ---------------------------------------------------------------------------
# Deterministic embeddings
# ---------------------------------------------------------------------------

VOCABULARY = [
    "photosynthesis", "chlorophyll", "light", "plants", "energy",
    "mitochondria", "cell", "respiration", "atp",
    "revolution", "french", "king", "paris", "history",
    "gravity", "newton", "mass", "force",
]


def bag_of_words(text: str) -> list[float]:
    """Count vocabulary hits; texts sharing topic words get high cosine similarity."""
    words = re.findall(r"[a-z]+", text.lower())
    vector = np.zeros(len(VOCABULARY), dtype=float)
    for word in words:
        if word in VOCABULARY:
            vector[VOCABULARY.index(word)] += 1.0
    return vector.tolist()


class FakeEmbeddingProvider(IEmbeddingProvider):
    """In-memory embedding provider producing bag-of-words vectors."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []

    async def embed(self, texts: list[str]) -> list[EmbeddingResult]:
        inputs = [t for t in texts if t.strip()]
        self.calls.append(inputs)
        return [EmbeddingResult(embedding=bag_of_words(t), tokens=len(t) // 4) for t in inputs]

    async def embed_single(self, text: str) -> list[float]:
        return bag_of_words(text)

    def get_dimension(self) -> int:
        return len(VOCABULARY)

    def get_provider_name(self) -> str:
        return "fake-embedding"

    def is_available(self) -> bool:
        return True


@pytest.fixture
def fake_embedding_provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


# ---------------------------------------------------------------------------
# Mock providers
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_questions() -> list[QuizQuestion]:
    return [
        QuizQuestion(
            question="What pigment absorbs light in plants?",
            options=["Chlorophyll", "Keratin", "Melanin", "Hemoglobin"],
            correct_answer=0,
            explanation="Chlorophyll absorbs light for photosynthesis.",
        ),
        QuizQuestion(
            question="Which organelle produces ATP?",
            options=["Nucleus", "Mitochondria", "Ribosome", "Golgi body"],
            correct_answer=1,
        ),
    ]


@pytest.fixture
def mock_llm_provider(sample_questions: list[QuizQuestion]) -> ILLMProvider:
    """Mock ILLMProvider with a fixed answer and quiz."""
    mock = MagicMock(spec=ILLMProvider)
    mock.get_provider_name.return_value = "mock-llm"
    mock.is_available.return_value = True
    mock.complete = AsyncMock(return_value="Plants use chlorophyll to capture light.")
    mock.generate_quiz = AsyncMock(return_value=sample_questions)
    return mock


# ---------------------------------------------------------------------------
# SQLite stores
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def record_store(tmp_path: Path) -> SQLiteRecordStore:
    store = SQLiteRecordStore(db_path=tmp_path / "records.db")
    await store.initialize()
    return store


@pytest_asyncio.fixture
async def sqlite_vectors(tmp_path: Path, record_store: SQLiteRecordStore) -> SQLiteVectorProvider:
    """Relational vector store sharing the record store's database."""
    return SQLiteVectorProvider(db_path=tmp_path / "records.db")
