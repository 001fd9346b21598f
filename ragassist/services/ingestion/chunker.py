"""Text cleaning and sentence-aligned chunking.

Chunk size is measured with a rough estimate of four characters per
token, not a real tokenizer.  A chunk is closed before the sentence that
would push it over the budget, so chunks never end mid-sentence; a single
sentence longer than the budget becomes a chunk on its own.
"""

from __future__ import annotations

import re

import structlog

logger = structlog.get_logger(logger_name=__name__)

_CHARS_PER_TOKEN = 4
_SENTENCE_SEPARATOR = ". "

_WHITESPACE = re.compile(r"\s+")
# Keeps ASCII letters, digits, underscore, whitespace and . , ! ? -
_DISALLOWED = re.compile(r"[^A-Za-z0-9_\s.,!?-]")
_SENTENCE_END = re.compile(r"[.!?]+")


def estimate_tokens(text: str) -> float:
    """Approximate token count: characters / 4."""
    return len(text) / _CHARS_PER_TOKEN


class TextChunker:
    """Cleans text and splits it into chunks of whole sentences.

    Parameters
    ----------
    max_tokens_per_chunk:
        Default token budget per chunk (estimated, default 500).
    """

    def __init__(self, max_tokens_per_chunk: int = 500) -> None:
        if max_tokens_per_chunk <= 0:
            raise ValueError("max_tokens_per_chunk must be positive")
        self._max_tokens = max_tokens_per_chunk

    @staticmethod
    def clean(text: str) -> str:
        """Collapse whitespace to single spaces and drop unsupported characters."""
        collapsed = _WHITESPACE.sub(" ", text)
        return _DISALLOWED.sub("", collapsed).strip()

    def split(self, text: str, max_tokens_per_chunk: int | None = None) -> list[str]:
        """Split *text* into ordered chunks of sentences joined by ``". "``.

        Sentence-terminal punctuation is consumed by the split; sentences are
        re-joined with a period and a space.  Blank sentences are dropped.
        """
        limit = self._max_tokens if max_tokens_per_chunk is None else max_tokens_per_chunk
        if limit <= 0:
            raise ValueError("max_tokens_per_chunk must be positive")
        sentences = [s.strip() for s in _SENTENCE_END.split(text)]

        chunks: list[str] = []
        current = ""
        for sentence in sentences:
            if not sentence:
                continue
            candidate = f"{current}{_SENTENCE_SEPARATOR}{sentence}" if current else sentence
            if current and estimate_tokens(candidate) > limit:
                chunks.append(current)
                current = sentence
            else:
                current = candidate

        if current.strip():
            chunks.append(current.strip())

        logger.debug(
            "text_chunked",
            chars=len(text),
            chunks=len(chunks),
            max_tokens=limit,
        )
        return chunks
