"""Utility modules for ragassist.

- **errors** -- Exception hierarchy rooted at RagAssistError; each flow
  raises its own subclass so callers can handle failures granularly.
- **logging** -- structlog setup with console output in development and
  structured JSON in production.
- **retry** -- The shared retry policy wrapped around every AI provider call.
"""

from ragassist.utils.errors import (
    CompletionError,
    ConfigurationError,
    DocumentNotFoundError,
    EmbeddingError,
    EmptyContentError,
    EmptyInputError,
    EmptyResponseError,
    ExtractionError,
    GenerationError,
    InvalidQueryError,
    InvalidQuizRequestError,
    MalformedOutputError,
    NoContentError,
    ProviderError,
    QuizParseError,
    QuotaExceededError,
    RagAssistError,
    SearchError,
    StorageError,
    TransientProviderError,
    UnsupportedTypeError,
)
from ragassist.utils.logging import configure_logging, get_logger
from ragassist.utils.retry import with_retries

__all__ = [
    "CompletionError",
    "ConfigurationError",
    "DocumentNotFoundError",
    "EmbeddingError",
    "EmptyContentError",
    "EmptyInputError",
    "EmptyResponseError",
    "ExtractionError",
    "GenerationError",
    "InvalidQueryError",
    "InvalidQuizRequestError",
    "MalformedOutputError",
    "NoContentError",
    "ProviderError",
    "QuizParseError",
    "QuotaExceededError",
    "RagAssistError",
    "SearchError",
    "StorageError",
    "TransientProviderError",
    "UnsupportedTypeError",
    "configure_logging",
    "get_logger",
    "with_retries",
]
