"""Custom exception hierarchy for ragassist.

All application exceptions inherit from :class:`RagAssistError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai", "chromadb", "sqlite") caused the failure,
and a class-level ``status_code`` hint for whatever boundary layer maps
errors to transport responses.

    RagAssistError  (base -- catch-all for any ragassist error)
    +-- UnsupportedTypeError     (content type not in the supported set)
    +-- ExtractionError          (document bytes could not be read)
    |   +-- EmptyContentError    (extraction produced no text)
    +-- EmptyInputError          (embedding requested for blank input only)
    +-- InvalidQueryError        (query text blank or too long)
    +-- InvalidQuizRequestError  (question count out of range)
    +-- DocumentNotFoundError    (missing, or owned by someone else)
    +-- NoContentError           (document has no stored chunks)
    +-- ProviderError            (AI provider call failed)
    |   +-- QuotaExceededError   (account quota exhausted -- never retried)
    |   +-- TransientProviderError (retries exhausted on 429/5xx)
    |   +-- EmptyResponseError   (provider returned no content)
    +-- MalformedOutputError     (provider output had the wrong shape)
    |   +-- QuizParseError       (quiz output was not a JSON array)
    +-- EmbeddingError / SearchError / CompletionError / GenerationError
    +-- StorageError             (no vector store accepted the chunks)
    +-- ConfigurationError       (startup / missing config)
"""


class RagAssistError(Exception):
    """Base exception for all ragassist errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[openai] Quota exceeded``.
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Ingestion errors
# ---------------------------------------------------------------------------

class UnsupportedTypeError(RagAssistError):
    """Raised when a document's content type is not one the extractor reads."""

    status_code = 415

    def __init__(
        self,
        message: str = "Unsupported file type",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ExtractionError(RagAssistError):
    """Raised when text cannot be extracted from a document."""

    status_code = 400

    def __init__(
        self,
        message: str = "Text extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmptyContentError(ExtractionError):
    """Raised when a document yields no usable text."""

    def __init__(
        self,
        message: str = "No text content could be extracted from the document",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmptyInputError(RagAssistError):
    """Raised when embeddings are requested for blank input only."""

    status_code = 400

    def __init__(
        self,
        message: str = "No non-empty texts provided for embedding",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class StorageError(RagAssistError):
    """Raised when no vector store accepted a document's chunks."""

    def __init__(
        self,
        message: str = "Failed to store document chunks",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Request validation errors
# ---------------------------------------------------------------------------

class InvalidQueryError(RagAssistError):
    """Raised when a query is blank or exceeds the length limit."""

    status_code = 400

    def __init__(
        self,
        message: str = "Invalid query",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class InvalidQuizRequestError(RagAssistError):
    """Raised when a quiz is requested with an out-of-range question count."""

    status_code = 400

    def __init__(
        self,
        message: str = "Number of questions must be between 1 and 20",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DocumentNotFoundError(RagAssistError):
    """Raised when a document does not exist or belongs to another owner."""

    status_code = 404

    def __init__(
        self,
        message: str = "Document not found or access denied",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class NoContentError(RagAssistError):
    """Raised when a document has no stored chunks to build a quiz from."""

    status_code = 400

    def __init__(
        self,
        message: str = "No content found for this document",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Provider errors
# ---------------------------------------------------------------------------

class ProviderError(RagAssistError):
    """Raised when an AI provider call fails."""

    status_code = 502

    def __init__(
        self,
        message: str = "AI provider request failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class QuotaExceededError(ProviderError):
    """Raised when the provider account quota is exhausted.

    Never retried.  Flows let this propagate unwrapped so callers can tell
    the user to check billing rather than try again later.
    """

    status_code = 429

    def __init__(
        self,
        message: str = "AI provider quota exceeded. Please check your plan and billing details.",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class TransientProviderError(ProviderError):
    """Raised when rate-limit or server-error retries are exhausted."""

    status_code = 503

    def __init__(
        self,
        message: str = "AI provider unavailable after retries",
        provider_name: str | None = None,
        last_status: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._last_status = last_status

    @property
    def last_status(self) -> int | None:
        return self._last_status


class EmptyResponseError(ProviderError):
    """Raised when a completion comes back without content."""

    def __init__(
        self,
        message: str = "AI provider returned an empty response",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class MalformedOutputError(RagAssistError):
    """Raised when provider output does not have the expected shape."""

    status_code = 502

    def __init__(
        self,
        message: str = "AI provider returned malformed output",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class QuizParseError(MalformedOutputError):
    """Raised when quiz output cannot be parsed into valid questions."""

    def __init__(
        self,
        message: str = "Failed to parse quiz questions",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Flow-level wrappers
# ---------------------------------------------------------------------------

class EmbeddingError(RagAssistError):
    """Raised when a flow cannot obtain embeddings."""

    def __init__(
        self,
        message: str = "Failed to generate embeddings",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class SearchError(RagAssistError):
    """Raised when the similarity search fails."""

    def __init__(
        self,
        message: str = "Failed to search for relevant content",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class CompletionError(RagAssistError):
    """Raised when the grounded answer cannot be generated."""

    def __init__(
        self,
        message: str = "Failed to generate response",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class GenerationError(RagAssistError):
    """Raised when quiz generation fails at the provider."""

    def __init__(
        self,
        message: str = "Failed to generate quiz questions",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(RagAssistError):
    """Raised when required configuration is missing or invalid at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
