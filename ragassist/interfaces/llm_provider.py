"""Abstract base class for completion service providers.

Covers the two generation tasks ragassist needs: a grounded chat answer
and a multiple-choice quiz built from document text.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ragassist.models.quiz import QuizQuestion


# Concrete implementation: OpenAILLMProvider (ragassist/providers/llm/)
class ILLMProvider(ABC):
    """Contract for completion services used by the query and quiz flows."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_query: str,
        context: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> str:
        """Generate a completion, optionally grounded in *context*.

        Parameters
        ----------
        system_prompt:
            Instruction message that sets the model's behaviour.
        user_query:
            The user's question.
        context:
            Retrieved document text.  When given, the user turn is
            ``"Context information:\\n<context>\\n\\nQuestion: <query>"``;
            otherwise the raw query is sent.
        temperature:
            Sampling temperature.
        max_tokens:
            Upper bound on response tokens.

        Returns
        -------
        str
            The stripped response text.

        Raises
        ------
        ragassist.utils.errors.EmptyResponseError
            If the provider returned no content.
        ragassist.utils.errors.QuotaExceededError
            If the provider account quota is exhausted.
        ragassist.utils.errors.ProviderError
            If the provider call fails after the shared retry policy.
        """

    @abstractmethod
    async def generate_quiz(self, context: str, num_questions: int) -> list[QuizQuestion]:
        """Generate up to *num_questions* multiple-choice questions from *context*.

        Items that do not validate are dropped; the result is never longer
        than *num_questions*.

        Raises
        ------
        ragassist.utils.errors.QuizParseError
            If the output is not a JSON array or no item validates.
        ragassist.utils.errors.QuotaExceededError
            If the provider account quota is exhausted.
        ragassist.utils.errors.ProviderError
            If the provider call fails after the shared retry policy.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured (credentials present)."""
