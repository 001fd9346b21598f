"""OpenAI-compatible completion provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider`.
Handles both grounded chat answers and quiz generation.  When a custom
``openai_base_url`` is configured the client points at that URL instead of
the default OpenAI endpoint.

Transport failures go through the shared retry policy.  Quiz output that
fails to parse is never retried: the same prompt at the same temperature
is unlikely to produce a different shape.
"""

from __future__ import annotations

import json
import re
from typing import Any

import openai
import structlog
from pydantic import ValidationError

from ragassist.config.settings import Settings
from ragassist.interfaces.llm_provider import ILLMProvider
from ragassist.models.quiz import QuizQuestion
from ragassist.utils.errors import EmptyResponseError, QuizParseError
from ragassist.utils.retry import with_retries

logger = structlog.get_logger(logger_name=__name__)

_QUIZ_MAX_TOKENS = 2000
_QUIZ_TEMPERATURE = 0.3

_QUIZ_PROMPT_TEMPLATE = """\
Based on the following text content, create {num_questions} multiple-choice questions.
Each question should have 4 options (A, B, C, D) with only one correct answer.
Include explanations for the correct answers.

Format the response as a JSON array with this structure:
[
  {{
    "question": "Question text here?",
    "options": ["Option A", "Option B", "Option C", "Option D"],
    "correctAnswer": 0,
    "explanation": "Explanation for why this answer is correct"
  }}
]

Content:
{context}

Make sure the questions test understanding of key concepts from the content. \
Return only the JSON array, no additional text."""


def build_user_message(user_query: str, context: str | None) -> str:
    """Return the user turn, prefixing retrieved context when there is any."""
    if context:
        return f"Context information:\n{context}\n\nQuestion: {user_query}"
    return user_query


def parse_quiz_output(raw: str, num_questions: int, provider_name: str | None = None) -> list[QuizQuestion]:
    """Parse model output into at most *num_questions* valid questions.

    Tolerates markdown code fences and prose around the array.  Items that
    fail validation are dropped.

    Raises
    ------
    QuizParseError
        If the output is not a JSON array or no item is valid.
    """
    text = raw.strip()

    if text.startswith("```"):
        lines = text.split("\n")
        lines = [line for line in lines if not line.strip().startswith("```")]
        text = "\n".join(lines).strip()

    if not text.startswith("["):
        array_match = re.search(r"\[[\s\S]*\]", text)
        if array_match:
            text = array_match.group(0)

    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        raise QuizParseError(
            message="Quiz output is not valid JSON",
            provider_name=provider_name,
        ) from exc

    if not isinstance(data, list):
        raise QuizParseError(
            message="Quiz output is not a JSON array",
            provider_name=provider_name,
        )

    questions: list[QuizQuestion] = []
    dropped = 0
    for item in data:
        if len(questions) >= num_questions:
            break
        if not isinstance(item, dict):
            dropped += 1
            continue
        try:
            questions.append(
                QuizQuestion(
                    question=item.get("question"),
                    options=item.get("options"),
                    correct_answer=item.get("correctAnswer"),
                    explanation=item.get("explanation"),
                )
            )
        except ValidationError:
            dropped += 1

    if dropped:
        logger.warning("quiz_items_dropped", dropped=dropped, kept=len(questions))

    if not questions:
        raise QuizParseError(
            message="No valid quiz questions in provider output",
            provider_name=provider_name,
        )
    return questions


class OpenAILLMProvider(ILLMProvider):
    """Completion provider backed by an OpenAI-compatible chat API.

    Uses ``gpt-4o-mini`` by default; override with ``OPENAI_CHAT_MODEL``.
    """

    def __init__(self, settings: Settings, client: openai.AsyncOpenAI | None = None) -> None:
        self._settings = settings
        self._api_key = settings.openai_api_key

        if client is None:
            client_kwargs: dict = {
                "api_key": self._api_key,
                "timeout": settings.openai_timeout,
                "max_retries": 0,
            }
            if settings.openai_base_url:
                client_kwargs["base_url"] = settings.openai_base_url
            client = openai.AsyncOpenAI(**client_kwargs)

        self._client = client
        self._model = settings.openai_chat_model or "gpt-4o-mini"
        self._max_retries = settings.provider_max_retries
        self._base_delay = settings.provider_base_delay
        self._provider_label = "openai-compatible" if settings.openai_base_url else "openai"

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def complete(
        self,
        system_prompt: str,
        user_query: str,
        context: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> str:
        """Generate a chat completion, grounded in *context* when given."""
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": build_user_message(user_query, context)},
        ]
        return await self._chat(messages, temperature=temperature, max_tokens=max_tokens)

    async def generate_quiz(self, context: str, num_questions: int) -> list[QuizQuestion]:
        """Generate multiple-choice questions from *context* in a single call."""
        prompt = _QUIZ_PROMPT_TEMPLATE.format(num_questions=num_questions, context=context)
        raw = await self._chat(
            [{"role": "user", "content": prompt}],
            temperature=_QUIZ_TEMPERATURE,
            max_tokens=_QUIZ_MAX_TOKENS,
        )
        questions = parse_quiz_output(raw, num_questions, provider_name=self.get_provider_name())
        logger.info("openai_quiz_generated", requested=num_questions, generated=len(questions))
        return questions

    def get_provider_name(self) -> str:
        return self._provider_label

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _chat(
        self,
        messages: list[dict[str, str]],
        temperature: float,
        max_tokens: int,
    ) -> str:
        response = await with_retries(
            lambda: self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            ),
            provider_name=self.get_provider_name(),
            max_retries=self._max_retries,
            base_delay=self._base_delay,
        )
        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise EmptyResponseError(provider_name=self.get_provider_name())

        logger.info(
            "openai_completion",
            model=self._model,
            provider=self._provider_label,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return content.strip()
