"""Unit tests for the OpenAI completion provider and quiz output parsing."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from ragassist.config.settings import Settings
from ragassist.providers.llm.openai_provider import (
    OpenAILLMProvider,
    build_user_message,
    parse_quiz_output,
)
from ragassist.utils.errors import EmptyResponseError, QuizParseError, QuotaExceededError


def _settings(**overrides) -> Settings:
    defaults = {
        "openai_api_key": "sk-test",
        "openai_base_url": "",
        "openai_chat_model": "gpt-4o-mini",
        "provider_max_retries": 2,
        "provider_base_delay": 0.0,
    }
    defaults.update(overrides)
    return Settings(**defaults)


def _completion(content: str | None) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    response.usage = MagicMock(total_tokens=42)
    return response


def _client(*side_effect) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = AsyncMock(side_effect=list(side_effect))
    return client


def _item(**overrides) -> dict:
    item = {
        "question": "What do plants absorb?",
        "options": ["Light", "Sound", "Heat", "Noise"],
        "correctAnswer": 0,
        "explanation": "Plants absorb light.",
    }
    item.update(overrides)
    return item


class TestBuildUserMessage:
    def test_with_context(self) -> None:
        assert build_user_message("Why?", "Because.") == (
            "Context information:\nBecause.\n\nQuestion: Why?"
        )

    def test_without_context(self) -> None:
        assert build_user_message("Why?", None) == "Why?"
        assert build_user_message("Why?", "") == "Why?"


class TestParseQuizOutput:
    def test_plain_array(self) -> None:
        questions = parse_quiz_output(json.dumps([_item(), _item(correctAnswer=2)]), 5)
        assert len(questions) == 2
        assert questions[1].correct_answer == 2

    def test_code_fences_tolerated(self) -> None:
        raw = "```json\n" + json.dumps([_item()]) + "\n```"
        assert len(parse_quiz_output(raw, 5)) == 1

    def test_prose_around_array_tolerated(self) -> None:
        raw = "Here are your questions:\n" + json.dumps([_item()]) + "\nGood luck!"
        assert len(parse_quiz_output(raw, 5)) == 1

    def test_invalid_items_dropped(self) -> None:
        items = [
            _item(),
            _item(options=["only", "three", "options"]),
            _item(correctAnswer=4),
            _item(correctAnswer="1"),
            _item(question=""),
            "not an object",
            _item(explanation=None),
        ]
        questions = parse_quiz_output(json.dumps(items), 10)
        assert len(questions) == 2
        assert questions[1].explanation is None

    def test_truncated_to_requested_count(self) -> None:
        questions = parse_quiz_output(json.dumps([_item()] * 8), 3)
        assert len(questions) == 3

    def test_not_json(self) -> None:
        with pytest.raises(QuizParseError):
            parse_quiz_output("Sorry, I cannot help with that.", 5)

    def test_not_an_array(self) -> None:
        with pytest.raises(QuizParseError):
            parse_quiz_output(json.dumps({"questions": [_item()]}), 5)

    def test_no_valid_items(self) -> None:
        with pytest.raises(QuizParseError):
            parse_quiz_output(json.dumps([_item(options=[])]), 5)


class TestOpenAILLMProvider:
    @pytest.mark.asyncio
    async def test_complete_grounded(self) -> None:
        client = _client(_completion("  The answer.  "))
        provider = OpenAILLMProvider(_settings(), client=client)

        answer = await provider.complete("system", "question?", "some context")

        assert answer == "The answer."
        kwargs = client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["max_tokens"] == 1000
        assert kwargs["temperature"] == 0.7
        assert kwargs["messages"][0] == {"role": "system", "content": "system"}
        assert kwargs["messages"][1]["content"].startswith("Context information:\nsome context")

    @pytest.mark.asyncio
    async def test_complete_empty_content(self) -> None:
        provider = OpenAILLMProvider(_settings(), client=_client(_completion(None)))
        with pytest.raises(EmptyResponseError):
            await provider.complete("system", "question?")

    @pytest.mark.asyncio
    async def test_complete_quota(self, make_api_error) -> None:
        client = _client(make_api_error(429, message="You exceeded your current quota"))
        provider = OpenAILLMProvider(_settings(), client=client)

        with pytest.raises(QuotaExceededError):
            await provider.complete("system", "question?")
        assert client.chat.completions.create.await_count == 1

    @pytest.mark.asyncio
    async def test_generate_quiz(self) -> None:
        client = _client(_completion(json.dumps([_item(), _item()])))
        provider = OpenAILLMProvider(_settings(), client=client)

        questions = await provider.generate_quiz("Plants absorb light.", 2)

        assert len(questions) == 2
        kwargs = client.chat.completions.create.await_args.kwargs
        assert kwargs["max_tokens"] == 2000
        assert kwargs["temperature"] == 0.3
        prompt = kwargs["messages"][0]["content"]
        assert "create 2 multiple-choice questions" in prompt
        assert "Plants absorb light." in prompt

    @pytest.mark.asyncio
    async def test_generate_quiz_parse_failure_not_retried(self) -> None:
        client = _client(_completion("no json here"), _completion(json.dumps([_item()])))
        provider = OpenAILLMProvider(_settings(), client=client)

        with pytest.raises(QuizParseError):
            await provider.generate_quiz("context", 1)
        assert client.chat.completions.create.await_count == 1
