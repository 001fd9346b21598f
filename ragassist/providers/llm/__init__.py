"""Completion provider adapters.

OpenAILLMProvider implements ILLMProvider for OpenAI and any
OpenAI-compatible endpoint (set ``OPENAI_BASE_URL``).
"""

from ragassist.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["OpenAILLMProvider"]
