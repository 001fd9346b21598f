"""Shared retry policy for AI provider calls.

Every embedding and completion request goes through :func:`with_retries`,
so rate limits, server errors and quota exhaustion are treated the same
way regardless of which flow made the call.

    quota exhausted      -> QuotaExceededError, immediately
    HTTP 429             -> wait Retry-After seconds (or backoff), retry
    HTTP 5xx             -> wait base_delay * 2**attempt, retry
    retries exhausted    -> TransientProviderError
    any other API error  -> ProviderError, immediately

Cancellation is never intercepted: ``asyncio.CancelledError`` is not an
``openai.APIError`` and passes straight through.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Awaitable, Callable
from typing import TypeVar

import openai
import structlog

from ragassist.utils.errors import ProviderError, QuotaExceededError, TransientProviderError

logger = structlog.get_logger(logger_name=__name__)

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 5
DEFAULT_BASE_DELAY = 0.5

_QUOTA_CODE = "insufficient_quota"
_QUOTA_PATTERN = re.compile(r"quota", re.IGNORECASE)


def is_quota_error(exc: BaseException) -> bool:
    """Return ``True`` when a provider error signals exhausted account quota."""
    if getattr(exc, "code", None) == _QUOTA_CODE:
        return True
    message = getattr(exc, "message", None) or str(exc)
    return bool(_QUOTA_PATTERN.search(message))


def _status_of(exc: BaseException) -> int | None:
    status = getattr(exc, "status_code", None)
    return status if isinstance(status, int) else None


def _retry_after_seconds(exc: BaseException) -> float | None:
    """Read a numeric ``Retry-After`` header from the error's response."""
    response = getattr(exc, "response", None)
    headers = getattr(response, "headers", None)
    if not headers:
        return None
    raw = headers.get("retry-after")
    if raw is None:
        return None
    try:
        seconds = float(raw)
    except (TypeError, ValueError):
        return None
    return seconds if seconds >= 0 else None


async def with_retries(
    operation: Callable[[], Awaitable[T]],
    *,
    provider_name: str,
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run *operation* under the shared retry policy.

    Parameters
    ----------
    operation:
        Zero-argument coroutine factory.  Called once per attempt, so it
        must be safe to repeat.
    provider_name:
        Label attached to raised errors and retry log lines.
    max_retries:
        Retries after the initial attempt (``max_retries + 1`` calls at most).
    base_delay:
        Backoff base in seconds; attempt *n* waits ``base_delay * 2**n``.
    sleep:
        Awaitable used for waiting.  Injected by tests to avoid real delays.

    Raises
    ------
    QuotaExceededError
        Quota exhausted; raised after exactly one call.
    TransientProviderError
        A 429 or 5xx persisted through every retry.
    ProviderError
        Any other provider API failure.
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except openai.APIError as exc:
            if is_quota_error(exc):
                logger.warning("provider_quota_exceeded", provider=provider_name)
                raise QuotaExceededError(provider_name=provider_name) from exc

            status = _status_of(exc)
            retryable = status is not None and (status == 429 or status >= 500)
            if not retryable:
                raise ProviderError(
                    message=f"Provider request failed: {exc}",
                    provider_name=provider_name,
                ) from exc

            if attempt >= max_retries:
                logger.error(
                    "provider_retries_exhausted",
                    provider=provider_name,
                    status=status,
                    attempts=attempt + 1,
                )
                raise TransientProviderError(
                    message=f"Provider still failing after {max_retries} retries (HTTP {status})",
                    provider_name=provider_name,
                    last_status=status,
                ) from exc

            delay = base_delay * 2**attempt
            if status == 429:
                retry_after = _retry_after_seconds(exc)
                if retry_after is not None:
                    delay = retry_after

            logger.warning(
                "provider_retry",
                provider=provider_name,
                status=status,
                attempt=attempt + 1,
                delay_s=delay,
            )
            await sleep(delay)
            attempt += 1
