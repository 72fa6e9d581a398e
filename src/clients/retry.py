# src/clients/retry.py — v1
"""Retry policy with exponential backoff for metadata lookups.

Only idempotent GET lookups go through here. Material creation is never
retried: a duplicate POST would create a duplicate material.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

import httpx

from matingest.core.errors import LookupFailed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryConfig:
    """Retry configuration for a specific error type."""

    max_retries: int
    base_delay_s: float
    backoff_factor: float = 2.0
    jitter: bool = True


DEFAULT_RETRY_CONFIGS: dict[str, RetryConfig] = {
    "rate_limit": RetryConfig(max_retries=1, base_delay_s=1.0),
    "timeout": RetryConfig(max_retries=1, base_delay_s=0.5, backoff_factor=1.0),
    "server_error": RetryConfig(max_retries=1, base_delay_s=1.0),
    "network": RetryConfig(max_retries=1, base_delay_s=0.5, backoff_factor=1.0),
}


def classify_error(error: Exception) -> str:
    """Classify an exception into a retry error type."""
    if isinstance(error, httpx.TimeoutException):
        return "timeout"
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        if status == 429:
            return "rate_limit"
        if status >= 500:
            return "server_error"
        return "client_error"
    if isinstance(error, httpx.TransportError):
        return "network"
    if isinstance(error, asyncio.TimeoutError):
        return "timeout"
    return "unknown"


def _compute_delay(config: RetryConfig, attempt: int) -> float:
    """Compute delay for a given attempt (0-based)."""
    delay = config.base_delay_s * (config.backoff_factor ** attempt)
    if config.jitter:
        delay *= 0.5 + random.random()  # noqa: S311
    return delay


async def with_retry(
    fn: Callable[..., Awaitable[Any]],
    *args: Any,
    source: str = "lookup",
    retry_configs: dict[str, RetryConfig] | None = None,
    max_retries: int | None = None,
    **kwargs: Any,
) -> Any:
    """Execute an async lookup with retry on transient failures.

    Args:
        fn: Coroutine function to call.
        source: Collaborator name used in logs and in LookupFailed.
        retry_configs: Per-error-type policy; defaults to DEFAULT_RETRY_CONFIGS.
        max_retries: Caps every policy's retry count when given.

    Raises:
        LookupFailed: On a non-transient error or when retries run out.
    """
    configs = retry_configs or DEFAULT_RETRY_CONFIGS
    attempts = 0

    while True:
        try:
            return await fn(*args, **kwargs)
        except LookupFailed:
            raise
        except (httpx.HTTPError, asyncio.TimeoutError) as e:
            error_type = classify_error(e)
            attempts += 1
            config = configs.get(error_type)
            limit = 0 if config is None else config.max_retries
            if max_retries is not None:
                limit = min(limit, max_retries)

            if config is None or attempts > limit:
                raise LookupFailed(source, f"{error_type}: {e}") from e

            delay = _compute_delay(config, attempts - 1)
            logger.warning(
                "%s lookup - %s (attempt %d/%d), retrying in %.1fs",
                source, error_type, attempts, limit, delay,
            )
            await asyncio.sleep(delay)
