"""Retry logic for rate-limited model calls."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)

DEFAULT_DELAYS: tuple[float, ...] = (5.0, 20.0, 50.0)


def is_rate_limited(exc: BaseException) -> bool:
  """Return True for 429 / quota errors raised by model SDKs."""
  error_msg = str(exc)
  is_quota_error = "Resource Exhausted" in error_msg or "RESOURCE_EXHAUSTED" in error_msg or "Quota Exceeded" in error_msg
  is_rate_limit = "429" in error_msg or "Too Many Requests" in error_msg
  return is_quota_error or is_rate_limit


async def retry_with_backoff(func: Callable[..., Awaitable[T]], *args: Any, delays: Sequence[float] = DEFAULT_DELAYS, **kwargs: Any) -> T:
  """
  Execute a coroutine function with retries for 429/quota errors only.

  Each delay is one retry; jitter of up to one second is added.
  """
  for attempt, delay in enumerate(delays):
    try:
      return await func(*args, **kwargs)
    except Exception as e:
      if not is_rate_limited(e):
        # Non-retryable error, raise immediately
        raise
      wait = delay + random.uniform(0, 1)
      logger.warning("Retry attempt %s/%s after rate limit: %s. Retrying in %.1fs...", attempt + 1, len(delays), e, wait)
      await asyncio.sleep(wait)

  # Final attempt
  return await func(*args, **kwargs)
