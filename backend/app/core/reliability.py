"""
Reliability utilities.

Retry-with-backoff for optimistic writes and a per-request deadline.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Tuple, Type

from sqlalchemy.exc import IntegrityError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from backend.app.core.exceptions import RequestTimeoutError, error_response

logger = logging.getLogger(__name__)


async def run_with_retry(
    operation: Callable[[], Awaitable[Any]],
    *,
    rollback: Optional[Callable[[], Awaitable[Any]]] = None,
    attempts: int = 3,
    backoff_base: float = 0.05,
    retry_on: Tuple[Type[BaseException], ...] = (IntegrityError,),
    should_retry: Optional[Callable[[BaseException], bool]] = None,
) -> Any:
    """
    Run ``operation`` and retry it when it fails with one of ``retry_on``.

    Between attempts the session is rolled back (if ``rollback`` is given)
    and the caller sleeps ``backoff_base * 2**attempt`` seconds. The last
    failure is re-raised once the attempts are used up.

    Args:
        operation: Zero-argument coroutine function performing the write
        rollback: Coroutine function restoring a clean session after a failure
        attempts: Total number of tries (>= 1)
        backoff_base: Initial delay in seconds
        retry_on: Exception types that trigger a retry
        should_retry: Optional filter; a matching exception it rejects is
            re-raised at once

    Returns:
        Whatever ``operation`` returns on its first successful try
    """
    if attempts < 1:
        raise ValueError(f"attempts must be at least 1, got {attempts}")

    for attempt in range(attempts):
        try:
            return await operation()
        except retry_on as exc:
            if rollback is not None:
                await rollback()
            if attempt >= attempts - 1:
                raise
            if should_retry is not None and not should_retry(exc):
                raise
            delay = backoff_base * (2 ** attempt)
            logger.warning(
                "Attempt %d/%d failed with %s, retrying in %.3fs",
                attempt + 1, attempts, type(exc).__name__, delay
            )
            await asyncio.sleep(delay)


class TimeoutMiddleware(BaseHTTPMiddleware):
    """Bound every request by a deadline; exceeded deadlines become a retryable 503."""

    def __init__(self, app, timeout_seconds: float = 30.0):
        super().__init__(app)
        self.timeout_seconds = timeout_seconds

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            return await asyncio.wait_for(call_next(request), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.error(
                "Request exceeded %.1fs deadline: %s %s",
                self.timeout_seconds, request.method, request.url.path
            )
            return error_response(RequestTimeoutError(self.timeout_seconds))
