"""
Upload Rate Limiting

Per-client sliding window over POST /api/upload. One limiter lives on
app.state and reaches the route through get_rate_limiter, so tests can
override it like any other dependency.
"""

import logging
import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict

from fastapi import Depends, Request

from image_store.middleware.error_handler import RateLimitExceededError

logger = logging.getLogger(__name__)


class UploadRateLimiter:
    """
    Counts upload requests per client inside a moving window.

    Args:
        max_requests: Uploads one client may make per window
        window_seconds: Window length in seconds
        clock: Monotonic time source in seconds
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)

    def hits(self, client: str) -> int:
        """Uploads recorded for client in the current window."""
        return len(self._window(client, self.clock()))

    def admit(self, client: str) -> None:
        """
        Record one upload for client.

        Raises:
            RateLimitExceededError: If the client already used its window
        """
        now = self.clock()
        window = self._window(client, now)

        if len(window) >= self.max_requests:
            logger.warning(f"Upload rate limit hit by {client}: {len(window)} in window")
            raise RateLimitExceededError(self.max_requests, int(self.window_seconds))

        window.append(now)

    def reset(self) -> None:
        self._hits.clear()

    def _window(self, client: str, now: float) -> Deque[float]:
        """The client's timestamps with expired entries dropped."""
        window = self._hits[client]
        while window and window[0] <= now - self.window_seconds:
            window.popleft()
        return window


def get_rate_limiter(request: Request) -> UploadRateLimiter:
    return request.app.state.rate_limiter


async def check_upload_rate_limit(
    request: Request,
    limiter: UploadRateLimiter = Depends(get_rate_limiter),
) -> None:
    """FastAPI dependency admitting one upload for the calling client."""
    client = request.client.host if request.client else "unknown"
    limiter.admit(client)
