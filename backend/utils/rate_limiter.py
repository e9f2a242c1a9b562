"""In-memory per-client rate limiting for the authentication endpoints."""

import logging
import time
from collections import defaultdict
from typing import Dict, List

from fastapi import Request, HTTPException, status

logger = logging.getLogger(__name__)


class RateLimiter:
    """Sliding-window limiter used as a FastAPI dependency."""

    def __init__(self, requests_limit: int, time_window: int):
        self.requests_limit = requests_limit
        self.time_window = time_window  # in seconds
        self.client_requests: Dict[str, List[float]] = defaultdict(list)
        self.cleanup_interval = 600
        self.last_cleanup = time.time()

    def _get_client_key(self, request: Request) -> str:
        # X-Forwarded-For: <client>, <proxy1>, <proxy2>
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
        if request.client and request.client.host:
            return request.client.host
        return "127.0.0.1"

    async def __call__(self, request: Request):
        client = self._get_client_key(request)
        now = time.time()

        if now - self.last_cleanup > self.cleanup_interval:
            self._cleanup(now)
            self.last_cleanup = now

        recent = [t for t in self.client_requests[client] if now - t < self.time_window]
        if len(recent) >= self.requests_limit:
            self.client_requests[client] = recent
            logger.warning(f"Rate limit exceeded for {client} on {request.url.path}")
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later."
            )

        recent.append(now)
        self.client_requests[client] = recent
        return True

    def _cleanup(self, now: float):
        """Forget clients whose newest request fell out of the window."""
        stale = [
            client for client, timestamps in self.client_requests.items()
            if not timestamps or now - timestamps[-1] > self.time_window
        ]
        for client in stale:
            del self.client_requests[client]


# 5 requests per minute for login and registration
auth_rate_limiter = RateLimiter(requests_limit=5, time_window=60)
