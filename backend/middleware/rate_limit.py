"""
In-memory rate limiting for the Storefront API.

Guards credential endpoints (register/login) against brute force.

Uses a simple sliding-window counter per IP address.
For multi-instance deployments, replace with a Redis-backed limiter.
"""
import time
import logging
from collections import defaultdict

from fastapi import Request, Response

from domain.errors import RateLimitError

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Simple in-memory sliding-window rate limiter.

    Tracks request timestamps per (IP, route) key.
    Not suitable for multi-worker deployments (use Redis instead).
    """

    def __init__(self):
        # {key: [timestamp1, timestamp2, ...]}
        self._requests: dict[str, list[float]] = defaultdict(list)

    def _cleanup(self, key: str, window_seconds: int):
        """Remove expired timestamps from the window."""
        cutoff = time.time() - window_seconds
        self._requests[key] = [
            ts for ts in self._requests[key] if ts > cutoff
        ]

    def check(self, key: str, max_requests: int, window_seconds: int) -> bool:
        """
        Check if a request is allowed under the rate limit.

        Returns:
            True if allowed, False if rate-limited
        """
        self._cleanup(key, window_seconds)

        if len(self._requests[key]) >= max_requests:
            return False

        self._requests[key].append(time.time())
        return True

    def remaining(self, key: str, max_requests: int, window_seconds: int) -> int:
        """Get the number of remaining requests in the current window."""
        self._cleanup(key, window_seconds)
        return max(0, max_requests - len(self._requests[key]))

    def reset(self):
        self._requests.clear()


# Global rate limiter instance
_limiter = RateLimiter()


def rate_limit(max_requests: int = 10, window_seconds: int = 60):
    """
    FastAPI dependency factory for rate limiting.

    Usage:
        @router.post("/login")
        async def login(body: LoginRequest, _=Depends(rate_limit(10, 60))):
            ...
    """
    async def _check_rate_limit(request: Request, response: Response):
        client_ip = request.client.host if request.client else "unknown"
        route_path = request.url.path
        key = f"{client_ip}:{route_path}"

        allowed = _limiter.check(key, max_requests, window_seconds)
        remaining = _limiter.remaining(key, max_requests, window_seconds)
        headers = {
            "X-RateLimit-Limit": str(max_requests),
            "X-RateLimit-Remaining": str(remaining),
        }

        if not allowed:
            logger.warning(
                f"Rate limit exceeded: {client_ip} on {route_path} "
                f"({max_requests}/{window_seconds}s)"
            )
            raise RateLimitError(
                f"Rate limit exceeded. Maximum {max_requests} requests "
                f"per {window_seconds} seconds. Try again later.",
                details={"retryAfterSeconds": window_seconds, "limit": max_requests, "remaining": remaining},
                headers={**headers, "Retry-After": str(window_seconds)},
            )

        response.headers.update(headers)

    return _check_rate_limit
