import logging
import threading

from cachetools import TTLCache
from fastapi import Request

from kinnected.errors import RateLimitError

logger = logging.getLogger(__name__)


class RateLimiter:
    """Fixed-window request counter keyed by client IP.

    The counter for an IP is created on its first request in a window and
    expires with the window; it is mutated in place so later hits do not
    push the expiry back.
    """

    def __init__(self, max_requests: int, window_seconds: int, message: str, maxsize: int = 10000):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.message = message
        self._hits = TTLCache(maxsize=maxsize, ttl=window_seconds)
        self._lock = threading.Lock()

    def hit(self, key: str) -> bool:
        with self._lock:
            counter = self._hits.get(key)
            if counter is None:
                self._hits[key] = [1]
                return True
            counter[0] += 1
            return counter[0] <= self.max_requests


def build_rate_limiters(settings) -> dict:
    if not settings.RATE_LIMIT_ENABLED:
        return {}

    return {
        "api": RateLimiter(
            settings.API_RATE_LIMIT,
            settings.API_RATE_WINDOW_SECONDS,
            "Too many requests from this IP, please try again later",
        ),
        "auth": RateLimiter(
            settings.AUTH_RATE_LIMIT,
            settings.AUTH_RATE_WINDOW_SECONDS,
            "Too many attempts, please try again later",
        ),
        "ai": RateLimiter(
            settings.AI_RATE_LIMIT,
            settings.AI_RATE_WINDOW_SECONDS,
            "AI query limit reached, please try again later",
        ),
    }


def rate_limit(name: str):
    """Router dependency enforcing the limiter registered under ``name``."""

    def dependency(request: Request) -> None:
        limiter = request.app.state.rate_limiters.get(name)
        if limiter is None:
            return

        client_ip = request.client.host if request.client else "unknown"
        if not limiter.hit(client_ip):
            logger.warning("Rate limit '%s' exceeded for %s", name, client_ip)
            raise RateLimitError(limiter.message)

    return dependency
