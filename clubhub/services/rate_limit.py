"""Per-client request throttling, used on the code-sending endpoint."""
import logging

from fastapi import Request
from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter

from clubhub.errors import RateLimitError

logger = logging.getLogger(__name__)


class RateLimit:
    """FastAPI dependency enforcing e.g. "6/minute" per client IP for one named scope."""

    def __init__(self, scope: str, limit: str):
        self.scope = scope
        self.item = parse(limit)
        self._storage = MemoryStorage()
        self._limiter = MovingWindowRateLimiter(self._storage)

    def __call__(self, request: Request) -> None:
        client = request.client.host if request.client else "unknown"
        if not self._limiter.hit(self.item, self.scope, client):
            logger.warning("Rate limit %s exceeded on %s by %s", self.item, self.scope, client)
            raise RateLimitError()

    def reset(self) -> None:
        self._storage.reset()
