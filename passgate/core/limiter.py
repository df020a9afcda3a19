# passgate/core/limiter.py
"""
Rate limiter configuration module.
Separated to avoid circular imports.

Routes are limited per authenticated admin (falling back to client IP).
CSV exports get an extra, stricter moving-window check on top of the
dashboard route limit.
"""

import time

from fastapi import Request
from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter
from slowapi import Limiter
from slowapi.util import get_remote_address

from passgate.core.config import settings
from passgate.core.exceptions import RateLimitError


def admin_or_remote_address(request: Request) -> str:
    admin_id = getattr(request.state, "admin_id", None)
    return f"admin:{admin_id}" if admin_id else get_remote_address(request)


limiter = Limiter(key_func=admin_or_remote_address, enabled=settings.RATE_LIMITS_ENABLED)


class CategoryRateLimiter:
    """Moving-window limiter for one named category (e.g. CSV export)."""

    def __init__(self, category: str, rate: str, enabled: bool = True):
        self.category = category
        self.item = parse(rate)
        self.enabled = enabled
        self._limiter = MovingWindowRateLimiter(MemoryStorage())

    def check(self, key: str) -> None:
        """Record one hit for key; raise RateLimitError when over the limit."""
        if not self.enabled:
            return
        if self._limiter.hit(self.item, self.category, key):
            return
        reset_time = self._limiter.get_window_stats(self.item, self.category, key)[0]
        retry_after = max(1, int(reset_time - time.time()))
        raise RateLimitError(
            f"Too many {self.category} requests. Please slow down.", retry_after=retry_after
        )

    def reset(self) -> None:
        self._limiter = MovingWindowRateLimiter(MemoryStorage())


export_limiter = CategoryRateLimiter("export", settings.RATE_LIMIT_EXPORT, enabled=settings.RATE_LIMITS_ENABLED)
