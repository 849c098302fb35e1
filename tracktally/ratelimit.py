"""
Fixed-window request limiter backed by a Django cache.

Each key owns a bucket ``{"count", "expires_at"}``. The first hit opens a
window; hits inside the window increment the counter until it reaches the
limit; once the window expires the next hit opens a fresh one. Buckets are
stored with a cache timeout equal to the remaining window so they evict
themselves.

With the default locmem cache the buckets are per process, so limits are
enforced per gunicorn worker. Point ``RATELIMIT_USE_CACHE`` at a shared
cache to enforce them across instances.
"""
import math
import time
from dataclasses import dataclass

from django.conf import settings
from django.core.cache import caches


@dataclass(frozen=True)
class RateLimitResult:
    limited: bool
    remaining: int
    reset: float  # epoch seconds at which the window closes
    retry_after_seconds: int = 0


class RateLimiter:
    """Fixed-window counter over an injectable cache store."""

    key_prefix = "tt-rl:"

    def __init__(self, cache=None, clock=time.time):
        self._cache = cache
        self.clock = clock

    @property
    def cache(self):
        if self._cache is None:
            return caches[getattr(settings, "RATELIMIT_USE_CACHE", "default")]
        return self._cache

    def hit(self, key, limit, window_seconds):
        now = self.clock()
        cache_key = self.key_prefix + key
        bucket = self.cache.get(cache_key)

        if bucket is None or bucket["expires_at"] <= now:
            expires_at = now + window_seconds
            self.cache.set(cache_key, {"count": 1, "expires_at": expires_at}, timeout=window_seconds)
            return RateLimitResult(limited=False, remaining=limit - 1, reset=expires_at)

        if bucket["count"] >= limit:
            return RateLimitResult(
                limited=True,
                remaining=0,
                reset=bucket["expires_at"],
                retry_after_seconds=math.ceil(bucket["expires_at"] - now),
            )

        bucket["count"] += 1
        ttl = max(math.ceil(bucket["expires_at"] - now), 1)
        self.cache.set(cache_key, bucket, timeout=ttl)
        return RateLimitResult(
            limited=False,
            remaining=limit - bucket["count"],
            reset=bucket["expires_at"],
        )

    def reset(self, key):
        self.cache.delete(self.key_prefix + key)


def get_policy(scope):
    """``(limit, window_seconds)`` for a named policy in ``RATE_LIMITS``."""
    policy = settings.RATE_LIMITS[scope]
    return policy["limit"], policy["window"]


def build_rate_limit_headers(limit, result):
    headers = {
        "X-RateLimit-Limit": str(limit),
        "X-RateLimit-Remaining": str(max(result.remaining, 0)),
        "X-RateLimit-Reset": str(math.ceil(result.reset)),
    }
    if result.limited:
        headers["Retry-After"] = str(result.retry_after_seconds)
    return headers


limiter = RateLimiter()
