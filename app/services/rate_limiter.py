"""Fixed-window rate limiter for public write endpoints."""

import math
import time
from dataclasses import dataclass
from typing import Callable, Optional
import logging

from fastapi import Depends, Request

from app.core.exceptions import RateLimitExceeded

logger = logging.getLogger(__name__)


@dataclass
class RateLimitResult:
    """Outcome of a rate limit check."""

    ok: bool
    remaining: int
    reset_at: float


@dataclass
class _Bucket:
    count: int
    reset_at: float


class FixedWindowRateLimiter:
    """In-process fixed-window request counter.

    Buckets are keyed by ``"<endpoint key>:<client identifier>"``. The first
    request opens a window; requests inside the window increment its count
    until ``limit`` is reached, after which they are rejected until the
    window expires.

    State lives in this process only: counts are lost on restart and are not
    shared between workers.
    """

    PRUNE_THRESHOLD = 10_000

    def __init__(self, clock: Optional[Callable[[], float]] = None) -> None:
        self._clock = clock or time.monotonic
        self._buckets: dict[str, _Bucket] = {}

    def check(
        self,
        key: str,
        identifier: str,
        limit: int,
        window_seconds: float,
    ) -> RateLimitResult:
        """Count one request against the bucket and report whether it may proceed.

        Args:
            key: Logical endpoint name, e.g. ``"reviews:post"``
            identifier: Client identifier (IP address by default)
            limit: Maximum requests per window
            window_seconds: Window length

        Returns:
            RateLimitResult with the remaining budget and window deadline
        """
        now = self._clock()
        bucket_key = f"{key}:{identifier}"
        current = self._buckets.get(bucket_key)

        if current is None or now > current.reset_at:
            if len(self._buckets) >= self.PRUNE_THRESHOLD:
                self.prune()
            reset_at = now + window_seconds
            self._buckets[bucket_key] = _Bucket(count=1, reset_at=reset_at)
            return RateLimitResult(ok=True, remaining=limit - 1, reset_at=reset_at)

        if current.count >= limit:
            return RateLimitResult(ok=False, remaining=0, reset_at=current.reset_at)

        current.count += 1
        return RateLimitResult(
            ok=True,
            remaining=max(0, limit - current.count),
            reset_at=current.reset_at,
        )

    def retry_after(self, result: RateLimitResult) -> int:
        """Whole seconds until the window resets (at least 1)."""
        return max(1, math.ceil(result.reset_at - self._clock()))

    def prune(self) -> int:
        """Drop expired buckets. Returns the number removed."""
        now = self._clock()
        expired = [k for k, b in self._buckets.items() if now > b.reset_at]
        for bucket_key in expired:
            del self._buckets[bucket_key]
        if expired:
            logger.debug(f"Pruned {len(expired)} expired rate limit buckets")
        return len(expired)

    def reset(self) -> None:
        """Forget all buckets."""
        self._buckets.clear()

    def __len__(self) -> int:
        return len(self._buckets)


# Singleton instance
rate_limiter = FixedWindowRateLimiter()


def get_rate_limiter() -> FixedWindowRateLimiter:
    """Dependency returning the process-wide limiter."""
    return rate_limiter


def client_identifier(request: Request) -> str:
    """Best-effort client IP, honouring common proxy headers."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "0.0.0.0"


def enforce_rate_limit(
    limiter: FixedWindowRateLimiter,
    request: Request,
    key: str,
    limit: int,
    window_seconds: float,
    message: str = "Too many requests. Please try again later.",
) -> RateLimitResult:
    """Check the limit for this request's client, raising when exhausted."""
    identifier = client_identifier(request)
    result = limiter.check(key, identifier, limit, window_seconds)
    if not result.ok:
        retry_after = limiter.retry_after(result)
        logger.warning(f"Rate limit hit for {key} from {identifier} (retry in {retry_after}s)")
        raise RateLimitExceeded(message, retry_after=retry_after)
    return result


def rate_limit(
    key: str,
    limit: int,
    window_seconds: float = 60,
    message: str = "Too many requests. Please try again later.",
) -> Callable:
    """Build a route dependency enforcing a fixed-window limit."""

    async def _dependency(
        request: Request,
        limiter: FixedWindowRateLimiter = Depends(get_rate_limiter),
    ) -> RateLimitResult:
        return enforce_rate_limit(limiter, request, key, limit, window_seconds, message)

    return _dependency
