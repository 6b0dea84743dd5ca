"""Fixed-window, per-client request limits.

Policies are built once from settings when the app is created and are
immutable afterwards; only the per-client counters change.
"""
from dataclasses import dataclass
import logging
import math
import threading
import time

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from vaultbank.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitPolicy:
    name: str
    path_prefix: str
    limit: int
    window_seconds: int
    failed_only: bool = False
    message: str = "Too many requests, please try again later."


class RateLimiter:
    """In-memory counters for one policy."""

    def __init__(self, policy: RateLimitPolicy, clock=time.monotonic):
        self.policy = policy
        self._clock = clock
        self._windows: dict[str, tuple[float, int]] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def __len__(self) -> int:
        return len(self._windows)

    def applies_to(self, path: str) -> bool:
        return path.startswith(self.policy.path_prefix)

    def retry_after(self, key: str) -> int | None:
        """Seconds until ``key`` may retry, or None if it is under the limit."""
        now = self._clock()
        with self._lock:
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self.policy.window_seconds:
                self._windows.pop(key, None)
                return None
            if count < self.policy.limit:
                return None
            return max(1, math.ceil(self.policy.window_seconds - (now - started)))

    def record(self, key: str) -> None:
        now = self._clock()
        with self._lock:
            if now - self._last_sweep >= self.policy.window_seconds:
                self._sweep(now)
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self.policy.window_seconds:
                started, count = now, 0
            self._windows[key] = (started, count + 1)

    def _sweep(self, now: float) -> None:
        """Drop every window that has expired. Caller holds the lock."""
        window = self.policy.window_seconds
        self._windows = {
            key: entry for key, entry in self._windows.items() if now - entry[0] < window
        }
        self._last_sweep = now


def build_rate_limiters(settings: Settings) -> tuple[RateLimiter, ...]:
    """Most specific policy first."""
    policies = (
        RateLimitPolicy(
            name="login",
            path_prefix="/api/auth/login",
            limit=settings.login_rate_limit,
            window_seconds=settings.login_rate_window,
            failed_only=True,
            message="Too many login attempts. Please wait before trying again.",
        ),
        RateLimitPolicy(
            name="auth",
            path_prefix="/api/auth",
            limit=settings.auth_rate_limit,
            window_seconds=settings.auth_rate_window,
            failed_only=True,
            message="Too many authentication attempts, please try again later.",
        ),
        RateLimitPolicy(
            name="general",
            path_prefix="/api",
            limit=settings.general_rate_limit,
            window_seconds=settings.general_rate_window,
        ),
    )
    return tuple(RateLimiter(policy) for policy in policies)


def get_request_ip(request: Request) -> str | None:
    """Extract best-effort client IP."""
    xff = request.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None


def get_client_key(request: Request, trusted_proxy_hops: int = 0) -> str:
    """Address to count requests against.

    The rightmost ``trusted_proxy_hops`` X-Forwarded-For entries were appended
    by our own proxies, the leftmost of them being the peer the outermost proxy
    saw. Anything further left is client supplied and ignored.
    """
    peer = request.client.host if request.client else "unknown"
    if trusted_proxy_hops <= 0:
        return peer

    hops = [hop.strip() for hop in request.headers.get("x-forwarded-for", "").split(",") if hop.strip()]
    if len(hops) < trusted_proxy_hops:
        return peer
    return hops[-trusted_proxy_hops]


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests over any applicable limit with 429."""

    def __init__(self, app, limiters: tuple[RateLimiter, ...], trusted_proxy_hops: int = 0):
        super().__init__(app)
        self.limiters = limiters
        self.trusted_proxy_hops = trusted_proxy_hops

    async def dispatch(self, request: Request, call_next):
        key = get_client_key(request, self.trusted_proxy_hops)
        applicable = [limiter for limiter in self.limiters if limiter.applies_to(request.url.path)]

        for limiter in applicable:
            retry_after = limiter.retry_after(key)
            if retry_after is not None:
                logger.warning(f"Rate limit '{limiter.policy.name}' exceeded by {key}")
                return JSONResponse(
                    status_code=429,
                    content={"detail": limiter.policy.message, "retry_after": retry_after},
                    headers={"Retry-After": str(retry_after)},
                )

        response = await call_next(request)

        for limiter in applicable:
            if not limiter.policy.failed_only or response.status_code >= 400:
                limiter.record(key)
        return response
