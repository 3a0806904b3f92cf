"""
HTTP middleware: security headers, access logging and a per-client fixed-window rate limit.
Counters are process-local; run a shared limiter (e.g. at the proxy) for multi-worker deployments.
"""
import logging
import threading
import time

from fastapi import Request

from school_api.api.responses import send_error
from school_api.config import settings

access_logger = logging.getLogger("school_api.access")

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "X-DNS-Prefetch-Control": "off",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
}
HSTS = "max-age=15552000; includeSubDomains"


class FixedWindowRateLimiter:
    """Counts requests per key in fixed windows. Thread-safe."""

    def __init__(self, window_seconds: float = 60.0):
        self.window_seconds = window_seconds
        self._windows: dict[str, tuple[float, int]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str, limit: int, now: float | None = None) -> bool:
        """Record one request for key; False once the key is over `limit` in the current window."""
        now = time.monotonic() if now is None else now
        with self._lock:
            start, count = self._windows.get(key, (now, 0))
            if now - start >= self.window_seconds:
                start, count = now, 0
            count += 1
            self._windows[key] = (start, count)
            if len(self._windows) > 10_000:
                self._prune(now)
            return count <= limit

    def _prune(self, now: float) -> None:
        expired = [k for k, (start, _) in self._windows.items() if now - start >= self.window_seconds]
        for k in expired:
            del self._windows[k]

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


rate_limiter = FixedWindowRateLimiter()


def _client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


async def rate_limit(request: Request, call_next):
    limit = settings.rate_limit_per_minute
    if limit > 0 and request.method != "OPTIONS" and not rate_limiter.hit(_client_key(request), limit):
        access_logger.warning("Rate limit exceeded for %s", _client_key(request))
        return send_error("Too many requests, please try again later.", status_code=429)
    return await call_next(request)


async def security_headers(request: Request, call_next):
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    if settings.is_production:
        response.headers.setdefault("Strict-Transport-Security", HSTS)
    return response


async def access_log(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    access_logger.info(
        '%s "%s %s" %s %.1fms',
        _client_key(request), request.method, request.url.path, response.status_code, elapsed_ms,
    )
    return response
