"""
HTTP middleware: request logging, security headers, and rate limiting.
"""

import time
from typing import Dict, List

import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from api.models import ErrorResponse

logger = structlog.get_logger(__name__)

DOCS_CSP = (
    "default-src * 'unsafe-inline' 'unsafe-eval' data: blob:; "
    "script-src * 'unsafe-inline' 'unsafe-eval'; "
    "style-src * 'unsafe-inline'; "
    "img-src * data: blob:; "
    "font-src * data:; "
    "connect-src *; "
    "frame-src *;"
)


def client_key(request: Request) -> str:
    """Identify the caller by remote address."""
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs one event per request with its status and duration."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000

        logger.info(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
            client=client_key(request),
        )
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds basic security headers; loosens CSP for the Swagger UI."""

    def __init__(self, app, docs_path: str = "/api-docs"):
        super().__init__(app)
        self.docs_path = docs_path

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "SAMEORIGIN"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        if request.url.path.startswith(self.docs_path):
            response.headers["Content-Security-Policy"] = DOCS_CSP
        return response


class RateLimiter:
    """Sliding-window request counter per client."""

    def __init__(self, max_requests: int = 100, window_seconds: int = 900):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.requests: Dict[str, List[float]] = {}

    def _prune(self, key: str, now: float) -> List[float]:
        recent = [
            req_time for req_time in self.requests.get(key, [])
            if now - req_time < self.window_seconds
        ]
        if recent:
            self.requests[key] = recent
        else:
            self.requests.pop(key, None)
        return recent

    def check_rate_limit(self, key: str) -> bool:
        """
        Record a request for `key` if it is within the limit.

        Returns:
            True if within limit, False if exceeded
        """
        now = time.time()
        recent = self._prune(key, now)
        if len(recent) < self.max_requests:
            self.requests[key] = recent + [now]
            return True
        return False

    def get_rate_limit_info(self, key: str) -> Dict[str, float]:
        """Usage for `key` in the current window."""
        now = time.time()
        recent = self._prune(key, now)
        reset_time = (recent[0] if recent else now) + self.window_seconds
        return {
            "requests_used": len(recent),
            "requests_remaining": max(0, self.max_requests - len(recent)),
            "rate_limit": self.max_requests,
            "reset_time": reset_time,
        }

    def headers(self, key: str) -> Dict[str, str]:
        """Rate limit headers for a response."""
        info = self.get_rate_limit_info(key)
        return {
            "X-RateLimit-Limit": str(info["rate_limit"]),
            "X-RateLimit-Remaining": str(info["requests_remaining"]),
            "X-RateLimit-Reset": str(int(info["reset_time"])),
        }


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rejects callers over their request budget with 429."""

    def __init__(self, app, limiter: RateLimiter):
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(self, request: Request, call_next):
        key = client_key(request)

        if not self.limiter.check_rate_limit(key):
            logger.warning("Rate limit exceeded", client=key, path=request.url.path)
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content=ErrorResponse(
                    error="Too many requests, please try again later.",
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                ).model_dump(exclude_none=True),
                headers=self.limiter.headers(key),
            )

        response = await call_next(request)
        response.headers.update(self.limiter.headers(key))
        return response
