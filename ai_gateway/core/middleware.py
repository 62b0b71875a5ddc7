from __future__ import annotations

import time
from collections import deque
from typing import Deque
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from loguru import logger

from ai_gateway.core.settings import settings
from ai_gateway.utils.request_context import request_id_var


def _client_ip(request: Request) -> str:
    # X-Forwarded-For is client-controlled; only honor it behind a trusted proxy.
    if settings.TRUST_PROXY_HEADERS:
        xff = request.headers.get("x-forwarded-for")
        if xff:
            return xff.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _keys(s: str | None) -> set[str]:
    if not s:
        return set()
    # Support comma-separated lists.
    return {p.strip() for p in str(s).split(",") if p.strip()}


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        req_id = request.headers.get("x-request-id") or str(uuid4())
        request.state.request_id = req_id
        token = request_id_var.set(req_id)
        try:
            resp = await call_next(request)
            resp.headers["x-request-id"] = req_id
            return resp
        finally:
            request_id_var.reset(token)


class ApiKeyAuthMiddleware(BaseHTTPMiddleware):
    """Optional x-api-key check for /api/*.

    Writes under /api/controls need the admin key (API_KEY_ADMIN, falling back to API_KEY).
    Root and health endpoints stay open for load balancers.
    """

    async def dispatch(self, request: Request, call_next):
        if not settings.REQUIRE_API_KEY:
            return await call_next(request)

        user_keys = _keys(settings.API_KEY)
        admin_keys = _keys(settings.API_KEY_ADMIN) or user_keys
        if not user_keys and not admin_keys:
            # Misconfigured; fail closed.
            return JSONResponse(status_code=500, content={"error": "REQUIRE_API_KEY=true but no API key configured"})

        path = request.url.path
        # CORS preflights never carry x-api-key.
        if not path.startswith("/api/") or request.method.upper() == "OPTIONS":
            return await call_next(request)

        is_write = request.method.upper() in {"POST", "PUT", "PATCH", "DELETE"}
        expected = user_keys | admin_keys
        if path.startswith("/api/controls") and is_write:
            expected = admin_keys

        key = request.headers.get("x-api-key")
        if not key or key not in expected:
            return JSONResponse(status_code=401, content={"error": "invalid api key"})
        return await call_next(request)


class RateLimitMiddleware(BaseHTTPMiddleware):
    WINDOW_SECONDS = 60.0

    def __init__(self, app):
        super().__init__(app)
        self._hits: dict[str, Deque[float]] = {}
        self._last_sweep = 0.0

    def _sweep(self, cutoff: float) -> None:
        # Drop clients with no hits left in the window so the map stays bounded.
        for ip in list(self._hits):
            q = self._hits[ip]
            while q and q[0] < cutoff:
                q.popleft()
            if not q:
                del self._hits[ip]

    async def dispatch(self, request: Request, call_next):
        if not settings.RATE_LIMIT_ENABLED or not request.url.path.startswith("/api/"):
            return await call_next(request)

        ip = _client_ip(request)
        now = time.time()
        limit = max(1, int(settings.RATE_LIMIT_PER_MINUTE))
        cutoff = now - self.WINDOW_SECONDS

        if now - self._last_sweep >= self.WINDOW_SECONDS:
            self._sweep(cutoff)
            self._last_sweep = now

        q = self._hits.setdefault(ip, deque())

        # Evict old timestamps.
        while q and q[0] < cutoff:
            q.popleft()

        if len(q) >= limit:
            return JSONResponse(status_code=429, content={"error": "rate limit exceeded"})

        q.append(now)
        return await call_next(request)


class PerformanceLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        if not getattr(settings, "PERF_LOG_ENABLED", True):
            return await call_next(request)

        t0 = time.perf_counter()
        status_code: int | str = "?"
        try:
            resp = await call_next(request)
            status_code = int(getattr(resp, "status_code", 0) or 0)
            return resp
        finally:
            dt_ms = (time.perf_counter() - t0) * 1000.0
            rid = getattr(request.state, "request_id", None) or request.headers.get("x-request-id") or "-"
            slow_ms = int(getattr(settings, "PERF_LOG_SLOW_MS", 250) or 250)
            lvl = "WARNING" if dt_ms >= float(slow_ms) else "INFO"
            # The request-id ContextVar is already reset out here; bind it explicitly.
            logger.bind(request_id=rid).log(
                lvl,
                "HTTP {method} {path} -> {status} ({ms:.1f}ms)",
                method=request.method.upper(),
                path=request.url.path,
                status=status_code,
                ms=dt_ms,
            )
