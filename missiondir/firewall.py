# missiondir/firewall.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

log = logging.getLogger("missiondir.firewall")


@dataclass(frozen=True)
class FilterConfig:
    enabled: bool = True
    max_body_bytes: int = 8 * 1024
    deny_ips: frozenset[str] = field(default_factory=frozenset)
    public_paths: tuple[str, ...] = ("/health", "/metrics")
    header_gate: str = "x-md-filter"

    @classmethod
    def from_settings(cls, settings) -> "FilterConfig":
        return cls(
            enabled=settings.filter_enabled,
            max_body_bytes=settings.filter_max_body_bytes,
            deny_ips=settings.filter_deny_ips,
        )


def _is_public(path: str, config: FilterConfig) -> bool:
    for p in config.public_paths:
        if path == p or path.startswith(p.rstrip("/") + "/"):
            return True
    return False


def _client_ip(request: Request) -> str:
    xfwd = request.headers.get("x-forwarded-for")
    if xfwd:
        return xfwd.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RequestFilterMiddleware(BaseHTTPMiddleware):
    """
    Traffic filter in front of both API surfaces.
    Only drops traffic; authentication belongs to dependencies.
    """

    def __init__(self, app, config: FilterConfig | None = None):
        super().__init__(app)
        self.config = config or FilterConfig()

    def _stamp(self, resp: Response, gate: str) -> Response:
        resp.headers[self.config.header_gate] = gate
        return resp

    def _block(self, status_code: int, detail: str, reason: str, request: Request) -> Response:
        log.warning("blocked request path=%s reason=%s", request.url.path, reason)
        resp = JSONResponse({"detail": detail, "filter": "blocked"}, status_code=status_code)
        return self._stamp(resp, "blocked")

    async def dispatch(self, request: Request, call_next):
        if not self.config.enabled or _is_public(request.url.path, self.config):
            return await call_next(request)

        if _client_ip(request) in self.config.deny_ips:
            return self._block(403, "Request blocked", "deny_ip", request)

        declared = request.headers.get("content-length")
        if declared is not None:
            try:
                too_big = int(declared) > self.config.max_body_bytes
            except ValueError:
                return self._block(400, "Malformed Content-Length", "bad_length", request)
            if too_big:
                return self._block(413, "Request body too large", "body_size", request)
        elif not await self._read_bounded(request):
            return self._block(413, "Request body too large", "body_size", request)

        resp = await call_next(request)
        return self._stamp(resp, "passed")

    async def _read_bounded(self, request: Request) -> bool:
        """
        Read an undeclared (chunked) body, giving up past the limit.
        False means the body is too large.
        """
        chunks: list[bytes] = []
        size = 0
        async for chunk in request.stream():
            size += len(chunk)
            if size > self.config.max_body_bytes:
                return False
            chunks.append(chunk)
        # same cache Request.body() fills; call_next replays it downstream
        request._body = b"".join(chunks)
        return True
