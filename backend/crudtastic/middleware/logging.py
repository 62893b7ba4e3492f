"""
Crudtastic: Request Logging Middleware
======================================

What:  One access log line per request: method, path, status, duration,
       handler label, request ID and client IP.
How:   When LOG_BODY is on (the development default) the request and
       response bodies are logged too, truncated to `max_body_chars`.

Log level by status:
    5xx → ERROR, 4xx → WARNING, otherwise INFO
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from crudtastic.middleware.request_id import request_id_var

logger = logging.getLogger("crudtastic.access")

SKIPPED_PATHS = {"/health"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, log_body: bool = False, max_body_chars: int = 2000, **kwargs):
        super().__init__(app, **kwargs)
        self.log_body = log_body
        self.max_body_chars = max_body_chars

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()

        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        method = request.method
        path = request.url.path
        rid = request_id_var.get("")

        if path in SKIPPED_PATHS:
            return await call_next(request)

        if self.log_body:
            request_body = await request.body()
            if request_body:
                logger.debug("[%s] Request body: %s", rid, self._truncate(request_body))

        response = await call_next(request)

        if self.log_body:
            response = await self._log_response_body(response, rid)

        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        context = getattr(request.state, "context", None)
        handler_name = context.handler_name if context is not None else None

        logger.log(
            log_level,
            "%s %s %d %.1fms %s[%s] from %s",
            method,
            path,
            status,
            duration_ms,
            f"({handler_name}) " if handler_name else "",
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "handler": handler_name,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )

        return response

    async def _log_response_body(self, response: Response, rid: str) -> Response:
        """Drain the streamed body for logging and hand back an equivalent Response."""
        chunks = [
            chunk if isinstance(chunk, bytes) else chunk.encode("utf-8")
            async for chunk in response.body_iterator
        ]
        body = b"".join(chunks)
        if body:
            logger.debug("[%s] Response body: %s", rid, self._truncate(body))
        return Response(
            content=body,
            status_code=response.status_code,
            headers=dict(response.headers),
            media_type=response.media_type,
            background=response.background,
        )

    def _truncate(self, body: bytes) -> str:
        text = body.decode("utf-8", errors="replace")
        if len(text) > self.max_body_chars:
            return text[: self.max_body_chars] + "…"
        return text
