"""
Crudtastic: Request Context Middleware
======================================

What:  Gives every request a fresh RequestContext and a RequestLogger.
Who:   Resource routers read both from request.state when they build a
       route handler.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from crudtastic.context import RequestContext
from crudtastic.logger import RequestLogger
from crudtastic.middleware.request_id import request_id_var


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = getattr(request.state, "request_id", None) or request_id_var.get("")
        request.state.context = RequestContext(request_id=rid)
        request.state.log = RequestLogger(rid)
        return await call_next(request)
