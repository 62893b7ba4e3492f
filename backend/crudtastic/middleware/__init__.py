"""
Crudtastic: Middleware Package
==============================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Request ID] → [Request Context] → [GZip] → [Logging] → Route

    1. Request ID: correlation ID for logs and the X-Request-ID header
    2. Request Context: per-request RequestContext and RequestLogger
    3. GZip: FastAPI's GZipMiddleware
    4. Logging: access log line, plus bodies when LOG_BODY is on

    Starlette runs middleware in reverse order of registration, so the
    Server adds them from the innermost (Logging) to the outermost (Request ID).
"""
