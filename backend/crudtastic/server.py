"""
Crudtastic: Server
==================

What:  Assembles the FastAPI application around a database and serves it.
How:   Server(settings) validates config, builds the Database, middleware
       chain and exception handlers. map_resources() reflects the schema and
       mounts one ResourceRouter per table; the startup lifespan does that and
       listen() runs uvicorn.

Application Layout:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │  Middleware:  RequestID → Context → GZip → Logging       │
    │  Routes:      GET /   GET /health   /<table>[/{id}] ...  │
    │  Errors:      Validation→400  NotFound→404  other→500    │
    └──────────────────────────────────────────────────────────┘

Example:
    server = Server(database_url="postgresql+asyncpg://localhost/shop")
    server.use(MyMiddleware)
    server.listen()
"""

import asyncio
import json
import logging
import traceback
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from crudtastic import __version__
from crudtastic.config import Settings
from crudtastic.database import Database
from crudtastic.exceptions import (
    ConfigurationError,
    CrudtasticError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from crudtastic.introspection import Schema
from crudtastic.logger import colorize, setup_logging, tag_message
from crudtastic.middleware.logging import RequestLoggingMiddleware
from crudtastic.middleware.request_context import RequestContextMiddleware
from crudtastic.middleware.request_id import RequestIDMiddleware, request_id_var
from crudtastic.routes import health
from crudtastic.routes.resource import RestfulResource
from crudtastic.routes.resource_router import ResourceRouter
from crudtastic.schemas.responses import ErrorResponse

logger = logging.getLogger(__name__)


class Server:
    """
    One API server bound to one database.

    Args:
        settings:   Full Settings object; read from the environment when omitted
        database:   Pre-built Database (tests inject one bound to SQLite)
        **overrides: Individual settings merged over `settings`
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        database: Optional[Database] = None,
        **overrides: Any,
    ):
        if settings is None:
            settings = Settings(**overrides)
        elif overrides:
            settings = settings.model_copy(update=overrides)

        if not settings.database_url:
            raise ConfigurationError(
                "No database_url provided (set DATABASE_URL)",
                context=settings.model_dump(exclude={"database_url"}),
            )

        self.settings = settings
        setup_logging(settings.log_level)

        self.database = database or Database.from_settings(settings)
        self.schema = Schema(
            self.database,
            schema=settings.db_schema,
            exclude=settings.exclude_tables_list,
        )
        self.routers: List[ResourceRouter] = []
        self._mapped = False

        self.app = FastAPI(
            title=settings.application_name,
            description="REST API generated from the database schema by crudtastic.",
            version=__version__,
            lifespan=self.lifespan,
        )
        self.app.state.settings = settings
        self.app.state.database = self.database
        self.app.state.routers = self.routers

        self.configure_middleware()
        register_exception_handlers(self.app, settings)
        self.app.include_router(health.router)

        logger.info(tag_message(colorize(settings.application_name, "white")))

    # ── Wiring ────────────────────────────────────────────────────────────

    def configure_middleware(self) -> None:
        # Added innermost first; Starlette runs the last added first.
        # GZip sits outside the body logger so logged bodies are plain text.
        self.app.add_middleware(RequestLoggingMiddleware, log_body=self.settings.log_body)
        self.app.add_middleware(GZipMiddleware, minimum_size=500)
        self.app.add_middleware(RequestContextMiddleware)
        self.app.add_middleware(RequestIDMiddleware)

    def use(self, middleware_class: type, **options: Any) -> None:
        """Add custom middleware; call before listen()."""
        self.app.add_middleware(middleware_class, **options)

    async def map_resources(self) -> List[Dict[str, int]]:
        """
        Reflect the schema and mount a router per table.

        Returns one `{table: row_count}` dict per mounted table. Calling it
        again returns fresh counts without mounting anything twice.
        """
        if not self._mapped:
            tables = await self.schema.introspect()
            for table in tables:
                router = ResourceRouter(RestfulResource(table, self.database))
                router.attach(self.app)
                self.routers.append(router)
            self._mapped = True

        counts = await asyncio.gather(*(r.verify_db() for r in self.routers))
        return [{r.table_name: count} for r, count in zip(self.routers, counts)]

    # ── Lifecycle ─────────────────────────────────────────────────────────

    @asynccontextmanager
    async def lifespan(self, app: FastAPI) -> AsyncGenerator[None, None]:
        counts = await self.map_resources()
        logger.debug("table counts:")
        for count in counts:
            logger.debug(json.dumps(count))
        logger.info(tag_message(colorize("READY!", "green")))

        yield

        logger.info(tag_message("shutting down..."))
        await self.database.dispose()
        logger.info(tag_message("shutdown complete."))

    async def serve(self) -> None:
        """Run uvicorn; resources are mapped by the lifespan at startup."""
        port = self.settings.port
        logger.info(tag_message(f"👂 listening on port {colorize(str(port), 'cyan')}"))
        config = uvicorn.Config(
            self.app,
            host=self.settings.host,
            port=port,
            log_level=self.settings.log_level.lower(),
            log_config=None,
        )
        await uvicorn.Server(config).serve()

    def listen(self) -> None:
        asyncio.run(self.serve())


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[dict] = None,
    trace: Optional[str] = None,
) -> JSONResponse:
    body = ErrorResponse(
        error=error,
        message=message,
        details=details or None,
        request_id=request_id_var.get("") or None,
        traceback=trace,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """
    Map exceptions escaping the dispatcher to JSON error responses.

    Handler hierarchy:
        ValidationError   → 400
        NotFoundError     → 404 (only outside the handler gate, e.g. custom routes)
        DatabaseError     → 500, generic message
        CrudtasticError   → 500
        Exception         → 500, traceback in body when STACK_TRACE_500 is on
    """

    def _trace(exc: Exception) -> Optional[str]:
        if not settings.stack_trace_500:
            return None
        return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error_response(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, "not_found", exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context
        )
        return _error_response(
            500,
            "server_error",
            "An internal error occurred. Please try again later.",
            trace=_trace(exc),
        )

    @app.exception_handler(CrudtasticError)
    async def handle_app_error(request: Request, exc: CrudtasticError):
        logger.error("[%s] %s: %s", request_id_var.get(""), type(exc).__name__, exc.message)
        return _error_response(500, "server_error", exc.message, trace=_trace(exc))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=exc)
        return _error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred.",
            trace=_trace(exc),
        )
