"""
Crudtastic: Resource Router
===========================

What:  Mounts the six CRUD handlers of one RestfulResource on FastAPI.
How:   Each endpoint collects the request params, builds the handler
       variant from HANDLERS with the per-request collaborators, and runs
       it through the dispatcher.

Routes (for a table `books`):
    GET    /books         → index
    POST   /books         → create    (JSON object body)
    GET    /books/{id}    → show
    HEAD   /books/{id}    → exists
    PUT    /books/{id}    → update    (partial merge, path id wins)
    PATCH  /books/{id}    → update
    DELETE /books/{id}    → destroy

Collaborators injected into every handler:
    context    request.state.context  (RequestContextMiddleware)
    responses  a fresh ResponseBuilder
    model      the resource's TableModel
    log        request.state.log      (RequestLogger)
    url_for    resolves `<table>.show` for a record via request.url_for
"""

import logging
from typing import Any, Callable, Dict, Mapping

from fastapi import APIRouter, Body, FastAPI, Request
from sqlalchemy.exc import SQLAlchemyError
from starlette.responses import Response

from crudtastic.context import RequestContext
from crudtastic.dispatch import dispatch
from crudtastic.exceptions import DatabaseError
from crudtastic.handlers import HANDLERS, HandlerKind
from crudtastic.logger import RequestLogger
from crudtastic.responses import ResponseBuilder
from crudtastic.routes.resource import RestfulResource
from crudtastic.schemas.responses import ErrorResponse

logger = logging.getLogger(__name__)

_ERROR_RESPONSES = {
    400: {"description": "Invalid payload", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
}


class ResourceRouter:
    def __init__(self, resource: RestfulResource):
        self.resource = resource
        self.router = APIRouter(prefix=resource.path, tags=[resource.table_name])
        self._register_routes()

    @property
    def table_name(self) -> str:
        return self.resource.table_name

    def attach(self, app: FastAPI) -> None:
        app.include_router(self.router)
        logger.debug("Mounted %s", self.resource.path)

    async def verify_db(self) -> int:
        """Row count of the table; proves the table is reachable at startup."""
        try:
            return await self.resource.model.count()
        except SQLAlchemyError as exc:
            raise DatabaseError(
                message=f"Could not query table '{self.table_name}'",
                context={"table": self.table_name, "error": str(exc)},
            ) from exc

    # ── Request execution ─────────────────────────────────────────────────

    async def run(self, kind: HandlerKind, request: Request, params: Mapping[str, Any]) -> Response:
        context = getattr(request.state, "context", None) or RequestContext(
            request_id=getattr(request.state, "request_id", "")
        )
        log = getattr(request.state, "log", None) or RequestLogger(context.request_id)

        handler = HANDLERS[kind](
            context=context,
            responses=ResponseBuilder(),
            model=self.resource.model,
            log=log,
            url_for=self._url_builder(request),
        )
        model = self.resource.model
        result = await dispatch(handler, params, model.database.transaction)
        return result.to_response()

    def _url_builder(self, request: Request) -> Callable[[Any], str]:
        show_route = self.resource.route_name(HandlerKind.SHOW.value)

        def url_for(record: Any) -> str:
            return str(request.url_for(show_route, id=str(record.id)))

        return url_for

    # ── Route table ───────────────────────────────────────────────────────

    def _register_routes(self) -> None:
        run = self.run

        async def index(request: Request) -> Response:
            return await run(HandlerKind.INDEX, request, {})

        async def create(request: Request, payload: Dict[str, Any] = Body(...)) -> Response:
            return await run(HandlerKind.CREATE, request, payload)

        async def show(request: Request, id: str) -> Response:
            return await run(HandlerKind.SHOW, request, {"id": id})

        async def exists(request: Request, id: str) -> Response:
            return await run(HandlerKind.EXISTS, request, {"id": id})

        async def update(
            request: Request, id: str, payload: Dict[str, Any] = Body(...)
        ) -> Response:
            return await run(HandlerKind.UPDATE, request, {**payload, "id": id})

        async def destroy(request: Request, id: str) -> Response:
            return await run(HandlerKind.DESTROY, request, {"id": id})

        table = self.table_name
        routes = [
            ("", index, ["GET"], HandlerKind.INDEX, f"List all {table}"),
            ("", create, ["POST"], HandlerKind.CREATE, f"Create a {table} row"),
            ("/{id}", show, ["GET"], HandlerKind.SHOW, f"Get one {table} row"),
            ("/{id}", exists, ["HEAD"], HandlerKind.EXISTS, f"Check a {table} row exists"),
            ("/{id}", update, ["PUT", "PATCH"], HandlerKind.UPDATE, f"Update a {table} row"),
            ("/{id}", destroy, ["DELETE"], HandlerKind.DESTROY, f"Delete a {table} row"),
        ]
        for path, endpoint, methods, kind, summary in routes:
            self.router.add_api_route(
                path,
                endpoint,
                methods=methods,
                name=self.resource.route_name(kind.value),
                summary=summary,
                response_model=None,
                responses=_ERROR_RESPONSES,
            )
