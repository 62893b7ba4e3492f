"""
Crudtastic: Health Check Routes
===============================

What:  `GET /` answers 200 with an empty body (liveness); `GET /health`
       probes the database and lists the mounted resources.
How:   The Server stores its Database and mounted routers on app.state; the
       health check runs SELECT 1 through Database.ping().

Status levels:
    healthy:   database reachable (HTTP 200)
    unhealthy: database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.responses import Response

from crudtastic import __version__
from crudtastic.schemas.responses import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/", summary="Liveness probe", response_model=None)
async def root() -> Response:
    return Response(status_code=200)


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(request: Request) -> JSONResponse:
    """Probe the database and report mounted resources."""
    state = request.app.state
    db_status = "connected"
    overall = "healthy"

    try:
        await state.database.ping()
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    body = HealthResponse(
        status=overall,
        version=__version__,
        application=state.settings.application_name,
        database=db_status,
        resources={r.table_name: r.resource.path for r in getattr(state, "routers", [])},
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    return JSONResponse(
        status_code=200 if overall == "healthy" else 503,
        content=body.model_dump(),
    )
