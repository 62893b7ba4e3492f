"""
Crudtastic: Route Handlers Package
==================================

    base.py:  GenericRouteHandler, ExistingResourceRouteHandler, outcomes
    crud.py:  the six CRUD variants and the HANDLERS table
"""

from crudtastic.handlers.base import (
    ExistingResourceRouteHandler,
    GenericRouteHandler,
    Outcome,
    Proceed,
    Terminal,
)
from crudtastic.handlers.crud import (
    HANDLERS,
    CreateRouteHandler,
    DestroyRouteHandler,
    ExistsRouteHandler,
    HandlerKind,
    IndexRouteHandler,
    ShowRouteHandler,
    UpdateRouteHandler,
)

__all__ = [
    "HANDLERS",
    "CreateRouteHandler",
    "DestroyRouteHandler",
    "ExistingResourceRouteHandler",
    "ExistsRouteHandler",
    "GenericRouteHandler",
    "HandlerKind",
    "IndexRouteHandler",
    "Outcome",
    "Proceed",
    "ShowRouteHandler",
    "Terminal",
    "UpdateRouteHandler",
]
