"""
Crudtastic: Route Handler Contract
==================================

What:  The lifecycle every CRUD route handler follows.
How:   A handler is built per request with its collaborators, then driven by
       the dispatcher in two steps:

           outcome = await handler.process_params(params, transaction)
           if outcome is Terminal  → respond with outcome.response
           else                    → respond with await handler.handle(outcome, transaction)

       `process_params` never hides state on the handler: whatever `handle`
       needs (the processed params, a loaded record) travels in the returned
       `Proceed`. The transaction handle is passed explicitly to both steps.

Static declarations per variant:
    name                  Route label ("index", "show", ...)
    requires_transaction  Dispatcher opens a transaction before process_params
    requires_resource     process_params loads the record named by params["id"]
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Union

from sqlalchemy.ext.asyncio import AsyncConnection

from crudtastic.context import RequestContext
from crudtastic.exceptions import HandlerNotImplementedError
from crudtastic.models.table_model import TableModel
from crudtastic.responses import ResponseBuilder

LogFn = Callable[..., None]
UrlForFn = Callable[[Any], str]


@dataclass(frozen=True)
class Proceed:
    """process_params succeeded; handle() may run."""

    params: Dict[str, Any] = field(default_factory=dict)
    resource: Optional[Any] = None


@dataclass(frozen=True)
class Terminal:
    """process_params already produced the response; handle() must not run."""

    response: ResponseBuilder


Outcome = Union[Proceed, Terminal]


class GenericRouteHandler:
    """
    Base of the handler family. Concrete variants override `handle` and,
    where they gate the request, `process_params`.
    """

    name = "generic"
    requires_transaction = False
    requires_resource = False

    def __init__(
        self,
        context: RequestContext,
        responses: ResponseBuilder,
        model: TableModel,
        log: LogFn,
        url_for: UrlForFn,
    ):
        self.context = context
        self.responses = responses
        self.model = model
        self.log = log
        self.url_for = url_for

    async def process_params(
        self,
        params: Mapping[str, Any],
        transaction: Optional[AsyncConnection] = None,
    ) -> Outcome:
        return Proceed(params=dict(params))

    async def handle(
        self,
        outcome: Proceed,
        transaction: Optional[AsyncConnection] = None,
    ) -> ResponseBuilder:
        raise HandlerNotImplementedError(type(self).__name__)

    def __repr__(self) -> str:
        return f"<{type(self).__name__}({self.model!r})>"


class ExistingResourceRouteHandler(GenericRouteHandler):
    """
    Gate for handlers acting on one existing record.

    process_params loads the record by params["id"]. Any lookup failure
    (no such row, bad identifier, database error) is logged and ends the
    request with 404; handle() then never runs.
    """

    requires_resource = True

    async def process_params(
        self,
        params: Mapping[str, Any],
        transaction: Optional[AsyncConnection] = None,
    ) -> Outcome:
        outcome = await super().process_params(params, transaction)
        try:
            resource = await self.model.fetch(params.get("id"), transaction=transaction)
        except Exception as exc:
            self.log(exc, "red")
            return Terminal(self.responses.not_found())
        return Proceed(params=outcome.params, resource=resource)
