"""
Crudtastic: CRUD Route Handlers
===============================

The six handler variants mounted for every table.

    variant   requires_transaction  requires_resource  response
    index     no                    no                 200 + collection
    create    yes                   no                 201 + Location + record
    show      no                    yes                200 + record
    exists    no                    no                 200 empty | 404
    update    yes                   yes                200 + merged record
    destroy   yes                   yes                200 empty

`HANDLERS` is the closed table routers select from.
"""

from enum import Enum
from typing import Any, Dict, Mapping, Optional, Type

from sqlalchemy.ext.asyncio import AsyncConnection

from crudtastic.handlers.base import (
    ExistingResourceRouteHandler,
    GenericRouteHandler,
    Outcome,
    Proceed,
    Terminal,
)
from crudtastic.responses import ResponseBuilder


class IndexRouteHandler(GenericRouteHandler):
    name = "index"

    async def handle(
        self, outcome: Proceed, transaction: Optional[AsyncConnection] = None
    ) -> ResponseBuilder:
        collection = await self.model.fetch_all()
        return self.responses.ok(collection)


class CreateRouteHandler(GenericRouteHandler):
    name = "create"
    requires_transaction = True

    async def handle(
        self, outcome: Proceed, transaction: Optional[AsyncConnection] = None
    ) -> ResponseBuilder:
        saved = await self.model.build(outcome.params).save(transaction=transaction)
        return (
            self.responses
            .with_header("Location", self.url_for(saved))
            .with_body(saved)
            .with_status(201)
        )


class ShowRouteHandler(ExistingResourceRouteHandler):
    name = "show"

    async def handle(
        self, outcome: Proceed, transaction: Optional[AsyncConnection] = None
    ) -> ResponseBuilder:
        return self.responses.ok(outcome.resource)


class ExistsRouteHandler(GenericRouteHandler):
    """
    Existence check without loading the record.

    The check itself is the whole answer, so process_params always returns
    a Terminal outcome. The count never reaches the response.
    """

    name = "exists"

    async def process_params(
        self,
        params: Mapping[str, Any],
        transaction: Optional[AsyncConnection] = None,
    ) -> Outcome:
        return Terminal(await self._check(params, transaction))

    async def handle(
        self, outcome: Proceed, transaction: Optional[AsyncConnection] = None
    ) -> ResponseBuilder:
        return await self._check(outcome.params, transaction)

    async def _check(
        self, params: Mapping[str, Any], transaction: Optional[AsyncConnection]
    ) -> ResponseBuilder:
        count = await self.model.count_where(
            self.model.primary_key, params.get("id"), transaction=transaction
        )
        return self.responses.ok() if count else self.responses.not_found()


class UpdateRouteHandler(ExistingResourceRouteHandler):
    """Partial update: fields missing from the payload are left untouched."""

    name = "update"
    requires_transaction = True

    async def handle(
        self, outcome: Proceed, transaction: Optional[AsyncConnection] = None
    ) -> ResponseBuilder:
        safe_params: Dict[str, Any] = dict(outcome.params)
        # identity is immutable through this path
        safe_params.pop("id", None)
        safe_params.pop(self.model.primary_key, None)
        updated = await outcome.resource.set(safe_params).save(transaction=transaction)
        return self.responses.ok(updated)


class DestroyRouteHandler(ExistingResourceRouteHandler):
    name = "destroy"
    requires_transaction = True

    async def handle(
        self, outcome: Proceed, transaction: Optional[AsyncConnection] = None
    ) -> ResponseBuilder:
        await outcome.resource.destroy(transaction=transaction)
        return self.responses.ok()


class HandlerKind(str, Enum):
    INDEX = "index"
    CREATE = "create"
    SHOW = "show"
    EXISTS = "exists"
    UPDATE = "update"
    DESTROY = "destroy"


HANDLERS: Dict[HandlerKind, Type[GenericRouteHandler]] = {
    HandlerKind.INDEX: IndexRouteHandler,
    HandlerKind.CREATE: CreateRouteHandler,
    HandlerKind.SHOW: ShowRouteHandler,
    HandlerKind.EXISTS: ExistsRouteHandler,
    HandlerKind.UPDATE: UpdateRouteHandler,
    HandlerKind.DESTROY: DestroyRouteHandler,
}
