"""
Crudtastic: Handler Dispatcher
==============================

What:  Drives one route handler through its lifecycle.
How:

    requires_transaction?
      yes → open transaction ──┐
      no  → no transaction  ───┤
                               ▼
                 process_params(params, tx)
                     │ Terminal → return its response (handle skipped)
                     ▼ Proceed
                 handle(outcome, tx)
                     │
                     ▼
      commit on return, rollback on any exception (re-raised)

The transaction scope is any callable returning an async context manager
that yields a transaction handle and commits/rolls back on exit
(`Database.transaction` in production, a spy in tests).
"""

import logging
from contextlib import AsyncExitStack
from typing import Any, AsyncContextManager, Callable, Mapping

from crudtastic.handlers.base import GenericRouteHandler, Terminal
from crudtastic.responses import ResponseBuilder

logger = logging.getLogger(__name__)

TransactionScope = Callable[[], AsyncContextManager[Any]]


async def dispatch(
    handler: GenericRouteHandler,
    params: Mapping[str, Any],
    transaction_scope: TransactionScope,
) -> ResponseBuilder:
    """
    Run `handler` for one request and return its terminal response.

    Raises:
        Whatever process_params or handle raised, after the transaction (if
        any) has been rolled back.
    """
    handler.context.data["handler"] = handler.name

    async with AsyncExitStack() as stack:
        transaction = None
        if handler.requires_transaction:
            transaction = await stack.enter_async_context(transaction_scope())

        outcome = await handler.process_params(params, transaction)
        if isinstance(outcome, Terminal):
            logger.debug(
                "%s on %s ended in process_params with %d",
                handler.name, handler.model.name, outcome.response.status,
            )
            return outcome.response

        response = await handler.handle(outcome, transaction)

    logger.debug("%s on %s responded %d", handler.name, handler.model.name, response.status)
    return response
