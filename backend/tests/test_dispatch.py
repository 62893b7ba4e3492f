"""
Crudtastic: Dispatcher Unit Tests
=================================

What:  The order of lifecycle steps and the commit/rollback decision.
How:   Handlers with mock models; a SpyTransaction scope records
       begin/commit/rollback.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from crudtastic.dispatch import dispatch
from crudtastic.exceptions import HandlerNotImplementedError, NotFoundError
from crudtastic.handlers import (
    CreateRouteHandler,
    DestroyRouteHandler,
    GenericRouteHandler,
    IndexRouteHandler,
    ShowRouteHandler,
    UpdateRouteHandler,
)


class TestTransactionOptIn:
    @pytest.mark.asyncio
    async def test_non_transactional_handler_never_opens_one(
        self, handler_factory, mock_model, spy_transaction
    ):
        handler = handler_factory(IndexRouteHandler)

        response = await dispatch(handler, {}, spy_transaction.scope)

        assert response.status == 200
        assert spy_transaction.events == []

    @pytest.mark.asyncio
    async def test_successful_create_commits(self, handler_factory, mock_model, spy_transaction):
        saved = MagicMock(id=1)
        unsaved = MagicMock()
        unsaved.save = AsyncMock(return_value=saved)
        mock_model.build.return_value = unsaved
        handler = handler_factory(CreateRouteHandler)

        response = await dispatch(handler, {"title": "Dune"}, spy_transaction.scope)

        assert response.status == 201
        assert spy_transaction.events == ["begin", "commit"]
        unsaved.save.assert_awaited_once_with(transaction=spy_transaction)

    @pytest.mark.asyncio
    async def test_transaction_is_open_during_process_params(
        self, handler_factory, mock_model, spy_transaction
    ):
        record = MagicMock(id=1)
        record.destroy = AsyncMock()
        mock_model.fetch.return_value = record
        handler = handler_factory(DestroyRouteHandler)

        await dispatch(handler, {"id": "1"}, spy_transaction.scope)

        mock_model.fetch.assert_awaited_once_with("1", transaction=spy_transaction)
        record.destroy.assert_awaited_once_with(transaction=spy_transaction)
        assert spy_transaction.events == ["begin", "commit"]


class TestFailureRollsBack:
    @pytest.mark.parametrize("handler_cls", [CreateRouteHandler, UpdateRouteHandler])
    @pytest.mark.asyncio
    async def test_persistence_failure_rolls_back(
        self, handler_cls, handler_factory, mock_model, spy_transaction
    ):
        failing = MagicMock(id=1)
        failing.set.return_value = failing
        failing.save = AsyncMock(side_effect=RuntimeError("disk full"))
        mock_model.build.return_value = failing
        mock_model.fetch.return_value = failing
        handler = handler_factory(handler_cls)

        with pytest.raises(RuntimeError, match="disk full"):
            await dispatch(handler, {"id": "1", "title": "x"}, spy_transaction.scope)

        assert spy_transaction.events == ["begin", "rollback"]

    @pytest.mark.asyncio
    async def test_destroy_failure_rolls_back(self, handler_factory, mock_model, spy_transaction):
        record = MagicMock(id=1)
        record.destroy = AsyncMock(side_effect=RuntimeError("foreign key"))
        mock_model.fetch.return_value = record
        handler = handler_factory(DestroyRouteHandler)

        with pytest.raises(RuntimeError):
            await dispatch(handler, {"id": "1"}, spy_transaction.scope)

        assert spy_transaction.events == ["begin", "rollback"]

    @pytest.mark.asyncio
    async def test_programming_error_is_not_swallowed(self, handler_factory, spy_transaction):
        handler = handler_factory(GenericRouteHandler)

        with pytest.raises(HandlerNotImplementedError):
            await dispatch(handler, {}, spy_transaction.scope)


class TestTerminalOutcome:
    @pytest.mark.parametrize(
        "handler_cls", [ShowRouteHandler, UpdateRouteHandler, DestroyRouteHandler]
    )
    @pytest.mark.asyncio
    async def test_missing_resource_skips_handle(
        self, handler_cls, handler_factory, mock_model, spy_transaction
    ):
        mock_model.fetch.side_effect = NotFoundError(resource="books", resource_id="9")
        handler = handler_factory(handler_cls)

        with patch.object(handler_cls, "handle", new_callable=AsyncMock) as handle:
            response = await dispatch(handler, {"id": "9"}, spy_transaction.scope)

        assert response.status == 404
        assert handle.await_count == 0

    @pytest.mark.asyncio
    async def test_dispatch_records_handler_label(self, handler_factory):
        handler = handler_factory(IndexRouteHandler)
        scope = MagicMock()

        await dispatch(handler, {}, scope)

        assert handler.context.handler_name == "index"
        scope.assert_not_called()
