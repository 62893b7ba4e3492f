"""
Crudtastic: Response Builder Tests
==================================
"""

import json
from datetime import date
from decimal import Decimal

from crudtastic.logger import RequestLogger
from crudtastic.responses import ResponseBuilder


class TestResponseBuilder:
    def test_methods_return_new_builders(self):
        base = ResponseBuilder()
        created = base.with_header("Location", "/books/1").with_body({"id": 1}).with_status(201)

        assert base == ResponseBuilder()
        assert created.status == 201
        assert created.headers == {"Location": "/books/1"}
        assert created.body == {"id": 1}

    def test_not_found_drops_body(self):
        response = ResponseBuilder().with_body({"id": 1}).not_found()
        assert response.status == 404
        assert response.body is None

    def test_empty_body_renders_empty_response(self):
        rendered = ResponseBuilder().ok().to_response()
        assert rendered.status_code == 200
        assert rendered.body == b""

    def test_records_and_non_json_types_are_encoded(self):
        class FakeRecord:
            def to_dict(self):
                return {"id": 1, "price": Decimal("9.50"), "published": date(2020, 1, 2)}

        rendered = ResponseBuilder().ok([FakeRecord()]).to_response()

        assert json.loads(rendered.body) == [
            {"id": 1, "price": 9.5, "published": "2020-01-02"}
        ]


class TestRequestLogger:
    def test_color_hint_selects_level(self):
        from unittest.mock import MagicMock

        base = MagicMock()
        log = RequestLogger("abc12345", base=base)

        log("boom", "red")
        log("fine")

        levels = [call.args[0] for call in base.log.call_args_list]
        assert levels == [40, 20]
