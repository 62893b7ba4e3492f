"""
Crudtastic: Response Builder
============================

What:  The response sink route handlers write to.
How:   An immutable builder. Every method returns a new builder, so a
       handler can chain `responses.with_header(...).with_body(...)` without
       touching a shared object. The dispatcher renders the final builder
       into a Starlette response exactly once.

Example:
    responses.with_header("Location", url).with_body(record).with_status(201)
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder
from starlette.responses import JSONResponse, Response


@dataclass(frozen=True)
class ResponseBuilder:
    status: int = 200
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[Any] = None

    def ok(self, body: Optional[Any] = None) -> "ResponseBuilder":
        """200 with an optional body."""
        return replace(self, status=200, body=body)

    def not_found(self) -> "ResponseBuilder":
        """404 with an empty body."""
        return replace(self, status=404, body=None)

    def with_status(self, code: int) -> "ResponseBuilder":
        return replace(self, status=code)

    def with_header(self, name: str, value: str) -> "ResponseBuilder":
        return replace(self, headers={**self.headers, name: value})

    def with_body(self, body: Any) -> "ResponseBuilder":
        return replace(self, body=body)

    def to_response(self) -> Response:
        """Render as JSON when a body is set, otherwise as an empty response."""
        if self.body is None:
            return Response(status_code=self.status, headers=self.headers)
        return JSONResponse(
            status_code=self.status,
            content=jsonable_encoder(_serializable(self.body)),
            headers=self.headers,
        )


def _serializable(body: Any) -> Any:
    """Unwrap model records (anything with `to_dict`) before JSON encoding."""
    if hasattr(body, "to_dict"):
        return body.to_dict()
    if isinstance(body, (list, tuple)):
        return [_serializable(item) for item in body]
    return body
