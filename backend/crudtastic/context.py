"""Per-request context shared between middleware, dispatcher and handlers."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class RequestContext:
    """
    Attached to `request.state.context` by RequestContextMiddleware.

    `data` is a free-form bag for custom middleware; the dispatcher records
    the handler label there so the access log can report it.
    """

    request_id: str = ""
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def handler_name(self) -> Optional[str]:
        return self.data.get("handler")
