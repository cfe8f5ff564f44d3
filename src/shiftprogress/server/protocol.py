"""JSON-lines messages exchanged with the game client.

Requests carry an ``id``; responses echo it with either ``result`` or
``error``. Progression events go out as id-less notifications.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Optional

EVENT_METHOD = "event"


@dataclass
class Request:
    id: int
    method: str
    params: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> Request:
        if not isinstance(data, dict) or "method" not in data:
            raise ValueError("Request must be an object with a 'method'")
        params = data.get("params") or {}
        if not isinstance(params, dict):
            raise ValueError("Request params must be an object")
        return cls(id=data.get("id", 0), method=data["method"], params=params)


@dataclass
class Response:
    id: int
    result: Optional[dict] = None
    error: Optional[str] = None

    @classmethod
    def failure(cls, req_id: int, exc: Exception) -> Response:
        return cls(id=req_id, error=str(exc) or exc.__class__.__name__)

    def to_json_line(self) -> str:
        d = {"id": self.id}
        if self.error is not None:
            d["error"] = self.error
        else:
            d["result"] = self.result
        return json.dumps(d) + "\n"


@dataclass
class Notification:
    """Server-initiated message (no id, no response expected)."""
    method: str
    params: dict = field(default_factory=dict)

    @classmethod
    def for_event(cls, event) -> Notification:
        return cls(EVENT_METHOD, event.to_dict())

    def to_json_line(self) -> str:
        return json.dumps({"method": self.method, "params": self.params}) + "\n"
