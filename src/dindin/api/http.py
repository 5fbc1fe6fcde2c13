#!/usr/bin/env python3
"""
Request and response shapes for the HTTP-style boundary.

Not bound to a web framework: an adapter fills an ApiRequest from whatever
server it runs in and writes the Response back.
"""

from dataclasses import dataclass, field
from typing import Any

_TRUE_VALUES = ("true", "1", "yes")


@dataclass
class ApiRequest:
    """One incoming request."""

    method: str
    path: str
    query: dict[str, str] = field(default_factory=dict)
    body: Any = None
    headers: dict[str, str] = field(default_factory=dict)

    def query_flag(self, name: str, default: bool = False) -> bool:
        """Read a boolean query parameter ("true"/"false")."""
        value = self.query.get(name)
        if value is None:
            return default
        return value.strip().lower() in _TRUE_VALUES

    def body_flag(self, name: str) -> bool:
        """Read a boolean from the body, falling back to the query string."""
        if isinstance(self.body, dict) and name in self.body:
            return self.body[name] is True
        return self.query_flag(name)


@dataclass
class Response:
    """Status, JSON-compatible body (or text) and headers."""

    status: int
    body: Any
    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def json(cls, body: Any, status: int = 200) -> "Response":
        return cls(status=status, body=body, headers={"Content-Type": "application/json"})

    @classmethod
    def attachment(cls, body: Any, filename: str, content_type: str = "application/json") -> "Response":
        return cls(
            status=200,
            body=body,
            headers={
                "Content-Type": content_type,
                "Content-Disposition": f'attachment; filename="{filename}"',
            },
        )
