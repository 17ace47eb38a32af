"""Search queries in a compact, JSON-serialisable form for transport."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional


def _expect_object(data: Any, what: str) -> dict:
    if not isinstance(data, dict):
        raise ValueError(f"invalid type: expected {what} as a JSON object")
    return data


@dataclass
class Filter:
    """A filter chosen by name, with the arguments it is built from."""

    name: str
    arguments: list[Any] = field(default_factory=list)

    @classmethod
    def from_name(cls, name: str) -> "Filter":
        return cls(name=str(name))

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "arguments": list(self.arguments)}

    @classmethod
    def from_dict(cls, data: Any) -> "Filter":
        data = _expect_object(data, "a filter")
        if "name" not in data:
            raise ValueError("missing field `name`")
        name = data["name"]
        if not isinstance(name, str):
            raise ValueError("invalid type: field `name` should be a string")
        arguments = data.get("arguments", [])
        if not isinstance(arguments, list):
            raise ValueError("invalid type: field `arguments` should be a list")
        return cls(name=name, arguments=list(arguments))


@dataclass
class Query:
    """A search query, optionally narrowed by a filter."""

    filter: Optional[Filter] = None

    @classmethod
    def from_filter_name(cls, name: str) -> "Query":
        return cls(filter=Filter.from_name(name))

    def into_filter(self) -> Optional[Filter]:
        return self.filter

    def to_dict(self) -> dict[str, Any]:
        return {"filter": None if self.filter is None else self.filter.to_dict()}

    @classmethod
    def from_dict(cls, data: Any) -> "Query":
        data = _expect_object(data, "a query")
        raw_filter = data.get("filter")
        return cls(filter=None if raw_filter is None else Filter.from_dict(raw_filter))


@dataclass
class QueryString:
    """A query written as compact JSON, suitable for a browser query parameter."""

    query: Query = field(default_factory=Query)

    def __str__(self) -> str:
        return json.dumps(self.query.to_dict(), separators=(",", ":"))

    @classmethod
    def parse(cls, source: str) -> "QueryString":
        """Read a query from its JSON text; raises ``ValueError`` when invalid."""
        return cls(query=Query.from_dict(json.loads(source)))