"""JSON serializers used by :class:`~rumo.client.RumoClient`.

A serializer is injected per client instance; nothing here is global, so
two clients in one process can be configured differently.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any

from rumo.errors import DeserializationError


class Serializer(ABC):
    """Abstract base class for request/response body codecs.

    :meth:`dumps` receives plain JSON-compatible data or any object exposing
    ``to_dict()`` (the records in :mod:`rumo.models`), possibly nested in
    lists and dicts.
    """

    content_type: str = "application/json"

    @abstractmethod
    def dumps(self, payload: Any) -> str:
        """Encode *payload* as a request body."""

    @abstractmethod
    def loads(self, body: str) -> Any:
        """Decode a response body.

        Raises:
            DeserializationError: If *body* cannot be decoded.
        """


class JsonSerializer(Serializer):
    """Standard-library JSON codec.

    Floats round-trip exactly: ``json`` parses numbers with ``float()``,
    which yields the nearest IEEE-754 double, so a score such as
    ``4.875551549687884E-5`` compares equal to the Python literal.

    Args:
        indent: Passed to :func:`json.dumps`; ``None`` for compact bodies.
        ensure_ascii: Passed to :func:`json.dumps`.
    """

    def __init__(self, indent: int | None = None, ensure_ascii: bool = False) -> None:
        self._indent = indent
        self._ensure_ascii = ensure_ascii

    def dumps(self, payload: Any) -> str:
        return json.dumps(
            payload,
            default=_to_jsonable,
            indent=self._indent,
            ensure_ascii=self._ensure_ascii,
        )

    def loads(self, body: str) -> Any:
        try:
            return json.loads(body)
        except ValueError as exc:
            snippet = body[:200] if body else "<empty body>"
            raise DeserializationError(f"Response is not valid JSON: {snippet!r}") from exc


def _to_jsonable(obj: Any) -> Any:
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")
