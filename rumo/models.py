"""Request and response records exchanged with the Rumo API.

Every record knows how to render itself as its JSON wire dict
(``to_dict``) and how to build itself from one (``from_dict``).  Wire keys
are camelCase (``userId``, ``contentId``); attributes are snake_case.

Response records are frozen: the client never mutates what the server
returned.  :class:`Content`, :class:`Category` and :class:`Filters` are
ordinary dataclasses because callers build them for submission.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from rumo.errors import DeserializationError

_FRACTION = re.compile(r"\.(\d+)")


class InteractionType(str, Enum):
    """Kinds of user interaction the Rumo API records.

    The value of each member is the literal name used on the wire, both as
    a URL path segment and inside JSON payloads.
    """

    CLICK = "Click"
    PLAY = "Play"
    WATCH = "Watch"
    BOOKMARK = "Bookmark"
    PREVIEW = "Preview"
    PURCHASE = "Purchase"
    RATE_LIKE = "RateLike"
    RATE_DISLIKE = "RateDislike"

    @classmethod
    def parse(cls, raw: Any) -> InteractionType:
        """Return the member for a wire value.

        Accepts the member name as sent by the API (``"RateLike"``) or its
        numeric ordinal (``6``), which is how some server builds encode
        enums.

        Raises:
            ValueError: If *raw* names no member.
        """
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, int) and not isinstance(raw, bool):
            members = list(cls)
            if 0 <= raw < len(members):
                return members[raw]
            raise ValueError(f"Interaction type ordinal out of range: {raw!r}")
        return cls(raw)


# ---------------------------------------------------------------------------
# Content (request + response)
# ---------------------------------------------------------------------------


@dataclass
class Category:
    """A weighted category entry inside a content category group.

    Attributes:
        id: Category identifier, e.g. ``"drama"``.
        weight: Relative importance.  The meaning is up to the caller; the
            server uses it for weighted (cosine) similarity.
    """

    id: str
    weight: float = 1.0

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "weight": self.weight}

    @classmethod
    def from_dict(cls, data: Any) -> Category:
        payload = _require_mapping(data, "Category")
        return cls(
            id=_require_str(payload, "id", "Category"),
            weight=_as_float(payload.get("weight", 1.0), "Category.weight"),
        )


@dataclass
class Filters:
    """Free-form key/value filter set attached to a content piece."""

    values: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return dict(self.values)

    @classmethod
    def from_dict(cls, data: Any) -> Filters:
        return cls(values=dict(_require_mapping(data, "Filters")))


@dataclass
class Content:
    """A content piece in a source's catalogue.

    Attributes:
        id: Identifier, unique within a source.  Submitting the same id
            again replaces the earlier entry.
        label: Human-readable label.
        categories: Map from category group name (e.g. ``"genre"``) to an
            ordered list of :class:`Category` entries.
        filters: Optional free-form filter set.
    """

    id: str
    label: str = ""
    categories: dict[str, list[Category]] = field(default_factory=dict)
    filters: Filters | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "label": self.label,
            "categories": {
                group: [c.to_dict() for c in entries]
                for group, entries in self.categories.items()
            },
        }
        if self.filters is not None:
            payload["filters"] = self.filters.to_dict()
        return payload

    @classmethod
    def from_dict(cls, data: Any) -> Content:
        payload = _require_mapping(data, "Content")
        raw_categories = payload.get("categories") or {}
        categories: dict[str, list[Category]] = {}
        for group, entries in _require_mapping(raw_categories, "Content.categories").items():
            if not isinstance(entries, list):
                raise DeserializationError(
                    f"Content.categories[{group!r}] must be a list, got {type(entries).__name__}"
                )
            categories[group] = [Category.from_dict(e) for e in entries]
        raw_filters = payload.get("filters")
        return cls(
            id=_require_str(payload, "id", "Content"),
            label=payload.get("label") or "",
            categories=categories,
            filters=Filters.from_dict(raw_filters) if raw_filters is not None else None,
        )


# ---------------------------------------------------------------------------
# Users and interactions (response)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Key:
    """Composite identifier scoping a user to a source (tenant)."""

    source: str
    user_id: str

    def to_dict(self) -> dict[str, Any]:
        return {"source": self.source, "userId": self.user_id}

    @classmethod
    def from_dict(cls, data: Any) -> Key:
        payload = _require_mapping(data, "Key")
        return cls(
            source=_require_str(payload, "source", "Key"),
            user_id=_require_str(payload, "userId", "Key"),
        )


@dataclass(frozen=True)
class Interaction:
    """A recorded user interaction, as listed by the API.

    Attributes:
        key: Source and user the interaction belongs to.
        type: The kind of interaction.
        content_id: The content piece involved.
        timestamp: When the interaction was recorded (timezone-aware).
    """

    key: Key
    type: InteractionType
    content_id: str
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key.to_dict(),
            "type": self.type.value,
            "contentId": self.content_id,
            "timestamp": _format_timestamp(self.timestamp),
        }

    @classmethod
    def from_dict(cls, data: Any) -> Interaction:
        payload = _require_mapping(data, "Interaction")
        try:
            interaction_type = InteractionType.parse(payload.get("type"))
        except ValueError as exc:
            raise DeserializationError(f"Interaction.type: {exc}") from exc
        return cls(
            key=Key.from_dict(payload.get("key")),
            type=interaction_type,
            content_id=_require_str(payload, "contentId", "Interaction"),
            timestamp=_parse_timestamp(payload.get("timestamp"), "Interaction.timestamp"),
        )


@dataclass(frozen=True)
class UserEvent:
    """Acknowledgement returned when a user event is submitted.

    Same shape as :class:`Interaction`, except that :attr:`type` is kept as
    the free-form string the server echoed back.
    """

    key: Key
    type: str
    content_id: str
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key.to_dict(),
            "type": self.type,
            "contentId": self.content_id,
            "timestamp": _format_timestamp(self.timestamp),
        }

    @classmethod
    def from_dict(cls, data: Any) -> UserEvent:
        payload = _require_mapping(data, "UserEvent")
        return cls(
            key=Key.from_dict(payload.get("key")),
            type=_require_str(payload, "type", "UserEvent"),
            content_id=_require_str(payload, "contentId", "UserEvent"),
            timestamp=_parse_timestamp(payload.get("timestamp"), "UserEvent.timestamp"),
        )


# ---------------------------------------------------------------------------
# Recommendations (response)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScoredContent:
    """One ranked entry of a :class:`Recommendation`."""

    id: str
    score: float

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "score": self.score}

    @classmethod
    def from_dict(cls, data: Any) -> ScoredContent:
        payload = _require_mapping(data, "ScoredContent")
        return cls(
            id=_require_str(payload, "id", "ScoredContent"),
            score=_as_float(payload.get("score"), "ScoredContent.score"),
        )


@dataclass(frozen=True)
class Recommendation:
    """Ranked content returned by the similar-content and personalized endpoints.

    Attributes:
        id: The content id (similar content) or user id (personalized) the
            ranking was produced for.
        content: Entries in the order the server ranked them.  Scores lie
            in ``[0.0, 1.0]``.
    """

    id: str
    content: tuple[ScoredContent, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "content": [c.to_dict() for c in self.content]}

    @classmethod
    def from_dict(cls, data: Any) -> Recommendation:
        payload = _require_mapping(data, "Recommendation")
        entries = payload.get("content") or []
        if not isinstance(entries, list):
            raise DeserializationError(
                f"Recommendation.content must be a list, got {type(entries).__name__}"
            )
        return cls(
            id=_require_str(payload, "id", "Recommendation"),
            content=tuple(ScoredContent.from_dict(e) for e in entries),
        )


# ---------------------------------------------------------------------------
# Acknowledgements (response)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Submission:
    """Server acknowledgement of a content submission.

    Only the commonly returned fields are lifted out; :attr:`raw` keeps the
    full payload untouched.
    """

    source: str | None = None
    submitted: int | None = None
    ids: tuple[str, ...] = ()
    raw: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> Submission:
        payload = _require_mapping(data, "Submission")
        ids = payload.get("ids") or []
        if not isinstance(ids, list):
            raise DeserializationError("Submission.ids must be a list")
        return cls(
            source=payload.get("source"),
            submitted=_optional_int(payload.get("submitted"), "Submission.submitted"),
            ids=tuple(str(i) for i in ids),
            raw=dict(payload),
        )


@dataclass(frozen=True)
class Summary:
    """Catalogue summary for a source.  :attr:`raw` keeps the full payload."""

    source: str | None = None
    count: int | None = None
    raw: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> Summary:
        payload = _require_mapping(data, "Summary")
        return cls(
            source=payload.get("source"),
            count=_optional_int(payload.get("count"), "Summary.count"),
            raw=dict(payload),
        )


# ---------------------------------------------------------------------------
# Wire helpers
# ---------------------------------------------------------------------------


def _require_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise DeserializationError(
            f"{what} must be a JSON object, got {type(data).__name__}"
        )
    return data


def _require_str(payload: Mapping[str, Any], key: str, what: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise DeserializationError(f"{what}.{key} must be a string, got {value!r}")
    return value


def _as_float(value: Any, what: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DeserializationError(f"{what} must be a number, got {value!r}")
    return float(value)


def _optional_int(value: Any, what: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DeserializationError(f"{what} must be a number, got {value!r}")
    return int(value)


def _parse_timestamp(value: Any, what: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC.

    Fractions are padded or truncated to exactly six digits: .NET servers
    emit both ``.1234567`` and trimmed forms such as ``.5``, and older
    ``datetime.fromisoformat`` only accepts three or six.
    """
    if not isinstance(value, str):
        raise DeserializationError(f"{what} must be an ISO-8601 string, got {value!r}")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise DeserializationError(f"{what}: unparsable timestamp {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()
