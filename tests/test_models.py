"""Tests for rumo.models records."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from conftest import RECOMMENDATION_JSON
from rumo.errors import DeserializationError
from rumo.models import (
    Category,
    Content,
    Filters,
    Interaction,
    InteractionType,
    Key,
    Recommendation,
    Submission,
    Summary,
    UserEvent,
)


class TestInteractionType:
    def test_values_are_wire_names(self) -> None:
        assert InteractionType.RATE_LIKE.value == "RateLike"
        assert InteractionType.RATE_DISLIKE.value == "RateDislike"
        assert InteractionType.CLICK.value == "Click"

    def test_is_string(self) -> None:
        assert isinstance(InteractionType.PLAY, str)

    def test_all_members(self) -> None:
        assert [t.value for t in InteractionType] == [
            "Click", "Play", "Watch", "Bookmark",
            "Preview", "Purchase", "RateLike", "RateDislike",
        ]

    def test_parse_name(self) -> None:
        assert InteractionType.parse("Bookmark") is InteractionType.BOOKMARK

    def test_parse_ordinal(self) -> None:
        assert InteractionType.parse(0) is InteractionType.CLICK
        assert InteractionType.parse(7) is InteractionType.RATE_DISLIKE

    def test_parse_rejects_unknown(self) -> None:
        with pytest.raises(ValueError):
            InteractionType.parse("Like")
        with pytest.raises(ValueError):
            InteractionType.parse(8)
        with pytest.raises(ValueError):
            InteractionType.parse(True)


class TestRecommendation:
    def test_parses_reference_payload(self) -> None:
        rec = Recommendation.from_dict(json.loads(RECOMMENDATION_JSON))
        assert rec.id == "1"
        assert len(rec.content) == 4
        assert rec.content[0].id == "123"
        assert rec.content[0].score == 4.875551549687884e-5

    def test_keeps_server_order(self) -> None:
        rec = Recommendation.from_dict(json.loads(RECOMMENDATION_JSON))
        assert [c.id for c in rec.content] == ["123", "1", "3", "2"]
        assert [c.score for c in rec.content] == [
            4.875551549687884e-5, 0.9901253529737497, 0.997672523375305, 1.0,
        ]

    def test_integer_score_becomes_float(self) -> None:
        rec = Recommendation.from_dict({"id": "u1", "content": [{"id": "a", "score": 1}]})
        assert isinstance(rec.content[0].score, float)

    def test_empty_content(self) -> None:
        assert Recommendation.from_dict({"id": "u1", "content": []}).content == ()
        assert Recommendation.from_dict({"id": "u1"}).content == ()

    def test_is_frozen(self) -> None:
        rec = Recommendation.from_dict(json.loads(RECOMMENDATION_JSON))
        with pytest.raises(AttributeError):
            rec.id = "2"  # type: ignore[misc]

    def test_missing_id_raises(self) -> None:
        with pytest.raises(DeserializationError):
            Recommendation.from_dict({"content": []})

    def test_non_numeric_score_raises(self) -> None:
        with pytest.raises(DeserializationError):
            Recommendation.from_dict({"id": "1", "content": [{"id": "a", "score": "high"}]})

    def test_non_list_content_raises(self) -> None:
        with pytest.raises(DeserializationError):
            Recommendation.from_dict({"id": "1", "content": {"id": "a"}})

    def test_non_object_raises(self) -> None:
        with pytest.raises(DeserializationError):
            Recommendation.from_dict([])


class TestContent:
    def test_to_dict(self, content_drama: Content) -> None:
        assert content_drama.to_dict() == {
            "id": "c1",
            "label": "Quiet Harbour",
            "categories": {
                "genre": [{"id": "drama", "weight": 0.8}, {"id": "romance", "weight": 0.2}],
                "mood": [{"id": "calm", "weight": 1.0}],
            },
            "filters": {"catalog": "films", "year": 1998},
        }

    def test_filters_omitted_when_unset(self) -> None:
        assert "filters" not in Content(id="c9", label="x").to_dict()

    def test_from_dict_restores_equal_record(self, content_drama: Content) -> None:
        assert Content.from_dict(content_drama.to_dict()) == content_drama

    def test_category_order_preserved(self) -> None:
        content = Content.from_dict(
            {
                "id": "c1",
                "categories": {"genre": [{"id": "b"}, {"id": "a"}, {"id": "c"}]},
            }
        )
        assert [c.id for c in content.categories["genre"]] == ["b", "a", "c"]
        assert content.categories["genre"][0].weight == 1.0
        assert content.label == ""
        assert content.filters is None

    def test_mutable_defaults_are_independent(self) -> None:
        a = Content(id="a")
        b = Content(id="b")
        a.categories["genre"] = [Category("x")]
        assert b.categories == {}

    def test_bad_categories_raise(self) -> None:
        with pytest.raises(DeserializationError):
            Content.from_dict({"id": "c1", "categories": {"genre": "drama"}})
        with pytest.raises(DeserializationError):
            Content.from_dict({"id": "c1", "categories": {"genre": [{"weight": 1}]}})

    def test_missing_id_raises(self) -> None:
        with pytest.raises(DeserializationError):
            Content.from_dict({"label": "no id"})


class TestFilters:
    def test_round_trip_values(self) -> None:
        filters = Filters.from_dict({"catalog": ["a", "b"], "adult": False})
        assert filters.values == {"catalog": ["a", "b"], "adult": False}
        assert filters.to_dict() == {"catalog": ["a", "b"], "adult": False}

    def test_to_dict_is_a_copy(self) -> None:
        filters = Filters({"a": 1})
        filters.to_dict()["a"] = 2
        assert filters.values["a"] == 1


class TestInteraction:
    def _payload(self, **overrides) -> dict:
        payload = {
            "key": {"source": "movies", "userId": "alice"},
            "type": "RateLike",
            "contentId": "c1",
            "timestamp": "2024-06-01T12:00:00Z",
        }
        payload.update(overrides)
        return payload

    def test_from_dict(self) -> None:
        interaction = Interaction.from_dict(self._payload())
        assert interaction.key == Key(source="movies", user_id="alice")
        assert interaction.type is InteractionType.RATE_LIKE
        assert interaction.content_id == "c1"
        assert interaction.timestamp == datetime(2024, 6, 1, 12, tzinfo=timezone.utc)

    def test_numeric_type(self) -> None:
        assert Interaction.from_dict(self._payload(type=2)).type is InteractionType.WATCH

    def test_unknown_type_raises(self) -> None:
        with pytest.raises(DeserializationError):
            Interaction.from_dict(self._payload(type="Like"))

    def test_naive_timestamp_is_utc(self) -> None:
        interaction = Interaction.from_dict(self._payload(timestamp="2024-06-01T12:00:00"))
        assert interaction.timestamp.tzinfo == timezone.utc

    def test_offset_timestamp(self) -> None:
        interaction = Interaction.from_dict(
            self._payload(timestamp="2024-06-01T14:00:00+02:00")
        )
        assert interaction.timestamp.utcoffset() == timedelta(hours=2)
        assert interaction.timestamp == datetime(2024, 6, 1, 12, tzinfo=timezone.utc)

    def test_seven_digit_fraction(self) -> None:
        interaction = Interaction.from_dict(
            self._payload(timestamp="2024-06-01T12:00:00.1234567Z")
        )
        assert interaction.timestamp.microsecond == 123456

    @pytest.mark.parametrize(
        ("stamp", "micros"),
        [("2024-06-01T12:00:00.5Z", 500000), ("2024-06-01T12:00:00.12+02:00", 120000)],
    )
    def test_short_fraction(self, stamp: str, micros: int) -> None:
        interaction = Interaction.from_dict(self._payload(timestamp=stamp))
        assert interaction.timestamp.microsecond == micros

    def test_bad_timestamp_raises(self) -> None:
        with pytest.raises(DeserializationError):
            Interaction.from_dict(self._payload(timestamp="yesterday"))
        with pytest.raises(DeserializationError):
            Interaction.from_dict(self._payload(timestamp=1717243200))

    def test_missing_key_raises(self) -> None:
        payload = self._payload()
        del payload["key"]
        with pytest.raises(DeserializationError):
            Interaction.from_dict(payload)

    def test_to_dict_uses_wire_names(self) -> None:
        wire = Interaction.from_dict(self._payload()).to_dict()
        assert wire["type"] == "RateLike"
        assert wire["contentId"] == "c1"
        assert wire["key"] == {"source": "movies", "userId": "alice"}


class TestUserEvent:
    def test_type_stays_a_plain_string(self) -> None:
        event = UserEvent.from_dict(
            {
                "key": {"source": "movies", "userId": "alice"},
                "type": "RateDislike",
                "contentId": "c1",
                "timestamp": "2024-06-01T12:00:00Z",
            }
        )
        assert event.type == "RateDislike"
        assert type(event.type) is str
        assert not isinstance(event.type, InteractionType)

    def test_accepts_types_outside_enum(self) -> None:
        event = UserEvent.from_dict(
            {
                "key": {"source": "s", "userId": "u"},
                "type": "Share",
                "contentId": "c",
                "timestamp": "2024-06-01T12:00:00Z",
            }
        )
        assert event.type == "Share"


class TestSubmission:
    def test_from_dict(self) -> None:
        payload = {"source": "movies", "submitted": 2, "ids": ["c1", "c2"], "extra": True}
        submission = Submission.from_dict(payload)
        assert submission.source == "movies"
        assert submission.submitted == 2
        assert submission.ids == ("c1", "c2")
        assert submission.raw == payload

    def test_unknown_shape_passes_through(self) -> None:
        submission = Submission.from_dict({"status": "queued"})
        assert submission.submitted is None
        assert submission.ids == ()
        assert submission.raw == {"status": "queued"}

    def test_non_object_raises(self) -> None:
        with pytest.raises(DeserializationError):
            Submission.from_dict("ok")

    def test_bad_submitted_raises(self) -> None:
        with pytest.raises(DeserializationError):
            Submission.from_dict({"submitted": "two"})


class TestSummary:
    def test_from_dict(self) -> None:
        summary = Summary.from_dict({"source": "movies", "count": 3, "catalogs": ["films"]})
        assert summary.source == "movies"
        assert summary.count == 3
        assert summary.raw["catalogs"] == ["films"]

    def test_non_object_raises(self) -> None:
        with pytest.raises(DeserializationError):
            Summary.from_dict(None)
