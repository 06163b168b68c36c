"""Shared pytest fixtures for all Rumo client tests."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import MagicMock

import pytest

from rumo.client import RumoClient
from rumo.models import Category, Content, Filters


API_URL = "https://api.example.test/"
API_KEY = "secret-key"
SOURCE = "movies"

RECOMMENDATION_JSON = (
    '{"id":"1","content":['
    '{"id":"123","score":4.875551549687884E-5},'
    '{"id":"1","score":0.9901253529737497},'
    '{"id":"3","score":0.997672523375305},'
    '{"id":"2","score":1.0}]}'
)

# ---------------------------------------------------------------------------
# HTTP fakes
# ---------------------------------------------------------------------------


def make_response(payload: Any = None, status: int = 200, text: str | None = None) -> MagicMock:
    """Return a stand-in for :class:`requests.Response`."""
    response = MagicMock()
    response.status_code = status
    response.text = text if text is not None else json.dumps(payload)
    return response


@pytest.fixture
def session() -> MagicMock:
    """A fake ``requests.Session`` whose ``request`` returns ``{}`` by default."""
    fake = MagicMock()
    fake.headers = {}
    fake.request.return_value = make_response({})
    return fake


@pytest.fixture
def client(session: MagicMock) -> RumoClient:
    return RumoClient(API_URL, API_KEY, SOURCE, timeout=5.0, session=session)


# ---------------------------------------------------------------------------
# Content fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def content_drama() -> Content:
    return Content(
        id="c1",
        label="Quiet Harbour",
        categories={
            "genre": [Category("drama", 0.8), Category("romance", 0.2)],
            "mood": [Category("calm")],
        },
        filters=Filters({"catalog": "films", "year": 1998}),
    )


@pytest.fixture
def content_action() -> Content:
    return Content(
        id="c2",
        label="Iron Coast",
        categories={"genre": [Category("action", 1.0)], "mood": [Category("tense")]},
        filters=Filters({"catalog": "films"}),
    )


@pytest.fixture
def content_series() -> Content:
    return Content(
        id="c3",
        label="Long Tide",
        categories={"genre": [Category("drama", 1.0)], "mood": [Category("calm")]},
        filters=Filters({"catalog": ["series", "box-sets"]}),
    )


@pytest.fixture
def sample_content(content_drama, content_action, content_series) -> list[Content]:
    return [content_drama, content_action, content_series]
