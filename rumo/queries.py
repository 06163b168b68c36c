"""Optional query parameters for the Rumo read endpoints.

One record per operation.  A field left at ``None`` never reaches the
wire; so do a blank ``at``/``algo`` and a ``take`` that is zero or
negative.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

Params = list[tuple[str, str]]


@dataclass(frozen=True)
class ContentQuery:
    """Options for :meth:`~rumo.client.RumoClient.get_content`.

    Attributes:
        catalogs: Restrict to these catalogs.
        at: Upload-date filter, a :class:`datetime.date` or ``"YYYY-MM-DD"``.
    """

    catalogs: Sequence[str] | None = None
    at: date | str | None = None

    def to_params(self) -> Params:
        params: Params = []
        _add_catalogs(params, self.catalogs)
        _add_at(params, self.at)
        return params


@dataclass(frozen=True)
class SimilarContentQuery:
    """Options for :meth:`~rumo.client.RumoClient.get_similar_content`."""

    catalogs: Sequence[str] | None = None
    at: date | str | None = None
    take: int | None = None

    def to_params(self) -> Params:
        params: Params = []
        _add_catalogs(params, self.catalogs)
        _add_at(params, self.at)
        _add_take(params, self.take)
        return params


@dataclass(frozen=True)
class InteractionQuery:
    """Options for :meth:`~rumo.client.RumoClient.list_interactions`."""

    catalogs: Sequence[str] | None = None

    def to_params(self) -> Params:
        params: Params = []
        _add_catalogs(params, self.catalogs)
        return params


@dataclass(frozen=True)
class RecommendationQuery:
    """Options for :meth:`~rumo.client.RumoClient.get_personalized_recommendation`.

    Attributes:
        catalogs: Restrict to these catalogs.
        take: Number of recommendations to return.
        algo: Ranking algorithm understood by the server, e.g. Jaccard
            index (non-weighted categories) or cosine similarity (weighted
            categories).
    """

    catalogs: Sequence[str] | None = None
    take: int | None = None
    algo: str | None = None

    def to_params(self) -> Params:
        params: Params = []
        _add_catalogs(params, self.catalogs)
        _add_take(params, self.take)
        if self.algo is not None and self.algo.strip():
            params.append(("algo", self.algo.strip()))
        return params


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _add_catalogs(params: Params, catalogs: Sequence[str] | None) -> None:
    if catalogs is None:
        return
    if isinstance(catalogs, str):
        catalogs = [catalogs]
    # Repeated key, one per catalog, order preserved
    params.extend(("catalogs", str(c)) for c in catalogs)


def _add_at(params: Params, at: date | str | None) -> None:
    if at is None:
        return
    if isinstance(at, date):
        params.append(("at", at.strftime("%Y-%m-%d")))
    elif at.strip():
        params.append(("at", at.strip()))


def _add_take(params: Params, take: int | None) -> None:
    if take is not None and take > 0:
        params.append(("take", str(int(take))))
