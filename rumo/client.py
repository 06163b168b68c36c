"""HTTP client for the Rumo content-recommendation API."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any
from urllib.parse import quote

import requests

from rumo.errors import (
    ConfigurationError,
    DeserializationError,
    RemoteError,
    RumoTimeoutError,
    TransportError,
)
from rumo.models import (
    Content,
    Interaction,
    InteractionType,
    Recommendation,
    Submission,
    Summary,
    UserEvent,
)
from rumo.queries import (
    ContentQuery,
    InteractionQuery,
    Params,
    RecommendationQuery,
    SimilarContentQuery,
)
from rumo.serialization import JsonSerializer, Serializer

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-api-key"

# The API asks callers to keep each submission at or below this many entries.
# Larger batches are still sent.
MAX_SUBMISSION_BATCH = 2000

DEFAULT_TIMEOUT_SECONDS = 10.0


class RumoClient:
    """Façade over the Rumo REST API for one source (tenant).

    Every method is a single synchronous round trip: it builds the path and
    query string, sends the request with the ``x-api-key`` header, and maps
    the JSON response onto a record from :mod:`rumo.models`.  Nothing is
    cached or retried.

    The connection settings are fixed at construction, so one instance can
    be shared between threads; the underlying :class:`requests.Session`
    pools connections.

    Args:
        url: API root, e.g. ``"https://beta.api.rumo.co/"``.
        api_key: Key sent in the ``x-api-key`` header.
        source: Source name identifying the content database.  The first
            submission to a new source creates it.
        timeout: Default per-request timeout in seconds.
        serializer: Body codec; a fresh :class:`JsonSerializer` if omitted.
        session: HTTP session to use.  The client creates (and owns) one if
            omitted.

    Raises:
        ConfigurationError: If *url*, *api_key* or *source* is blank, or
            *timeout* is not positive.
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        source: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        serializer: Serializer | None = None,
        session: requests.Session | None = None,
    ) -> None:
        for name, value in (("url", url), ("api_key", api_key), ("source", source)):
            if not isinstance(value, str) or not value.strip():
                raise ConfigurationError(f"{name} must be a non-empty string")
        if timeout is None or timeout <= 0:
            raise ConfigurationError(f"timeout must be positive, got {timeout!r}")

        root = url.strip()
        if not root.endswith("/"):
            root += "/"
        self._source = source.strip()
        self._base_url = f"{root}{self._source}/"
        self._timeout = float(timeout)
        self._serializer = serializer or JsonSerializer()
        self._owns_session = session is None
        self._session = session or requests.Session()
        self._session.headers.update(
            {API_KEY_HEADER: api_key, "Accept": "application/json"}
        )

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def base_url(self) -> str:
        """``url + source + "/"``; every request path is relative to this."""
        return self._base_url

    @property
    def source(self) -> str:
        return self._source

    @property
    def timeout(self) -> float:
        return self._timeout

    def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> RumoClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"RumoClient(base_url={self._base_url!r})"

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    def submit_content(
        self,
        content: Content | Iterable[Content],
        *,
        timeout: float | None = None,
    ) -> Submission:
        """Submit or update content pieces in the source.

        The body is always a JSON array, even for a single piece.  Entries
        sharing an id replace what the source held for that id.  Keep each
        batch at or below :data:`MAX_SUBMISSION_BATCH` entries; larger
        batches are sent anyway and only logged.

        Args:
            content: One :class:`~rumo.models.Content` or an iterable of them.
            timeout: Per-call override of the client timeout.

        Returns:
            The server's :class:`~rumo.models.Submission` acknowledgement.
        """
        batch = [content] if isinstance(content, Content) else list(content)
        if len(batch) > MAX_SUBMISSION_BATCH:
            logger.warning(
                "Submitting %d content entries to source %r; the API asks for at most %d per call",
                len(batch),
                self._source,
                MAX_SUBMISSION_BATCH,
            )
        payload = self._request("POST", "", body=batch, timeout=timeout)
        return Submission.from_dict(payload)

    def get_catalog_summary(self, *, timeout: float | None = None) -> Summary:
        """Return the summary of the content stored in the source."""
        return Summary.from_dict(self._request("GET", "", timeout=timeout))

    def get_content(
        self,
        content_id: str,
        query: ContentQuery | None = None,
        *,
        timeout: float | None = None,
    ) -> Content:
        """Fetch one content piece.

        Args:
            content_id: The content piece's id.
            query: Optional ``catalogs`` / ``at`` filters.
            timeout: Per-call override of the client timeout.
        """
        payload = self._request(
            "GET",
            _path("content", content_id),
            params=query.to_params() if query else None,
            timeout=timeout,
        )
        return Content.from_dict(payload)

    def get_similar_content(
        self,
        content_id: str,
        query: SimilarContentQuery | None = None,
        *,
        timeout: float | None = None,
    ) -> Recommendation:
        """Return content similar to *content_id*.

        The source must hold at least two content pieces for the server to
        produce a ranking.

        Args:
            content_id: The anchor content piece.
            query: Optional ``catalogs`` / ``at`` / ``take``.
            timeout: Per-call override of the client timeout.
        """
        payload = self._request(
            "GET",
            _path("content", content_id, "similar"),
            params=query.to_params() if query else None,
            timeout=timeout,
        )
        return Recommendation.from_dict(payload)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def submit_user_event(
        self,
        user_id: str,
        interaction_type: InteractionType | str,
        content_id: str,
        *,
        timeout: float | None = None,
    ) -> UserEvent:
        """Record that *user_id* interacted with *content_id*.

        The interaction type travels as its literal name in the path
        (``.../users/u1/RateLike/c9``); there is no body.

        Raises:
            ValueError: If *interaction_type* names no
                :class:`~rumo.models.InteractionType` member, or an id is
                blank.  Nothing is sent in that case.
        """
        kind = InteractionType(interaction_type)
        payload = self._request(
            "POST", _path("users", user_id, kind.value, content_id), timeout=timeout
        )
        return UserEvent.from_dict(payload)

    def list_interactions(
        self,
        user_id: str,
        query: InteractionQuery | None = None,
        *,
        timeout: float | None = None,
    ) -> list[Interaction]:
        """Return every interaction recorded for *user_id*, in server order."""
        payload = self._request(
            "GET",
            _path("users", user_id, "interactions"),
            params=query.to_params() if query else None,
            timeout=timeout,
        )
        if not isinstance(payload, list):
            raise DeserializationError(
                f"Expected a JSON array of interactions, got {type(payload).__name__}"
            )
        return [Interaction.from_dict(item) for item in payload]

    def get_personalized_recommendation(
        self,
        user_id: str,
        query: RecommendationQuery | None = None,
        *,
        timeout: float | None = None,
    ) -> Recommendation:
        """Return content recommended from *user_id*'s taste and feedback profile.

        Args:
            user_id: The user to recommend for.
            query: Optional ``catalogs`` / ``take`` / ``algo``.
            timeout: Per-call override of the client timeout.
        """
        payload = self._request(
            "GET",
            _path("users", user_id, "recommendation"),
            params=query.to_params() if query else None,
            timeout=timeout,
        )
        return Recommendation.from_dict(payload)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Params | None = None,
        body: Any = None,
        timeout: float | None = None,
    ) -> Any:
        """Send one request and return the decoded JSON body.

        Raises:
            ConfigurationError: The per-call *timeout* is not positive.
            RumoTimeoutError: The request timed out.
            TransportError: No HTTP response was obtained.
            RemoteError: The status was not 2xx.
            DeserializationError: The body was not JSON.
        """
        if timeout is not None and timeout <= 0:
            raise ConfigurationError(f"timeout must be positive, got {timeout!r}")
        url = self._base_url + path
        headers: dict[str, str] = {}
        data: str | None = None
        if body is not None:
            data = self._serializer.dumps(body)
            headers["Content-Type"] = self._serializer.content_type

        logger.debug("%s %s params=%s", method, url, params or [])
        try:
            response = self._session.request(
                method,
                url,
                params=params or None,
                data=data.encode("utf-8") if data is not None else None,
                headers=headers or None,
                timeout=timeout if timeout is not None else self._timeout,
            )
        except requests.Timeout as exc:
            logger.error("%s %s timed out", method, url)
            raise RumoTimeoutError(f"{method} {url} timed out") from exc
        except requests.RequestException as exc:
            logger.error("%s %s failed: %s", method, url, exc)
            raise TransportError(f"{method} {url} failed: {exc}") from exc

        if not 200 <= response.status_code < 300:
            logger.warning(
                "%s %s returned HTTP %d", method, url, response.status_code
            )
            raise RemoteError(response.status_code, response.text, url)

        return self._serializer.loads(response.text)


def _path(*segments: str) -> str:
    """Join *segments* into a relative path, percent-encoding each one.

    Raises:
        ValueError: If a segment (a user or content id) is blank.
    """
    for segment in segments:
        if not isinstance(segment, str) or not segment.strip():
            raise ValueError(f"ids must be non-empty strings, got {segment!r}")
    return "/".join(quote(s, safe="") for s in segments)
