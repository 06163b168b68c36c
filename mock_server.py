"""
mock_server.py — Self-contained in-memory stand-in for the Rumo API.

Serves the same routes as the real service under ``/{source}/`` so the
client (and ``python main.py``) can be exercised without network access
or an API key.

Startup
-------
1. python mock_server.py            — listens on MOCK_HTTP_HOST:MOCK_HTTP_PORT
2. RUMO_URL=http://127.0.0.1:8088/ RUMO_API_KEY=local-dev-key \\
   RUMO_SOURCE=demo python main.py summary

Ranking
-------
* Similar content: cosine similarity between weighted category vectors.
* Personalized: a user vector is accumulated from the user's interactions
  (per-type weights, RateDislike negative).  ``algo=cosine`` (default)
  compares weighted vectors, ``algo=jaccard`` compares category sets.
  Users with no usable history get the most-interacted content instead.

Needs numpy (the ``mock`` extra) on top of the Python stdlib; the client
itself does not.
"""

from __future__ import annotations

import json
import logging
import socketserver
import threading
from datetime import date, datetime, timezone
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any
from urllib.parse import parse_qs, unquote, urlparse

import numpy as np

import config
from rumo.client import API_KEY_HEADER
from rumo.errors import DeserializationError
from rumo.models import Content, InteractionType, Key, UserEvent

logger = logging.getLogger("mock_server")

# Weight each interaction contributes to a user's taste vector.
INTERACTION_WEIGHTS: dict[InteractionType, float] = {
    InteractionType.CLICK: 1.0,
    InteractionType.PLAY: 1.5,
    InteractionType.WATCH: 2.0,
    InteractionType.BOOKMARK: 2.0,
    InteractionType.PREVIEW: 0.5,
    InteractionType.PURCHASE: 3.0,
    InteractionType.RATE_LIKE: 3.0,
    InteractionType.RATE_DISLIKE: -3.0,
}

ALGORITHMS = ("cosine", "jaccard")


class ApiError(Exception):
    """Raised by store operations; turned into a JSON error response."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------


class InMemoryRumoStore:
    """Thread-safe in-memory catalogue and interaction log, keyed by source.

    Content is stored as its wire dict together with the date it was last
    uploaded.  Interactions are stored as :class:`~rumo.models.UserEvent`
    wire dicts in arrival order.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._content: dict[str, dict[str, tuple[dict[str, Any], date]]] = {}
        self._interactions: dict[str, dict[str, list[dict[str, Any]]]] = {}

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    def submit(
        self, source: str, items: Any, today: date | None = None
    ) -> dict[str, Any]:
        """Store a batch of content wire dicts; later ids overwrite earlier ones."""
        if not isinstance(items, list):
            raise ApiError(400, "Request body must be a JSON array of content")
        try:
            parsed = [Content.from_dict(item) for item in items]
        except DeserializationError as exc:
            raise ApiError(400, f"Invalid content: {exc}") from exc

        uploaded = today or datetime.now(timezone.utc).date()
        with self._lock:
            catalogue = self._content.setdefault(source, {})
            for content in parsed:
                catalogue[content.id] = (content.to_dict(), uploaded)
        logger.info("Source %r: stored %d content pieces", source, len(parsed))
        return {
            "source": source,
            "submitted": len(parsed),
            "ids": [c.id for c in parsed],
        }

    def summary(self, source: str) -> dict[str, Any]:
        with self._lock:
            catalogue = dict(self._content.get(source, {}))
        catalogs: set[str] = set()
        for payload, _ in catalogue.values():
            catalogs.update(_catalogs_of(payload))
        return {"source": source, "count": len(catalogue), "catalogs": sorted(catalogs)}

    def get_content(
        self,
        source: str,
        content_id: str,
        catalogs: list[str],
        at: date | None,
    ) -> dict[str, Any]:
        with self._lock:
            entry = self._content.get(source, {}).get(content_id)
        if entry is None or not _visible(entry, catalogs, at):
            raise ApiError(404, f"Content {content_id!r} not found")
        return entry[0]

    def similar(
        self,
        source: str,
        content_id: str,
        catalogs: list[str],
        at: date | None,
        take: int,
    ) -> dict[str, Any]:
        """Rank the source's other content by cosine similarity to *content_id*."""
        with self._lock:
            catalogue = dict(self._content.get(source, {}))
        if content_id not in catalogue:
            raise ApiError(404, f"Content {content_id!r} not found")
        if len(catalogue) < 2:
            raise ApiError(400, "At least two content pieces are required for similar content")

        candidates = {
            cid: entry[0]
            for cid, entry in catalogue.items()
            if cid != content_id and _visible(entry, catalogs, at)
        }
        index = _feature_index(catalogue[content_id][0], *candidates.values())
        anchor = _weighted_vector(catalogue[content_id][0], index)
        scored = [
            (cid, _cosine_similarity(anchor, _weighted_vector(payload, index)))
            for cid, payload in candidates.items()
        ]
        return _recommendation(content_id, scored, take)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def record_event(
        self, source: str, user_id: str, interaction_type: str, content_id: str
    ) -> dict[str, Any]:
        try:
            kind = InteractionType(interaction_type)
        except ValueError as exc:
            raise ApiError(400, f"Unknown interaction type {interaction_type!r}") from exc
        with self._lock:
            if content_id not in self._content.get(source, {}):
                raise ApiError(404, f"Content {content_id!r} not found")
            event = UserEvent(
                key=Key(source=source, user_id=user_id),
                type=kind.value,
                content_id=content_id,
                timestamp=datetime.now(timezone.utc),
            ).to_dict()
            self._interactions.setdefault(source, {}).setdefault(user_id, []).append(event)
        logger.info("Source %r: %s %s %s", source, user_id, kind.value, content_id)
        return event

    def interactions(
        self, source: str, user_id: str, catalogs: list[str]
    ) -> list[dict[str, Any]]:
        with self._lock:
            events = list(self._interactions.get(source, {}).get(user_id, []))
            catalogue = dict(self._content.get(source, {}))
        if not catalogs:
            return events
        return [
            e for e in events
            if e["contentId"] in catalogue
            and _visible(catalogue[e["contentId"]], catalogs, None)
        ]

    def recommend(
        self,
        source: str,
        user_id: str,
        catalogs: list[str],
        take: int,
        algo: str,
    ) -> dict[str, Any]:
        """Rank content the user has not interacted with yet."""
        if algo not in ALGORITHMS:
            raise ApiError(400, f"Unknown algo {algo!r}; expected one of {', '.join(ALGORITHMS)}")
        with self._lock:
            catalogue = dict(self._content.get(source, {}))
            events = list(self._interactions.get(source, {}).get(user_id, []))
            all_events = [
                e for user_events in self._interactions.get(source, {}).values()
                for e in user_events
            ]

        seen = {e["contentId"] for e in events}
        candidates = {
            cid: entry[0]
            for cid, entry in catalogue.items()
            if cid not in seen and _visible(entry, catalogs, None)
        }
        history = [
            (catalogue[e["contentId"]][0], INTERACTION_WEIGHTS[InteractionType(e["type"])])
            for e in events
            if e["contentId"] in catalogue
        ]

        index = _feature_index(*(p for p, _ in history), *candidates.values())
        user_vec = np.zeros(len(index), dtype=np.float64)
        for payload, weight in history:
            user_vec += weight * _weighted_vector(payload, index)

        if not history or np.linalg.norm(user_vec) == 0.0:
            return _recommendation(user_id, _popularity(candidates, all_events), take)

        if algo == "jaccard":
            liked = {f for f, i in index.items() if user_vec[i] > 0.0}
            scored = [
                (cid, _jaccard_index(liked, _feature_set(payload)))
                for cid, payload in candidates.items()
            ]
        else:
            scored = [
                (cid, _cosine_similarity(user_vec, _weighted_vector(payload, index)))
                for cid, payload in candidates.items()
            ]
        return _recommendation(user_id, scored, take)


# ---------------------------------------------------------------------------
# Scoring helpers
# ---------------------------------------------------------------------------


def _features(payload: dict[str, Any]) -> dict[str, float]:
    """Flatten ``categories`` into ``{"group:id": weight}``."""
    features: dict[str, float] = {}
    for group, entries in (payload.get("categories") or {}).items():
        for entry in entries:
            features[f"{group}:{entry['id']}"] = float(entry.get("weight", 1.0))
    return features


def _feature_set(payload: dict[str, Any]) -> set[str]:
    return set(_features(payload))


def _feature_index(*payloads: dict[str, Any]) -> dict[str, int]:
    names: set[str] = set()
    for payload in payloads:
        names.update(_features(payload))
    return {name: i for i, name in enumerate(sorted(names))}


def _weighted_vector(payload: dict[str, Any], index: dict[str, int]) -> np.ndarray:
    vec = np.zeros(len(index), dtype=np.float64)
    for name, weight in _features(payload).items():
        if name in index:
            vec[index[name]] = weight
    return vec


def _cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Return cosine similarity clamped to [0, 1]; 0.0 for zero vectors."""
    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return float(np.clip(np.dot(a, b) / (norm_a * norm_b), 0.0, 1.0))


def _jaccard_index(a: set[str], b: set[str]) -> float:
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def _popularity(
    candidates: dict[str, dict[str, Any]], events: list[dict[str, Any]]
) -> list[tuple[str, float]]:
    """Cold start: score candidates by share of all interactions in the source."""
    counts = {cid: 0 for cid in candidates}
    for e in events:
        if e["contentId"] in counts:
            counts[e["contentId"]] += 1
    top = max(counts.values(), default=0)
    return [(cid, n / top if top else 0.0) for cid, n in counts.items()]


def _recommendation(
    rec_id: str, scored: list[tuple[str, float]], take: int
) -> dict[str, Any]:
    ranked = sorted(scored, key=lambda x: (-x[1], x[0]))
    if take > 0:
        ranked = ranked[:take]
    return {"id": rec_id, "content": [{"id": cid, "score": s} for cid, s in ranked]}


def _catalogs_of(payload: dict[str, Any]) -> set[str]:
    raw = (payload.get("filters") or {}).get("catalog")
    if raw is None:
        return set()
    if isinstance(raw, list):
        return {str(c) for c in raw}
    return {str(raw)}


def _visible(
    entry: tuple[dict[str, Any], date], catalogs: list[str], at: date | None
) -> bool:
    payload, uploaded = entry
    if catalogs and not _catalogs_of(payload) & set(catalogs):
        return False
    if at is not None and uploaded > at:
        return False
    return True


# ---------------------------------------------------------------------------
# HTTP server
# ---------------------------------------------------------------------------


class _ThreadingHTTPServer(socketserver.ThreadingMixIn, HTTPServer):
    """Each HTTP request is handled in its own thread."""

    daemon_threads = True

    def __init__(self, address: tuple[str, int], store: InMemoryRumoStore, api_key: str) -> None:
        self.store = store
        self.api_key = api_key
        super().__init__(address, MockRumoHTTPHandler)


def _send_json(handler: BaseHTTPRequestHandler, data: Any, status: int = 200) -> None:
    body = json.dumps(data).encode()
    handler.send_response(status)
    handler.send_header("Content-Type", "application/json")
    handler.send_header("Content-Length", str(len(body)))
    handler.end_headers()
    handler.wfile.write(body)


def _send_error(handler: BaseHTTPRequestHandler, msg: str, status: int = 400) -> None:
    _send_json(handler, {"error": msg}, status=status)


class MockRumoHTTPHandler(BaseHTTPRequestHandler):
    """HTTP handler implementing the Rumo routes.

    Routes (all under ``/{source}``)
    --------------------------------
    GET  /                                   Catalogue summary
    POST /                                   Submit content (JSON array)
    GET  /content/{id}                       One content piece
    GET  /content/{id}/similar               Similar content
    POST /users/{userId}/{type}/{contentId}  Record a user event
    GET  /users/{userId}/interactions        A user's interactions
    GET  /users/{userId}/recommendation      Personalized recommendation
    """

    server: _ThreadingHTTPServer

    def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
        logger.debug("%s %s", self.address_string(), format % args)

    def do_GET(self) -> None:
        self._dispatch("GET")

    def do_POST(self) -> None:
        self._dispatch("POST")

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    def _dispatch(self, method: str) -> None:
        if self.headers.get(API_KEY_HEADER) != self.server.api_key:
            _send_error(self, "Missing or invalid API key", status=401)
            return

        parsed = urlparse(self.path)
        raw_path = parsed.path.strip("/")
        parts = [unquote(p) for p in raw_path.split("/")] if raw_path else []
        if not parts:
            _send_error(self, "Not found", status=404)
            return
        source, route = parts[0], parts[1:]
        params = parse_qs(parsed.query)

        try:
            result = self._route(method, source, route, params)
        except ApiError as exc:
            _send_error(self, exc.message, status=exc.status)
            return
        _send_json(self, result)

    def _route(
        self, method: str, source: str, route: list[str], params: dict[str, list[str]]
    ) -> Any:
        store = self.server.store
        catalogs = params.get("catalogs", [])

        if method == "GET" and not route:
            return store.summary(source)
        if method == "POST" and not route:
            return store.submit(source, self._read_json())
        if method == "GET" and len(route) == 2 and route[0] == "content":
            return store.get_content(source, route[1], catalogs, _at(params))
        if method == "GET" and len(route) == 3 and route[0] == "content" and route[2] == "similar":
            return store.similar(source, route[1], catalogs, _at(params), _take(params))
        if method == "POST" and len(route) == 4 and route[0] == "users":
            return store.record_event(source, route[1], route[2], route[3])
        if method == "GET" and len(route) == 3 and route[0] == "users":
            if route[2] == "interactions":
                return store.interactions(source, route[1], catalogs)
            if route[2] == "recommendation":
                algo = (params.get("algo") or ["cosine"])[0]
                return store.recommend(source, route[1], catalogs, _take(params), algo)
        raise ApiError(404, "Not found")

    def _read_json(self) -> Any:
        try:
            length = int(self.headers.get("Content-Length", 0))
            return json.loads(self.rfile.read(length))
        except ValueError as exc:
            raise ApiError(400, f"Invalid JSON: {exc}") from exc


def _at(params: dict[str, list[str]]) -> date | None:
    raw = (params.get("at") or [""])[0]
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError as exc:
        raise ApiError(400, f"at must be YYYY-MM-DD, got {raw!r}") from exc


def _take(params: dict[str, list[str]]) -> int:
    raw = (params.get("take") or ["0"])[0]
    try:
        return int(raw)
    except ValueError as exc:
        raise ApiError(400, f"take must be an integer, got {raw!r}") from exc


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def start_server(
    host: str = "127.0.0.1",
    port: int = 0,
    api_key: str = config.MOCK_API_KEY,
    store: InMemoryRumoStore | None = None,
) -> _ThreadingHTTPServer:
    """Start the mock API on a daemon thread and return the running server.

    ``port=0`` binds a free port; read it back from ``server.server_address``.
    Call ``server.shutdown()`` then ``server.server_close()`` to stop it.
    """
    server = _ThreadingHTTPServer((host, port), store or InMemoryRumoStore(), api_key)
    thread = threading.Thread(
        target=server.serve_forever,
        name="mock-rumo-http",
        daemon=True,
    )
    thread.start()
    logger.info("Mock Rumo API listening on http://%s:%d/", *server.server_address[:2])
    return server


def main() -> None:
    """Serve the mock API in the foreground until Ctrl-C."""
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    server = _ThreadingHTTPServer(
        (config.MOCK_HTTP_HOST, config.MOCK_HTTP_PORT),
        InMemoryRumoStore(),
        config.MOCK_API_KEY,
    )
    logger.info(
        "Mock Rumo API at http://%s:%d/  (x-api-key: %s)",
        config.MOCK_HTTP_HOST,
        config.MOCK_HTTP_PORT,
        config.MOCK_API_KEY,
    )
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down.")
    finally:
        server.server_close()


if __name__ == "__main__":
    main()
