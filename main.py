"""Entry point: builds a client from ``config`` and runs one API call.

Examples::

    python main.py summary
    python main.py submit catalogue.json
    python main.py similar c1 --take 5 --catalog movies
    python main.py event alice RateLike c1
    python main.py recommend alice --algo cosine --take 10
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from typing import Any

import config
from rumo.client import RumoClient
from rumo.errors import RumoError
from rumo.models import Content, InteractionType
from rumo.queries import (
    ContentQuery,
    InteractionQuery,
    RecommendationQuery,
    SimilarContentQuery,
)

logger = logging.getLogger(__name__)


def build_client() -> RumoClient:
    """Construct a :class:`~rumo.client.RumoClient` from :mod:`config`.

    Raises:
        ConfigurationError: If ``RUMO_API_KEY`` or ``RUMO_SOURCE`` is unset.
    """
    return RumoClient(
        url=config.RUMO_URL,
        api_key=config.RUMO_API_KEY,
        source=config.RUMO_SOURCE,
        timeout=config.RUMO_TIMEOUT_SECONDS,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rumo", description="Call the Rumo content-recommendation API."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("summary", help="Show the catalogue summary of the source")

    submit = sub.add_parser("submit", help="Submit content from a JSON file")
    submit.add_argument("file", help="JSON object or array of content pieces")

    content = sub.add_parser("content", help="Fetch one content piece")
    content.add_argument("content_id")
    _add_catalog_option(content)
    content.add_argument("--at", help="Upload-date filter, YYYY-MM-DD")

    similar = sub.add_parser("similar", help="Fetch content similar to a piece")
    similar.add_argument("content_id")
    _add_catalog_option(similar)
    similar.add_argument("--at", help="Upload-date filter, YYYY-MM-DD")
    similar.add_argument("--take", type=int)

    event = sub.add_parser("event", help="Submit a user event")
    event.add_argument("user_id")
    event.add_argument("type", choices=[t.value for t in InteractionType])
    event.add_argument("content_id")

    interactions = sub.add_parser("interactions", help="List a user's interactions")
    interactions.add_argument("user_id")
    _add_catalog_option(interactions)

    recommend = sub.add_parser("recommend", help="Personalized recommendation")
    recommend.add_argument("user_id")
    _add_catalog_option(recommend)
    recommend.add_argument("--take", type=int)
    recommend.add_argument("--algo", help="e.g. jaccard or cosine")

    return parser


def run(client: RumoClient, args: argparse.Namespace) -> Any:
    """Dispatch *args* to *client* and return a JSON-ready result."""
    if args.command == "summary":
        return dict(client.get_catalog_summary().raw)
    if args.command == "submit":
        return dict(client.submit_content(_load_content(args.file)).raw)
    if args.command == "content":
        query = ContentQuery(catalogs=args.catalog, at=args.at)
        return client.get_content(args.content_id, query).to_dict()
    if args.command == "similar":
        query = SimilarContentQuery(catalogs=args.catalog, at=args.at, take=args.take)
        return client.get_similar_content(args.content_id, query).to_dict()
    if args.command == "event":
        return client.submit_user_event(args.user_id, args.type, args.content_id).to_dict()
    if args.command == "interactions":
        query = InteractionQuery(catalogs=args.catalog)
        return [i.to_dict() for i in client.list_interactions(args.user_id, query)]
    if args.command == "recommend":
        query = RecommendationQuery(catalogs=args.catalog, take=args.take, algo=args.algo)
        return client.get_personalized_recommendation(args.user_id, query).to_dict()
    raise ValueError(f"Unknown command: {args.command!r}")


def main(argv: Sequence[str] | None = None) -> int:
    """Parse *argv*, perform the call and print the result as JSON.

    Returns:
        Process exit code: 0 on success, 1 on any :class:`~rumo.errors.RumoError`.
    """
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = build_parser().parse_args(argv)
    try:
        with build_client() as client:
            result = run(client, args)
    except RumoError as exc:
        logger.error("%s", exc)
        return 1
    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _add_catalog_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--catalog",
        action="append",
        help="Restrict to a catalog (repeatable)",
    )


def _load_content(path: str) -> list[Content]:
    with open(path, encoding="utf-8") as fh:
        data = json.load(fh)
    if isinstance(data, dict):
        data = [data]
    return [Content.from_dict(item) for item in data]


if __name__ == "__main__":
    sys.exit(main())
