"""Command line entry points for the ingestion and grouping passes."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable, Sequence

from pydantic import BaseModel, ValidationError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ideagraph.clustering.builder import ClusterBuilder
from ideagraph.config import get_settings
from ideagraph.crawl.crawler import Crawler
from ideagraph.crawl.reddit_client import get_default_feed_client
from ideagraph.db.base import Base
from ideagraph.entity_resolution.resolver import ResolutionEngine
from ideagraph.extraction.llm_extractor import LLMExtractionError, get_default_extractor
from ideagraph.models.embedding_type import PGVECTOR_ENABLED
from ideagraph.services.embeddings import EmbeddingError, get_default_embedding_client

logger = logging.getLogger("ideagraph.cli")


class SetupError(RuntimeError):
    """Raised when configuration or the store cannot be initialised."""


def _configure_logging() -> None:
    try:
        level = get_settings().log_level.upper()
    except ValidationError as exc:
        raise SetupError(f"Invalid settings: {exc}") from exc
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def _open_session() -> Session:
    try:
        from ideagraph.db.session import SessionLocal

        db = SessionLocal()
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        raise SetupError(f"Cannot open the store: {exc}") from exc
    return db


def _print_summary(name: str, result: BaseModel) -> None:
    print(name)
    for key, value in result.model_dump().items():
        print(f"{key}={value}")


def cmd_init_db(_: argparse.Namespace) -> None:
    try:
        from ideagraph.db.session import engine

        with engine.begin() as connection:
            if PGVECTOR_ENABLED and connection.dialect.name == "postgresql":
                connection.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
            Base.metadata.create_all(connection)
    except SQLAlchemyError as exc:
        raise SetupError(f"Schema creation failed: {exc}") from exc
    print("Schema ready")


def cmd_crawl(args: argparse.Namespace) -> None:
    try:
        extractor = get_default_extractor()
        embedding_client = get_default_embedding_client()
    except (LLMExtractionError, EmbeddingError) as exc:
        raise SetupError(str(exc)) from exc

    with _open_session() as db:
        crawler = Crawler(
            db,
            feed=get_default_feed_client(),
            extractor=extractor,
            embedding_client=embedding_client,
            subreddits=args.subreddits or None,
            post_limit=args.limit,
        )
        _print_summary("Crawl complete", crawler.crawl_all())


def cmd_resolve(_: argparse.Namespace) -> None:
    try:
        embedding_client = get_default_embedding_client()
    except EmbeddingError as exc:
        raise SetupError(str(exc)) from exc

    with _open_session() as db:
        _print_summary("Resolution complete", ResolutionEngine(db, embedding_client=embedding_client).run())


def cmd_cluster(_: argparse.Namespace) -> None:
    with _open_session() as db:
        _print_summary("Clustering complete", ClusterBuilder(db).run())


def cmd_run(args: argparse.Namespace) -> None:
    cmd_crawl(args)
    cmd_resolve(args)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""

    parser = argparse.ArgumentParser(prog="ideagraph", description="Mine problems, ideas and products from feeds.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create all tables.").set_defaults(handler=cmd_init_db)
    for name, handler, help_text in (
        ("crawl", cmd_crawl, "Ingest new feed posts."),
        ("run", cmd_run, "Crawl, then resolve ungrouped items."),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--subreddit", dest="subreddits", action="append", help="Override configured subreddits.")
        sub.add_argument("--limit", type=int, default=None, help="Posts fetched per subreddit.")
        sub.set_defaults(handler=handler)
    subparsers.add_parser("resolve", help="Resolve ungrouped items onto canonical entities.").set_defaults(
        handler=cmd_resolve
    )
    subparsers.add_parser("cluster", help="Cluster ungrouped items into ideas.").set_defaults(handler=cmd_cluster)
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    handler: Callable[[argparse.Namespace], None] = args.handler
    try:
        _configure_logging()
        handler(args)
    except SetupError as exc:
        logger.error("cli.setup_failed command=%s error=%s", args.command, exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
