"""Ingestion path: feed posts to analysed, embedded source items."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from enum import Enum
from time import perf_counter

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ideagraph.config import get_settings
from ideagraph.crawl.reddit_client import FeedClient, FeedError, Post
from ideagraph.extraction.extractor_interface import ExtractorInterface
from ideagraph.extraction.llm_extractor import LLMExtractionError
from ideagraph.extraction.types import ExtractionVerdict
from ideagraph.schemas.runs import CrawlRunResult
from ideagraph.services import entity_store
from ideagraph.services.embeddings import EmbeddingClient, EmbeddingError, embed_text

logger = logging.getLogger(__name__)

SOURCE_REDDIT = "reddit"
_ITEM_ERRORS = (LLMExtractionError, EmbeddingError, SQLAlchemyError, ValueError)


class IngestOutcome(str, Enum):
    CREATED = "created"
    EXISTING = "existing"
    META = "meta"
    EMPTY = "empty"
    FAILED = "failed"


class Crawler:
    """Fetch, gate, analyse, embed and store feed posts one at a time."""

    def __init__(
        self,
        db: Session,
        *,
        feed: FeedClient,
        extractor: ExtractorInterface,
        embedding_client: EmbeddingClient | None = None,
        subreddits: list[str] | None = None,
        post_limit: int | None = None,
        rate_limit_secs: float | None = None,
        include_meta_comments: bool | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        settings = get_settings()
        self._db = db
        self._feed = feed
        self._extractor = extractor
        self._embedding_client = embedding_client
        self._subreddits = list(settings.crawler_subreddits if subreddits is None else subreddits)
        self._post_limit = settings.crawler_post_limit if post_limit is None else post_limit
        self._rate_limit_secs = settings.crawler_rate_limit_secs if rate_limit_secs is None else rate_limit_secs
        self._include_meta_comments = (
            settings.crawler_include_meta_comments if include_meta_comments is None else include_meta_comments
        )
        self._sleep = sleep

    def crawl_all(self) -> CrawlRunResult:
        """Crawl every configured subreddit, pausing between them."""

        total_started = perf_counter()
        result = CrawlRunResult()
        for index, subreddit in enumerate(self._subreddits):
            if index > 0 and self._rate_limit_secs > 0:
                self._sleep(self._rate_limit_secs)
            try:
                self.crawl_topic(subreddit, result)
            except FeedError:
                result.topics_failed += 1
                logger.exception("crawl.topic_failed subreddit=%s", subreddit)

        logger.info(
            (
                "crawl.run_timing topics=%d failed_topics=%d posts=%d created=%d existing=%d "
                "meta=%d empty=%d failed=%d total_ms=%.2f"
            ),
            result.topics_crawled,
            result.topics_failed,
            result.posts_seen,
            result.items_created,
            result.items_existing,
            result.items_meta,
            result.items_empty,
            result.items_failed,
            (perf_counter() - total_started) * 1000.0,
        )
        return result

    def crawl_topic(self, subreddit: str, result: CrawlRunResult | None = None) -> CrawlRunResult:
        """Ingest the newest posts of one subreddit.

        Raises ``FeedError`` when the listing cannot be fetched.
        """

        result = result if result is not None else CrawlRunResult()
        logger.info("crawl.topic_started subreddit=%s limit=%d", subreddit, self._post_limit)
        posts = self._feed.fetch_posts(subreddit, self._post_limit)
        result.topics_crawled += 1
        for post in posts:
            outcome = self.ingest_post(post)
            _count(result, outcome)
            if outcome is IngestOutcome.META and self._include_meta_comments:
                self._ingest_comments(subreddit, post, result)
        return result

    def ingest_post(self, post: Post) -> IngestOutcome:
        """Run one post through the gate, the oracles and the store.

        Per-item failures are logged and reported as ``FAILED``.
        """

        try:
            if entity_store.source_item_exists(self._db, SOURCE_REDDIT, post.id):
                logger.debug("crawl.item_existing source_item_id=%s", post.id)
                return IngestOutcome.EXISTING
        except (SQLAlchemyError, ValueError):
            logger.exception("crawl.existence_check_failed source_item_id=%r", post.id)
            return IngestOutcome.FAILED

        logger.info("crawl.item_new source_item_id=%s title=%r", post.id, post.title)
        text = post.text
        try:
            analysis = self._extractor.extract(text)
            verdict = analysis.classify()
            if verdict is ExtractionVerdict.META:
                logger.info("crawl.item_meta source_item_id=%s", post.id)
                return IngestOutcome.META
            if verdict is ExtractionVerdict.EMPTY:
                logger.info("crawl.item_empty source_item_id=%s", post.id)
                return IngestOutcome.EMPTY

            embedding = embed_text(text, client=self._embedding_client)
            item = entity_store.create_source_item(
                self._db,
                entity_store.SourceItemDraft(
                    source=SOURCE_REDDIT,
                    source_item_id=post.id,
                    title=post.title,
                    content=post.content,
                    author=post.author,
                    url=post.url,
                    score=post.score,
                    source_created_at=post.created_at,
                ),
                embedding=embedding,
                analysis_result=json.dumps(analysis.to_dict()),
            )
        except _ITEM_ERRORS:
            logger.exception("crawl.item_failed source_item_id=%s", post.id)
            return IngestOutcome.FAILED

        if item is None:
            return IngestOutcome.EXISTING
        logger.info("crawl.item_created id=%s source_item_id=%s", item.id, post.id)
        return IngestOutcome.CREATED

    def _ingest_comments(self, subreddit: str, post: Post, result: CrawlRunResult) -> None:
        try:
            comments = self._feed.fetch_comments(subreddit, post.id)
        except FeedError:
            logger.exception("crawl.comments_failed subreddit=%s post_id=%s", subreddit, post.id)
            return
        logger.info("crawl.meta_comments post_id=%s comments=%d", post.id, len(comments))
        for comment in comments:
            _count(result, self.ingest_post(comment))


def _count(result: CrawlRunResult, outcome: IngestOutcome) -> None:
    result.posts_seen += 1
    if outcome is IngestOutcome.CREATED:
        result.items_created += 1
    elif outcome is IngestOutcome.EXISTING:
        result.items_existing += 1
    elif outcome is IngestOutcome.META:
        result.items_meta += 1
    elif outcome is IngestOutcome.EMPTY:
        result.items_empty += 1
    else:
        result.items_failed += 1
