"""Batch run summaries."""

from pydantic import BaseModel


class CrawlRunResult(BaseModel):
    """Crawler pass summary."""

    topics_crawled: int = 0
    topics_failed: int = 0
    posts_seen: int = 0
    items_created: int = 0
    items_existing: int = 0
    items_meta: int = 0
    items_empty: int = 0
    items_failed: int = 0


class ResolutionRunResult(BaseModel):
    """Per-item resolution pass summary."""

    items_seen: int = 0
    items_resolved: int = 0
    items_skipped: int = 0
    candidate_errors: int = 0
    problems_created: int = 0
    problems_reused: int = 0
    ideas_created: int = 0
    products_created: int = 0
    links_created: int = 0


class ClusterRunResult(BaseModel):
    """Cluster builder pass summary."""

    items_seen: int = 0
    items_without_embedding: int = 0
    items_invalid: int = 0
    clusters_formed: int = 0
    ideas_created: int = 0
    clusters_failed: int = 0
    items_grouped: int = 0
