"""Reddit public JSON feed client."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from http import client as http_client
from typing import Any, Protocol
from urllib import error as urllib_error
from urllib import parse as urllib_parse
from urllib import request as urllib_request

from ideagraph.config import get_settings

REDDIT_BASE_URL = "https://www.reddit.com"
PERMALINK_BASE_URL = "https://reddit.com"
_SKIPPED_COMMENT_BODIES = {"", "[deleted]", "[removed]"}


class FeedError(RuntimeError):
    """Raised when the feed cannot be fetched or decoded."""


@dataclass(slots=True)
class Post:
    """One post or comment pulled from the feed."""

    id: str
    title: str
    content: str
    author: str
    subreddit: str
    url: str
    score: int = 0
    created_at: datetime | None = None

    @property
    def text(self) -> str:
        """Text handed to the analysis and embedding oracles."""

        return f"{self.title}\n{self.content}"


class FeedClient(Protocol):
    """Protocol for pluggable feed sources."""

    def fetch_posts(self, subreddit: str, limit: int) -> list[Post]:
        """Return the newest posts of one topic."""

    def fetch_comments(self, subreddit: str, post_id: str) -> list[Post]:
        """Return the top-level comments of one post."""


@dataclass(slots=True)
class RedditClient:
    """Minimal client for Reddit's unauthenticated JSON listings using stdlib HTTP."""

    user_agent: str
    base_url: str = REDDIT_BASE_URL
    timeout_seconds: int = 20

    def fetch_posts(self, subreddit: str, limit: int) -> list[Post]:
        listing = self._get_json(f"/r/{urllib_parse.quote(subreddit)}/new.json?limit={int(limit)}")
        if not isinstance(listing, dict):
            raise FeedError(f"Reddit listing for r/{subreddit} was not an object")
        return [
            _to_post(child, subreddit=subreddit, content_key="selftext")
            for child in _listing_children(listing)
        ]

    def fetch_comments(self, subreddit: str, post_id: str) -> list[Post]:
        payload = self._get_json(
            f"/r/{urllib_parse.quote(subreddit)}/comments/{urllib_parse.quote(post_id)}.json"
        )
        if not isinstance(payload, list) or len(payload) < 2:
            return []
        comments: list[Post] = []
        for child in _listing_children(payload[1]):
            body = str(child.get("body") or "")
            if body in _SKIPPED_COMMENT_BODIES:
                continue
            post = _to_post(child, subreddit=subreddit, content_key="body")
            post.title = ""
            comments.append(post)
        return comments

    def _get_json(self, path: str) -> Any:
        req = urllib_request.Request(
            url=f"{self.base_url.rstrip('/')}{path}",
            method="GET",
            headers={"User-Agent": self.user_agent, "Accept": "application/json"},
        )
        try:
            with urllib_request.urlopen(req, timeout=self.timeout_seconds) as resp:
                raw = resp.read().decode("utf-8")
        except urllib_error.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace")
            raise FeedError(f"Reddit HTTP {exc.code}: {detail}") from exc
        except urllib_error.URLError as exc:
            raise FeedError(f"Reddit request failed: {exc.reason}") from exc
        except (OSError, http_client.HTTPException) as exc:
            raise FeedError(f"Reddit connection failed: {exc!r}") from exc

        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise FeedError("Reddit returned a non-JSON response") from exc


def _listing_children(listing: Any) -> list[dict[str, Any]]:
    try:
        children = listing["data"]["children"]
    except (KeyError, TypeError) as exc:
        raise FeedError("Reddit listing had an unexpected shape") from exc
    return [child["data"] for child in children if isinstance(child, dict) and isinstance(child.get("data"), dict)]


def _to_post(data: dict[str, Any], *, subreddit: str, content_key: str) -> Post:
    created_utc = data.get("created_utc")
    created_at = (
        datetime.fromtimestamp(int(float(created_utc)), tz=timezone.utc) if created_utc is not None else None
    )
    return Post(
        id=str(data.get("id") or ""),
        title=str(data.get("title") or ""),
        content=str(data.get(content_key) or ""),
        author=str(data.get("author") or ""),
        subreddit=str(data.get("subreddit") or subreddit),
        url=f"{PERMALINK_BASE_URL}{data.get('permalink') or ''}",
        score=int(data.get("score") or 0),
        created_at=created_at,
    )


def get_default_feed_client() -> RedditClient:
    """Return the Reddit client configured from settings."""

    settings = get_settings()
    return RedditClient(user_agent=settings.reddit_user_agent, timeout_seconds=settings.http_timeout_seconds)
