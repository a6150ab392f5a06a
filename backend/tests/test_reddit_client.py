"""Unit tests for the Reddit public JSON feed client."""

from __future__ import annotations

import io
import json
import unittest
from datetime import datetime, timezone
from http import client as http_client
from unittest import mock
from urllib import error as urllib_error

from ideagraph.crawl.reddit_client import FeedError, RedditClient

_URLOPEN = "ideagraph.crawl.reddit_client.urllib_request.urlopen"


def _mock_response(body) -> mock.MagicMock:  # noqa: ANN001
    response = mock.MagicMock()
    response.__enter__.return_value.read.return_value = json.dumps(body).encode("utf-8")
    return response


def _listing(*children: dict) -> dict:
    return {"kind": "Listing", "data": {"children": [{"kind": "t3", "data": child} for child in children]}}


class RedditClientTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = RedditClient(user_agent="linux:ideagraph-test:v0")

    def test_fetch_posts_maps_listing_children(self) -> None:
        body = _listing(
            {
                "id": "1abc",
                "title": "Tired of chasing invoices",
                "selftext": "Is there a tool?",
                "author": "founder42",
                "subreddit": "startups",
                "permalink": "/r/startups/comments/1abc/tired_of_chasing_invoices/",
                "score": 12,
                "created_utc": 1760000000.0,
            }
        )

        with mock.patch(_URLOPEN, return_value=_mock_response(body)) as urlopen:
            posts = self.client.fetch_posts("startups", 25)

        request = urlopen.call_args.args[0]
        self.assertEqual(request.full_url, "https://www.reddit.com/r/startups/new.json?limit=25")
        self.assertEqual(request.get_header("User-agent"), "linux:ideagraph-test:v0")
        self.assertEqual(len(posts), 1)
        post = posts[0]
        self.assertEqual(post.id, "1abc")
        self.assertEqual(post.content, "Is there a tool?")
        self.assertEqual(post.url, "https://reddit.com/r/startups/comments/1abc/tired_of_chasing_invoices/")
        self.assertEqual(post.score, 12)
        self.assertEqual(post.created_at, datetime.fromtimestamp(1760000000, tz=timezone.utc))
        self.assertEqual(post.text, "Tired of chasing invoices\nIs there a tool?")

    def test_fetch_comments_skips_deleted_removed_and_empty(self) -> None:
        body = [
            _listing({"id": "1abc", "title": "Share your project"}),
            _listing(
                {"id": "c1", "body": "[deleted]", "permalink": "/c1"},
                {"id": "c2", "body": "[removed]", "permalink": "/c2"},
                {"id": "c3", "body": "", "permalink": "/c3"},
                {"id": "c4", "body": "I built an invoice chaser", "author": "maker", "permalink": "/c4"},
                {"count": 3, "children": ["c5"]},
            ),
        ]

        with mock.patch(_URLOPEN, return_value=_mock_response(body)) as urlopen:
            comments = self.client.fetch_comments("SideProject", "1abc")

        self.assertEqual(
            urlopen.call_args.args[0].full_url,
            "https://www.reddit.com/r/SideProject/comments/1abc.json",
        )
        self.assertEqual([comment.id for comment in comments], ["c4"])
        self.assertEqual(comments[0].title, "")
        self.assertEqual(comments[0].subreddit, "SideProject")
        self.assertEqual(comments[0].url, "https://reddit.com/c4")

    def test_comments_payload_without_comment_listing_is_empty(self) -> None:
        with mock.patch(_URLOPEN, return_value=_mock_response([_listing()])):
            self.assertEqual(self.client.fetch_comments("startups", "1abc"), [])

    def test_http_error_becomes_feed_error(self) -> None:
        error = urllib_error.HTTPError(
            "https://www.reddit.com/r/startups/new.json?limit=25",
            429,
            "Too Many Requests",
            hdrs=None,
            fp=io.BytesIO(b"slow down"),
        )

        with mock.patch(_URLOPEN, side_effect=error):
            with self.assertRaises(FeedError) as ctx:
                self.client.fetch_posts("startups", 25)
        self.assertIn("429", str(ctx.exception))

    def test_network_and_decode_errors_become_feed_errors(self) -> None:
        with mock.patch(_URLOPEN, side_effect=urllib_error.URLError("connection refused")):
            with self.assertRaises(FeedError):
                self.client.fetch_posts("startups", 25)

        response = mock.MagicMock()
        response.__enter__.return_value.read.return_value = b"<html>blocked</html>"
        with mock.patch(_URLOPEN, return_value=response):
            with self.assertRaises(FeedError):
                self.client.fetch_posts("startups", 25)

    def test_read_timeout_and_dropped_connection_become_feed_errors(self) -> None:
        response = mock.MagicMock()
        response.__enter__.return_value.read.side_effect = TimeoutError("The read operation timed out")
        with mock.patch(_URLOPEN, return_value=response):
            with self.assertRaises(FeedError):
                self.client.fetch_posts("startups", 25)

        disconnected = http_client.RemoteDisconnected("Remote end closed connection without response")
        with mock.patch(_URLOPEN, side_effect=disconnected):
            with self.assertRaises(FeedError):
                self.client.fetch_comments("startups", "1abc")


if __name__ == "__main__":
    unittest.main()
