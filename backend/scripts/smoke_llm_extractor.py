"""Run a real LLM analysis call against one sample feed post.

Usage (from repo root):
    python backend/scripts/smoke_llm_extractor.py

Usage (from backend/):
    python scripts/smoke_llm_extractor.py
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from ideagraph.crawl.reddit_client import Post
from ideagraph.extraction.llm_extractor import get_default_extractor


def _demo_post() -> Post:
    return Post(
        id="smoke-1",
        title="I keep losing track of which SaaS subscriptions my team pays for",
        content=(
            "We're a 12 person startup and every month there's a surprise charge. "
            "Spreadsheets don't work. Tried Vendr but it's aimed at enterprises. "
            "Would pay for something that reads our card statements and flags unused seats."
        ),
        author="smoke",
        subreddit="startups",
        url="https://reddit.com/r/startups/comments/smoke-1/",
    )


def main() -> None:
    extractor = get_default_extractor()
    result = extractor.extract(_demo_post().text)
    print(
        json.dumps(
            {
                "model": extractor.model_name,
                "prompt_version": extractor.prompt_version,
                "verdict": result.classify().value,
                "raw_output": extractor.last_raw_output,
                "analysis": result.to_dict(),
            },
            indent=2,
        )
    )


if __name__ == "__main__":
    main()
