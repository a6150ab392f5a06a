"""Seed demo source items offline and run one grouping pass.

Usage (from repository root):
    python backend/scripts/seed_demo.py

Usage (from backend directory):
    python scripts/seed_demo.py --pass cluster
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from sqlalchemy import delete, select

# Make `ideagraph` imports work whether the script is run from repo root or backend/.
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from ideagraph.clustering.builder import ClusterBuilder
from ideagraph.db.base import Base
from ideagraph.db.session import SessionLocal, engine
from ideagraph.entity_resolution.resolver import ResolutionEngine
from ideagraph.extraction.types import ExtractedIdea, ExtractedProblem, ExtractedProduct, ExtractionResult
from ideagraph.models.source_item import SourceItem
from ideagraph.models.source_item_vector import SourceItemVector
from ideagraph.services import entity_store
from ideagraph.services.embeddings import HashEmbeddingsClient

DEMO_SOURCE = "demo"


def build_demo_items() -> list[tuple[entity_store.SourceItemDraft, ExtractionResult]]:
    """Return deterministic posts with hand-written analyses."""

    rows = [
        (
            "Clients pay my invoices 60 days late",
            "Freelance designer here. Chasing payments eats a day every month.",
            ExtractionResult(
                problem=ExtractedProblem(
                    title="Freelancers chase late invoice payments",
                    pain_points=["cash flow gaps", "awkward follow-ups"],
                    score=72,
                    categories=["fintech", "freelance"],
                ),
                idea=ExtractedIdea(title="Automatic invoice reminder service", score=55, categories=["saas"]),
                products=[ExtractedProduct(name="Chaser", url="https://www.chaserhq.com", categories=["fintech"])],
            ),
        ),
        (
            "Late invoice payments are killing my agency",
            "Three clients are over 45 days. Any tooling that nudges them?",
            ExtractionResult(
                problem=ExtractedProblem(
                    title="Agencies chase late invoice payments",
                    pain_points=["manual reminders"],
                    score=65,
                    categories=["fintech"],
                ),
                idea=ExtractedIdea(title="Invoice reminder automation", score=48, categories=["saas", "agency"]),
            ),
        ),
        (
            "Meal planning for a family of five is exhausting",
            "Every Sunday I spend two hours figuring out what to cook.",
            ExtractionResult(
                problem=ExtractedProblem(title="Weekly family meal planning takes hours", score=58),
                idea=ExtractedIdea(title="Pantry-aware meal planner", score=44, categories=["consumer", "food"]),
            ),
        ),
    ]
    return [
        (
            entity_store.SourceItemDraft(
                source=DEMO_SOURCE,
                source_item_id=f"demo-{index}",
                title=title,
                content=content,
                author="demo",
                url=f"https://example.com/demo/{index}",
            ),
            analysis,
        )
        for index, (title, content, analysis) in enumerate(rows, start=1)
    ]


def reset_demo_items(db) -> None:
    """Remove previously seeded demo source items."""

    demo_ids = select(SourceItem.id).where(SourceItem.source == DEMO_SOURCE)
    db.execute(delete(SourceItemVector).where(SourceItemVector.id.in_(demo_ids)))
    db.execute(delete(SourceItem).where(SourceItem.source == DEMO_SOURCE))
    db.commit()


def parse_args() -> argparse.Namespace:
    """Parse script CLI arguments."""

    parser = argparse.ArgumentParser(description="Seed demo source items and group them.")
    parser.add_argument(
        "--pass",
        dest="grouping_pass",
        choices=["resolve", "cluster"],
        default="resolve",
        help="Grouping pass to run after seeding (default: resolve).",
    )
    parser.add_argument(
        "--no-reset",
        action="store_true",
        help="Do not delete previously seeded demo items before seeding.",
    )
    return parser.parse_args()


def main() -> None:
    """Seed demo data and print a short summary."""

    args = parse_args()
    embeddings = HashEmbeddingsClient()
    Base.metadata.create_all(engine)

    with SessionLocal() as db:
        if not args.no_reset:
            reset_demo_items(db)

        created = 0
        for draft, analysis in build_demo_items():
            text = f"{draft.title}\n{draft.content}"
            item = entity_store.create_source_item(
                db,
                draft,
                embedding=embeddings.embed_texts([text])[0],
                analysis_result=json.dumps(analysis.to_dict()),
            )
            created += item is not None

        if args.grouping_pass == "cluster":
            result = ClusterBuilder(db).run()
        else:
            result = ResolutionEngine(db, embedding_client=embeddings).run()

    print("Seed complete")
    print(f"source_items_created={created}")
    for key, value in result.model_dump().items():
        print(f"{key}={value}")
    print()
    print("Inspect:")
    print("  GET /problems")
    print("  GET /ideas")
    print("  GET /products")
    print("  GET /source-items?ungrouped=true")


if __name__ == "__main__":
    main()
