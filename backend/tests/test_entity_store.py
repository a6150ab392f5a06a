"""Integration tests for source item ingestion and canonical entity persistence."""

from __future__ import annotations

import unittest
from datetime import datetime, timezone

from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ideagraph.db.base import Base
from ideagraph.extraction.types import ExtractedIdea, ExtractedProblem, ExtractedProduct
from ideagraph.models import (
    Idea,
    IdeaCategory,
    Problem,
    ProblemCategory,
    ProblemIdea,
    ProblemVector,
    SourceItem,
    SourceItemVector,
)
from ideagraph.services import entity_store
from ideagraph.services.entity_kinds import IDEA, PROBLEM, PRODUCT


def _draft(source_item_id: str, **overrides) -> entity_store.SourceItemDraft:  # noqa: ANN003
    values = {
        "source": "reddit",
        "source_item_id": source_item_id,
        "title": f"Post {source_item_id}",
        "content": "body",
        "author": "someone",
        "url": f"https://reddit.com/r/startups/comments/{source_item_id}/",
        "score": 3,
        "source_created_at": datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc),
    }
    values.update(overrides)
    return entity_store.SourceItemDraft(**values)


class EntityStoreTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        cls.SessionLocal = sessionmaker(bind=cls.engine, autoflush=False, autocommit=False, future=True)

    @classmethod
    def tearDownClass(cls) -> None:
        cls.engine.dispose()

    def setUp(self) -> None:
        Base.metadata.create_all(self.engine)
        self.db: Session = self.SessionLocal()

    def tearDown(self) -> None:
        self.db.close()
        Base.metadata.drop_all(self.engine)

    def _count(self, model) -> int:  # noqa: ANN001
        return int(self.db.scalar(select(func.count()).select_from(model)) or 0)

    def test_source_item_is_stored_with_its_embedding_once(self) -> None:
        item = entity_store.create_source_item(
            self.db, _draft("abc"), embedding=[0.1, 0.2], analysis_result='{"is_meta": false}'
        )

        self.assertIsNotNone(item)
        self.assertTrue(entity_store.source_item_exists(self.db, "reddit", "abc"))
        self.assertFalse(entity_store.source_item_exists(self.db, "reddit", "xyz"))
        self.assertEqual(self.db.get(SourceItemVector, item.id).embedding, [0.1, 0.2])

        duplicate = entity_store.create_source_item(
            self.db, _draft("abc", title="changed"), embedding=[0.3, 0.4], analysis_result="{}"
        )

        self.assertIsNone(duplicate)
        self.assertEqual(self._count(SourceItem), 1)
        self.assertEqual(self._count(SourceItemVector), 1)
        self.assertEqual(self.db.get(SourceItem, item.id).title, "Post abc")

    def test_same_native_id_from_another_source_is_distinct(self) -> None:
        entity_store.create_source_item(self.db, _draft("abc"), embedding=[1.0], analysis_result="{}")
        other = entity_store.create_source_item(
            self.db, _draft("abc", source="hackernews"), embedding=[1.0], analysis_result="{}"
        )

        self.assertIsNotNone(other)
        self.assertEqual(self._count(SourceItem), 2)

    def test_empty_key_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            entity_store.source_item_exists(self.db, "reddit", "")

    def test_source_item_with_empty_embedding_is_not_half_written(self) -> None:
        with self.assertRaises(ValueError):
            entity_store.create_source_item(self.db, _draft("abc"), embedding=[], analysis_result="{}")

        self.assertEqual(self._count(SourceItem), 0)
        self.assertFalse(entity_store.source_item_exists(self.db, "reddit", "abc"))

    def test_backlinks_are_write_once_and_drive_ungrouped_listing(self) -> None:
        first = entity_store.create_source_item(self.db, _draft("a"), embedding=[1.0], analysis_result="{}")
        second = entity_store.create_source_item(self.db, _draft("b"), embedding=[1.0], analysis_result="{}")
        third = entity_store.create_source_item(self.db, _draft("c"), embedding=[1.0], analysis_result="{}")

        updated = entity_store.set_source_item_backlink(self.db, "problem_id", [first.id], 5)
        self.assertEqual(updated, 1)
        self.assertEqual(entity_store.set_source_item_backlink(self.db, "problem_id", [first.id], 9), 0)
        self.assertEqual(entity_store.set_source_item_backlink(self.db, "idea_id", [], 9), 0)
        entity_store.set_source_item_backlink(self.db, "product_id", [third.id], 2)

        self.db.expire_all()
        self.assertEqual(self.db.get(SourceItem, first.id).problem_id, 5)
        ungrouped = entity_store.list_ungrouped_source_items(self.db)
        self.assertEqual([item.id for item in ungrouped], [second.id])

        with self.assertRaises(ValueError):
            entity_store.set_source_item_backlink(self.db, "title", [second.id], 1)

    def test_entity_creation_writes_categories_and_vector_together(self) -> None:
        problem = entity_store.create_entity(
            self.db,
            PROBLEM,
            ExtractedProblem(
                title="Late Invoices!",
                description="Clients pay late",
                pain_points=["cash flow"],
                score=70,
                categories=["fintech", "freelance"],
            ),
            embedding=[0.6, 0.8],
        )

        self.assertEqual(problem.slug, "late-invoices")
        self.assertEqual(problem.pain_points_json, ["cash flow"])
        self.assertEqual(self.db.get(ProblemVector, problem.id).embedding, [0.6, 0.8])
        self.assertEqual(
            entity_store.get_categories(self.db, PROBLEM, [problem.id]),
            {problem.id: ["fintech", "freelance"]},
        )

    def test_failed_vector_insert_rolls_back_the_entity(self) -> None:
        with self.assertRaises(ValueError):
            entity_store.create_entity(
                self.db,
                PROBLEM,
                ExtractedProblem(title="Broken", score=10, categories=["x"]),
                embedding=[],
            )
        with self.assertRaises(ValueError):
            entity_store.create_entity(self.db, IDEA, ExtractedIdea(title="No vectors", score=10), embedding=[1.0])

        self.assertEqual(self._count(Problem), 0)
        self.assertEqual(self._count(ProblemCategory), 0)
        self.assertEqual(self._count(Idea), 0)
        self.assertEqual(self._count(IdeaCategory), 0)

    def test_links_need_both_endpoints(self) -> None:
        problem = entity_store.create_entity(self.db, PROBLEM, ExtractedProblem(title="P", score=10))
        idea = entity_store.create_entity(
            self.db, IDEA, ExtractedIdea(title="I", score=10), extra={"reference_links": "https://a"}
        )
        product = entity_store.create_entity(
            self.db, PRODUCT, ExtractedProduct(name="Stripe", url="https://stripe.com")
        )

        self.assertFalse(entity_store.create_problem_idea(self.db, None, idea.id))
        self.assertFalse(entity_store.create_idea_product(self.db, idea.id, None))
        self.assertTrue(entity_store.create_problem_idea(self.db, problem.id, idea.id))
        self.assertTrue(entity_store.create_problem_idea(self.db, problem.id, idea.id))
        self.assertTrue(entity_store.create_problem_product(self.db, problem.id, product.id))

        self.assertEqual(self._count(ProblemIdea), 2)
        self.assertEqual(idea.reference_links, "https://a")
        self.assertEqual(product.slug, "stripe")

    def test_listings_order_by_score(self) -> None:
        low = entity_store.create_entity(self.db, IDEA, ExtractedIdea(title="Low", score=10))
        high = entity_store.create_entity(self.db, IDEA, ExtractedIdea(title="High", score=90))

        self.assertEqual([idea.id for idea in entity_store.list_ideas(self.db)], [high.id, low.id])
        self.assertEqual([idea.id for idea in entity_store.list_ideas(self.db, limit=1, offset=1)], [low.id])


if __name__ == "__main__":
    unittest.main()
