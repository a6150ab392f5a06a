"""Integration tests for find-or-create resolution of analysed source items."""

from __future__ import annotations

import json
import math
import unittest
from unittest import mock

from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ideagraph.db.base import Base
from ideagraph.entity_resolution import ResolutionEngine
from ideagraph.extraction.types import ExtractedIdea, ExtractedProblem, ExtractedProduct, ExtractionResult
from ideagraph.models import IdeaProduct, Problem, ProblemIdea, ProblemProduct, ProblemVector, Product, SourceItem
from ideagraph.services import entity_store
from ideagraph.services.embeddings import EmbeddingError, OllamaEmbeddingsClient


def _cosine_vector(cosine: float) -> list[float]:
    """Unit vector whose cosine against [1, 0] is ``cosine``."""

    return [cosine, math.sqrt(1.0 - cosine * cosine)]


class _MappedEmbeddingClient:
    def __init__(self, vectors: dict[str, list[float]]) -> None:
        self.vectors = vectors
        self.calls: list[str] = []

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        self.calls.extend(texts)
        return [self.vectors[text] for text in texts]


class _FailingEmbeddingClient:
    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        raise EmbeddingError("embedding oracle unavailable")


def _analysis(
    problem_title: str = "",
    problem_score: int = 0,
    idea_title: str = "",
    idea_score: int = 0,
    products: list[str] | None = None,
) -> ExtractionResult:
    return ExtractionResult(
        problem=ExtractedProblem(title=problem_title, score=problem_score, categories=["fintech"]),
        idea=ExtractedIdea(title=idea_title, score=idea_score, categories=["saas"]),
        products=[ExtractedProduct(name=name, url=f"https://{name.lower()}.example") for name in products or []],
    )


class ResolutionEngineTests(unittest.TestCase):
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
        self.embeddings = _MappedEmbeddingClient(
            {
                "Invoices are paid late": [1.0, 0.0],
                "Clients pay invoices late": _cosine_vector(0.85),
                "Tax filing is confusing": _cosine_vector(0.75),
            }
        )

    def tearDown(self) -> None:
        self.db.close()
        Base.metadata.drop_all(self.engine)

    def _count(self, model) -> int:  # noqa: ANN001
        return int(self.db.scalar(select(func.count()).select_from(model)) or 0)

    def _engine(self, client=None) -> ResolutionEngine:  # noqa: ANN001
        return ResolutionEngine(
            self.db,
            embedding_client=client or self.embeddings,
            distance_threshold=0.2,
            neighbor_limit=5,
        )

    def _item(self, native_id: str, analysis: ExtractionResult | str) -> SourceItem:
        blob = analysis if isinstance(analysis, str) else json.dumps(analysis.to_dict())
        item = entity_store.create_source_item(
            self.db,
            entity_store.SourceItemDraft(source="reddit", source_item_id=native_id, title=native_id),
            embedding=[1.0, 0.0],
            analysis_result=blob,
        )
        assert item is not None
        return item

    def test_near_duplicate_problem_is_reused_and_distant_one_created(self) -> None:
        first = self._item("a", _analysis("Invoices are paid late", 60))
        near = self._item("b", _analysis("Clients pay invoices late", 55))
        far = self._item("c", _analysis("Tax filing is confusing", 40))

        result = self._engine().run()

        self.db.expire_all()
        first_problem = self.db.get(SourceItem, first.id).problem_id
        self.assertEqual(self.db.get(SourceItem, near.id).problem_id, first_problem)
        self.assertNotEqual(self.db.get(SourceItem, far.id).problem_id, first_problem)
        self.assertEqual(self._count(Problem), 2)
        self.assertEqual(self._count(ProblemVector), 2)
        self.assertEqual(result.problems_created, 2)
        self.assertEqual(result.problems_reused, 1)
        self.assertEqual(result.items_resolved, 3)

    def test_ideas_and_products_are_always_new_and_linked(self) -> None:
        self._item("a", _analysis("Invoices are paid late", 60, "Reminder bot", 50, ["Chaser"]))
        self._item("b", _analysis("Clients pay invoices late", 60, "Reminder bot", 50, ["Chaser"]))

        result = self._engine().run()

        self.assertEqual(result.ideas_created, 2)
        self.assertEqual(result.products_created, 2)
        self.assertEqual(self._count(Product), 2)
        self.assertEqual(self._count(ProblemIdea), 2)
        self.assertEqual(self._count(ProblemProduct), 2)
        self.assertEqual(self._count(IdeaProduct), 2)
        self.assertEqual(result.links_created, 6)
        self.assertEqual(entity_store.list_ungrouped_source_items(self.db), [])

    def test_failed_problem_still_resolves_idea_without_link(self) -> None:
        item = self._item("a", _analysis("Invoices are paid late", 60, "Reminder bot", 50))

        with self.assertLogs("ideagraph.entity_resolution.resolver", level="ERROR"):
            result = self._engine(_FailingEmbeddingClient()).run()

        self.db.expire_all()
        stored = self.db.get(SourceItem, item.id)
        self.assertIsNone(stored.problem_id)
        self.assertIsNotNone(stored.idea_id)
        self.assertEqual(result.candidate_errors, 1)
        self.assertEqual(result.ideas_created, 1)
        self.assertEqual(self._count(Problem), 0)
        self.assertEqual(self._count(ProblemIdea), 0)

    def test_embedding_read_timeout_skips_each_item_and_finishes_the_run(self) -> None:
        first = self._item("a", _analysis("Invoices are paid late", 60))
        second = self._item("b", _analysis("Tax filing is confusing", 40))
        response = mock.MagicMock()
        response.__enter__.return_value.read.side_effect = TimeoutError("The read operation timed out")
        client = OllamaEmbeddingsClient(model="embeddinggemma")

        with mock.patch(
            "ideagraph.services.embeddings.urllib_request.urlopen",
            return_value=response,
        ) as urlopen:
            with self.assertLogs("ideagraph.entity_resolution.resolver", level="ERROR"):
                result = self._engine(client).run()

        self.assertEqual(urlopen.call_count, 2)
        self.assertEqual(result.items_seen, 2)
        self.assertEqual(result.items_skipped, 2)
        self.assertEqual(result.candidate_errors, 2)
        self.assertEqual(self._count(Problem), 0)
        self.assertEqual(
            [row.id for row in entity_store.list_ungrouped_source_items(self.db)],
            [first.id, second.id],
        )

    def test_zero_score_candidates_are_skipped(self) -> None:
        item = self._item("a", _analysis("Invoices are paid late", 0, "Reminder bot", 0))

        result = self._engine().run()

        self.assertEqual(self.embeddings.calls, [])
        self.assertEqual(result.items_skipped, 1)
        self.assertEqual([row.id for row in entity_store.list_ungrouped_source_items(self.db)], [item.id])

    def test_unparseable_blob_is_skipped_and_left_ungrouped(self) -> None:
        bad = self._item("bad", "not json")
        self._item("good", _analysis("Invoices are paid late", 60))

        with self.assertLogs("ideagraph.entity_resolution.resolver", level="WARNING"):
            result = self._engine().run()

        self.assertEqual(result.items_seen, 2)
        self.assertEqual(result.items_skipped, 1)
        self.assertEqual(result.items_resolved, 1)
        self.assertEqual([row.id for row in entity_store.list_ungrouped_source_items(self.db)], [bad.id])

    def test_second_run_finds_nothing_to_do(self) -> None:
        self._item("a", _analysis("Invoices are paid late", 60))
        self._engine().run()

        result = self._engine().run()

        self.assertEqual(result.items_seen, 0)
        self.assertEqual(self._count(Problem), 1)


if __name__ == "__main__":
    unittest.main()
