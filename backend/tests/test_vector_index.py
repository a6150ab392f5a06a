"""Unit tests for the cosine-distance vector index."""

from __future__ import annotations

import math
import unittest

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ideagraph.db.base import Base
from ideagraph.services.embeddings import cosine_distance
from ideagraph.services.vector_index import VectorIndex, problem_index, source_item_index


def _unit(degrees: float) -> list[float]:
    radians = math.radians(degrees)
    return [math.cos(radians), math.sin(radians)]


class VectorIndexTests(unittest.TestCase):
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
        self.index: VectorIndex = source_item_index(self.db)

    def tearDown(self) -> None:
        self.db.close()
        Base.metadata.drop_all(self.engine)

    def test_query_orders_by_distance_then_id(self) -> None:
        self.index.insert(3, _unit(30))
        self.index.insert(1, _unit(10))
        self.index.insert(2, _unit(10))
        self.db.commit()

        neighbors = self.index.query(_unit(0), 10)

        self.assertEqual([neighbor.id for neighbor in neighbors], [1, 2, 3])
        self.assertAlmostEqual(neighbors[0].distance, 1 - math.cos(math.radians(10)))

    def test_query_respects_k_and_max_distance(self) -> None:
        for row_id, degrees in ((1, 0), (2, 20), (3, 60), (4, 90)):
            self.index.insert(row_id, _unit(degrees))
        self.db.commit()

        self.assertEqual([n.id for n in self.index.query(_unit(0), 2)], [1, 2])
        self.assertEqual([n.id for n in self.index.query(_unit(0), 10, max_distance=0.2)], [1, 2])
        self.assertEqual(self.index.query(_unit(0), 0), [])

    def test_empty_index_and_empty_vector(self) -> None:
        self.assertEqual(problem_index(self.db).query(_unit(0), 5), [])
        with self.assertRaises(ValueError):
            self.index.insert(1, [])

    def test_get_embeddings_omits_missing_ids(self) -> None:
        self.index.insert(7, [0.5, 0.5])
        self.db.commit()

        self.assertEqual(self.index.get_embeddings([7, 8]), {7: [0.5, 0.5]})
        self.assertEqual(self.index.get_embeddings([]), {})


class CosineDistanceTests(unittest.TestCase):
    def test_distance_bounds(self) -> None:
        self.assertAlmostEqual(cosine_distance([1.0, 0.0], [2.0, 0.0]), 0.0)
        self.assertAlmostEqual(cosine_distance([1.0, 0.0], [0.0, 1.0]), 1.0)
        self.assertAlmostEqual(cosine_distance([1.0, 0.0], [-1.0, 0.0]), 2.0)

    def test_degenerate_vectors_are_maximally_distant(self) -> None:
        self.assertEqual(cosine_distance([0.0, 0.0], [1.0, 0.0]), 2.0)
        self.assertEqual(cosine_distance([1.0], [1.0, 0.0]), 2.0)


if __name__ == "__main__":
    unittest.main()
