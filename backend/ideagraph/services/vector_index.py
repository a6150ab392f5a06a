"""Similarity-queryable embedding tables keyed by their parent row id."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from ideagraph.models.embedding_type import PGVECTOR_ENABLED
from ideagraph.models.problem import ProblemVector
from ideagraph.models.source_item_vector import SourceItemVector
from ideagraph.services.embeddings import cosine_distance, ensure_embedding

VectorModel = type[ProblemVector] | type[SourceItemVector]


@dataclass(frozen=True, slots=True)
class Neighbor:
    """One nearest-neighbour hit."""

    id: int
    distance: float


class VectorIndex:
    """Cosine-distance index over one vector table.

    ``insert`` only adds to the session; committing is the caller's job so the
    vector row can share a transaction with its parent entity.
    """

    def __init__(self, db: Session, model: VectorModel) -> None:
        self._db = db
        self._model = model

    def insert(self, row_id: int, vector: list[float]) -> None:
        """Store the embedding for ``row_id``."""

        if not vector:
            raise ValueError("cannot index an empty vector")
        self._db.add(self._model(id=row_id, embedding=[float(value) for value in vector]))
        self._db.flush()

    def query(
        self,
        vector: list[float],
        k: int,
        max_distance: float | None = None,
    ) -> list[Neighbor]:
        """Return up to ``k`` neighbours ordered by ascending distance."""

        if k <= 0 or not vector:
            return []
        if PGVECTOR_ENABLED and self._db.get_bind().dialect.name == "postgresql":
            return self._query_pgvector(vector, k, max_distance)

        scored: list[Neighbor] = []
        for row_id, stored in self._db.execute(select(self._model.id, self._model.embedding)):
            candidate = ensure_embedding(stored)
            if candidate is None:
                continue
            distance = cosine_distance(vector, candidate)
            if max_distance is not None and distance > max_distance:
                continue
            scored.append(Neighbor(id=row_id, distance=distance))
        scored.sort(key=lambda neighbor: (neighbor.distance, neighbor.id))
        return scored[:k]

    def get_embeddings(self, row_ids: Iterable[int]) -> dict[int, list[float]]:
        """Bulk-load embeddings; ids without a stored vector are absent from the result."""

        ids = list(row_ids)
        if not ids:
            return {}
        rows = self._db.execute(select(self._model.id, self._model.embedding).where(self._model.id.in_(ids)))
        embeddings: dict[int, list[float]] = {}
        for row_id, stored in rows:
            vector = ensure_embedding(stored)
            if vector is not None:
                embeddings[row_id] = vector
        return embeddings

    def _query_pgvector(
        self,
        vector: list[float],
        k: int,
        max_distance: float | None,
    ) -> list[Neighbor]:
        distance = self._model.embedding.cosine_distance(vector)
        distance_expr = distance.label("distance")
        stmt = select(self._model.id, distance_expr)
        if max_distance is not None:
            stmt = stmt.where(distance <= max_distance)
        stmt = stmt.order_by(distance_expr.asc(), self._model.id.asc()).limit(k)
        return [Neighbor(id=row_id, distance=float(value)) for row_id, value in self._db.execute(stmt)]


def problem_index(db: Session) -> VectorIndex:
    return VectorIndex(db, ProblemVector)


def source_item_index(db: Session) -> VectorIndex:
    return VectorIndex(db, SourceItemVector)
