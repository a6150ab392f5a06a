"""Persistence for source items, canonical entities and their links."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ideagraph.models.base import Base
from ideagraph.models.idea import Idea
from ideagraph.models.links import IdeaProduct, ProblemIdea, ProblemProduct
from ideagraph.models.problem import Problem
from ideagraph.models.product import Product
from ideagraph.models.source_item import SourceItem
from ideagraph.models.source_item_vector import SourceItemVector
from ideagraph.services.entity_kinds import ResolvableEntity
from ideagraph.services.vector_index import VectorIndex

_BACKLINK_COLUMNS = {"problem_id", "idea_id", "product_id"}


@dataclass(slots=True)
class SourceItemDraft:
    """Feed fields for a new source item."""

    source: str
    source_item_id: str
    title: str = ""
    content: str = ""
    author: str = ""
    url: str = ""
    score: int = 0
    source_created_at: datetime | None = None


def source_item_exists(db: Session, source: str, source_item_id: str) -> bool:
    """Return whether ``(source, source_item_id)`` was already ingested."""

    if not source or not source_item_id:
        raise ValueError("source and source_item_id must be non-empty")
    count = db.scalar(
        select(func.count())
        .select_from(SourceItem)
        .where(SourceItem.source == source, SourceItem.source_item_id == source_item_id)
    )
    return bool(count)


def create_source_item(
    db: Session,
    draft: SourceItemDraft,
    *,
    embedding: list[float],
    analysis_result: str,
) -> SourceItem | None:
    """Persist a source item and its embedding together.

    Returns ``None`` when the natural key already exists.
    """

    item = SourceItem(
        source=draft.source,
        source_item_id=draft.source_item_id,
        title=draft.title,
        content=draft.content,
        author=draft.author,
        url=draft.url,
        score=draft.score,
        source_created_at=draft.source_created_at,
        analysis_result=analysis_result,
    )
    try:
        db.add(item)
        db.flush()
        VectorIndex(db, SourceItemVector).insert(item.id, embedding)
        db.commit()
    except IntegrityError:
        db.rollback()
        if source_item_exists(db, draft.source, draft.source_item_id):
            return None
        raise
    except (SQLAlchemyError, ValueError):
        db.rollback()
        raise
    db.refresh(item)
    return item


def get_source_item(db: Session, source_item_id: int) -> SourceItem | None:
    return db.get(SourceItem, source_item_id)


def list_source_items(db: Session, *, ungrouped_only: bool = False, limit: int | None = None) -> list[SourceItem]:
    """List source items in insertion order."""

    stmt = select(SourceItem)
    if ungrouped_only:
        stmt = stmt.where(
            SourceItem.problem_id.is_(None),
            SourceItem.idea_id.is_(None),
            SourceItem.product_id.is_(None),
        )
    stmt = stmt.order_by(SourceItem.id.asc())
    if limit is not None:
        stmt = stmt.limit(limit)
    return list(db.scalars(stmt).all())


def list_ungrouped_source_items(db: Session) -> list[SourceItem]:
    """Items with none of the three back-links set."""

    return list_source_items(db, ungrouped_only=True)


def set_source_item_backlink(
    db: Session,
    backlink: str,
    source_item_ids: Iterable[int],
    target_id: int,
) -> int:
    """Point every listed source item at ``target_id`` in one statement.

    Back-links are write-once: items whose column is already set are left alone.
    Returns the number of rows updated.
    """

    if backlink not in _BACKLINK_COLUMNS:
        raise ValueError(f"unknown back-link column: {backlink}")
    ids = list(source_item_ids)
    if not ids:
        return 0
    column = getattr(SourceItem, backlink)
    result = db.execute(
        update(SourceItem)
        .where(SourceItem.id.in_(ids), column.is_(None))
        .values({backlink: target_id})
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return int(result.rowcount or 0)


def create_entity(
    db: Session,
    kind: ResolvableEntity[Any],
    candidate: Any,
    *,
    embedding: list[float] | None = None,
    extra: dict[str, Any] | None = None,
) -> Base:
    """Create one canonical entity with its category rows and optional vector row.

    All rows commit together or not at all.
    """

    try:
        entity = kind.build(candidate, extra)
        db.add(entity)
        db.flush()
        db.add_all(kind.build_categories(entity.id, candidate))
        if embedding is not None:
            if kind.vector_model is None:
                raise ValueError(f"{kind.name} entities do not carry embeddings")
            VectorIndex(db, kind.vector_model).insert(entity.id, embedding)
        db.commit()
    except (SQLAlchemyError, ValueError):
        db.rollback()
        raise
    db.refresh(entity)
    return entity


def create_problem_idea(db: Session, problem_id: int | None, idea_id: int | None) -> bool:
    return _create_link(db, ProblemIdea, problem_id=problem_id, idea_id=idea_id)


def create_problem_product(db: Session, problem_id: int | None, product_id: int | None) -> bool:
    return _create_link(db, ProblemProduct, problem_id=problem_id, product_id=product_id)


def create_idea_product(db: Session, idea_id: int | None, product_id: int | None) -> bool:
    return _create_link(db, IdeaProduct, idea_id=idea_id, product_id=product_id)


def _create_link(db: Session, model: type[Base], **endpoint_ids: int | None) -> bool:
    """Insert a link row only when every endpoint id is known."""

    if not all(endpoint_ids.values()):
        return False
    try:
        db.add(model(**endpoint_ids))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return True


def list_problems(db: Session, *, limit: int = 100, offset: int = 0) -> list[Problem]:
    stmt = select(Problem).order_by(Problem.score.desc(), Problem.id.asc()).limit(limit).offset(offset)
    return list(db.scalars(stmt).all())


def list_ideas(db: Session, *, limit: int = 100, offset: int = 0) -> list[Idea]:
    stmt = select(Idea).order_by(Idea.score.desc(), Idea.id.asc()).limit(limit).offset(offset)
    return list(db.scalars(stmt).all())


def list_products(db: Session, *, limit: int = 100, offset: int = 0) -> list[Product]:
    stmt = select(Product).order_by(Product.id.asc()).limit(limit).offset(offset)
    return list(db.scalars(stmt).all())


def get_categories(db: Session, kind: ResolvableEntity[Any], entity_ids: Iterable[int]) -> dict[int, list[str]]:
    """Map entity id to its category slugs, in insertion order."""

    ids = list(entity_ids)
    if not ids:
        return {}
    fk_column = getattr(kind.category_model, kind.category_fk)
    rows = db.execute(
        select(fk_column, kind.category_model.category_slug)
        .where(fk_column.in_(ids))
        .order_by(kind.category_model.id.asc())
    )
    categories: dict[int, list[str]] = {entity_id: [] for entity_id in ids}
    for entity_id, slug in rows:
        categories[entity_id].append(slug)
    return categories
