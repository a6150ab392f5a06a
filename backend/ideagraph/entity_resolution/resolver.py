"""Find-or-create resolution of analysed candidates onto canonical entities."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from time import perf_counter

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ideagraph.config import get_settings
from ideagraph.extraction.types import ExtractedIdea, ExtractedProblem, ExtractedProduct, ExtractionResult
from ideagraph.models.source_item import SourceItem
from ideagraph.schemas.runs import ResolutionRunResult
from ideagraph.services import entity_store
from ideagraph.services.embeddings import EmbeddingClient, EmbeddingError, embed_text
from ideagraph.services.entity_kinds import IDEA, PROBLEM, PRODUCT
from ideagraph.services.vector_index import VectorIndex

logger = logging.getLogger(__name__)

RESOLVER_VERSION = "resolution-v1"
_CANDIDATE_ERRORS = (EmbeddingError, SQLAlchemyError, ValueError)


@dataclass(slots=True)
class ResolvedEntity:
    """Outcome of resolving one candidate."""

    entity_id: int
    created: bool


@dataclass(slots=True)
class SourceItemResolution:
    """Everything one source item resolved to."""

    source_item_id: int
    problem: ResolvedEntity | None = None
    idea: ResolvedEntity | None = None
    products: list[ResolvedEntity] = field(default_factory=list)
    links_created: int = 0
    errors: int = 0

    @property
    def resolved(self) -> bool:
        return self.problem is not None or self.idea is not None or bool(self.products)


class ResolutionEngine:
    """Maps analysed candidates onto canonical Problem/Idea/Product rows.

    Problems are deduplicated by embedding distance against existing problems.
    Ideas and products are always created fresh.
    """

    def __init__(
        self,
        db: Session,
        *,
        embedding_client: EmbeddingClient | None = None,
        distance_threshold: float | None = None,
        neighbor_limit: int | None = None,
    ) -> None:
        settings = get_settings()
        self._db = db
        self._embedding_client = embedding_client
        self._distance_threshold = (
            settings.problem_distance_threshold if distance_threshold is None else distance_threshold
        )
        self._neighbor_limit = settings.problem_neighbor_limit if neighbor_limit is None else neighbor_limit
        self._problem_index = VectorIndex(db, PROBLEM.vector_model)

    def resolve_problem(self, candidate: ExtractedProblem, source_item_ids: list[int]) -> ResolvedEntity | None:
        """Reuse the nearest problem within the distance threshold or create a new one.

        Returns ``None`` for a zero-score candidate. Embedding failures propagate.
        """

        if candidate.is_trivial:
            return None
        embedding = embed_text(PROBLEM.embedding_text(candidate), client=self._embedding_client)
        neighbors = self._problem_index.query(
            embedding,
            self._neighbor_limit,
            max_distance=self._distance_threshold,
        )
        if neighbors:
            nearest = neighbors[0]
            logger.info(
                "resolution.problem_reused problem_id=%s distance=%.4f title=%r",
                nearest.id,
                nearest.distance,
                candidate.title,
            )
            resolved = ResolvedEntity(entity_id=nearest.id, created=False)
        else:
            problem = entity_store.create_entity(self._db, PROBLEM, candidate, embedding=embedding)
            logger.info("resolution.problem_created problem_id=%s title=%r", problem.id, candidate.title)
            resolved = ResolvedEntity(entity_id=problem.id, created=True)

        entity_store.set_source_item_backlink(self._db, PROBLEM.backlink, source_item_ids, resolved.entity_id)
        return resolved

    def resolve_idea(self, candidate: ExtractedIdea, source_item_ids: list[int]) -> ResolvedEntity | None:
        if candidate.is_trivial:
            return None
        idea = entity_store.create_entity(self._db, IDEA, candidate)
        entity_store.set_source_item_backlink(self._db, IDEA.backlink, source_item_ids, idea.id)
        return ResolvedEntity(entity_id=idea.id, created=True)

    def resolve_product(self, candidate: ExtractedProduct, source_item_ids: list[int]) -> ResolvedEntity | None:
        if candidate.is_trivial:
            return None
        product = entity_store.create_entity(self._db, PRODUCT, candidate)
        entity_store.set_source_item_backlink(self._db, PRODUCT.backlink, source_item_ids, product.id)
        return ResolvedEntity(entity_id=product.id, created=True)

    def resolve_analysis(self, source_item_id: int, analysis: ExtractionResult) -> SourceItemResolution:
        """Resolve every candidate of one analysis and link the results.

        A failed candidate is logged and counted; its siblings still resolve,
        and links are only written between ids that were actually resolved.
        """

        outcome = SourceItemResolution(source_item_id=source_item_id)
        ids = [source_item_id]

        outcome.problem = self._guarded("problem", source_item_id, outcome, self.resolve_problem, analysis.problem, ids)
        outcome.idea = self._guarded("idea", source_item_id, outcome, self.resolve_idea, analysis.idea, ids)
        problem_id = outcome.problem.entity_id if outcome.problem else None
        idea_id = outcome.idea.entity_id if outcome.idea else None

        self._link(outcome, entity_store.create_problem_idea, problem_id, idea_id)
        for candidate in analysis.products:
            product = self._guarded("product", source_item_id, outcome, self.resolve_product, candidate, ids)
            if product is None:
                continue
            outcome.products.append(product)
            self._link(outcome, entity_store.create_problem_product, problem_id, product.entity_id)
            self._link(outcome, entity_store.create_idea_product, idea_id, product.entity_id)
        return outcome

    def resolve_source_item(self, item: SourceItem) -> SourceItemResolution:
        """Parse the stored analysis blob of ``item`` and resolve it.

        Raises ``ValueError`` when the blob cannot be parsed.
        """

        try:
            payload = json.loads(item.analysis_result)
        except json.JSONDecodeError as exc:
            raise ValueError(f"analysis blob is not valid JSON: {exc}") from exc
        return self.resolve_analysis(item.id, ExtractionResult.from_dict(payload))

    def run(self) -> ResolutionRunResult:
        """Resolve every ungrouped source item once."""

        total_started = perf_counter()
        result = ResolutionRunResult()
        items = entity_store.list_ungrouped_source_items(self._db)
        if not items:
            logger.info("resolution.run_noop reason=no_ungrouped_items")
            return result
        logger.info("resolution.run_started items=%d resolver_version=%s", len(items), RESOLVER_VERSION)

        for item in items:
            result.items_seen += 1
            item_id = item.id
            try:
                outcome = self.resolve_source_item(item)
            except ValueError as exc:
                result.items_skipped += 1
                logger.warning("resolution.item_invalid source_item_id=%s error=%s", item_id, exc)
                continue
            result.candidate_errors += outcome.errors
            result.links_created += outcome.links_created
            if outcome.resolved:
                result.items_resolved += 1
            else:
                result.items_skipped += 1
            if outcome.problem is not None:
                if outcome.problem.created:
                    result.problems_created += 1
                else:
                    result.problems_reused += 1
            if outcome.idea is not None:
                result.ideas_created += 1
            result.products_created += len(outcome.products)

        logger.info(
            (
                "resolution.run_timing items=%d resolved=%d skipped=%d candidate_errors=%d "
                "problems_created=%d problems_reused=%d ideas=%d products=%d links=%d total_ms=%.2f"
            ),
            result.items_seen,
            result.items_resolved,
            result.items_skipped,
            result.candidate_errors,
            result.problems_created,
            result.problems_reused,
            result.ideas_created,
            result.products_created,
            result.links_created,
            (perf_counter() - total_started) * 1000.0,
        )
        return result

    def _guarded(self, label, source_item_id, outcome, resolve, candidate, ids):  # noqa: ANN001
        try:
            return resolve(candidate, ids)
        except _CANDIDATE_ERRORS:
            outcome.errors += 1
            logger.exception("resolution.%s_failed source_item_id=%s", label, source_item_id)
            return None

    def _link(
        self,
        outcome: SourceItemResolution,
        create_link,  # noqa: ANN001
        left_id: int | None,
        right_id: int | None,
    ) -> None:
        try:
            if create_link(self._db, left_id, right_id):
                outcome.links_created += 1
        except SQLAlchemyError:
            outcome.errors += 1
            logger.exception(
                "resolution.link_failed source_item_id=%s left_id=%s right_id=%s",
                outcome.source_item_id,
                left_id,
                right_id,
            )
