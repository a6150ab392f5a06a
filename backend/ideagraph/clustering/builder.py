"""Batch clustering of ungrouped source items into canonical ideas."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from time import perf_counter

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ideagraph.clustering.aggregation import join_delimited, merge_delimited, truncated_mean
from ideagraph.config import get_settings
from ideagraph.extraction.types import ExtractedIdea, ExtractionResult
from ideagraph.models.source_item import SourceItem
from ideagraph.schemas.runs import ClusterRunResult
from ideagraph.services import entity_store
from ideagraph.services.entity_kinds import IDEA
from ideagraph.services.vector_index import VectorIndex, source_item_index

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ClusterMember:
    """The parts of one source item that feed cluster aggregation."""

    source_item_id: int
    title: str
    description: str
    features: list[str]
    score: int
    categories: list[str]
    url: str

    @classmethod
    def from_source_item(cls, item: SourceItem) -> ClusterMember:
        """Build a member from the stored analysis blob.

        Raises ``ValueError`` when the blob cannot be parsed.
        """

        try:
            payload = json.loads(item.analysis_result)
        except json.JSONDecodeError as exc:
            raise ValueError(f"analysis blob is not valid JSON: {exc}") from exc
        idea = ExtractionResult.from_dict(payload).idea
        return cls(
            source_item_id=item.id,
            title=idea.title or item.title,
            description=idea.description or item.content,
            features=list(idea.features),
            score=idea.score,
            categories=list(idea.categories),
            url=item.url,
        )


@dataclass(slots=True)
class Cluster:
    """Seed first, then single-hop neighbours in ascending distance."""

    members: list[ClusterMember] = field(default_factory=list)

    @property
    def seed(self) -> ClusterMember:
        return self.members[0]

    @property
    def source_item_ids(self) -> list[int]:
        return [member.source_item_id for member in self.members]

    def to_idea(self) -> tuple[ExtractedIdea, dict[str, str]]:
        """Aggregate members into an idea candidate plus extra idea columns."""

        idea = ExtractedIdea(
            title=self.seed.title,
            description=self.seed.description,
            features=list(self.seed.features),
            score=truncated_mean(member.score for member in self.members),
            categories=merge_delimited(member.categories for member in self.members),
        )
        references = merge_delimited([member.url] for member in self.members)
        return idea, {"reference_links": join_delimited(references)}


class ClusterBuilder:
    """Greedy, single-hop, order-dependent clustering of ungrouped items.

    Each pass owns its own ``clustered`` set, so separate passes never share state.
    """

    def __init__(
        self,
        db: Session,
        *,
        similarity_threshold: float | None = None,
        neighbor_limit: int | None = None,
        index: VectorIndex | None = None,
    ) -> None:
        settings = get_settings()
        self._db = db
        self._similarity_threshold = (
            settings.cluster_similarity_threshold if similarity_threshold is None else similarity_threshold
        )
        self._neighbor_limit = settings.cluster_neighbor_limit if neighbor_limit is None else neighbor_limit
        self._index = index or source_item_index(db)

    def form_clusters(
        self,
        members: list[ClusterMember],
        embeddings: dict[int, list[float]],
        clustered: set[int],
    ) -> list[Cluster]:
        """Group ``members`` in their given order.

        ``clustered`` is updated with every id placed in a cluster.
        """

        by_id = {member.source_item_id: member for member in members}
        clusters: list[Cluster] = []
        for member in members:
            seed_id = member.source_item_id
            if seed_id in clustered:
                continue
            cluster = Cluster(members=[member])
            clustered.add(seed_id)
            for neighbor in self._index.query(embeddings[seed_id], self._neighbor_limit):
                if neighbor.id in clustered or neighbor.id not in by_id:
                    continue
                similarity = 1.0 - neighbor.distance
                if similarity <= self._similarity_threshold:
                    continue
                cluster.members.append(by_id[neighbor.id])
                clustered.add(neighbor.id)
            clusters.append(cluster)
        return clusters

    def run(self) -> ClusterRunResult:
        """Cluster every ungrouped item and create one idea per cluster."""

        total_started = perf_counter()
        result = ClusterRunResult()
        items = entity_store.list_ungrouped_source_items(self._db)
        if not items:
            logger.info("clustering.run_noop reason=no_ungrouped_items")
            return result
        result.items_seen = len(items)

        embeddings = self._index.get_embeddings(item.id for item in items)
        members: list[ClusterMember] = []
        for item in items:
            if item.id not in embeddings:
                result.items_without_embedding += 1
                logger.warning("clustering.item_missing_embedding source_item_id=%s", item.id)
                continue
            try:
                members.append(ClusterMember.from_source_item(item))
            except ValueError as exc:
                result.items_invalid += 1
                logger.warning("clustering.item_invalid source_item_id=%s error=%s", item.id, exc)

        clusters = self.form_clusters(members, embeddings, clustered=set())
        result.clusters_formed = len(clusters)

        for cluster in clusters:
            idea_candidate, extra = cluster.to_idea()
            try:
                idea = entity_store.create_entity(self._db, IDEA, idea_candidate, extra=extra)
                entity_store.set_source_item_backlink(self._db, IDEA.backlink, cluster.source_item_ids, idea.id)
            except (SQLAlchemyError, ValueError):
                result.clusters_failed += 1
                logger.exception(
                    "clustering.cluster_failed seed_source_item_id=%s members=%d",
                    cluster.seed.source_item_id,
                    len(cluster.members),
                )
                continue
            result.ideas_created += 1
            result.items_grouped += len(cluster.members)
            logger.info(
                "clustering.idea_created idea_id=%s members=%d score=%d",
                idea.id,
                len(cluster.members),
                idea_candidate.score,
            )

        logger.info(
            (
                "clustering.run_timing items=%d missing_embeddings=%d invalid=%d clusters=%d "
                "ideas=%d failed=%d grouped=%d total_ms=%.2f"
            ),
            result.items_seen,
            result.items_without_embedding,
            result.items_invalid,
            result.clusters_formed,
            result.ideas_created,
            result.clusters_failed,
            result.items_grouped,
            (perf_counter() - total_started) * 1000.0,
        )
        return result
