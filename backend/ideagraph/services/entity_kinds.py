"""Problem, Idea and Product share one create/categorize/embed shape."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Generic, TypeVar

from ideagraph.extraction.types import ExtractedIdea, ExtractedProblem, ExtractedProduct
from ideagraph.models.base import Base
from ideagraph.models.idea import Idea, IdeaCategory
from ideagraph.models.problem import Problem, ProblemCategory, ProblemVector
from ideagraph.models.product import Product, ProductCategory
from ideagraph.utils.slug import create_slug

CandidateT = TypeVar("CandidateT")


class ResolvableEntity(ABC, Generic[CandidateT]):
    """How one canonical entity type is built, categorized and indexed."""

    name: ClassVar[str]
    model: ClassVar[type[Base]]
    category_model: ClassVar[type[Base]]
    category_fk: ClassVar[str]
    backlink: ClassVar[str]
    vector_model: ClassVar[type[Base] | None] = None

    @abstractmethod
    def columns(self, candidate: CandidateT) -> dict[str, Any]:
        """Column values for a new row, slug included."""

    @abstractmethod
    def categories(self, candidate: CandidateT) -> list[str]:
        """Category slugs to attach to a new row."""

    @abstractmethod
    def embedding_text(self, candidate: CandidateT) -> str:
        """Representative text used for similarity matching."""

    def build(self, candidate: CandidateT, extra: dict[str, Any] | None = None) -> Base:
        values = self.columns(candidate)
        values.update(extra or {})
        return self.model(**values)

    def build_categories(self, entity_id: int, candidate: CandidateT) -> list[Base]:
        return [
            self.category_model(**{self.category_fk: entity_id, "category_slug": category})
            for category in self.categories(candidate)
        ]


class ProblemKind(ResolvableEntity[ExtractedProblem]):
    name = "problem"
    model = Problem
    category_model = ProblemCategory
    category_fk = "problem_id"
    backlink = "problem_id"
    vector_model = ProblemVector

    def columns(self, candidate: ExtractedProblem) -> dict[str, Any]:
        return {
            "slug": create_slug(candidate.title),
            "title": candidate.title,
            "description": candidate.description,
            "pain_points_json": list(candidate.pain_points),
            "score": candidate.score,
        }

    def categories(self, candidate: ExtractedProblem) -> list[str]:
        return list(candidate.categories)

    def embedding_text(self, candidate: ExtractedProblem) -> str:
        return candidate.title


class IdeaKind(ResolvableEntity[ExtractedIdea]):
    name = "idea"
    model = Idea
    category_model = IdeaCategory
    category_fk = "idea_id"
    backlink = "idea_id"

    def columns(self, candidate: ExtractedIdea) -> dict[str, Any]:
        return {
            "slug": create_slug(candidate.title),
            "title": candidate.title,
            "description": candidate.description,
            "features_json": list(candidate.features),
            "score": candidate.score,
        }

    def categories(self, candidate: ExtractedIdea) -> list[str]:
        return list(candidate.categories)

    def embedding_text(self, candidate: ExtractedIdea) -> str:
        return candidate.title


class ProductKind(ResolvableEntity[ExtractedProduct]):
    name = "product"
    model = Product
    category_model = ProductCategory
    category_fk = "product_id"
    backlink = "product_id"

    def columns(self, candidate: ExtractedProduct) -> dict[str, Any]:
        return {
            "slug": create_slug(candidate.name),
            "name": candidate.name,
            "description": candidate.description,
            "url": candidate.url,
        }

    def categories(self, candidate: ExtractedProduct) -> list[str]:
        return list(candidate.categories)

    def embedding_text(self, candidate: ExtractedProduct) -> str:
        return candidate.name


PROBLEM = ProblemKind()
IDEA = IdeaKind()
PRODUCT = ProductKind()
