"""Typed extraction outputs independent of persistence."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class ExtractionVerdict(str, Enum):
    """How the caller should treat one extraction result."""

    META = "meta"
    EMPTY = "empty"
    USABLE = "usable"


@dataclass(slots=True)
class ExtractedProblem:
    """Pain point candidate."""

    title: str = ""
    description: str = ""
    pain_points: list[str] = field(default_factory=list)
    score: int = 0
    categories: list[str] = field(default_factory=list)

    @property
    def is_trivial(self) -> bool:
        return self.score == 0


@dataclass(slots=True)
class ExtractedIdea:
    """Solution candidate."""

    title: str = ""
    description: str = ""
    features: list[str] = field(default_factory=list)
    score: int = 0
    categories: list[str] = field(default_factory=list)

    @property
    def is_trivial(self) -> bool:
        return self.score == 0


@dataclass(slots=True)
class ExtractedProduct:
    """Existing product candidate."""

    name: str = ""
    description: str = ""
    url: str = ""
    categories: list[str] = field(default_factory=list)

    @property
    def is_trivial(self) -> bool:
        return not self.name.strip()


@dataclass(slots=True)
class ExtractionResult:
    """Container for analysis oracle outputs for one text."""

    is_meta: bool = False
    problem: ExtractedProblem = field(default_factory=ExtractedProblem)
    idea: ExtractedIdea = field(default_factory=ExtractedIdea)
    products: list[ExtractedProduct] = field(default_factory=list)

    def classify(self) -> ExtractionVerdict:
        """Meta posts are discarded first, then results with nothing scored and no products."""

        if self.is_meta:
            return ExtractionVerdict.META
        if self.problem.score == 0 and self.idea.score == 0 and not self.products:
            return ExtractionVerdict.EMPTY
        return ExtractionVerdict.USABLE

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> ExtractionResult:
        """Rebuild a result from a stored analysis blob.

        Raises ``ValueError`` when the payload does not have the expected shape.
        """

        if not isinstance(payload, dict):
            raise ValueError("analysis payload must be an object")
        try:
            problem = payload.get("problem") or {}
            idea = payload.get("idea") or {}
            products = payload.get("products") or []
            return cls(
                is_meta=bool(payload.get("is_meta", False)),
                problem=ExtractedProblem(
                    title=str(problem.get("title") or ""),
                    description=str(problem.get("description") or ""),
                    pain_points=[str(value) for value in problem.get("pain_points") or []],
                    score=int(problem.get("score") or 0),
                    categories=split_categories(problem.get("categories")),
                ),
                idea=ExtractedIdea(
                    title=str(idea.get("title") or ""),
                    description=str(idea.get("description") or ""),
                    features=[str(value) for value in idea.get("features") or []],
                    score=int(idea.get("score") or 0),
                    categories=split_categories(idea.get("categories")),
                ),
                products=[
                    ExtractedProduct(
                        name=str(product.get("name") or ""),
                        description=str(product.get("description") or ""),
                        url=str(product.get("url") or ""),
                        categories=split_categories(product.get("categories")),
                    )
                    for product in products
                ],
            )
        except (AttributeError, TypeError) as exc:
            raise ValueError(f"analysis payload has an unexpected shape: {exc}") from exc


def split_categories(value: Any) -> list[str]:
    """Accept a list of categories or a comma-separated string."""

    if value is None:
        return []
    if isinstance(value, str):
        raw = value.split(",")
    elif isinstance(value, list):
        raw = [str(item) for item in value]
    else:
        raise TypeError(f"categories must be a list or string, got {type(value).__name__}")
    return [item.strip() for item in raw if item.strip()]
