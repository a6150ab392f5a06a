"""SQLAlchemy metadata registry import for Alembic."""

from ideagraph.models import (
    Idea,
    IdeaCategory,
    IdeaProduct,
    Problem,
    ProblemCategory,
    ProblemIdea,
    ProblemProduct,
    ProblemVector,
    Product,
    ProductCategory,
    SourceItem,
    SourceItemVector,
)
from ideagraph.models.base import Base

__all__ = [
    "Base",
    "SourceItem",
    "SourceItemVector",
    "Problem",
    "ProblemCategory",
    "ProblemVector",
    "Idea",
    "IdeaCategory",
    "Product",
    "ProductCategory",
    "ProblemIdea",
    "ProblemProduct",
    "IdeaProduct",
]
