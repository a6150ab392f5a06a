"""ORM models package exports."""

from ideagraph.models.idea import Idea, IdeaCategory
from ideagraph.models.links import IdeaProduct, ProblemIdea, ProblemProduct
from ideagraph.models.problem import Problem, ProblemCategory, ProblemVector
from ideagraph.models.product import Product, ProductCategory
from ideagraph.models.source_item import SourceItem
from ideagraph.models.source_item_vector import SourceItemVector

__all__ = [
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
