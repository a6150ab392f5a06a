"""Many-to-many link tables between canonical entities.

Pairs are not unique; relinking the same pair inserts another row.
"""

from sqlalchemy import ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from ideagraph.models.base import Base, CreatedAtMixin, IdMixin


class ProblemIdea(Base, IdMixin, CreatedAtMixin):
    __tablename__ = "problem_idea"

    problem_id: Mapped[int] = mapped_column(ForeignKey("problems.id", ondelete="CASCADE"), index=True, nullable=False)
    idea_id: Mapped[int] = mapped_column(ForeignKey("ideas.id", ondelete="CASCADE"), index=True, nullable=False)


class ProblemProduct(Base, IdMixin, CreatedAtMixin):
    __tablename__ = "problem_product"

    problem_id: Mapped[int] = mapped_column(ForeignKey("problems.id", ondelete="CASCADE"), index=True, nullable=False)
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )


class IdeaProduct(Base, IdMixin, CreatedAtMixin):
    __tablename__ = "idea_product"

    idea_id: Mapped[int] = mapped_column(ForeignKey("ideas.id", ondelete="CASCADE"), index=True, nullable=False)
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
