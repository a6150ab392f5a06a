"""Problem ORM models."""

from sqlalchemy import JSON, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ideagraph.models.base import Base, IdMixin, TimestampMixin
from ideagraph.models.embedding_type import EMBEDDING_COLUMN_TYPE


class Problem(Base, IdMixin, TimestampMixin):
    """Canonical user pain point shared by one or more source items."""

    __tablename__ = "problems"

    slug: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    pain_points_json: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class ProblemCategory(Base, IdMixin):
    """Category slug attached to a problem."""

    __tablename__ = "problem_categories"

    problem_id: Mapped[int] = mapped_column(
        ForeignKey("problems.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    category_slug: Mapped[str] = mapped_column(String(128), nullable=False)


class ProblemVector(Base):
    """Embedding row for a problem, keyed by the problem id."""

    __tablename__ = "problem_vectors"

    id: Mapped[int] = mapped_column(ForeignKey("problems.id", ondelete="CASCADE"), primary_key=True)
    embedding: Mapped[list[float]] = mapped_column(EMBEDDING_COLUMN_TYPE, nullable=False)
