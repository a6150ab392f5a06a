"""Idea ORM models."""

from sqlalchemy import JSON, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ideagraph.models.base import Base, IdMixin, TimestampMixin


class Idea(Base, IdMixin, TimestampMixin):
    """Candidate solution, created per analysed item or per cluster."""

    __tablename__ = "ideas"

    slug: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    features_json: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    reference_links: Mapped[str] = mapped_column(Text, default="", nullable=False)


class IdeaCategory(Base, IdMixin):
    """Category slug attached to an idea."""

    __tablename__ = "idea_categories"

    idea_id: Mapped[int] = mapped_column(ForeignKey("ideas.id", ondelete="CASCADE"), index=True, nullable=False)
    category_slug: Mapped[str] = mapped_column(String(128), nullable=False)
