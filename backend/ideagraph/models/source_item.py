"""Source item ORM model."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ideagraph.models.base import Base, CreatedAtMixin, IdMixin


class SourceItem(Base, IdMixin, CreatedAtMixin):
    """One raw document pulled from a feed, plus its analysis and entity back-links."""

    __tablename__ = "source_items"
    __table_args__ = (
        UniqueConstraint("source", "source_item_id", name="uq_source_items_source_source_item_id"),
    )

    source: Mapped[str] = mapped_column(String(64), nullable=False)
    source_item_id: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(Text, default="", nullable=False)
    content: Mapped[str] = mapped_column(Text, default="", nullable=False)
    author: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    url: Mapped[str] = mapped_column(String(1024), default="", nullable=False)
    score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    analysis_result: Mapped[str] = mapped_column(Text, default="", nullable=False)
    source_created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    problem_id: Mapped[int | None] = mapped_column(Integer, index=True, nullable=True)
    idea_id: Mapped[int | None] = mapped_column(Integer, index=True, nullable=True)
    product_id: Mapped[int | None] = mapped_column(Integer, index=True, nullable=True)
