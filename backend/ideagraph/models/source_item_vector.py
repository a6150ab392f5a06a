"""Source item embedding model."""

from sqlalchemy import ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from ideagraph.models.base import Base
from ideagraph.models.embedding_type import EMBEDDING_COLUMN_TYPE


class SourceItemVector(Base):
    """Embedding row for a source item, keyed by the source item id."""

    __tablename__ = "source_item_vectors"

    id: Mapped[int] = mapped_column(ForeignKey("source_items.id", ondelete="CASCADE"), primary_key=True)
    embedding: Mapped[list[float]] = mapped_column(EMBEDDING_COLUMN_TYPE, nullable=False)
