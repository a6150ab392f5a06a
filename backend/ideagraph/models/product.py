"""Product ORM models."""

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ideagraph.models.base import Base, IdMixin, TimestampMixin


class Product(Base, IdMixin, TimestampMixin):
    """Existing implementation of an idea (startup, project)."""

    __tablename__ = "products"

    slug: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(512), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    url: Mapped[str] = mapped_column(String(1024), default="", nullable=False)


class ProductCategory(Base, IdMixin):
    """Category slug attached to a product."""

    __tablename__ = "product_categories"

    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    category_slug: Mapped[str] = mapped_column(String(128), nullable=False)
