"""initial schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:01
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

from ideagraph.models.embedding_type import EMBEDDING_COLUMN_TYPE, PGVECTOR_ENABLED

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def _category_table(table_name: str, fk_column: str, parent_table: str) -> None:
    op.create_table(
        table_name,
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(fk_column, sa.Integer(), nullable=False),
        sa.Column("category_slug", sa.String(length=128), nullable=False),
        sa.ForeignKeyConstraint([fk_column], [f"{parent_table}.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(f"ix_{table_name}_{fk_column}", table_name, [fk_column], unique=False)


def _link_table(table_name: str, left: tuple[str, str], right: tuple[str, str]) -> None:
    (left_column, left_table), (right_column, right_table) = left, right
    op.create_table(
        table_name,
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(left_column, sa.Integer(), nullable=False),
        sa.Column(right_column, sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint([left_column], [f"{left_table}.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint([right_column], [f"{right_table}.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(f"ix_{table_name}_{left_column}", table_name, [left_column], unique=False)
    op.create_index(f"ix_{table_name}_{right_column}", table_name, [right_column], unique=False)


def upgrade() -> None:
    if PGVECTOR_ENABLED and op.get_bind().dialect.name == "postgresql":
        op.execute("CREATE EXTENSION IF NOT EXISTS vector")

    op.create_table(
        "source_items",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("source", sa.String(length=64), nullable=False),
        sa.Column("source_item_id", sa.String(length=255), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("author", sa.String(length=255), nullable=False),
        sa.Column("url", sa.String(length=1024), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("analysis_result", sa.Text(), nullable=False),
        sa.Column("source_created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("problem_id", sa.Integer(), nullable=True),
        sa.Column("idea_id", sa.Integer(), nullable=True),
        sa.Column("product_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("source", "source_item_id", name="uq_source_items_source_source_item_id"),
    )
    op.create_index("ix_source_items_problem_id", "source_items", ["problem_id"], unique=False)
    op.create_index("ix_source_items_idea_id", "source_items", ["idea_id"], unique=False)
    op.create_index("ix_source_items_product_id", "source_items", ["product_id"], unique=False)

    op.create_table(
        "source_item_vectors",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("embedding", EMBEDDING_COLUMN_TYPE, nullable=False),
        sa.ForeignKeyConstraint(["id"], ["source_items.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "problems",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("title", sa.String(length=512), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("pain_points_json", sa.JSON(), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_problems_slug", "problems", ["slug"], unique=False)

    op.create_table(
        "problem_vectors",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("embedding", EMBEDDING_COLUMN_TYPE, nullable=False),
        sa.ForeignKeyConstraint(["id"], ["problems.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "ideas",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("title", sa.String(length=512), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("features_json", sa.JSON(), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("reference_links", sa.Text(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_ideas_slug", "ideas", ["slug"], unique=False)

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=512), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("url", sa.String(length=1024), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_products_slug", "products", ["slug"], unique=False)

    _category_table("problem_categories", "problem_id", "problems")
    _category_table("idea_categories", "idea_id", "ideas")
    _category_table("product_categories", "product_id", "products")

    _link_table("problem_idea", ("problem_id", "problems"), ("idea_id", "ideas"))
    _link_table("problem_product", ("problem_id", "problems"), ("product_id", "products"))
    _link_table("idea_product", ("idea_id", "ideas"), ("product_id", "products"))


def downgrade() -> None:
    for table_name in ("idea_product", "problem_product", "problem_idea"):
        op.drop_table(table_name)
    for table_name in ("product_categories", "idea_categories", "problem_categories"):
        op.drop_table(table_name)
    op.drop_index("ix_products_slug", table_name="products")
    op.drop_table("products")
    op.drop_index("ix_ideas_slug", table_name="ideas")
    op.drop_table("ideas")
    op.drop_table("problem_vectors")
    op.drop_index("ix_problems_slug", table_name="problems")
    op.drop_table("problems")
    op.drop_table("source_item_vectors")
    op.drop_index("ix_source_items_product_id", table_name="source_items")
    op.drop_index("ix_source_items_idea_id", table_name="source_items")
    op.drop_index("ix_source_items_problem_id", table_name="source_items")
    op.drop_table("source_items")
