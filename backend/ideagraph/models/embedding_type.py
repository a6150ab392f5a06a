"""Shared embedding column type configuration."""

from __future__ import annotations

import os

from sqlalchemy import JSON

EMBEDDING_DIMENSIONS = 768

try:
    from pgvector.sqlalchemy import Vector
except ImportError:  # pragma: no cover - pgvector is only installed for PostgreSQL deployments
    Vector = None  # type: ignore[assignment]

PGVECTOR_ENABLED = Vector is not None and os.getenv("ENABLE_PGVECTOR", "false").strip().lower() in {
    "1",
    "true",
    "yes",
    "on",
}

if PGVECTOR_ENABLED:
    EMBEDDING_COLUMN_TYPE = Vector(EMBEDDING_DIMENSIONS).with_variant(JSON, "sqlite")
else:
    EMBEDDING_COLUMN_TYPE = JSON
