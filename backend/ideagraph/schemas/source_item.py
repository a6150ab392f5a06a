"""Source item response schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class SourceItemRead(BaseModel):
    """Serialized source item without its raw analysis blob."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    source: str
    source_item_id: str
    title: str
    author: str
    url: str
    score: int
    source_created_at: datetime | None
    created_at: datetime
    problem_id: int | None
    idea_id: int | None
    product_id: int | None
