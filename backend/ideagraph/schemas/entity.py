"""Canonical entity response schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ProblemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    slug: str
    title: str
    description: str
    pain_points_json: list[str]
    score: int
    categories: list[str] = Field(default_factory=list)
    created_at: datetime


class IdeaRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    slug: str
    title: str
    description: str
    features_json: list[str]
    score: int
    reference_links: str
    categories: list[str] = Field(default_factory=list)
    created_at: datetime


class ProductRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    slug: str
    name: str
    description: str
    url: str
    categories: list[str] = Field(default_factory=list)
    created_at: datetime
