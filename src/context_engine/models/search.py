"""Search-related models."""

from datetime import date

from pydantic import BaseModel, Field

from context_engine.models.item import ItemType


class SearchFilters(BaseModel):
    """Post-filters applied on top of a semantic search."""

    tags: list[str] = Field(default_factory=list)
    date_from: date | None = None
    date_to: date | None = None
    types: list[ItemType] | None = None
    top_k: int = Field(default=20, ge=1, le=200)


class ScoredItem(BaseModel):
    """A knowledge item in result shape with its query similarity."""

    id: str
    item_type: ItemType
    title: str
    content: str
    tags: list[str] = Field(default_factory=list)
    item_date: date | None = None
    similarity: float
