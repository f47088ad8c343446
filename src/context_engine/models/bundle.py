"""Context bundle models."""

from datetime import date

from pydantic import BaseModel, Field

from context_engine.models.item import ItemType


class BundleItem(BaseModel):
    """A ranked item with its score breakdown."""

    id: str
    item_type: ItemType
    title: str
    content: str
    tags: list[str] = Field(default_factory=list)
    item_date: date | None = None
    similarity: float
    recency: float = 0.0
    importance: float = 0.0
    score: float = 0.0
    via_graph: bool = False


class Bundle(BaseModel):
    """Token-budgeted context returned to a caller."""

    query_id: str
    key_decisions: list[BundleItem] = Field(default_factory=list)
    known_issues: list[BundleItem] = Field(default_factory=list)
    recent_changes: list[BundleItem] = Field(default_factory=list)
    total_items: int = 0

    def all_items(self) -> list[BundleItem]:
        """Every item in the bundle, bucket by bucket."""
        return [*self.key_decisions, *self.known_issues, *self.recent_changes]
