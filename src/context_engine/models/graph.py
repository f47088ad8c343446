"""Relationship graph models."""

from datetime import date

from pydantic import BaseModel, Field

from context_engine.models.item import ItemType


class Relationship(BaseModel):
    """A directed, typed edge between two knowledge items."""

    from_id: str
    from_type: ItemType
    to_id: str
    to_type: ItemType
    relationship_type: str
    strength: float = 1.0


class RelatedItem(BaseModel):
    """A neighbour discovered by graph traversal."""

    id: str
    item_type: ItemType
    depth: int
    relationship_type: str
    direction: str  # "outgoing" or "incoming", relative to the BFS parent
    strength: float = 1.0


class GraphNode(BaseModel):
    """An item as exported for visualization."""

    id: str
    item_type: ItemType
    title: str
    status: str
    tags: list[str] = Field(default_factory=list)
    item_date: date | None = None
    reference_count: int = 0


class GraphExport(BaseModel):
    """Full node/edge set of the knowledge graph."""

    nodes: list[GraphNode] = Field(default_factory=list)
    edges: list[Relationship] = Field(default_factory=list)
