"""Decay pass report model."""

from pydantic import BaseModel, Field


class DecayReport(BaseModel):
    """Outcome of one decay/archival pass."""

    scanned_count: int = 0
    archived_count: int = 0
    archived_ids: list[str] = Field(default_factory=list)
