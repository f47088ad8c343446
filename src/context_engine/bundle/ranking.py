"""Composite ranking: relevance, recency and per-type importance."""

from datetime import UTC, date, datetime

from context_engine.models.bundle import BundleItem
from context_engine.models.item import ItemType

RELEVANCE_WEIGHT = 0.5
RECENCY_WEIGHT = 0.3
IMPORTANCE_WEIGHT = 0.2

# (max age in days, score), checked in order
RECENCY_STEPS: tuple[tuple[int, float], ...] = (
    (30, 1.0),
    (90, 0.8),
    (180, 0.6),
    (365, 0.4),
)
RECENCY_FLOOR = 0.2
RECENCY_UNKNOWN = 0.5

BASE_IMPORTANCE: dict[ItemType, float] = {
    ItemType.DECISION: 0.9,
    ItemType.INCIDENT: 0.8,
    ItemType.MEETING: 0.6,
    ItemType.SNAPSHOT: 0.5,
}
PRIORITY_TAGS = frozenset({"critical", "high-priority"})
PRIORITY_BOOST = 0.1


def recency_score(item_date: date | None, today: date | None = None) -> float:
    """Step function of item age in days; undated items score 0.5."""
    if item_date is None:
        return RECENCY_UNKNOWN
    if today is None:
        today = datetime.now(UTC).date()
    age_days = (today - item_date).days
    for max_age, score in RECENCY_STEPS:
        if age_days <= max_age:
            return score
    return RECENCY_FLOOR


def importance_score(item_type: ItemType, tags: list[str]) -> float:
    """Per-type base importance, boosted for critical or high-priority tags."""
    base = BASE_IMPORTANCE[item_type]
    if PRIORITY_TAGS.intersection(tags):
        return min(base + PRIORITY_BOOST, 1.0)
    return base


def composite_score(relevance: float, recency: float, importance: float) -> float:
    """Weighted blend used to order bundle candidates."""
    return (
        RELEVANCE_WEIGHT * relevance + RECENCY_WEIGHT * recency + IMPORTANCE_WEIGHT * importance
    )


def rank_items(items: list[BundleItem], today: date | None = None) -> list[BundleItem]:
    """Score every item and sort descending by composite score."""
    ranked: list[BundleItem] = []
    for item in items:
        recency = recency_score(item.item_date, today)
        importance = importance_score(item.item_type, item.tags)
        ranked.append(
            item.model_copy(
                update={
                    "recency": recency,
                    "importance": importance,
                    "score": composite_score(item.similarity, recency, importance),
                }
            )
        )
    ranked.sort(key=lambda i: i.score, reverse=True)
    return ranked
