"""Freshness scoring for the archival pass."""

from datetime import UTC, date, datetime

from context_engine.models.item import KnowledgeItem

ARCHIVE_THRESHOLD = 30

# (min age in days, penalty), checked oldest first
AGE_PENALTIES: tuple[tuple[int, int], ...] = (
    (365, 50),
    (180, 25),
)
ACCESS_BOOST_MIN = 10
ACCESS_BOOST = 20
REFERENCE_BOOST_MIN = 5
REFERENCE_BOOST = 15


def item_age_days(item: KnowledgeItem, today: date) -> int:
    """Age from the item's own date, falling back to its creation time."""
    anchor = item.item_date
    if anchor is None and item.created_at is not None:
        anchor = item.created_at.date()
    if anchor is None:
        return 0
    return max((today - anchor).days, 0)


def compute_decay_score(item: KnowledgeItem, today: date | None = None) -> int:
    """Score 0-135: older scores lower, accessed and referenced score higher.

    A superseded decision drops to 0 before the usage boosts apply, so one
    that is still read and linked often survives the pass. Age alone never
    takes an active item below 50.
    """
    if today is None:
        today = datetime.now(UTC).date()

    score = 100
    age_days = item_age_days(item, today)
    for min_age, penalty in AGE_PENALTIES:
        if age_days > min_age:
            score -= penalty
            break

    if item.status == "superseded":
        score = 0

    if item.access_count_30d > ACCESS_BOOST_MIN:
        score += ACCESS_BOOST
    if item.reference_count > REFERENCE_BOOST_MIN:
        score += REFERENCE_BOOST
    return score


def should_archive(item: KnowledgeItem, today: date | None = None) -> bool:
    """True if a non-archived item has decayed below the threshold."""
    if item.is_archived:
        return False
    return compute_decay_score(item, today) < ARCHIVE_THRESHOLD
