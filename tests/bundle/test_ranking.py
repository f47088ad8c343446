"""Tests for composite ranking."""

from datetime import date, timedelta

import pytest

from context_engine.bundle.ranking import (
    composite_score,
    importance_score,
    rank_items,
    recency_score,
)
from context_engine.models.bundle import BundleItem
from context_engine.models.item import ItemType

TODAY = date(2025, 6, 1)


@pytest.mark.parametrize(
    ("age_days", "expected"),
    [
        (0, 1.0),
        (30, 1.0),
        (31, 0.8),
        (90, 0.8),
        (180, 0.6),
        (365, 0.4),
        (366, 0.2),
        (2000, 0.2),
    ],
)
def test_recency_steps(age_days, expected):
    assert recency_score(TODAY - timedelta(days=age_days), TODAY) == expected


def test_recency_old_vs_today():
    """An item older than a year scores 0.2; the same item dated today scores 1.0."""
    assert recency_score(TODAY - timedelta(days=400), TODAY) == 0.2
    assert recency_score(TODAY, TODAY) == 1.0


def test_recency_missing_date():
    assert recency_score(None, TODAY) == 0.5


def test_importance_base():
    assert importance_score(ItemType.DECISION, []) == 0.9
    assert importance_score(ItemType.INCIDENT, []) == 0.8
    assert importance_score(ItemType.MEETING, []) == 0.6
    assert importance_score(ItemType.SNAPSHOT, ["database"]) == 0.5


def test_importance_priority_boost_capped():
    assert importance_score(ItemType.SNAPSHOT, ["critical"]) == pytest.approx(0.6)
    assert importance_score(ItemType.INCIDENT, ["high-priority"]) == pytest.approx(0.9)
    assert importance_score(ItemType.DECISION, ["critical", "high-priority"]) == pytest.approx(1.0)


def test_composite_weights():
    assert composite_score(1.0, 0.0, 0.0) == pytest.approx(0.5)
    assert composite_score(0.0, 1.0, 0.0) == pytest.approx(0.3)
    assert composite_score(0.0, 0.0, 1.0) == pytest.approx(0.2)
    assert composite_score(0.8, 1.0, 0.9) == pytest.approx(0.88)


def test_rank_items_sorts_and_fills_breakdown():
    old = BundleItem(
        id="ADR-001",
        item_type=ItemType.DECISION,
        title="Old",
        content="x",
        item_date=TODAY - timedelta(days=800),
        similarity=0.9,
    )
    fresh = BundleItem(
        id="SNAP-001",
        item_type=ItemType.SNAPSHOT,
        title="Fresh",
        content="y",
        item_date=TODAY,
        similarity=0.9,
    )
    ranked = rank_items([old, fresh], TODAY)
    assert [r.id for r in ranked] == ["SNAP-001", "ADR-001"]
    assert ranked[0].recency == 1.0
    assert ranked[0].importance == 0.5
    assert ranked[0].score == pytest.approx(0.45 + 0.3 + 0.1)
    assert ranked[1].score == pytest.approx(0.45 + 0.06 + 0.18)
