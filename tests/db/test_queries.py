"""Tests for item persistence queries."""

from datetime import date

import pytest

from context_engine.db.queries import (
    get_db_stats,
    get_item,
    increment_access_count,
    increment_reference_count,
    insert_item,
    list_items,
    nearest_items,
    next_item_id,
    serialize_f32,
    update_status,
)
from context_engine.models.item import Decision, Incident, ItemType, Snapshot


def _decision(item_id: str = "ADR-001", **kwargs) -> Decision:
    fields = {"id": item_id, "title": "Use PostgreSQL", "decision": "Adopt PostgreSQL"}
    fields.update(kwargs)
    return Decision(**fields)


def _unit(dim: int, index: int) -> list[float]:
    vec = [0.0] * dim
    vec[index] = 1.0
    return vec


# --- IDs ---


@pytest.mark.asyncio
async def test_next_item_id_empty(db):
    assert await next_item_id(db, ItemType.DECISION) == "ADR-001"
    assert await next_item_id(db, ItemType.SNAPSHOT) == "SNAP-001"


@pytest.mark.asyncio
async def test_next_item_id_increments_per_type(db):
    await insert_item(db, _decision("ADR-001"))
    await insert_item(db, _decision("ADR-002"))
    assert await next_item_id(db, ItemType.DECISION) == "ADR-003"
    assert await next_item_id(db, ItemType.INCIDENT) == "FAIL-001"


@pytest.mark.asyncio
async def test_next_item_id_past_padding(db):
    await insert_item(db, _decision("ADR-999"))
    assert await next_item_id(db, ItemType.DECISION) == "ADR-1000"
    await insert_item(db, _decision("ADR-1000"))
    assert await next_item_id(db, ItemType.DECISION) == "ADR-1001"


# --- Round trip ---


@pytest.mark.asyncio
async def test_insert_and_get_decision(db):
    item = _decision(
        context="Need relational storage",
        stakeholders=["alice", "bob"],
        tags=["database"],
        item_date=date(2025, 3, 1),
    )
    await insert_item(db, item, [1.0, 0.0, 0.0])

    got = await get_item(db, "ADR-001")
    assert isinstance(got, Decision)
    assert got.title == "Use PostgreSQL"
    assert got.context == "Need relational storage"
    assert got.stakeholders == ["alice", "bob"]
    assert got.tags == ["database"]
    assert got.item_date == date(2025, 3, 1)
    assert got.has_embedding is True
    assert got.created_at is not None


@pytest.mark.asyncio
async def test_insert_without_embedding(db):
    await insert_item(db, Snapshot(id="SNAP-001", title="fix", commit_hash="abc", message="fix"))
    got = await get_item(db, "SNAP-001")
    assert isinstance(got, Snapshot)
    assert got.has_embedding is False


@pytest.mark.asyncio
async def test_get_missing(db):
    assert await get_item(db, "ADR-404") is None


# --- Listing and updates ---


@pytest.mark.asyncio
async def test_list_items_filters(db):
    await insert_item(db, _decision("ADR-001", item_date=date(2025, 1, 1)))
    await insert_item(db, _decision("ADR-002", item_date=date(2025, 6, 1), status="proposed"))
    await insert_item(db, Incident(id="FAIL-001", title="Outage", root_cause="disk full"))

    all_items = await list_items(db)
    assert len(all_items) == 3

    decisions = await list_items(db, ItemType.DECISION)
    assert [d.id for d in decisions] == ["ADR-002", "ADR-001"]

    proposed = await list_items(db, status="proposed")
    assert [p.id for p in proposed] == ["ADR-002"]

    not_proposed = await list_items(db, ItemType.DECISION, exclude_status="proposed")
    assert [p.id for p in not_proposed] == ["ADR-001"]


@pytest.mark.asyncio
async def test_update_status(db):
    await insert_item(db, _decision())
    assert await update_status(db, "ADR-001", "archived") is True
    got = await get_item(db, "ADR-001")
    assert got.is_archived


@pytest.mark.asyncio
async def test_update_status_missing(db):
    assert await update_status(db, "ADR-404", "archived") is False


@pytest.mark.asyncio
async def test_increment_counters(db):
    await insert_item(db, _decision("ADR-001"))
    await insert_item(db, _decision("ADR-002"))

    await increment_access_count(db, ["ADR-001", "ADR-002"])
    await increment_access_count(db, ["ADR-001"])
    await increment_access_count(db, [])
    await increment_reference_count(db, "ADR-002")
    await increment_reference_count(db, "ADR-404")

    first = await get_item(db, "ADR-001")
    second = await get_item(db, "ADR-002")
    assert first.access_count_30d == 2
    assert second.access_count_30d == 1
    assert second.reference_count == 1


# --- Similarity ---


@pytest.mark.asyncio
async def test_nearest_items_orders_by_distance(db):
    await insert_item(db, _decision("ADR-001"), _unit(4, 0))
    await insert_item(db, _decision("ADR-002"), [0.6, 0.8, 0.0, 0.0])
    await insert_item(db, _decision("ADR-003"), _unit(4, 2))

    results = await nearest_items(db, _unit(4, 0), ItemType.DECISION, limit=10)
    assert [item.id for item, _ in results] == ["ADR-001", "ADR-002", "ADR-003"]
    assert results[0][1] == pytest.approx(0.0, abs=1e-6)
    assert results[1][1] == pytest.approx(0.4, abs=1e-5)
    assert results[2][1] == pytest.approx(1.0, abs=1e-6)


@pytest.mark.asyncio
async def test_nearest_items_skips_archived_and_unembedded(db):
    await insert_item(db, _decision("ADR-001"), _unit(4, 0))
    await insert_item(db, _decision("ADR-002", status="archived"), _unit(4, 0))
    await insert_item(db, _decision("ADR-003"))

    results = await nearest_items(db, _unit(4, 0), ItemType.DECISION)
    assert [item.id for item, _ in results] == ["ADR-001"]


@pytest.mark.asyncio
async def test_nearest_items_respects_type_and_limit(db):
    for i in range(1, 4):
        await insert_item(db, _decision(f"ADR-00{i}"), _unit(4, 0))
    await insert_item(db, Incident(id="FAIL-001", title="x", root_cause="y"), _unit(4, 0))

    results = await nearest_items(db, _unit(4, 0), ItemType.DECISION, limit=2)
    assert len(results) == 2
    assert all(item.item_type is ItemType.DECISION for item, _ in results)


def test_serialize_f32():
    assert serialize_f32([1.0, 2.0]) == b"\x00\x00\x80?\x00\x00\x00@"


@pytest.mark.asyncio
async def test_db_stats(db, graph_builder):
    await insert_item(db, _decision("ADR-001"))
    await insert_item(db, _decision("ADR-002", status="proposed"))
    await insert_item(db, Incident(id="FAIL-001", title="x", root_cause="y"))
    await graph_builder.create_relationship(
        "FAIL-001", ItemType.INCIDENT, "ADR-001", ItemType.DECISION, "caused_by"
    )

    stats = await get_db_stats(db)
    assert stats["items"]["decision"] == {"active": 1, "proposed": 1}
    assert stats["items"]["incident"] == {"resolved": 1}
    assert stats["edges"] == {"caused_by": 1}
