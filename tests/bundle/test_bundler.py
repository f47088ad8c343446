"""Tests for context bundling."""

import uuid
from datetime import date

import pytest

from context_engine.bundle.bundler import (
    GRAPH_SIMILARITY,
    build_token_limited_bundle,
    bundle_context,
    expand_with_graph,
    filter_domains,
    hydrate_item,
    take_items_by_type,
)
from context_engine.errors import EmbeddingUnavailable, ItemNotFound
from context_engine.models.bundle import BundleItem
from context_engine.models.item import ItemType


def _item(
    item_id: str, item_type: ItemType, size: int, tags: list[str] | None = None
) -> BundleItem:
    return BundleItem(
        id=item_id,
        item_type=item_type,
        title=item_id,
        content="x" * size,
        tags=tags or [],
        similarity=1.0,
    )


async def _postgres_scenario(store, graph_builder):
    adr = await store.create_decision(
        "Use PostgreSQL",
        "Adopt PostgreSQL as the primary database",
        tags=["database"],
    )
    fail = await store.create_incident(
        "Connection Pool Exhaustion",
        "Database connection pool exhausted under load causing performance issues",
        tags=["database", "performance"],
        severity="high",
    )
    await graph_builder.create_relationship(
        fail.id, ItemType.INCIDENT, adr.id, ItemType.DECISION, "caused_by"
    )
    return adr, fail


# --- Token budgeting ---


def test_take_items_stops_at_first_overflow():
    ranked = [
        _item("ADR-001", ItemType.DECISION, 100),
        _item("ADR-002", ItemType.DECISION, 100),
        _item("FAIL-001", ItemType.INCIDENT, 10),
        _item("ADR-003", ItemType.DECISION, 50),
    ]
    taken = take_items_by_type(ranked, ItemType.DECISION, 160)
    assert [i.id for i in taken] == ["ADR-001"]


def test_take_items_fills_until_overflow():
    ranked = [
        _item("ADR-001", ItemType.DECISION, 60),
        _item("SNAP-001", ItemType.SNAPSHOT, 500),
        _item("ADR-002", ItemType.DECISION, 40),
        _item("ADR-003", ItemType.DECISION, 70),
        _item("ADR-004", ItemType.DECISION, 1),
    ]
    taken = take_items_by_type(ranked, ItemType.DECISION, 100)
    assert [i.id for i in taken] == ["ADR-001", "ADR-002"]


def test_take_items_zero_budget():
    assert take_items_by_type([_item("ADR-001", ItemType.DECISION, 0)], ItemType.DECISION, 0) == []


def test_buckets_cut_independently_from_whole_budget():
    """Shares add up to 110%, so a full bundle can exceed max_tokens * 4 chars."""
    ranked = [
        _item("ADR-001", ItemType.DECISION, 159),
        _item("FAIL-001", ItemType.INCIDENT, 119),
        _item("MEET-001", ItemType.MEETING, 79),
        _item("SNAP-001", ItemType.SNAPSHOT, 79),
    ]
    bundle = build_token_limited_bundle(ranked, max_tokens=100)
    assert bundle.total_items == 4
    assert [i.id for i in bundle.key_decisions] == ["ADR-001"]
    assert [i.id for i in bundle.known_issues] == ["FAIL-001"]
    assert [i.id for i in bundle.recent_changes] == ["MEET-001", "SNAP-001"]
    assert sum(len(i.content) for i in bundle.all_items()) == 436


def test_bucket_overflow_dropped():
    ranked = [
        _item("ADR-001", ItemType.DECISION, 161),
        _item("FAIL-001", ItemType.INCIDENT, 121),
    ]
    bundle = build_token_limited_bundle(ranked, max_tokens=100)
    assert bundle.total_items == 0


def test_zero_budget_bundle_is_empty():
    ranked = [_item("ADR-001", ItemType.DECISION, 10)]
    bundle = build_token_limited_bundle(ranked, max_tokens=0)
    assert bundle.total_items == 0
    assert bundle.all_items() == []


def test_recent_changes_meetings_before_snapshots():
    ranked = [
        _item("SNAP-001", ItemType.SNAPSHOT, 10),
        _item("MEET-001", ItemType.MEETING, 10),
    ]
    bundle = build_token_limited_bundle(ranked, max_tokens=100)
    assert [i.id for i in bundle.recent_changes] == ["MEET-001", "SNAP-001"]


def test_filter_domains():
    items = [
        _item("ADR-001", ItemType.DECISION, 1, ["database"]),
        _item("ADR-002", ItemType.DECISION, 1, ["frontend"]),
    ]
    assert [i.id for i in filter_domains(items, ["database", "security"])] == ["ADR-001"]
    assert filter_domains(items, []) == items


# --- Graph expansion ---


@pytest.mark.asyncio
async def test_expand_with_graph_adds_neighbors(db, store, graph_builder):
    adr, fail = await _postgres_scenario(store, graph_builder)
    seed = [_item(adr.id, ItemType.DECISION, 5)]

    expanded = await expand_with_graph(db, seed)
    assert [i.id for i in expanded] == [adr.id, fail.id]
    neighbor = expanded[1]
    assert neighbor.via_graph is True
    assert neighbor.similarity == GRAPH_SIMILARITY
    assert neighbor.content == fail.content


@pytest.mark.asyncio
async def test_expand_with_graph_dedupes(db, store, graph_builder):
    adr, fail = await _postgres_scenario(store, graph_builder)
    seed = [_item(adr.id, ItemType.DECISION, 5), _item(fail.id, ItemType.INCIDENT, 5)]

    expanded = await expand_with_graph(db, seed)
    assert [i.id for i in expanded] == [adr.id, fail.id]
    assert not any(i.via_graph for i in expanded)


@pytest.mark.asyncio
async def test_expand_skips_archived_neighbors(db, store, graph_builder):
    adr, fail = await _postgres_scenario(store, graph_builder)
    await store.update_status(fail.id, "archived")

    expanded = await expand_with_graph(db, [_item(adr.id, ItemType.DECISION, 5)])
    assert [i.id for i in expanded] == [adr.id]


@pytest.mark.asyncio
async def test_expand_skips_dangling_edges(db, store, graph_builder):
    adr, fail = await _postgres_scenario(store, graph_builder)
    await graph_builder.create_relationship(
        adr.id, ItemType.DECISION, "FAIL-999", ItemType.INCIDENT, "related_to"
    )

    expanded = await expand_with_graph(db, [_item(adr.id, ItemType.DECISION, 5)])
    assert [i.id for i in expanded] == [adr.id, fail.id]


@pytest.mark.asyncio
async def test_hydrate_missing_raises(db):
    with pytest.raises(ItemNotFound):
        await hydrate_item(db, "ADR-404")


# --- End to end ---


@pytest.mark.asyncio
async def test_database_performance_scenario(db, store, embedder, graph_builder):
    adr, fail = await _postgres_scenario(store, graph_builder)

    bundle = await bundle_context(db, embedder, "database performance issues")
    assert bundle.total_items >= 2
    assert adr.id in [i.id for i in bundle.key_decisions]
    assert fail.id in [i.id for i in bundle.known_issues]
    uuid.UUID(bundle.query_id)


@pytest.mark.asyncio
async def test_unknown_domain_returns_nothing(db, store, embedder, graph_builder):
    await _postgres_scenario(store, graph_builder)
    bundle = await bundle_context(db, embedder, "database", domains=["nonexistent-tag"])
    assert bundle.total_items == 0


@pytest.mark.asyncio
async def test_domain_filter_keeps_matching(db, store, embedder, graph_builder):
    _, fail = await _postgres_scenario(store, graph_builder)
    bundle = await bundle_context(db, embedder, "database", domains=["performance"])
    assert [i.id for i in bundle.all_items()] == [fail.id]


@pytest.mark.asyncio
async def test_empty_query_zero_budget(db, store, embedder, graph_builder):
    bundle = await bundle_context(db, embedder, "", max_tokens=0)
    assert bundle.total_items == 0

    await _postgres_scenario(store, graph_builder)
    bundle = await bundle_context(db, embedder, "", max_tokens=0)
    assert bundle.total_items == 0


@pytest.mark.asyncio
async def test_empty_store(db, embedder):
    bundle = await bundle_context(db, embedder, "anything")
    assert bundle.total_items == 0


@pytest.mark.asyncio
async def test_bundle_counts_access(db, store, embedder, graph_builder):
    adr, fail = await _postgres_scenario(store, graph_builder)
    await bundle_context(db, embedder, "database performance issues")
    assert (await store.get(adr.id)).access_count_30d == 1
    assert (await store.get(fail.id)).access_count_30d == 1


@pytest.mark.asyncio
async def test_bundle_excludes_archived(db, store, embedder, graph_builder):
    adr, fail = await _postgres_scenario(store, graph_builder)
    await store.update_status(adr.id, "archived")

    bundle = await bundle_context(db, embedder, "database performance issues")
    assert [i.id for i in bundle.all_items()] == [fail.id]


@pytest.mark.asyncio
async def test_ranking_uses_recency(db, store, embedder):
    await store.create_decision("Cache policy", "Use Redis for caching", item_date=date(2015, 1, 1))
    await store.create_decision("Cache policy", "Use Redis for caching")

    bundle = await bundle_context(db, embedder, "Cache policy Use Redis for caching")
    assert [i.id for i in bundle.key_decisions] == ["ADR-002", "ADR-001"]
    assert bundle.key_decisions[0].recency == 1.0
    assert bundle.key_decisions[1].recency == 0.2


@pytest.mark.asyncio
async def test_embedding_failure_aborts(db, store, embedder, graph_builder):
    await _postgres_scenario(store, graph_builder)
    embedder.available = False
    with pytest.raises(EmbeddingUnavailable):
        await bundle_context(db, embedder, "database")
