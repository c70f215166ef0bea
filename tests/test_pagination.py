"""Tests for page fetching and the generation-guarded listing."""

import math

import pytest

from src.models.catalog import Product
from src.models.filters import FilterState
from src.models.listing import ProductPage
from src.services.catalog.pagination import ListingState, PaginationController
from src.services.catalog.query_compiler import compile_query


def _page(page, generation, ids, total=5, page_size=2):
    return ProductPage(
        page=page,
        page_size=page_size,
        items=[
            Product(id=pid, name=pid, price=100, shop_id="s1") for pid in ids
        ],
        total_count=total,
        total_pages=math.ceil(total / page_size),
        generation=generation,
    )


@pytest.mark.asyncio
async def test_mumbai_scenario_rating_order_with_id_tiebreak(seeded_store):
    controller = PaginationController(seeded_store, page_size=20)
    compiled = compile_query(FilterState(towns=("Mumbai",)))

    page = await controller.fetch_page(compiled, 1)

    assert [p.id for p in page.items] == ["p-003", "p-001", "p-002", "p-005", "p-004"]
    assert page.total_count == 5
    assert page.total_pages == 1


@pytest.mark.asyncio
async def test_page_totals_cover_every_item_exactly_once(seeded_store):
    controller = PaginationController(seeded_store, page_size=2)
    compiled = compile_query(FilterState(towns=("Mumbai", "Kundapura", "KOTESHWARA")))

    first = await controller.fetch_page(compiled, 1)
    pages = [first] + [
        await controller.fetch_page(compiled, number)
        for number in range(2, first.total_pages + 1)
    ]

    assert first.total_count == 8
    assert first.total_pages == math.ceil(8 / 2)
    assert sum(len(p.items) for p in pages) == first.total_count
    ids = [p.id for page in pages for p in page.items]
    assert len(set(ids)) == len(ids)


@pytest.mark.asyncio
async def test_repeated_queries_are_deterministic(seeded_store):
    controller = PaginationController(seeded_store, page_size=3)
    state = FilterState(towns=("Mumbai", "Kundapura"), price_ranges=("0-500", "1001-1500"))

    first = await controller.fetch_page(compile_query(state), 1)
    second = await controller.fetch_page(compile_query(state), 1)

    assert [p.id for p in first.items] == [p.id for p in second.items]


@pytest.mark.asyncio
async def test_bucket_gap_product_is_included(seeded_store):
    controller = PaginationController(seeded_store, page_size=20)
    state = FilterState(towns=("Mumbai",), price_ranges=("0-500", "1001-1500"))

    page = await controller.fetch_page(compile_query(state), 1)

    assert {p.id for p in page.items} == {"p-002", "p-004", "p-005"}
    assert any(p.price == 800 for p in page.items)


@pytest.mark.asyncio
async def test_empty_result_has_zero_pages(seeded_store):
    controller = PaginationController(seeded_store, page_size=5)
    compiled = compile_query(FilterState(towns=("Nowhere",)))

    page = await controller.fetch_page(compiled, 1)

    assert page.items == []
    assert page.total_pages == 0


@pytest.mark.asyncio
async def test_page_numbers_are_one_based(seeded_store):
    with pytest.raises(ValueError):
        PaginationController(seeded_store, page_size=-1)

    controller = PaginationController(seeded_store, page_size=2)
    with pytest.raises(ValueError):
        await controller.fetch_page(compile_query(FilterState(towns=("Mumbai",))), 0)


def test_listing_appends_pages_and_signals_exhaustion():
    listing = ListingState(page_size=2)
    listing.begin(1)

    assert listing.next_page_number() == 1
    assert listing.accept(_page(1, 1, ["a", "b"]))
    assert listing.next_page_number() == 2
    assert listing.accept(_page(2, 1, ["c", "d"]))
    assert listing.accept(_page(3, 1, ["e"]))

    snapshot = listing.snapshot()
    assert [p.id for p in snapshot.items] == ["a", "b", "c", "d", "e"]
    assert snapshot.exhausted
    assert listing.next_page_number() is None


def test_listing_drops_pages_from_older_generations():
    listing = ListingState(page_size=2)
    listing.begin(1)
    listing.accept(_page(1, 1, ["a", "b"]))
    listing.begin(2)

    assert not listing.accept(_page(2, 1, ["c", "d"]))
    assert [p.id for p in listing.items] == ["a", "b"]
    assert listing.next_page_number() == 1

    assert listing.accept(_page(1, 2, ["x"], total=1))
    assert [p.id for p in listing.items] == ["x"]
    assert listing.exhausted


def test_listing_ignores_duplicate_or_skipped_pages():
    listing = ListingState(page_size=2)
    listing.begin(1)
    listing.accept(_page(1, 1, ["a", "b"]))
    listing.accept(_page(2, 1, ["c", "d"]))

    assert not listing.accept(_page(2, 1, ["c", "d"]))
    assert not listing.accept(_page(5, 1, ["z"]))
    assert len(listing.items) == 4


def test_failed_fetch_keeps_items_and_counters():
    listing = ListingState(page_size=2)
    listing.begin(1)
    listing.accept(_page(1, 1, ["a", "b"]))

    listing.fail(1, ConnectionError("timeout"))

    snapshot = listing.snapshot()
    assert [p.id for p in snapshot.items] == ["a", "b"]
    assert snapshot.total_count == 5
    assert snapshot.page == 1
    assert "timeout" in snapshot.error
    assert listing.next_page_number() == 2


def test_failure_from_stale_generation_is_ignored():
    listing = ListingState(page_size=2)
    listing.begin(2)

    listing.fail(1, ConnectionError("late"))

    assert listing.error is None
