"""HTTP tests for catalog sessions."""

import pytest

from src.config import settings

MUMBAI = {"X-User-Id": "user-mumbai"}


async def _start(client, session_id="web-1", headers=MUMBAI):
    response = await client.post(
        "/catalog/sessions", json={"session_id": session_id}, headers=headers
    )
    assert response.status_code == 200
    return response.json()


def _ids(body):
    return [item["id"] for item in body["listing"]["items"]]


@pytest.mark.asyncio
async def test_start_session_lists_home_town_products(client, seeded_store):
    body = await _start(client)

    assert body["status"] == "ready"
    assert body["filters"]["towns"] == ["Mumbai"]
    assert body["filters"]["sort_key"] == "rating"
    assert _ids(body) == ["p-003", "p-001", "p-002", "p-005", "p-004"]
    assert body["facets"]["brands"] == ["FabIndia", "Levis", "Nike", "Woodland"]
    variants = {item["id"]: item["requires_variant"] for item in body["listing"]["items"]}
    assert variants["p-003"] is True
    assert variants["p-001"] is False


@pytest.mark.asyncio
async def test_missing_user_header_is_rejected(client, seeded_store):
    response = await client.post("/catalog/sessions", json={"session_id": "web-1"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_unknown_and_foreign_sessions(client, seeded_store):
    missing = await client.get("/catalog/sessions/nope", headers=MUMBAI)
    assert missing.status_code == 404

    await _start(client)
    foreign = await client.get(
        "/catalog/sessions/web-1", headers={"X-User-Id": "user-kundapura"}
    )
    assert foreign.status_code == 403


@pytest.mark.asyncio
async def test_draft_then_apply_flow(client, seeded_store):
    await _start(client)

    opened = await client.post("/catalog/sessions/web-1/filters/open", headers=MUMBAI)
    assert opened.json()["towns"] == ["Mumbai"]

    for dimension, value in (
        ("categories", ["Women's Clothing", "Kids Clothing"]),
        ("price_ranges", ["0-500", "1001-1500"]),
    ):
        response = await client.patch(
            "/catalog/sessions/web-1/filters/draft",
            json={"dimension": dimension, "value": value},
            headers=MUMBAI,
        )
        assert response.status_code == 200

    applied = await client.get("/catalog/sessions/web-1/filters", headers=MUMBAI)
    draft = await client.get(
        "/catalog/sessions/web-1/filters", params={"layer": "draft"}, headers=MUMBAI
    )
    assert applied.json()["categories"] == []
    assert draft.json()["price_ranges"] == ["0-500", "1001-1500"]

    response = await client.post("/catalog/sessions/web-1/filters/apply", headers=MUMBAI)
    body = response.json()

    assert body["generation"] == 1
    assert _ids(body) == ["p-002", "p-005"]

    persisted = await client.get(
        "/catalog/sessions/web-1/filters", params={"layer": "persisted"}, headers=MUMBAI
    )
    assert persisted.json()["categories"] == ["Women's Clothing", "Kids Clothing"]


@pytest.mark.asyncio
async def test_invalid_draft_value_is_rejected(client, seeded_store):
    await _start(client)

    response = await client.patch(
        "/catalog/sessions/web-1/filters/draft",
        json={"dimension": "sort_key", "value": "popularity"},
        headers=MUMBAI,
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_quick_select_only_accepts_tab_sort_and_search(client, seeded_store):
    await _start(client)

    response = await client.post(
        "/catalog/sessions/web-1/filters/select",
        json={"dimension": "sort_key", "value": "-price"},
        headers=MUMBAI,
    )
    assert _ids(response.json()) == ["p-003", "p-001", "p-005", "p-002", "p-004"]

    rejected = await client.post(
        "/catalog/sessions/web-1/filters/select",
        json={"dimension": "brands", "value": ["Nike"]},
        headers=MUMBAI,
    )
    assert rejected.status_code == 422


@pytest.mark.asyncio
async def test_load_more_and_stale_generation(client, seeded_store, monkeypatch):
    monkeypatch.setattr(settings, "CATALOG_PAGE_SIZE", 2)
    body = await _start(client)
    assert _ids(body) == ["p-003", "p-001"]

    response = await client.post(
        "/catalog/sessions/web-1/products/next",
        params={"generation": 0},
        headers=MUMBAI,
    )
    assert _ids(response.json()) == ["p-003", "p-001", "p-002", "p-005"]

    await client.post(
        "/catalog/sessions/web-1/filters/select",
        json={"dimension": "sort_key", "value": "price"},
        headers=MUMBAI,
    )
    stale = await client.post(
        "/catalog/sessions/web-1/products/next",
        params={"generation": 0},
        headers=MUMBAI,
    )
    body = stale.json()
    assert body["generation"] == 1
    assert _ids(body) == ["p-004", "p-002"]


@pytest.mark.asyncio
async def test_switch_town_updates_listing_and_facets(client, seeded_store):
    await _start(client)

    response = await client.post(
        "/catalog/sessions/web-1/town",
        json={"town": "Kundapura"},
        headers=MUMBAI,
    )
    body = response.json()

    assert body["filters"]["towns"] == ["Kundapura"]
    assert _ids(body) == ["p-007", "p-008"]

    facets = await client.get("/catalog/sessions/web-1/facets", headers=MUMBAI)
    assert facets.json()["shops"] == ["Kundapura Market"]

    # The choice is remembered for the next session of the same user.
    other = await _start(client, session_id="web-2")
    assert other["filters"]["towns"] == ["Kundapura"]


@pytest.mark.asyncio
async def test_clear_restores_default_town(client, seeded_store):
    await _start(client)
    await client.patch(
        "/catalog/sessions/web-1/filters/draft",
        json={"dimension": "towns", "value": ["KOTESHWARA"]},
        headers=MUMBAI,
    )
    await client.post("/catalog/sessions/web-1/filters/apply", headers=MUMBAI)

    response = await client.post("/catalog/sessions/web-1/filters/clear", headers=MUMBAI)

    assert response.json()["filters"]["towns"] == ["Mumbai"]
    assert len(_ids(response.json())) == 5


@pytest.mark.asyncio
async def test_session_without_town_waits(client, seeded_store):
    headers = {"X-User-Id": "user-new"}
    body = await _start(client, headers=headers)

    assert body["status"] == "awaiting_town"
    assert body["listing"] is None

    facets = await client.get("/catalog/sessions/web-1/facets", headers=headers)
    assert facets.status_code == 409

    products = await client.get("/catalog/sessions/web-1/products", headers=headers)
    assert products.json()["status"] == "awaiting_town"


@pytest.mark.asyncio
async def test_persisted_facet_layer_is_rejected(client, seeded_store):
    await _start(client)

    response = await client.get(
        "/catalog/sessions/web-1/facets", params={"layer": "persisted"}, headers=MUMBAI
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_restart_after_leaving_restores_filters(client, seeded_store):
    await _start(client)
    await client.post(
        "/catalog/sessions/web-1/filters/select",
        json={"dimension": "category", "value": "footwear"},
        headers=MUMBAI,
    )

    left = await client.delete("/catalog/sessions/web-1", headers=MUMBAI)
    assert left.status_code == 204

    body = await _start(client)
    assert body["filters"]["category"] == "footwear"
    assert _ids(body) == ["p-003"]
