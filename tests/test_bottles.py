"""Tests for bottle lifecycle and fill-level endpoints."""

import pytest
from beanie.exceptions import RevisionIdWasChanged
from httpx import AsyncClient

from drambox.models import Bottle


async def pour(client: AsyncClient, bottle_id: str, amount: float) -> dict:
    response = await client.post("/api/pours", json={"bottle_id": bottle_id, "amount": amount})
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_create_bottle_is_unopened(client: AsyncClient, catalog_item: dict) -> None:
    """Test a new bottle starts full and unopened with catalog details."""
    response = await client.post(
        "/api/bottles",
        json={"catalog_item_id": catalog_item["id"], "purchase_price": 89.99, "notes": "Gift"},
    )
    assert response.status_code == 201
    bottle = response.json()
    assert bottle["status"] == "unopened"
    assert bottle["name"] == "Lagavulin 16"
    assert bottle["fill"]["level"] == 100
    assert bottle["open_date"] is None
    assert bottle["total_pours"] == 0


@pytest.mark.asyncio
async def test_create_bottle_unknown_catalog_item(client: AsyncClient) -> None:
    response = await client.post("/api/bottles", json={"catalog_item_id": "65a000000000000000000001"})
    assert response.status_code == 404
    assert response.json()["reason"] == "not_found"


@pytest.mark.asyncio
async def test_open_bottle(client: AsyncClient, catalog_item: dict) -> None:
    """Test opening sets the date and rejects a second open."""
    bottle = (await client.post("/api/bottles", json={"catalog_item_id": catalog_item["id"]})).json()

    response = await client.post(f"/api/bottles/{bottle['id']}/open")
    assert response.status_code == 200
    opened = response.json()
    assert opened["status"] == "opened"
    assert opened["open_date"] is not None
    assert opened["fill"]["history"][-1]["note"] == "Bottle opened"

    response = await client.post(f"/api/bottles/{bottle['id']}/open")
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_bottles_by_status(client: AsyncClient, catalog_item: dict, open_bottle: dict) -> None:
    await client.post("/api/bottles", json={"catalog_item_id": catalog_item["id"]})

    response = await client.get("/api/bottles")
    assert len(response.json()) == 2

    response = await client.get("/api/bottles?status_filter=opened")
    assert [b["id"] for b in response.json()] == [open_bottle["id"]]


@pytest.mark.asyncio
async def test_get_bottle_includes_recent_pours(client: AsyncClient, open_bottle: dict) -> None:
    for amount in (1, 1.5, 2):
        await pour(client, open_bottle["id"], amount)

    bottle = (await client.get(f"/api/bottles/{open_bottle['id']}")).json()
    assert len(bottle["recent_pours"]) == 3
    assert bottle["total_pours"] == 3
    assert bottle["last_pour_date"] is not None


@pytest.mark.asyncio
async def test_manual_adjustment_on_unopened_rejected(client: AsyncClient, catalog_item: dict) -> None:
    bottle = (await client.post("/api/bottles", json={"catalog_item_id": catalog_item["id"]})).json()

    response = await client.patch(
        f"/api/bottles/{bottle['id']}/fill-level",
        json={"fill_level": 80, "reason": "correction"},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{"fill_level": 101, "reason": "other"}, {"fill_level": 50, "reason": "spilled"}])
async def test_manual_adjustment_validation(client: AsyncClient, open_bottle: dict, payload: dict) -> None:
    response = await client.patch(f"/api/bottles/{open_bottle['id']}/fill-level", json=payload)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_manual_adjustment_to_zero_finishes(client: AsyncClient, open_bottle: dict) -> None:
    response = await client.patch(
        f"/api/bottles/{open_bottle['id']}/fill-level",
        json={"fill_level": 0, "reason": "shared", "notes": "Party"},
    )
    data = response.json()
    assert data["new_level"] == 0
    assert data["bottle"]["status"] == "finished"
    marker = data["bottle"]["fill"]["last_manual_adjustment"]
    assert marker["level"] == 0
    assert marker["reason"] == "shared"
    assert marker["note"] == "Party"


@pytest.mark.asyncio
async def test_manual_precedence_across_bottles(
    client: AsyncClient, catalog_item: dict, make_open_bottle
) -> None:
    """Test a manual level is the baseline for later pours, per bottle."""
    corrected = await make_open_bottle(client, catalog_item["id"])
    untouched = await make_open_bottle(client, catalog_item["id"])

    await client.patch(
        f"/api/bottles/{corrected['id']}/fill-level",
        json={"fill_level": 50, "reason": "evaporation"},
    )
    a = await pour(client, corrected["id"], 2)
    b = await pour(client, untouched["id"], 2)

    assert a["bottle"]["fill"]["level"] == pytest.approx(42.11, abs=0.01)
    assert b["bottle"]["fill"]["level"] == pytest.approx(92.11, abs=0.01)


@pytest.mark.asyncio
async def test_recalculate_replays_pours(client: AsyncClient, open_bottle: dict) -> None:
    """Test recalculation discards manual corrections."""
    bottle_id = open_bottle["id"]
    await pour(client, bottle_id, 2)
    await client.patch(f"/api/bottles/{bottle_id}/fill-level", json={"fill_level": 50, "reason": "correction"})
    await pour(client, bottle_id, 2)

    response = await client.post(f"/api/bottles/{bottle_id}/fill-level/recalculate")
    assert response.status_code == 200
    data = response.json()
    assert data["previous_level"] == pytest.approx(42.11, abs=0.01)
    assert data["new_level"] == pytest.approx(84.23, abs=0.01)
    assert data["bottle"]["fill"]["last_manual_adjustment"] is None
    assert [h["kind"] for h in data["bottle"]["fill"]["history"]] == ["recalculation"]


@pytest.mark.asyncio
async def test_recalculate_unopened_rejected(client: AsyncClient, catalog_item: dict) -> None:
    bottle = (await client.post("/api/bottles", json={"catalog_item_id": catalog_item["id"]})).json()
    response = await client.post(f"/api/bottles/{bottle['id']}/fill-level/recalculate")
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_stale_bottle_save_is_rejected(client: AsyncClient, open_bottle: dict) -> None:
    """Test the revision check catches a lost update."""
    first = await Bottle.get(open_bottle["id"])
    stale = await Bottle.get(open_bottle["id"])

    first.notes = "first writer"
    await first.save()

    stale.notes = "second writer"
    with pytest.raises(RevisionIdWasChanged):
        await stale.save()

    assert (await Bottle.get(open_bottle["id"])).notes == "first writer"


@pytest.mark.asyncio
async def test_invalid_bottle_id(client: AsyncClient) -> None:
    response = await client.get("/api/bottles/not-an-id")
    assert response.status_code == 404
