"""Tests for pour session grouping and totals."""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from drambox.config import get_settings
from drambox.models import Pour, PourSession


async def pour(client: AsyncClient, bottle_id: str, amount: float, **extra) -> dict:
    response = await client.post("/api/pours", json={"bottle_id": bottle_id, "amount": amount, **extra})
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_pours_within_window_share_a_session(client: AsyncClient, open_bottle: dict) -> None:
    first = await pour(client, open_bottle["id"], 1.5, rating=8, tags=["peat"], companions=["Sam"])
    second = await pour(client, open_bottle["id"], 2, rating=7, tags=["smoke", "peat"])

    assert first["session"]["id"] == second["session"]["id"]
    session = second["session"]
    assert session["total_pours"] == 2
    assert session["total_amount"] == pytest.approx(3.5)
    assert session["average_rating"] == 7.5
    assert session["tags"] == ["peat", "smoke"]
    assert session["companions"] == ["Sam"]
    assert session["session_name"].startswith("Session ")


@pytest.mark.asyncio
async def test_pour_outside_window_starts_new_session(client: AsyncClient, open_bottle: dict) -> None:
    earlier = datetime.now(timezone.utc) - timedelta(hours=6)
    old = await pour(client, open_bottle["id"], 1, date=earlier.isoformat())
    now = await pour(client, open_bottle["id"], 1)

    assert old["session"]["id"] != now["session"]["id"]
    assert await PourSession.find_all().count() == 2


@pytest.mark.asyncio
async def test_new_session_flag(client: AsyncClient, open_bottle: dict) -> None:
    first = await pour(client, open_bottle["id"], 1)
    second = await pour(client, open_bottle["id"], 1, new_session=True, session_name="Tasting night")

    assert second["session"]["id"] != first["session"]["id"]
    assert second["session"]["session_name"] == "Tasting night"


@pytest.mark.asyncio
async def test_explicit_session(client: AsyncClient, open_bottle: dict) -> None:
    response = await client.post("/api/pour-sessions", json={"session_name": "Burns Night", "location": "home"})
    assert response.status_code == 201
    session = response.json()
    assert session["total_pours"] == 0

    result = await pour(client, open_bottle["id"], 1, session_id=session["id"])
    assert result["session"]["id"] == session["id"]
    assert result["session"]["total_pours"] == 1


@pytest.mark.asyncio
async def test_current_session(client: AsyncClient, open_bottle: dict) -> None:
    response = await client.get("/api/pour-sessions/current")
    assert response.status_code == 200
    assert response.json() is None

    result = await pour(client, open_bottle["id"], 1)
    response = await client.get("/api/pour-sessions/current")
    assert response.json()["id"] == result["session"]["id"]


@pytest.mark.asyncio
async def test_get_session_recomputes_totals(client: AsyncClient, open_bottle: dict) -> None:
    """Test reading a session repairs totals that drifted."""
    result = await pour(client, open_bottle["id"], 2, rating=9)
    session_id = result["session"]["id"]

    stored = await PourSession.get(session_id)
    stored.total_pours = 99
    stored.total_amount = 0
    await stored.save()

    data = (await client.get(f"/api/pour-sessions/{session_id}")).json()
    assert data["total_pours"] == 1
    assert data["total_amount"] == 2
    assert data["average_rating"] == 9

    again = (await client.get(f"/api/pour-sessions/{session_id}")).json()
    assert again["total_pours"] == data["total_pours"]
    assert again["total_amount"] == data["total_amount"]


@pytest.mark.asyncio
async def test_session_totals_match_pours_after_delete(client: AsyncClient, open_bottle: dict) -> None:
    a = await pour(client, open_bottle["id"], 1, rating=6)
    b = await pour(client, open_bottle["id"], 2)
    await client.delete(f"/api/pours/{b['pour']['id']}")

    session = await PourSession.get(a["session"]["id"])
    pours = await Pour.find(Pour.session_id == session.id).to_list()
    assert session.total_pours == len(pours) == 1
    assert session.total_amount == sum(p.amount for p in pours)
    assert session.average_rating == 6


@pytest.mark.asyncio
async def test_empty_session_retained_by_default(client: AsyncClient, open_bottle: dict) -> None:
    result = await pour(client, open_bottle["id"], 1)
    response = await client.delete(f"/api/pours/{result['pour']['id']}")

    assert response.json()["session"]["total_pours"] == 0
    assert await PourSession.get(result["session"]["id"]) is not None


@pytest.mark.asyncio
async def test_empty_session_pruned_when_configured(
    client: AsyncClient, open_bottle: dict, monkeypatch
) -> None:
    monkeypatch.setattr(get_settings().config.pours, "prune_empty_sessions", True)
    result = await pour(client, open_bottle["id"], 1)
    response = await client.delete(f"/api/pours/{result['pour']['id']}")

    assert response.json()["session"] is None
    assert await PourSession.get(result["session"]["id"]) is None


@pytest.mark.asyncio
async def test_session_of_other_user_is_forbidden(
    client: AsyncClient, other_client: AsyncClient, open_bottle: dict
) -> None:
    session = (await other_client.post("/api/pour-sessions", json={})).json()

    response = await client.post(
        "/api/pours",
        json={"bottle_id": open_bottle["id"], "amount": 1, "session_id": session["id"]},
    )
    assert response.status_code == 403
    assert await Pour.find_all().count() == 0

    response = await client.get(f"/api/pour-sessions/{session['id']}")
    assert response.status_code == 403
