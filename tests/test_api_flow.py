"""End-to-end HTTP flows through the routers (needs MongoDB)."""

import pytest

from app.models.user import User

pytestmark = pytest.mark.asyncio


async def _login(client, user: User, password: str = "secret123") -> None:
    r = await client.post("/api/auth/login", json={"email": user.email, "password": password})
    assert r.status_code == 200, r.text


async def test_register_requires_approval(client, make_user):
    r = await client.post(
        "/api/auth/register", json={"name": "Eve", "email": "eve@example.com", "password": "secret123"}
    )
    assert r.status_code == 201
    r = await client.post("/api/auth/login", json={"email": "eve@example.com", "password": "secret123"})
    assert r.status_code == 403

    admin = await make_user("Admin", role="admin")
    await _login(client, admin)
    pending = (await client.get("/api/admin/pending-approvals")).json()
    assert pending["count"] == 1
    r = await client.patch("/api/admin/pending-users", json={"user_id": pending["users"][0]["id"], "action": "approve"})
    assert r.status_code == 200
    assert (await client.get("/api/admin/pending-users")).json() == []


async def test_stock_endpoint_splits_cost(client, make_user):
    admin, a, b = await make_user("Admin", role="admin"), await make_user(), await make_user()
    await _login(client, admin)
    r = await client.post(
        "/api/inventory/stock",
        json={"company_name": "Yonex", "quantity": 10, "total_price": 500, "selected_user_ids": [str(a.id), str(b.id)]},
    )
    assert r.status_code == 201
    data = (await client.get("/api/inventory")).json()
    assert data["total_shuttles"] == 10
    balances = {u["id"]: u["outstanding_balance"] for u in data["users"]}
    assert balances[str(a.id)] == 250
    assert balances[str(b.id)] == 250


async def test_member_cannot_add_stock(client, make_user):
    member = await make_user()
    await _login(client, member)
    r = await client.post(
        "/api/inventory/stock",
        json={"company_name": "Yonex", "quantity": 1, "total_price": 5, "selected_user_ids": [str(member.id)]},
    )
    assert r.status_code == 403


async def test_leaderboard_order(client, make_user):
    await make_user("first", points=10, matches_won=2, matches_played=5)
    await make_user("second", points=10, matches_won=3, matches_played=4)
    await make_user("third", points=5, matches_won=1, matches_played=1)
    r = await client.get("/api/leaderboard")
    assert r.status_code == 200
    assert [u["name"] for u in r.json()] == ["second", "first", "third"]
    assert "no-store" in r.headers["Cache-Control"]


async def test_match_flow_over_http(client, make_user):
    a, b = await make_user("Alice"), await make_user("Bob")
    await _login(client, a)
    r = await client.post("/api/matches", json={"opponent_id": str(b.id), "scheduled_date": "2030-01-01T10:00:00"})
    assert r.status_code == 201
    match = r.json()
    assert match["player_two"]["name"] == "Bob"
    r = await client.patch(f"/api/matches/{match['id']}", json={"winner_id": str(a.id)})
    assert r.status_code == 200
    assert r.json()["status"] == "completed"
    me = (await client.get("/api/auth/me")).json()
    assert me["points"] == 3
    assert (await client.get("/api/matches/not-an-id")).status_code == 400


async def test_settings_update_admin_only(client, make_user):
    member = await make_user()
    await _login(client, member)
    assert (await client.patch("/api/settings", json={"points_for_win": 5})).status_code == 403
    admin = await make_user("Admin", role="admin")
    await _login(client, admin)
    r = await client.patch("/api/settings", json={"points_for_win": 5})
    assert r.json() == {"points_for_win": 5, "points_for_play": 1}
    assert (await client.get("/api/settings")).json()["points_for_win"] == 5
