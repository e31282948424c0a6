import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_register_login_token_me_flow(client: AsyncClient) -> None:
    register_payload = {
        "email": "Maria@Example.com",
        "password": "testpass123",
        "full_name": "Maria Lopez",
    }
    register_res = await client.post("/auth/register", json=register_payload)
    assert register_res.status_code == 201
    register_data = register_res.json()
    assert register_data["user"]["email"] == "maria@example.com"
    assert register_data["token"]["token_type"] == "bearer"

    duplicate_res = await client.post("/auth/register", json=register_payload)
    assert duplicate_res.status_code == 409

    login_res = await client.post(
        "/auth/login",
        json={"email": "maria@example.com", "password": "testpass123"},
    )
    assert login_res.status_code == 200
    assert login_res.json()["user"]["full_name"] == "Maria Lopez"

    token_res = await client.post(
        "/auth/token",
        data={"username": "maria@example.com", "password": "testpass123"},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    assert token_res.status_code == 200
    oauth_token = token_res.json()["access_token"]

    me_res = await client.get(
        "/auth/me",
        headers={"Authorization": f"Bearer {oauth_token}"},
    )
    assert me_res.status_code == 200
    assert me_res.json()["id"] == register_data["user"]["id"]


@pytest.mark.asyncio
async def test_login_rejects_wrong_password(client: AsyncClient) -> None:
    await client.post(
        "/auth/register",
        json={"email": "ana@example.com", "password": "testpass123", "full_name": "Ana"},
    )
    login_res = await client.post(
        "/auth/login",
        json={"email": "ana@example.com", "password": "wrongpass123"},
    )
    assert login_res.status_code == 401


@pytest.mark.asyncio
async def test_protected_routes_require_valid_token(client: AsyncClient) -> None:
    missing_res = await client.get("/families")
    assert missing_res.status_code == 401

    bad_res = await client.get("/families", headers={"Authorization": "Bearer not-a-token"})
    assert bad_res.status_code == 401
    assert bad_res.headers["www-authenticate"] == "Bearer"
