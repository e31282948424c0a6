import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from shop_assist.api import families as families_api


async def register_user(client: AsyncClient, email: str) -> dict[str, str]:
    response = await client.post(
        "/auth/register",
        json={"email": email, "password": "testpass123", "full_name": "Ana"},
    )
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['token']['access_token']}"}


@pytest.mark.asyncio
async def test_store_outage_maps_to_retryable_503(
    client: AsyncClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    headers = await register_user(client, "ana@example.com")

    async def unavailable_store(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    monkeypatch.setattr(families_api, "list_families", unavailable_store)

    response = await client.get("/families", headers=headers)
    assert response.status_code == 503
    assert response.headers["retry-after"] == "1"
    assert response.json()["error"] == "transient_store_error"


@pytest.mark.asyncio
async def test_health_and_request_id(client: AsyncClient) -> None:
    response = await client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert response.headers["x-request-id"] == "req-123"


@pytest.mark.asyncio
async def test_validation_failures_render_as_422(client: AsyncClient) -> None:
    headers = await register_user(client, "ana@example.com")

    blank_name = await client.post("/families", headers=headers, json={"name": "   "})
    assert blank_name.status_code == 422
    assert blank_name.json() == {
        "detail": "Family group name is required.",
        "error": "validation_error",
    }

    malformed = await client.post("/families", headers=headers, json={})
    assert malformed.status_code == 422
    assert malformed.json()["error"] == "validation_error"

    bad_id = await client.get("/families/not-a-uuid", headers=headers)
    assert bad_id.status_code == 422
    assert bad_id.json()["error"] == "validation_error"
