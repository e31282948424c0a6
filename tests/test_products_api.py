from uuid import uuid4

import pytest
from httpx import AsyncClient


async def register_user(client: AsyncClient, email: str) -> dict[str, str]:
    response = await client.post(
        "/auth/register",
        json={"email": email, "password": "testpass123", "full_name": "Shopper"},
    )
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['token']['access_token']}"}


@pytest.mark.asyncio
async def test_create_and_read_product(client: AsyncClient) -> None:
    headers = await register_user(client, "shopper@example.com")

    create_res = await client.post(
        "/products",
        headers=headers,
        json={
            "name": "  Cafe Britt  ",
            "brand": "Britt",
            "ean": "7 441001 234567",
            "price": 4200,
            "currency": "crc",
        },
    )
    assert create_res.status_code == 201
    product = create_res.json()
    assert product["name"] == "Cafe Britt"
    assert product["ean"] == "7441001234567"
    assert product["currency"] == "CRC"

    read_res = await client.get(f"/products/{product['id']}", headers=headers)
    assert read_res.status_code == 200
    assert read_res.json()["brand"] == "Britt"

    duplicate_res = await client.post(
        "/products",
        headers=headers,
        json={"name": "Cafe Britt Molido", "ean": "7441001234567"},
    )
    assert duplicate_res.status_code == 409


@pytest.mark.asyncio
async def test_unknown_product_is_not_found(client: AsyncClient) -> None:
    headers = await register_user(client, "shopper@example.com")
    response = await client.get(f"/products/{uuid4()}", headers=headers)
    assert response.status_code == 404
    assert response.json() == {"detail": "Product not found.", "error": "not_found"}
