from uuid import uuid4

import pytest
from httpx import AsyncClient


async def register_user(client: AsyncClient, email: str) -> tuple[dict[str, str], str]:
    response = await client.post(
        "/auth/register",
        json={
            "email": email,
            "password": "testpass123",
            "full_name": email.split("@")[0].title(),
        },
    )
    assert response.status_code == 201
    data = response.json()
    return {"Authorization": f"Bearer {data['token']['access_token']}"}, data["user"]["id"]


async def join_family(
    client: AsyncClient,
    admin_headers: dict[str, str],
    family_id: str,
    email: str,
    role: str,
) -> tuple[dict[str, str], str]:
    headers, user_id = await register_user(client, email)
    invite_res = await client.post(
        f"/families/{family_id}/invitations",
        headers=admin_headers,
        json={"email": email, "role": role},
    )
    assert invite_res.status_code == 201
    accept_res = await client.post(
        f"/invitations/{invite_res.json()['id']}/respond",
        headers=headers,
        json={"action": "accept"},
    )
    assert accept_res.status_code == 200
    return headers, user_id


async def notification_types(client: AsyncClient, headers: dict[str, str]) -> set[str]:
    response = await client.get("/notifications", headers=headers)
    assert response.status_code == 200
    return {item["type"] for item in response.json()["items"]}


@pytest.mark.asyncio
async def test_last_admin_cannot_be_removed_or_demoted(client: AsyncClient) -> None:
    admin_headers, admin_id = await register_user(client, "ana@example.com")
    family_id = (
        await client.post("/families", headers=admin_headers, json={"name": "Home"})
    ).json()["id"]
    editor_headers, editor_id = await join_family(
        client, admin_headers, family_id, "beto@example.com", "editor"
    )
    viewer_headers, _ = await join_family(
        client, admin_headers, family_id, "caro@example.com", "viewer"
    )

    editor_remove = await client.delete(
        f"/families/{family_id}/members/{admin_id}", headers=editor_headers
    )
    assert editor_remove.status_code == 409

    viewer_remove = await client.delete(
        f"/families/{family_id}/members/{admin_id}", headers=viewer_headers
    )
    assert viewer_remove.status_code == 409
    assert viewer_remove.json()["error"] == "conflict"

    viewer_demote = await client.patch(
        f"/families/{family_id}/members/{admin_id}",
        headers=viewer_headers,
        json={"role": "viewer"},
    )
    assert viewer_demote.status_code == 409
    assert viewer_demote.json()["error"] == "conflict"

    admin_leave = await client.delete(
        f"/families/{family_id}/members/{admin_id}", headers=admin_headers
    )
    assert admin_leave.status_code == 409
    assert admin_leave.json()["error"] == "conflict"

    admin_demote = await client.patch(
        f"/families/{family_id}/members/{admin_id}",
        headers=admin_headers,
        json={"role": "editor"},
    )
    assert admin_demote.status_code == 409

    promote_res = await client.patch(
        f"/families/{family_id}/members/{editor_id}",
        headers=admin_headers,
        json={"role": "admin"},
    )
    assert promote_res.status_code == 200
    assert promote_res.json()["role"] == "admin"
    assert promote_res.json()["updated_by"] == admin_id
    assert "role_updated" in await notification_types(client, editor_headers)

    self_demote = await client.patch(
        f"/families/{family_id}/members/{admin_id}",
        headers=admin_headers,
        json={"role": "viewer"},
    )
    assert self_demote.status_code == 200
    assert self_demote.json()["role"] == "viewer"

    leave_res = await client.delete(
        f"/families/{family_id}/members/{admin_id}", headers=admin_headers
    )
    assert leave_res.status_code == 200
    assert leave_res.json()["message"] == "You left the family group."
    assert "member_left" in await notification_types(client, editor_headers)

    members = (
        await client.get(f"/families/{family_id}/members", headers=editor_headers)
    ).json()["items"]
    roles = {member["user_id"]: member["role"] for member in members}
    assert admin_id not in roles
    assert roles[editor_id] == "admin"
    assert sorted(roles.values()) == ["admin", "viewer"]


@pytest.mark.asyncio
async def test_only_admins_manage_other_members(client: AsyncClient) -> None:
    admin_headers, _ = await register_user(client, "admin@example.com")
    family_id = (
        await client.post("/families", headers=admin_headers, json={"name": "Home"})
    ).json()["id"]
    editor_headers, editor_id = await join_family(
        client, admin_headers, family_id, "editor@example.com", "editor"
    )
    viewer_headers, viewer_id = await join_family(
        client, admin_headers, family_id, "viewer@example.com", "viewer"
    )

    editor_promote = await client.patch(
        f"/families/{family_id}/members/{viewer_id}",
        headers=editor_headers,
        json={"role": "editor"},
    )
    assert editor_promote.status_code == 403

    viewer_remove = await client.delete(
        f"/families/{family_id}/members/{editor_id}", headers=viewer_headers
    )
    assert viewer_remove.status_code == 403

    missing = await client.delete(
        f"/families/{family_id}/members/{uuid4()}", headers=admin_headers
    )
    assert missing.status_code == 404

    bad_role = await client.patch(
        f"/families/{family_id}/members/{viewer_id}",
        headers=admin_headers,
        json={"role": "owner"},
    )
    assert bad_role.status_code == 422

    remove_res = await client.delete(
        f"/families/{family_id}/members/{viewer_id}", headers=admin_headers
    )
    assert remove_res.status_code == 200
    assert remove_res.json()["message"] == "Member removed successfully."
    assert "member_removed" in await notification_types(client, viewer_headers)

    removed_view = await client.get(f"/families/{family_id}", headers=viewer_headers)
    assert removed_view.status_code == 403


@pytest.mark.asyncio
async def test_member_can_leave_and_items_keep_attribution(client: AsyncClient) -> None:
    admin_headers, _ = await register_user(client, "admin@example.com")
    family_id = (
        await client.post("/families", headers=admin_headers, json={"name": "Home"})
    ).json()["id"]
    editor_headers, editor_id = await join_family(
        client, admin_headers, family_id, "editor@example.com", "editor"
    )
    product_id = (
        await client.post("/products", headers=admin_headers, json={"name": "Arroz"})
    ).json()["id"]
    list_id = (
        await client.post(
            f"/families/{family_id}/lists", headers=admin_headers, json={"name": "Weekly"}
        )
    ).json()["id"]
    await client.post(
        f"/lists/{list_id}/items",
        headers=editor_headers,
        json={"product_id": product_id, "quantity": 3},
    )

    leave_res = await client.delete(
        f"/families/{family_id}/members/{editor_id}", headers=editor_headers
    )
    assert leave_res.status_code == 200

    detail = (await client.get(f"/lists/{list_id}", headers=admin_headers)).json()
    assert detail["items"][0]["added_by"] == editor_id
    assert detail["items"][0]["added_by_name"] == "Editor"
