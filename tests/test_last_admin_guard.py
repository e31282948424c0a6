import asyncio
from uuid import UUID

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from shop_assist.core.errors import LastAdminError
from shop_assist.models.family_member import FamilyMember, FamilyRole
from shop_assist.models.user import User
from shop_assist.services import membership_service
from shop_assist.services.membership_service import remove_member, update_member_role


async def register_user(client: AsyncClient, email: str) -> tuple[dict[str, str], str]:
    response = await client.post(
        "/auth/register",
        json={"email": email, "password": "testpass123", "full_name": "Test User"},
    )
    assert response.status_code == 201
    data = response.json()
    return {"Authorization": f"Bearer {data['token']['access_token']}"}, data["user"]["id"]


async def family_with_two_admins(client: AsyncClient) -> tuple[str, str, str]:
    first_headers, first_id = await register_user(client, "first@example.com")
    family_id = (
        await client.post("/families", headers=first_headers, json={"name": "Home"})
    ).json()["id"]
    second_headers, second_id = await register_user(client, "second@example.com")
    invite_res = await client.post(
        f"/families/{family_id}/invitations",
        headers=first_headers,
        json={"email": "second@example.com", "role": "admin"},
    )
    accept_res = await client.post(
        f"/invitations/{invite_res.json()['id']}/respond",
        headers=second_headers,
        json={"action": "accept"},
    )
    assert accept_res.status_code == 200
    return family_id, first_id, second_id


async def family_roles(
    session_maker: async_sessionmaker[AsyncSession], family_id: str
) -> list[FamilyRole]:
    async with session_maker() as session:
        result = await session.execute(
            select(FamilyMember.role).where(FamilyMember.family_id == UUID(family_id))
        )
        return list(result.scalars().all())


async def load_user(session: AsyncSession, email: str) -> User:
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one()


@pytest.mark.asyncio
async def test_admins_demoting_each_other_keep_one_admin(
    client: AsyncClient,
    session_maker: async_sessionmaker[AsyncSession],
) -> None:
    family_id, first_id, second_id = await family_with_two_admins(client)

    async def demote(actor_email: str, target_id: str) -> FamilyMember:
        async with session_maker() as session:
            actor = await load_user(session, actor_email)
            return await update_member_role(
                session,
                family_id=UUID(family_id),
                user_id=UUID(target_id),
                new_role=FamilyRole.VIEWER,
                actor=actor,
            )

    results = await asyncio.gather(
        demote("first@example.com", second_id),
        demote("second@example.com", first_id),
        return_exceptions=True,
    )

    assert any(isinstance(result, LastAdminError) for result in results)
    assert FamilyRole.ADMIN in await family_roles(session_maker, family_id)


@pytest.mark.asyncio
async def test_stale_admin_count_cannot_demote_last_admin(
    client: AsyncClient,
    session_maker: async_sessionmaker[AsyncSession],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    headers, admin_id = await register_user(client, "solo@example.com")
    family_id = (
        await client.post("/families", headers=headers, json={"name": "Home"})
    ).json()["id"]

    async def stale_count_admins(*args, **kwargs) -> int:
        return 2

    monkeypatch.setattr(membership_service, "count_admins", stale_count_admins)

    demote_res = await client.patch(
        f"/families/{family_id}/members/{admin_id}",
        headers=headers,
        json={"role": "editor"},
    )
    assert demote_res.status_code == 409
    assert demote_res.json()["error"] == "conflict"

    async with session_maker() as session:
        admin = await load_user(session, "solo@example.com")
        with pytest.raises(LastAdminError):
            await remove_member(
                session,
                family_id=UUID(family_id),
                user_id=admin.id,
                actor=admin,
            )

    assert await family_roles(session_maker, family_id) == [FamilyRole.ADMIN]
