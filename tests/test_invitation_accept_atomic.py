from uuid import UUID

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from shop_assist.models.family_invitation import FamilyInvitation, InvitationStatus
from shop_assist.models.family_member import FamilyMember
from shop_assist.models.user import User
from shop_assist.services import invitation_service
from shop_assist.services.invitation_service import InvitationAction, respond_to_invitation


async def register_user(client: AsyncClient, email: str) -> dict[str, str]:
    response = await client.post(
        "/auth/register",
        json={"email": email, "password": "testpass123", "full_name": "Test User"},
    )
    assert response.status_code == 201
    token = response.json()["token"]["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.asyncio
async def test_failed_member_insert_leaves_invitation_pending(
    client: AsyncClient,
    session_maker: async_sessionmaker[AsyncSession],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    admin_headers = await register_user(client, "admin@example.com")
    family_id = (
        await client.post("/families", headers=admin_headers, json={"name": "Home"})
    ).json()["id"]
    joiner_headers = await register_user(client, "joiner@example.com")
    invite_res = await client.post(
        f"/families/{family_id}/invitations",
        headers=admin_headers,
        json={"email": "joiner@example.com", "role": "editor"},
    )
    invitation_id = UUID(invite_res.json()["id"])

    async def failing_add_family_member(*args, **kwargs):
        raise RuntimeError("membership store unavailable")

    monkeypatch.setattr(invitation_service, "add_family_member", failing_add_family_member)

    async with session_maker() as session:
        joiner = (
            await session.execute(select(User).where(User.email == "joiner@example.com"))
        ).scalar_one()
        with pytest.raises(RuntimeError):
            await respond_to_invitation(
                session,
                invitation_id=invitation_id,
                action=InvitationAction.ACCEPT,
                actor=joiner,
            )

    async with session_maker() as session:
        invitation = await session.get(FamilyInvitation, invitation_id)
        assert invitation.status == InvitationStatus.PENDING
        assert invitation.responded_at is None
        members = await session.execute(
            select(FamilyMember).where(FamilyMember.family_id == UUID(family_id))
        )
        assert len(members.scalars().all()) == 1

    monkeypatch.undo()
    retry_res = await client.post(
        f"/invitations/{invitation_id}/respond",
        headers=joiner_headers,
        json={"action": "accept"},
    )
    assert retry_res.status_code == 200
    assert retry_res.json()["member"]["role"] == "editor"
