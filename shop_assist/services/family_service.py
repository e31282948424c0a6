from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from shop_assist.core.errors import ValidationError
from shop_assist.models.family_group import FamilyGroup
from shop_assist.models.family_invitation import FamilyInvitation
from shop_assist.models.family_member import FamilyMember, FamilyRole
from shop_assist.models.list_activity import ListActivity
from shop_assist.models.notification import Notification
from shop_assist.models.shared_list import SharedGroceryList, SharedListItem
from shop_assist.models.user import User
from shop_assist.services.access_control import FamilyAction, require_permission
from shop_assist.services.membership_service import add_family_member, get_family_or_404


def clean_family_name(name: str) -> str:
    return " ".join(str(name or "").strip().split())


def _current_time() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def _require_name(name: str) -> str:
    cleaned = clean_family_name(name)
    if not cleaned:
        raise ValidationError("Family group name is required.")
    return cleaned


async def create_family(
    session: AsyncSession,
    *,
    name: str,
    actor: User,
) -> tuple[FamilyGroup, FamilyMember]:
    cleaned = _require_name(name)
    now = _current_time()
    family = FamilyGroup(name=cleaned, created_by=actor.id, created_at=now, updated_at=now)
    session.add(family)
    await session.flush()

    membership = await add_family_member(
        session,
        family_id=family.id,
        user_id=actor.id,
        email=actor.email,
        role=FamilyRole.ADMIN,
    )
    await session.commit()
    await session.refresh(family)
    return family, membership


async def list_families(
    session: AsyncSession,
    *,
    actor: User,
) -> list[tuple[FamilyGroup, FamilyRole]]:
    result = await session.execute(
        select(FamilyGroup, FamilyMember.role)
        .join(FamilyMember, FamilyMember.family_id == FamilyGroup.id)
        .where(FamilyMember.user_id == actor.id)
        .order_by(FamilyGroup.created_at.asc(), FamilyGroup.name.asc())
    )
    return [(family, role) for family, role in result.all()]


async def get_family(
    session: AsyncSession,
    *,
    family_id: UUID,
    actor: User,
) -> tuple[FamilyGroup, FamilyMember]:
    family = await get_family_or_404(session, family_id=family_id)
    membership = await require_permission(
        session,
        family_id=family_id,
        user_id=actor.id,
        action=FamilyAction.READ,
    )
    return family, membership


async def update_family(
    session: AsyncSession,
    *,
    family_id: UUID,
    name: str,
    actor: User,
) -> tuple[FamilyGroup, FamilyMember]:
    family = await get_family_or_404(session, family_id=family_id)
    membership = await require_permission(
        session,
        family_id=family_id,
        user_id=actor.id,
        action=FamilyAction.UPDATE_FAMILY,
    )
    family.name = _require_name(name)
    family.updated_at = _current_time()
    session.add(family)
    await session.commit()
    await session.refresh(family)
    return family, membership


async def delete_family(
    session: AsyncSession,
    *,
    family_id: UUID,
    actor: User,
) -> None:
    """Delete a family group together with everything it owns.

    Members, invitations, lists, items and list activity go in one
    transaction. Notifications belong to their recipients and only lose
    their family reference.
    """
    await get_family_or_404(session, family_id=family_id)
    await require_permission(
        session,
        family_id=family_id,
        user_id=actor.id,
        action=FamilyAction.DELETE_FAMILY,
    )

    list_ids = select(SharedGroceryList.id).where(SharedGroceryList.family_id == family_id)
    try:
        await session.execute(
            delete(SharedListItem)
            .where(SharedListItem.list_id.in_(list_ids))
            .execution_options(synchronize_session=False)
        )
        await session.execute(delete(ListActivity).where(ListActivity.family_id == family_id))
        await session.execute(
            delete(SharedGroceryList).where(SharedGroceryList.family_id == family_id)
        )
        await session.execute(
            delete(FamilyInvitation).where(FamilyInvitation.family_id == family_id)
        )
        await session.execute(delete(FamilyMember).where(FamilyMember.family_id == family_id))
        await session.execute(
            update(Notification)
            .where(Notification.family_id == family_id)
            .values(family_id=None)
        )
        await session.execute(delete(FamilyGroup).where(FamilyGroup.id == family_id))
        await session.commit()
    except Exception:
        await session.rollback()
        raise
