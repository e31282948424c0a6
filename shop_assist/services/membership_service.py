from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import delete, func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased
from sqlmodel import select

from shop_assist.core.errors import ForbiddenError, LastAdminError, NotFoundError
from shop_assist.models.family_group import FamilyGroup
from shop_assist.models.family_member import FamilyMember, FamilyRole
from shop_assist.models.notification import NotificationType
from shop_assist.models.user import User
from shop_assist.services.access_control import (
    FamilyAction,
    authorize,
    get_membership,
    require_permission,
)
from shop_assist.services.notification_service import notify


def _current_time() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


async def get_family_or_404(session: AsyncSession, *, family_id: UUID) -> FamilyGroup:
    family = await session.get(FamilyGroup, family_id)
    if family is None:
        raise NotFoundError("Family group not found.")
    return family


async def add_family_member(
    session: AsyncSession,
    *,
    family_id: UUID,
    user_id: UUID,
    email: str,
    role: FamilyRole,
) -> FamilyMember:
    """Stage a membership row. The caller owns the commit."""
    now = _current_time()
    member = FamilyMember(
        family_id=family_id,
        user_id=user_id,
        email=email.strip().lower(),
        role=role,
        created_at=now,
        updated_at=now,
    )
    session.add(member)
    await session.flush()
    return member


async def list_family_members(
    session: AsyncSession,
    *,
    family_id: UUID,
) -> list[FamilyMember]:
    result = await session.execute(
        select(FamilyMember)
        .where(FamilyMember.family_id == family_id)
        .order_by(FamilyMember.created_at.asc(), FamilyMember.email.asc())
    )
    return list(result.scalars().all())


async def count_admins(session: AsyncSession, *, family_id: UUID) -> int:
    result = await session.execute(
        select(func.count())
        .select_from(FamilyMember)
        .where(
            FamilyMember.family_id == family_id,
            FamilyMember.role == FamilyRole.ADMIN,
        )
    )
    return int(result.scalar_one())


async def member_user_ids(
    session: AsyncSession,
    *,
    family_id: UUID,
    role: FamilyRole | None = None,
) -> list[UUID]:
    stmt = select(FamilyMember.user_id).where(FamilyMember.family_id == family_id)
    if role is not None:
        stmt = stmt.where(FamilyMember.role == role)
    result = await session.execute(stmt.order_by(FamilyMember.created_at.asc()))
    return list(result.scalars().all())


async def resolve_user_names(
    session: AsyncSession,
    user_ids: set[UUID],
) -> dict[UUID, str]:
    if not user_ids:
        return {}
    result = await session.execute(select(User).where(User.id.in_(list(user_ids))))
    return {user.id: user.full_name for user in result.scalars().all()}


async def list_members(
    session: AsyncSession,
    *,
    family_id: UUID,
    actor: User,
) -> list[FamilyMember]:
    await get_family_or_404(session, family_id=family_id)
    await require_permission(
        session,
        family_id=family_id,
        user_id=actor.id,
        action=FamilyAction.READ,
    )
    return await list_family_members(session, family_id=family_id)


async def _ensure_admin_remains(
    session: AsyncSession,
    *,
    target: FamilyMember,
    next_role: FamilyRole | None,
) -> None:
    if not _drops_admin(target, next_role):
        return
    if await count_admins(session, family_id=target.family_id) <= 1:
        raise LastAdminError()


def _drops_admin(target: FamilyMember, next_role: FamilyRole | None) -> bool:
    return target.role == FamilyRole.ADMIN and next_role != FamilyRole.ADMIN


def _another_admin_remains(family_id: UUID):
    """Row guard for writes that take an admin away.

    Evaluated inside the UPDATE/DELETE itself, so two concurrent demotions
    cannot both see a second admin.
    """
    admins = aliased(FamilyMember)
    admin_count = (
        select(func.count())
        .select_from(admins)
        .where(admins.family_id == family_id, admins.role == FamilyRole.ADMIN)
        .scalar_subquery()
    )
    return admin_count > 1


async def _lock_admin_rows(session: AsyncSession, *, family_id: UUID) -> None:
    # Row locks serialize admin changes on backends with FOR UPDATE; sqlite
    # already serializes writers.
    await session.execute(
        select(FamilyMember.id)
        .where(
            FamilyMember.family_id == family_id,
            FamilyMember.role == FamilyRole.ADMIN,
        )
        .with_for_update()
    )


async def _write_guarded(session: AsyncSession, stmt, *, guarded: bool) -> None:
    try:
        result = await session.execute(
            stmt.execution_options(synchronize_session=False)
        )
        if result.rowcount != 1 and guarded:
            raise LastAdminError()
        if result.rowcount != 1:
            raise NotFoundError("Member not found in this family group.")
        await session.commit()
    except Exception:
        await session.rollback()
        raise


async def update_member_role(
    session: AsyncSession,
    *,
    family_id: UUID,
    user_id: UUID,
    new_role: FamilyRole,
    actor: User,
) -> FamilyMember:
    family = await get_family_or_404(session, family_id=family_id)
    actor_member = await get_membership(session, family_id=family_id, user_id=actor.id)
    if actor_member is None:
        raise ForbiddenError("Family member access required.")

    target = await get_membership(session, family_id=family_id, user_id=user_id)
    if target is None:
        raise NotFoundError("Member not found in this family group.")

    await _ensure_admin_remains(session, target=target, next_role=new_role)
    if not authorize(actor_member.role, FamilyAction.MANAGE_ROLES):
        raise ForbiddenError("Admin access required to change roles.")

    if target.role == new_role:
        return target

    guarded = _drops_admin(target, new_role)
    stmt = update(FamilyMember).where(FamilyMember.id == target.id)
    if guarded:
        await _lock_admin_rows(session, family_id=family_id)
        stmt = stmt.where(_another_admin_remains(family_id))
    await _write_guarded(
        session,
        stmt.values(role=new_role, updated_at=_current_time(), updated_by=actor.id),
        guarded=guarded,
    )
    await session.refresh(target)

    if target.user_id != actor.id:
        await notify(
            session,
            recipient_ids=[target.user_id],
            family_id=family.id,
            notification_type=NotificationType.ROLE_UPDATED,
            message=f"Your role in {family.name} is now {new_role.value}.",
            sender_id=actor.id,
        )
    return target


async def remove_member(
    session: AsyncSession,
    *,
    family_id: UUID,
    user_id: UUID,
    actor: User,
) -> FamilyMember:
    """Remove a member, or let a member leave.

    The sole admin can never be removed, whoever asks. List items the member
    added stay in place with their ``added_by`` pointing at the former member.
    """
    family = await get_family_or_404(session, family_id=family_id)
    actor_member = await get_membership(session, family_id=family_id, user_id=actor.id)
    if actor_member is None:
        raise ForbiddenError("Family member access required.")

    target = await get_membership(session, family_id=family_id, user_id=user_id)
    if target is None:
        raise NotFoundError("Member not found in this family group.")

    await _ensure_admin_remains(session, target=target, next_role=None)
    leaving = target.user_id == actor.id
    if not leaving and not authorize(actor_member.role, FamilyAction.MANAGE_MEMBERS):
        raise ForbiddenError("Admin access required to manage members.")

    guarded = _drops_admin(target, None)
    stmt = delete(FamilyMember).where(FamilyMember.id == target.id)
    if guarded:
        await _lock_admin_rows(session, family_id=family_id)
        stmt = stmt.where(_another_admin_remains(family_id))
    await _write_guarded(session, stmt, guarded=guarded)
    session.expunge(target)

    if leaving:
        admin_ids = await member_user_ids(session, family_id=family.id, role=FamilyRole.ADMIN)
        await notify(
            session,
            recipient_ids=admin_ids,
            family_id=family.id,
            notification_type=NotificationType.MEMBER_LEFT,
            message=f"{actor.full_name} left {family.name}.",
            sender_id=actor.id,
        )
    else:
        await notify(
            session,
            recipient_ids=[target.user_id],
            family_id=family.id,
            notification_type=NotificationType.MEMBER_REMOVED,
            message=f"You were removed from {family.name}.",
            sender_id=actor.id,
        )
    return target
