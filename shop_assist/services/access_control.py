"""Role-based authorization for family groups.

Roles form a closed set and every (role, action) pair has an answer in
``ROLE_PERMISSIONS``. ``authorize`` is pure; ``require_permission`` adds the
membership lookup that every family-scoped operation starts with.
"""

from enum import Enum
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from shop_assist.core.errors import ForbiddenError
from shop_assist.models.family_member import FamilyMember, FamilyRole


class FamilyAction(str, Enum):
    READ = "read"
    INVITE_MEMBER = "invite_member"
    CREATE_LIST = "create_list"
    UPDATE_LIST = "update_list"
    DELETE_LIST = "delete_list"
    EDIT_ITEMS = "edit_items"
    MANAGE_MEMBERS = "manage_members"
    MANAGE_ROLES = "manage_roles"
    UPDATE_FAMILY = "update_family"
    DELETE_FAMILY = "delete_family"


ROLE_PERMISSIONS: dict[FamilyRole, frozenset[FamilyAction]] = {
    FamilyRole.ADMIN: frozenset(FamilyAction),
    FamilyRole.EDITOR: frozenset(
        {
            FamilyAction.READ,
            FamilyAction.INVITE_MEMBER,
            FamilyAction.CREATE_LIST,
            FamilyAction.UPDATE_LIST,
            FamilyAction.DELETE_LIST,
            FamilyAction.EDIT_ITEMS,
        }
    ),
    FamilyRole.VIEWER: frozenset({FamilyAction.READ}),
}

_DENIED_MESSAGES: dict[FamilyAction, str] = {
    FamilyAction.INVITE_MEMBER: "Editor or admin access required to invite members.",
    FamilyAction.CREATE_LIST: "Editor or admin access required to create lists.",
    FamilyAction.UPDATE_LIST: "Editor or admin access required to update lists.",
    FamilyAction.DELETE_LIST: "Editor or admin access required to delete lists.",
    FamilyAction.EDIT_ITEMS: "Editor or admin access required to change list items.",
    FamilyAction.MANAGE_MEMBERS: "Admin access required to manage members.",
    FamilyAction.MANAGE_ROLES: "Admin access required to change roles.",
    FamilyAction.UPDATE_FAMILY: "Admin access required to update the family group.",
    FamilyAction.DELETE_FAMILY: "Admin access required to delete the family group.",
}


def authorize(role: FamilyRole | str, action: FamilyAction) -> bool:
    return action in ROLE_PERMISSIONS[FamilyRole(role)]


async def get_membership(
    session: AsyncSession,
    *,
    family_id: UUID,
    user_id: UUID,
) -> FamilyMember | None:
    result = await session.execute(
        select(FamilyMember).where(
            FamilyMember.family_id == family_id,
            FamilyMember.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def require_permission(
    session: AsyncSession,
    *,
    family_id: UUID,
    user_id: UUID,
    action: FamilyAction,
) -> FamilyMember:
    member = await get_membership(session, family_id=family_id, user_id=user_id)
    if member is None:
        raise ForbiddenError("Family member access required.")
    if not authorize(member.role, action):
        raise ForbiddenError(_DENIED_MESSAGES.get(action))
    return member
