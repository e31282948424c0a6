from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from shop_assist.api.deps import get_current_user, parse_uuid
from shop_assist.core.db import get_session
from shop_assist.models.family_group import FamilyGroup
from shop_assist.models.family_member import FamilyMember, FamilyRole
from shop_assist.models.user import User
from shop_assist.schemas.family import (
    FamilyCreateRequest,
    FamilyDeleteResponse,
    FamilyListResponse,
    FamilyResponse,
    FamilyUpdateRequest,
    MemberListResponse,
    MemberRemoveResponse,
    MemberResponse,
    MemberRoleUpdateRequest,
)
from shop_assist.services.family_service import (
    create_family,
    delete_family,
    get_family,
    list_families,
    update_family,
)
from shop_assist.services.membership_service import (
    list_members,
    remove_member,
    resolve_user_names,
    update_member_role,
)

router = APIRouter(prefix="/families", tags=["families"])


def _enum_value(value: object) -> str:
    return value.value if hasattr(value, "value") else str(value)


def to_family_response(family: FamilyGroup, role: FamilyRole) -> FamilyResponse:
    return FamilyResponse(
        id=str(family.id),
        name=family.name,
        created_by=str(family.created_by),
        role=_enum_value(role),
        created_at=family.created_at.isoformat(),
        updated_at=family.updated_at.isoformat(),
    )


def to_member_response(
    member: FamilyMember,
    user_names: dict[UUID, str] | None = None,
) -> MemberResponse:
    return MemberResponse(
        id=str(member.id),
        family_id=str(member.family_id),
        user_id=str(member.user_id),
        email=member.email,
        full_name=(user_names or {}).get(member.user_id),
        role=_enum_value(member.role),
        created_at=member.created_at.isoformat(),
        updated_at=member.updated_at.isoformat(),
        updated_by=str(member.updated_by) if member.updated_by else None,
    )


@router.post("", response_model=FamilyResponse, status_code=status.HTTP_201_CREATED)
async def create_family_group(
    payload: FamilyCreateRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> FamilyResponse:
    family, membership = await create_family(session, name=payload.name, actor=current_user)
    return to_family_response(family, membership.role)


@router.get("", response_model=FamilyListResponse)
async def list_family_groups(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> FamilyListResponse:
    families = await list_families(session, actor=current_user)
    return FamilyListResponse(items=[to_family_response(family, role) for family, role in families])


@router.get("/{family_id}", response_model=FamilyResponse)
async def read_family_group(
    family_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> FamilyResponse:
    family, membership = await get_family(
        session,
        family_id=parse_uuid(family_id, "family_id"),
        actor=current_user,
    )
    return to_family_response(family, membership.role)


@router.patch("/{family_id}", response_model=FamilyResponse)
async def rename_family_group(
    family_id: str,
    payload: FamilyUpdateRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> FamilyResponse:
    family, membership = await update_family(
        session,
        family_id=parse_uuid(family_id, "family_id"),
        name=payload.name,
        actor=current_user,
    )
    return to_family_response(family, membership.role)


@router.delete("/{family_id}", response_model=FamilyDeleteResponse)
async def delete_family_group(
    family_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> FamilyDeleteResponse:
    family_uuid = parse_uuid(family_id, "family_id")
    await delete_family(session, family_id=family_uuid, actor=current_user)
    return FamilyDeleteResponse(
        family_id=str(family_uuid),
        message="Family group deleted successfully.",
    )


@router.get("/{family_id}/members", response_model=MemberListResponse)
async def list_family_members(
    family_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> MemberListResponse:
    members = await list_members(
        session,
        family_id=parse_uuid(family_id, "family_id"),
        actor=current_user,
    )
    user_names = await resolve_user_names(session, {member.user_id for member in members})
    return MemberListResponse(items=[to_member_response(member, user_names) for member in members])


@router.patch("/{family_id}/members/{user_id}", response_model=MemberResponse)
async def change_member_role(
    family_id: str,
    user_id: str,
    payload: MemberRoleUpdateRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> MemberResponse:
    member = await update_member_role(
        session,
        family_id=parse_uuid(family_id, "family_id"),
        user_id=parse_uuid(user_id, "user_id"),
        new_role=payload.role,
        actor=current_user,
    )
    user_names = await resolve_user_names(session, {member.user_id})
    return to_member_response(member, user_names)


@router.delete("/{family_id}/members/{user_id}", response_model=MemberRemoveResponse)
async def remove_family_member(
    family_id: str,
    user_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> MemberRemoveResponse:
    member = await remove_member(
        session,
        family_id=parse_uuid(family_id, "family_id"),
        user_id=parse_uuid(user_id, "user_id"),
        actor=current_user,
    )
    message = (
        "You left the family group."
        if member.user_id == current_user.id
        else "Member removed successfully."
    )
    return MemberRemoveResponse(
        family_id=str(member.family_id),
        user_id=str(member.user_id),
        message=message,
    )
