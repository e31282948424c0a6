from datetime import UTC, datetime

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from shop_assist.api.deps import get_current_user, parse_uuid
from shop_assist.api.families import to_member_response
from shop_assist.core.db import get_session
from shop_assist.models.family_invitation import FamilyInvitation
from shop_assist.models.user import User
from shop_assist.schemas.invitation import (
    InvitationCancelResponse,
    InvitationCreateRequest,
    InvitationListResponse,
    InvitationRespondRequest,
    InvitationRespondResponse,
    InvitationResponse,
)
from shop_assist.services.email_service import EmailSender, get_email_sender
from shop_assist.services.invitation_service import (
    InvitationAction,
    cancel_invitation,
    create_invitation,
    get_invitation,
    list_family_invitations,
    list_my_invitations,
    respond_to_invitation,
)

router = APIRouter(tags=["invitations"])


def _current_time() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def to_invitation_response(
    invitation: FamilyInvitation,
    family_name: str | None = None,
) -> InvitationResponse:
    return InvitationResponse(
        id=str(invitation.id),
        family_id=str(invitation.family_id),
        family_name=family_name,
        email=invitation.email,
        role=invitation.role.value,
        status=invitation.status.value,
        invited_by=str(invitation.invited_by),
        created_at=invitation.created_at.isoformat(),
        expires_at=invitation.expires_at.isoformat(),
        responded_at=invitation.responded_at.isoformat() if invitation.responded_at else None,
        is_expired=invitation.is_expired(_current_time()),
    )


@router.post(
    "/families/{family_id}/invitations",
    response_model=InvitationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def invite_family_member(
    family_id: str,
    payload: InvitationCreateRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    email_sender: EmailSender = Depends(get_email_sender),
) -> InvitationResponse:
    invitation = await create_invitation(
        session,
        family_id=parse_uuid(family_id, "family_id"),
        email=payload.email,
        role=payload.role,
        actor=current_user,
        email_sender=email_sender,
    )
    return to_invitation_response(invitation)


@router.get("/families/{family_id}/invitations", response_model=InvitationListResponse)
async def list_pending_family_invitations(
    family_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> InvitationListResponse:
    invitations = await list_family_invitations(
        session,
        family_id=parse_uuid(family_id, "family_id"),
        actor=current_user,
    )
    return InvitationListResponse(
        items=[to_invitation_response(invitation) for invitation in invitations]
    )


@router.get("/invitations/mine", response_model=InvitationListResponse)
async def list_invitations_for_me(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> InvitationListResponse:
    rows = await list_my_invitations(session, actor=current_user)
    return InvitationListResponse(
        items=[to_invitation_response(invitation, family.name) for invitation, family in rows]
    )


@router.get("/invitations/{invitation_id}", response_model=InvitationResponse)
async def read_invitation(
    invitation_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> InvitationResponse:
    invitation, family = await get_invitation(
        session,
        invitation_id=parse_uuid(invitation_id, "invitation_id"),
        actor=current_user,
    )
    return to_invitation_response(invitation, family.name)


@router.post("/invitations/{invitation_id}/respond", response_model=InvitationRespondResponse)
async def respond_invitation(
    invitation_id: str,
    payload: InvitationRespondRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> InvitationRespondResponse:
    invitation, member = await respond_to_invitation(
        session,
        invitation_id=parse_uuid(invitation_id, "invitation_id"),
        action=payload.action,
        actor=current_user,
    )
    accepted = payload.action == InvitationAction.ACCEPT
    return InvitationRespondResponse(
        invitation=to_invitation_response(invitation),
        member=to_member_response(member, {current_user.id: current_user.full_name})
        if member
        else None,
        message="Invitation accepted successfully." if accepted else "Invitation rejected.",
    )


@router.delete("/invitations/{invitation_id}", response_model=InvitationCancelResponse)
async def cancel_pending_invitation(
    invitation_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> InvitationCancelResponse:
    invitation = await cancel_invitation(
        session,
        invitation_id=parse_uuid(invitation_id, "invitation_id"),
        actor=current_user,
    )
    return InvitationCancelResponse(
        invitation_id=str(invitation.id),
        message="Invitation cancelled.",
    )
