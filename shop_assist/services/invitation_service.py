"""Family invitation workflow.

An invitation moves from ``pending`` to ``accepted`` or ``rejected`` once.
Expiry is not stored as a status: a pending invitation past ``expires_at``
is treated as expired whenever it is read or answered.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from enum import Enum
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from shop_assist.core.config import get_settings
from shop_assist.core.errors import (
    AlreadyRespondedError,
    ConflictError,
    ExpiredError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from shop_assist.models.family_group import FamilyGroup
from shop_assist.models.family_invitation import FamilyInvitation, InvitationStatus
from shop_assist.models.family_member import FamilyMember, FamilyRole
from shop_assist.models.notification import NotificationType
from shop_assist.models.user import User
from shop_assist.services.access_control import (
    FamilyAction,
    get_membership,
    require_permission,
)
from shop_assist.services.email_service import (
    EmailSender,
    InvitationEmail,
    build_invitation_link,
)
from shop_assist.services.membership_service import (
    add_family_member,
    get_family_or_404,
    member_user_ids,
)
from shop_assist.services.notification_service import notify

logger = logging.getLogger(__name__)


class InvitationAction(str, Enum):
    ACCEPT = "accept"
    REJECT = "reject"


def _current_time() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def normalize_email(email: str) -> str:
    return str(email or "").strip().lower()


def invitation_ttl() -> timedelta:
    return timedelta(days=get_settings().invitation_ttl_days)


async def _get_invitation_or_404(
    session: AsyncSession,
    *,
    invitation_id: UUID,
) -> FamilyInvitation:
    invitation = await session.get(FamilyInvitation, invitation_id)
    if invitation is None:
        raise NotFoundError("Invitation not found.")
    return invitation


async def _find_active_invitation(
    session: AsyncSession,
    *,
    family_id: UUID,
    email: str,
    now: datetime,
) -> FamilyInvitation | None:
    result = await session.execute(
        select(FamilyInvitation).where(
            FamilyInvitation.family_id == family_id,
            FamilyInvitation.email == email,
            FamilyInvitation.status == InvitationStatus.PENDING,
            FamilyInvitation.unexpired_at(now),
        )
    )
    return result.scalars().first()


async def _is_member_email(session: AsyncSession, *, family_id: UUID, email: str) -> bool:
    result = await session.execute(
        select(FamilyMember.id)
        .join(User, User.id == FamilyMember.user_id)
        .where(
            FamilyMember.family_id == family_id,
            (FamilyMember.email == email) | (User.email == email),
        )
    )
    return result.first() is not None


async def _send_invitation_email(
    email_sender: EmailSender,
    *,
    invitation: FamilyInvitation,
    family: FamilyGroup,
    inviter: User,
) -> None:
    message = InvitationEmail(
        recipient=invitation.email,
        family_name=family.name,
        inviter_name=inviter.full_name,
        role=invitation.role.value,
        invitation_link=build_invitation_link(invitation.id),
        expires_at=invitation.expires_at,
    )
    try:
        await email_sender.send_invitation(message)
    except Exception:
        logger.warning(
            "Invitation %s was created but the email to %s failed",
            invitation.id,
            invitation.email,
            exc_info=True,
        )


async def create_invitation(
    session: AsyncSession,
    *,
    family_id: UUID,
    email: str,
    role: FamilyRole,
    actor: User,
    email_sender: EmailSender,
) -> FamilyInvitation:
    family = await get_family_or_404(session, family_id=family_id)
    inviter = await require_permission(
        session,
        family_id=family_id,
        user_id=actor.id,
        action=FamilyAction.INVITE_MEMBER,
    )
    if role == FamilyRole.ADMIN and inviter.role != FamilyRole.ADMIN:
        raise ForbiddenError("Only admins can invite new admins.")

    normalized_email = normalize_email(email)
    if not normalized_email or "@" not in normalized_email:
        raise ValidationError("A valid email address is required.")

    if await _is_member_email(session, family_id=family_id, email=normalized_email):
        raise ConflictError("User is already a member of this family group.")

    now = _current_time()
    if await _find_active_invitation(
        session,
        family_id=family_id,
        email=normalized_email,
        now=now,
    ):
        raise ConflictError("An invitation is already pending for this email.")

    invitation = FamilyInvitation(
        family_id=family_id,
        email=normalized_email,
        role=role,
        status=InvitationStatus.PENDING,
        invited_by=actor.id,
        created_at=now,
        expires_at=now + invitation_ttl(),
    )
    session.add(invitation)
    await session.commit()
    await session.refresh(invitation)

    await _send_invitation_email(email_sender, invitation=invitation, family=family, inviter=actor)

    await notify(
        session,
        recipient_ids=[actor.id],
        family_id=family.id,
        notification_type=NotificationType.INVITATION,
        message=f"Invitation sent to {invitation.email} to join {family.name} as {role.value}.",
        sender_id=actor.id,
    )
    invitee_result = await session.execute(select(User.id).where(User.email == normalized_email))
    invitee_id = invitee_result.scalar_one_or_none()
    if invitee_id is not None:
        await notify(
            session,
            recipient_ids=[invitee_id],
            family_id=family.id,
            notification_type=NotificationType.INVITATION,
            message=f"{actor.full_name} invited you to join {family.name} as {role.value}.",
            sender_id=actor.id,
        )
    return invitation


async def respond_to_invitation(
    session: AsyncSession,
    *,
    invitation_id: UUID,
    action: InvitationAction,
    actor: User,
) -> tuple[FamilyInvitation, FamilyMember | None]:
    invitation = await _get_invitation_or_404(session, invitation_id=invitation_id)
    if normalize_email(invitation.email) != normalize_email(actor.email):
        raise ForbiddenError("This invitation is not addressed to you.")

    now = _current_time()
    if invitation.is_expired(now):
        raise ExpiredError()
    if invitation.status != InvitationStatus.PENDING:
        raise AlreadyRespondedError(f"Invitation has already been {invitation.status.value}.")

    family = await get_family_or_404(session, family_id=invitation.family_id)
    if action == InvitationAction.ACCEPT and await get_membership(
        session,
        family_id=invitation.family_id,
        user_id=actor.id,
    ):
        raise ConflictError("You are already a member of this family group.")

    next_status = (
        InvitationStatus.ACCEPTED if action == InvitationAction.ACCEPT else InvitationStatus.REJECTED
    )
    member: FamilyMember | None = None
    # Status change and membership insert commit together or not at all.
    try:
        result = await session.execute(
            update(FamilyInvitation)
            .where(
                FamilyInvitation.id == invitation.id,
                FamilyInvitation.status == InvitationStatus.PENDING,
            )
            .values(status=next_status, responded_at=now)
        )
        if result.rowcount != 1:
            raise AlreadyRespondedError()
        if action == InvitationAction.ACCEPT:
            member = await add_family_member(
                session,
                family_id=invitation.family_id,
                user_id=actor.id,
                email=actor.email,
                role=invitation.role,
            )
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError("You are already a member of this family group.") from exc
    except Exception:
        await session.rollback()
        raise

    await session.refresh(invitation)
    if member is not None:
        await session.refresh(member)

    if action == InvitationAction.ACCEPT:
        if invitation.invited_by != actor.id:
            await notify(
                session,
                recipient_ids=[invitation.invited_by],
                family_id=family.id,
                notification_type=NotificationType.INVITATION_ACCEPTED,
                message=f"{actor.full_name} accepted your invitation to {family.name}.",
                sender_id=actor.id,
            )
        admin_ids = await member_user_ids(session, family_id=family.id, role=FamilyRole.ADMIN)
        await notify(
            session,
            recipient_ids=[
                user_id
                for user_id in admin_ids
                if user_id not in {actor.id, invitation.invited_by}
            ],
            family_id=family.id,
            notification_type=NotificationType.MEMBER_JOINED,
            message=f"{actor.full_name} joined {family.name} as {invitation.role.value}.",
            sender_id=actor.id,
        )
    else:
        await notify(
            session,
            recipient_ids=[invitation.invited_by],
            family_id=family.id,
            notification_type=NotificationType.INVITATION_REJECTED,
            message=f"{invitation.email} declined the invitation to {family.name}.",
            sender_id=actor.id,
        )
    return invitation, member


async def cancel_invitation(
    session: AsyncSession,
    *,
    invitation_id: UUID,
    actor: User,
) -> FamilyInvitation:
    invitation = await _get_invitation_or_404(session, invitation_id=invitation_id)
    if invitation.invited_by != actor.id:
        membership = await get_membership(
            session,
            family_id=invitation.family_id,
            user_id=actor.id,
        )
        if membership is None or membership.role != FamilyRole.ADMIN:
            raise ForbiddenError("Only the inviter or a family admin can cancel this invitation.")
    if invitation.status != InvitationStatus.PENDING:
        raise AlreadyRespondedError(
            f"Invitation has already been {invitation.status.value} and cannot be cancelled."
        )

    await session.delete(invitation)
    await session.commit()
    return invitation


async def get_invitation(
    session: AsyncSession,
    *,
    invitation_id: UUID,
    actor: User,
) -> tuple[FamilyInvitation, FamilyGroup]:
    invitation = await _get_invitation_or_404(session, invitation_id=invitation_id)
    if normalize_email(invitation.email) != normalize_email(actor.email):
        membership = await get_membership(
            session,
            family_id=invitation.family_id,
            user_id=actor.id,
        )
        if membership is None:
            raise ForbiddenError("This invitation is not addressed to you.")

    if invitation.status == InvitationStatus.PENDING and invitation.is_expired(_current_time()):
        raise ExpiredError()
    family = await get_family_or_404(session, family_id=invitation.family_id)
    return invitation, family


async def list_family_invitations(
    session: AsyncSession,
    *,
    family_id: UUID,
    actor: User,
) -> list[FamilyInvitation]:
    await get_family_or_404(session, family_id=family_id)
    await require_permission(
        session,
        family_id=family_id,
        user_id=actor.id,
        action=FamilyAction.READ,
    )
    result = await session.execute(
        select(FamilyInvitation)
        .where(
            FamilyInvitation.family_id == family_id,
            FamilyInvitation.status == InvitationStatus.PENDING,
        )
        .order_by(FamilyInvitation.created_at.asc())
    )
    return list(result.scalars().all())


async def list_my_invitations(
    session: AsyncSession,
    *,
    actor: User,
) -> list[tuple[FamilyInvitation, FamilyGroup]]:
    result = await session.execute(
        select(FamilyInvitation, FamilyGroup)
        .join(FamilyGroup, FamilyGroup.id == FamilyInvitation.family_id)
        .where(
            FamilyInvitation.email == normalize_email(actor.email),
            FamilyInvitation.status == InvitationStatus.PENDING,
            FamilyInvitation.unexpired_at(_current_time()),
        )
        .order_by(FamilyInvitation.created_at.desc())
    )
    return [(invitation, family) for invitation, family in result.all()]
