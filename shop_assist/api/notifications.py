from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from shop_assist.api.deps import get_current_user, parse_uuid
from shop_assist.core.db import get_session
from shop_assist.models.notification import Notification
from shop_assist.models.user import User
from shop_assist.schemas.notification import (
    NotificationDeleteResponse,
    NotificationListResponse,
    NotificationMarkReadRequest,
    NotificationResponse,
    NotificationUpdateResponse,
)
from shop_assist.services.notification_service import (
    delete_notification,
    list_notifications,
    mark_all_read,
    mark_read,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


def to_notification_response(notification: Notification) -> NotificationResponse:
    return NotificationResponse(
        id=str(notification.id),
        user_id=str(notification.user_id),
        family_id=str(notification.family_id) if notification.family_id else None,
        type=notification.type.value,
        message=notification.message,
        sender_id=str(notification.sender_id) if notification.sender_id else None,
        read=bool(notification.read),
        created_at=notification.created_at.isoformat(),
        read_at=notification.read_at.isoformat() if notification.read_at else None,
    )


@router.get("", response_model=NotificationListResponse)
async def read_notifications(
    unread_only: bool = Query(default=False),
    limit: int = Query(default=100, ge=1, le=500),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> NotificationListResponse:
    notifications = await list_notifications(
        session,
        user_id=current_user.id,
        unread_only=unread_only,
        limit=limit,
    )
    unread_result = await session.execute(
        select(func.count())
        .select_from(Notification)
        .where(
            Notification.user_id == current_user.id,
            Notification.read.is_(False),
        )
    )
    return NotificationListResponse(
        items=[to_notification_response(notification) for notification in notifications],
        unread_count=int(unread_result.scalar_one()),
    )


@router.post("/read", response_model=NotificationUpdateResponse)
async def mark_notifications_read(
    payload: NotificationMarkReadRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> NotificationUpdateResponse:
    notification_ids = [
        parse_uuid(raw_id, "notification_id") for raw_id in payload.notification_ids
    ]
    updated = await mark_read(
        session,
        user_id=current_user.id,
        notification_ids=notification_ids,
    )
    return NotificationUpdateResponse(updated_count=updated)


@router.post("/read-all", response_model=NotificationUpdateResponse)
async def mark_every_notification_read(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> NotificationUpdateResponse:
    updated = await mark_all_read(session, user_id=current_user.id)
    return NotificationUpdateResponse(updated_count=updated)


@router.delete("/{notification_id}", response_model=NotificationDeleteResponse)
async def remove_notification(
    notification_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> NotificationDeleteResponse:
    notification_uuid = parse_uuid(notification_id, "notification_id")
    await delete_notification(
        session,
        user_id=current_user.id,
        notification_id=notification_uuid,
    )
    return NotificationDeleteResponse(
        notification_id=str(notification_uuid),
        message="Notification deleted.",
    )
