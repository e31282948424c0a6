import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from shop_assist.core.errors import NotFoundError
from shop_assist.models.notification import Notification, NotificationType

logger = logging.getLogger(__name__)


def _current_time() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


async def notify(
    session: AsyncSession,
    *,
    recipient_ids: Iterable[UUID],
    family_id: UUID | None,
    notification_type: NotificationType,
    message: str,
    sender_id: UUID | None,
) -> int:
    """Write one notification per distinct recipient.

    Runs after the triggering change has been committed, in its own
    transaction. Failures are logged and reported as zero rows written.
    """
    recipients = list(dict.fromkeys(recipient_ids))
    if not recipients:
        return 0

    try:
        async with AsyncSession(session.bind, expire_on_commit=False) as fanout_session:
            now = _current_time()
            for user_id in recipients:
                fanout_session.add(
                    Notification(
                        user_id=user_id,
                        family_id=family_id,
                        type=notification_type,
                        message=message,
                        sender_id=sender_id,
                        read=False,
                        created_at=now,
                    )
                )
            await fanout_session.commit()
    except Exception:
        logger.warning(
            "Failed to write %s notification(s) for family %s",
            notification_type.value,
            family_id,
            exc_info=True,
        )
        return 0

    logger.debug(
        "Wrote %d %s notification(s) for family %s",
        len(recipients),
        notification_type.value,
        family_id,
    )
    return len(recipients)


async def list_notifications(
    session: AsyncSession,
    *,
    user_id: UUID,
    unread_only: bool = False,
    limit: int = 100,
) -> list[Notification]:
    stmt = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        stmt = stmt.where(Notification.read.is_(False))
    stmt = stmt.order_by(Notification.created_at.desc()).limit(limit)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def mark_read(
    session: AsyncSession,
    *,
    user_id: UUID,
    notification_ids: list[UUID],
) -> int:
    if not notification_ids:
        return 0
    result = await session.execute(
        update(Notification)
        .where(
            Notification.user_id == user_id,
            Notification.id.in_(notification_ids),
            Notification.read.is_(False),
        )
        .values(read=True, read_at=_current_time())
    )
    await session.commit()
    return result.rowcount or 0


async def mark_all_read(session: AsyncSession, *, user_id: UUID) -> int:
    result = await session.execute(
        update(Notification)
        .where(
            Notification.user_id == user_id,
            Notification.read.is_(False),
        )
        .values(read=True, read_at=_current_time())
    )
    await session.commit()
    return result.rowcount or 0


async def delete_notification(
    session: AsyncSession,
    *,
    user_id: UUID,
    notification_id: UUID,
) -> None:
    result = await session.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user_id,
        )
    )
    notification = result.scalar_one_or_none()
    if notification is None:
        raise NotFoundError("Notification not found.")
    await session.delete(notification)
    await session.commit()
