from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from shop_assist.core.errors import ForbiddenError, NotFoundError, ValidationError
from shop_assist.models.family_group import FamilyGroup
from shop_assist.models.family_member import FamilyRole
from shop_assist.models.list_activity import ListActivity, ListActivityAction
from shop_assist.models.notification import NotificationType
from shop_assist.models.product import Product
from shop_assist.models.shared_list import SharedGroceryList, SharedListItem
from shop_assist.models.user import User
from shop_assist.services.access_control import FamilyAction, require_permission
from shop_assist.services.membership_service import get_family_or_404, member_user_ids
from shop_assist.services.notification_service import notify
from shop_assist.services.product_service import get_product_or_404

UNSET: Any = object()


def clean_list_name(name: str) -> str:
    return " ".join(str(name or "").strip().split())


def _current_time() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def _require_list_name(name: str) -> str:
    cleaned = clean_list_name(name)
    if not cleaned:
        raise ValidationError("List name is required.")
    return cleaned


def _require_quantity(quantity: int) -> int:
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1.")
    return quantity


def _clean_notes(notes: str | None) -> str | None:
    cleaned = str(notes or "").strip()
    return cleaned or None


async def _get_list_or_404(session: AsyncSession, *, list_id: UUID) -> SharedGroceryList:
    shopping_list = await session.get(SharedGroceryList, list_id)
    if shopping_list is None:
        raise NotFoundError("Shared list not found.")
    return shopping_list


async def _get_item_or_404(
    session: AsyncSession,
    *,
    list_id: UUID,
    item_id: UUID,
) -> SharedListItem:
    result = await session.execute(
        select(SharedListItem).where(
            SharedListItem.id == item_id,
            SharedListItem.list_id == list_id,
        )
    )
    item = result.scalar_one_or_none()
    if item is None:
        raise NotFoundError("List item not found.")
    return item


def _stage_activity(
    session: AsyncSession,
    *,
    family_id: UUID,
    list_id: UUID | None,
    user_id: UUID,
    action: ListActivityAction,
    details: str,
) -> None:
    session.add(
        ListActivity(
            family_id=family_id,
            list_id=list_id,
            user_id=user_id,
            action=action,
            details=details[:500],
            created_at=_current_time(),
        )
    )


async def _notify_family(
    session: AsyncSession,
    *,
    family: FamilyGroup,
    actor: User,
    notification_type: NotificationType,
    message: str,
) -> None:
    member_ids = await member_user_ids(session, family_id=family.id)
    await notify(
        session,
        recipient_ids=[user_id for user_id in member_ids if user_id != actor.id],
        family_id=family.id,
        notification_type=notification_type,
        message=message,
        sender_id=actor.id,
    )


async def create_shared_list(
    session: AsyncSession,
    *,
    family_id: UUID,
    name: str,
    actor: User,
) -> SharedGroceryList:
    family = await get_family_or_404(session, family_id=family_id)
    await require_permission(
        session,
        family_id=family_id,
        user_id=actor.id,
        action=FamilyAction.CREATE_LIST,
    )
    cleaned = _require_list_name(name)

    now = _current_time()
    shopping_list = SharedGroceryList(
        family_id=family_id,
        name=cleaned,
        created_by=actor.id,
        created_at=now,
        updated_at=now,
    )
    session.add(shopping_list)
    await session.flush()
    _stage_activity(
        session,
        family_id=family_id,
        list_id=shopping_list.id,
        user_id=actor.id,
        action=ListActivityAction.CREATED_LIST,
        details=f'Created list "{cleaned}"',
    )
    await session.commit()
    await session.refresh(shopping_list)

    await _notify_family(
        session,
        family=family,
        actor=actor,
        notification_type=NotificationType.LIST_CREATED,
        message=f'{actor.full_name} created the list "{cleaned}" in {family.name}.',
    )
    return shopping_list


async def list_shared_lists(
    session: AsyncSession,
    *,
    family_id: UUID,
    actor: User,
) -> list[tuple[SharedGroceryList, int]]:
    await get_family_or_404(session, family_id=family_id)
    await require_permission(
        session,
        family_id=family_id,
        user_id=actor.id,
        action=FamilyAction.READ,
    )
    item_count = (
        select(func.count(SharedListItem.id))
        .where(SharedListItem.list_id == SharedGroceryList.id)
        .correlate(SharedGroceryList)
        .scalar_subquery()
    )
    result = await session.execute(
        select(SharedGroceryList, item_count)
        .where(SharedGroceryList.family_id == family_id)
        .order_by(SharedGroceryList.created_at.desc())
    )
    return [(shopping_list, int(count or 0)) for shopping_list, count in result.all()]


async def get_shared_list(
    session: AsyncSession,
    *,
    list_id: UUID,
    actor: User,
) -> tuple[SharedGroceryList, list[tuple[SharedListItem, Product]]]:
    shopping_list = await _get_list_or_404(session, list_id=list_id)
    await require_permission(
        session,
        family_id=shopping_list.family_id,
        user_id=actor.id,
        action=FamilyAction.READ,
    )
    result = await session.execute(
        select(SharedListItem, Product)
        .join(Product, Product.id == SharedListItem.product_id)
        .where(SharedListItem.list_id == list_id)
        .order_by(SharedListItem.created_at.asc())
    )
    return shopping_list, [(item, product) for item, product in result.all()]


async def update_shared_list(
    session: AsyncSession,
    *,
    list_id: UUID,
    name: str,
    actor: User,
) -> SharedGroceryList:
    shopping_list = await _get_list_or_404(session, list_id=list_id)
    await require_permission(
        session,
        family_id=shopping_list.family_id,
        user_id=actor.id,
        action=FamilyAction.UPDATE_LIST,
    )
    cleaned = _require_list_name(name)
    previous_name = shopping_list.name

    shopping_list.name = cleaned
    shopping_list.updated_at = _current_time()
    session.add(shopping_list)
    _stage_activity(
        session,
        family_id=shopping_list.family_id,
        list_id=shopping_list.id,
        user_id=actor.id,
        action=ListActivityAction.UPDATED_LIST,
        details=f'Renamed list "{previous_name}" to "{cleaned}"',
    )
    await session.commit()
    await session.refresh(shopping_list)

    family = await get_family_or_404(session, family_id=shopping_list.family_id)
    await _notify_family(
        session,
        family=family,
        actor=actor,
        notification_type=NotificationType.LIST_UPDATED,
        message=f'{actor.full_name} renamed "{previous_name}" to "{cleaned}".',
    )
    return shopping_list


async def delete_shared_list(
    session: AsyncSession,
    *,
    list_id: UUID,
    actor: User,
) -> SharedGroceryList:
    shopping_list = await _get_list_or_404(session, list_id=list_id)
    membership = await require_permission(
        session,
        family_id=shopping_list.family_id,
        user_id=actor.id,
        action=FamilyAction.DELETE_LIST,
    )
    if membership.role != FamilyRole.ADMIN and shopping_list.created_by != actor.id:
        raise ForbiddenError("Only an admin or the list owner can delete this list.")

    try:
        await session.execute(delete(SharedListItem).where(SharedListItem.list_id == list_id))
        await session.execute(
            update(ListActivity).where(ListActivity.list_id == list_id).values(list_id=None)
        )
        _stage_activity(
            session,
            family_id=shopping_list.family_id,
            list_id=None,
            user_id=actor.id,
            action=ListActivityAction.DELETED_LIST,
            details=f'Deleted list "{shopping_list.name}"',
        )
        await session.delete(shopping_list)
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    family = await get_family_or_404(session, family_id=shopping_list.family_id)
    await _notify_family(
        session,
        family=family,
        actor=actor,
        notification_type=NotificationType.LIST_DELETED,
        message=f'{actor.full_name} deleted the list "{shopping_list.name}".',
    )
    return shopping_list


async def add_item(
    session: AsyncSession,
    *,
    list_id: UUID,
    product_id: UUID,
    quantity: int,
    notes: str | None,
    actor: User,
) -> tuple[SharedListItem, Product]:
    shopping_list = await _get_list_or_404(session, list_id=list_id)
    await require_permission(
        session,
        family_id=shopping_list.family_id,
        user_id=actor.id,
        action=FamilyAction.EDIT_ITEMS,
    )
    quantity = _require_quantity(quantity)
    product = await get_product_or_404(session, product_id=product_id)

    now = _current_time()
    item = SharedListItem(
        list_id=list_id,
        product_id=product.id,
        quantity=quantity,
        notes=_clean_notes(notes),
        added_by=actor.id,
        created_at=now,
        updated_at=now,
    )
    session.add(item)
    shopping_list.updated_at = now
    session.add(shopping_list)
    _stage_activity(
        session,
        family_id=shopping_list.family_id,
        list_id=list_id,
        user_id=actor.id,
        action=ListActivityAction.ADDED_ITEM,
        details=f'Added "{product.name}" (x{quantity})',
    )
    await session.commit()
    await session.refresh(item)

    family = await get_family_or_404(session, family_id=shopping_list.family_id)
    await _notify_family(
        session,
        family=family,
        actor=actor,
        notification_type=NotificationType.ITEM_ADDED,
        message=f'{actor.full_name} added "{product.name}" to "{shopping_list.name}".',
    )
    return item, product


async def update_item(
    session: AsyncSession,
    *,
    list_id: UUID,
    item_id: UUID,
    actor: User,
    quantity: int | None = None,
    notes: str | None = UNSET,
) -> tuple[SharedListItem, Product]:
    """Apply a partial update. Concurrent edits are last-write-wins."""
    shopping_list = await _get_list_or_404(session, list_id=list_id)
    await require_permission(
        session,
        family_id=shopping_list.family_id,
        user_id=actor.id,
        action=FamilyAction.EDIT_ITEMS,
    )
    item = await _get_item_or_404(session, list_id=list_id, item_id=item_id)
    product = await get_product_or_404(session, product_id=item.product_id)

    if quantity is not None:
        item.quantity = _require_quantity(quantity)
    if notes is not UNSET:
        item.notes = _clean_notes(notes)

    now = _current_time()
    item.updated_at = now
    item.updated_by = actor.id
    session.add(item)
    shopping_list.updated_at = now
    session.add(shopping_list)
    _stage_activity(
        session,
        family_id=shopping_list.family_id,
        list_id=list_id,
        user_id=actor.id,
        action=ListActivityAction.UPDATED_ITEM,
        details=f'Updated "{product.name}" quantity to {item.quantity}',
    )
    await session.commit()
    await session.refresh(item)

    family = await get_family_or_404(session, family_id=shopping_list.family_id)
    await _notify_family(
        session,
        family=family,
        actor=actor,
        notification_type=NotificationType.ITEM_UPDATED,
        message=f'{actor.full_name} updated "{product.name}" in "{shopping_list.name}".',
    )
    return item, product


async def remove_item(
    session: AsyncSession,
    *,
    list_id: UUID,
    item_id: UUID,
    actor: User,
) -> SharedListItem:
    shopping_list = await _get_list_or_404(session, list_id=list_id)
    await require_permission(
        session,
        family_id=shopping_list.family_id,
        user_id=actor.id,
        action=FamilyAction.EDIT_ITEMS,
    )
    item = await _get_item_or_404(session, list_id=list_id, item_id=item_id)
    product = await get_product_or_404(session, product_id=item.product_id)

    await session.delete(item)
    shopping_list.updated_at = _current_time()
    session.add(shopping_list)
    _stage_activity(
        session,
        family_id=shopping_list.family_id,
        list_id=list_id,
        user_id=actor.id,
        action=ListActivityAction.REMOVED_ITEM,
        details=f'Removed "{product.name}" from the list',
    )
    await session.commit()

    family = await get_family_or_404(session, family_id=shopping_list.family_id)
    await _notify_family(
        session,
        family=family,
        actor=actor,
        notification_type=NotificationType.ITEM_REMOVED,
        message=f'{actor.full_name} removed "{product.name}" from "{shopping_list.name}".',
    )
    return item


async def list_activity(
    session: AsyncSession,
    *,
    list_id: UUID,
    actor: User,
    limit: int = 50,
) -> list[ListActivity]:
    shopping_list = await _get_list_or_404(session, list_id=list_id)
    await require_permission(
        session,
        family_id=shopping_list.family_id,
        user_id=actor.id,
        action=FamilyAction.READ,
    )
    result = await session.execute(
        select(ListActivity)
        .where(ListActivity.list_id == list_id)
        .order_by(ListActivity.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
