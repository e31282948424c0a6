"""Personal grocery list: products a single user plans to buy.

Adding a product that is already on the list raises its quantity instead of
adding a second row.
"""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from shop_assist.core.errors import NotFoundError, ValidationError
from shop_assist.models.grocery_list import GroceryListItem
from shop_assist.models.product import Product
from shop_assist.services.product_service import get_product_or_404


def _current_time() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def _require_quantity(quantity: int) -> int:
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1.")
    return quantity


async def list_items(
    session: AsyncSession,
    *,
    user_id: UUID,
) -> list[tuple[GroceryListItem, Product]]:
    result = await session.execute(
        select(GroceryListItem, Product)
        .join(Product, Product.id == GroceryListItem.product_id)
        .where(GroceryListItem.user_id == user_id)
        .order_by(GroceryListItem.created_at.desc())
    )
    return [(item, product) for item, product in result.all()]


async def count_items(session: AsyncSession, *, user_id: UUID) -> int:
    result = await session.execute(
        select(func.count())
        .select_from(GroceryListItem)
        .where(GroceryListItem.user_id == user_id)
    )
    return int(result.scalar_one())


async def add_item(
    session: AsyncSession,
    *,
    user_id: UUID,
    product_id: UUID,
    quantity: int = 1,
    notes: str | None = None,
) -> tuple[GroceryListItem, Product]:
    quantity = _require_quantity(quantity)
    product = await get_product_or_404(session, product_id=product_id)
    cleaned_notes = str(notes or "").strip() or None
    now = _current_time()

    existing = await session.execute(
        select(GroceryListItem).where(
            GroceryListItem.user_id == user_id,
            GroceryListItem.product_id == product.id,
        )
    )
    item = existing.scalar_one_or_none()
    if item is None:
        item = GroceryListItem(
            user_id=user_id,
            product_id=product.id,
            quantity=quantity,
            notes=cleaned_notes,
            created_at=now,
            updated_at=now,
        )
    else:
        item.quantity += quantity
        if cleaned_notes is not None:
            item.notes = cleaned_notes
        item.updated_at = now

    session.add(item)
    await session.commit()
    await session.refresh(item)
    return item, product


async def remove_item(session: AsyncSession, *, user_id: UUID, item_id: UUID) -> GroceryListItem:
    item = await session.get(GroceryListItem, item_id)
    # Another user's item is reported the same as a missing one.
    if item is None or item.user_id != user_id:
        raise NotFoundError("Grocery list item not found.")
    await session.delete(item)
    await session.commit()
    return item
