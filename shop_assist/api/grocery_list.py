from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from shop_assist.api.deps import get_current_user, parse_uuid
from shop_assist.core.db import get_session
from shop_assist.models.grocery_list import GroceryListItem
from shop_assist.models.product import Product
from shop_assist.models.user import User
from shop_assist.schemas.grocery_list import (
    GroceryListCountResponse,
    GroceryListItemCreateRequest,
    GroceryListItemDeleteResponse,
    GroceryListItemResponse,
    GroceryListResponse,
)
from shop_assist.services.grocery_list_service import (
    add_item,
    count_items,
    list_items,
    remove_item,
)

router = APIRouter(prefix="/grocery-list", tags=["grocery-list"])


def to_grocery_item_response(item: GroceryListItem, product: Product) -> GroceryListItemResponse:
    return GroceryListItemResponse(
        id=str(item.id),
        product_id=str(product.id),
        name=product.name,
        brand=product.brand,
        description=product.description,
        price=product.price,
        currency=product.currency,
        image_url=product.image_url,
        quantity=item.quantity,
        notes=item.notes,
        created_at=item.created_at.isoformat(),
        updated_at=item.updated_at.isoformat(),
    )


@router.get("", response_model=GroceryListResponse)
async def read_grocery_list(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> GroceryListResponse:
    rows = await list_items(session, user_id=current_user.id)
    return GroceryListResponse(
        items=[to_grocery_item_response(item, product) for item, product in rows],
        total=len(rows),
    )


@router.get("/count", response_model=GroceryListCountResponse)
async def read_grocery_list_count(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> GroceryListCountResponse:
    return GroceryListCountResponse(count=await count_items(session, user_id=current_user.id))


@router.post("", response_model=GroceryListItemResponse, status_code=status.HTTP_201_CREATED)
async def add_grocery_list_item(
    payload: GroceryListItemCreateRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> GroceryListItemResponse:
    item, product = await add_item(
        session,
        user_id=current_user.id,
        product_id=parse_uuid(payload.product_id, "product_id"),
        quantity=payload.quantity,
        notes=payload.notes,
    )
    return to_grocery_item_response(item, product)


@router.delete("/{item_id}", response_model=GroceryListItemDeleteResponse)
async def delete_grocery_list_item(
    item_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> GroceryListItemDeleteResponse:
    item = await remove_item(
        session,
        user_id=current_user.id,
        item_id=parse_uuid(item_id, "item_id"),
    )
    return GroceryListItemDeleteResponse(
        item_id=str(item.id),
        message="Item removed from your grocery list.",
    )
