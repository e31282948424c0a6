from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from shop_assist.api.deps import get_current_user, parse_uuid
from shop_assist.core.db import get_session
from shop_assist.models.list_activity import ListActivity
from shop_assist.models.product import Product
from shop_assist.models.shared_list import SharedGroceryList, SharedListItem
from shop_assist.models.user import User
from shop_assist.schemas.shared_list import (
    ListActivityCollectionResponse,
    ListActivityResponse,
    SharedListCollectionResponse,
    SharedListCreateRequest,
    SharedListDeleteResponse,
    SharedListDetailResponse,
    SharedListItemCreateRequest,
    SharedListItemDeleteResponse,
    SharedListItemResponse,
    SharedListItemUpdateRequest,
    SharedListResponse,
    SharedListUpdateRequest,
)
from shop_assist.services.membership_service import resolve_user_names
from shop_assist.services.shared_list_service import (
    UNSET,
    add_item,
    create_shared_list,
    delete_shared_list,
    get_shared_list,
    list_activity,
    list_shared_lists,
    remove_item,
    update_item,
    update_shared_list,
)

router = APIRouter(tags=["shared-lists"])


def to_list_response(shopping_list: SharedGroceryList, item_count: int = 0) -> SharedListResponse:
    return SharedListResponse(
        id=str(shopping_list.id),
        family_id=str(shopping_list.family_id),
        name=shopping_list.name,
        created_by=str(shopping_list.created_by),
        created_at=shopping_list.created_at.isoformat(),
        updated_at=shopping_list.updated_at.isoformat(),
        item_count=item_count,
    )


def to_item_response(
    item: SharedListItem,
    product: Product,
    user_names: dict[UUID, str] | None = None,
) -> SharedListItemResponse:
    return SharedListItemResponse(
        id=str(item.id),
        list_id=str(item.list_id),
        product_id=str(item.product_id),
        product_name=product.name,
        product_brand=product.brand,
        quantity=item.quantity,
        notes=item.notes,
        added_by=str(item.added_by),
        added_by_name=(user_names or {}).get(item.added_by),
        created_at=item.created_at.isoformat(),
        updated_at=item.updated_at.isoformat(),
        updated_by=str(item.updated_by) if item.updated_by else None,
    )


def to_activity_response(activity: ListActivity) -> ListActivityResponse:
    return ListActivityResponse(
        id=str(activity.id),
        list_id=str(activity.list_id) if activity.list_id else None,
        user_id=str(activity.user_id),
        action=activity.action.value,
        details=activity.details,
        created_at=activity.created_at.isoformat(),
    )


@router.post(
    "/families/{family_id}/lists",
    response_model=SharedListResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_family_list(
    family_id: str,
    payload: SharedListCreateRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> SharedListResponse:
    shopping_list = await create_shared_list(
        session,
        family_id=parse_uuid(family_id, "family_id"),
        name=payload.name,
        actor=current_user,
    )
    return to_list_response(shopping_list)


@router.get("/families/{family_id}/lists", response_model=SharedListCollectionResponse)
async def list_family_lists(
    family_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> SharedListCollectionResponse:
    rows = await list_shared_lists(
        session,
        family_id=parse_uuid(family_id, "family_id"),
        actor=current_user,
    )
    return SharedListCollectionResponse(
        items=[to_list_response(shopping_list, count) for shopping_list, count in rows]
    )


@router.get("/lists/{list_id}", response_model=SharedListDetailResponse)
async def read_list(
    list_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> SharedListDetailResponse:
    shopping_list, rows = await get_shared_list(
        session,
        list_id=parse_uuid(list_id, "list_id"),
        actor=current_user,
    )
    user_names = await resolve_user_names(session, {item.added_by for item, _ in rows})
    summary = to_list_response(shopping_list, len(rows))
    return SharedListDetailResponse(
        **summary.model_dump(),
        items=[to_item_response(item, product, user_names) for item, product in rows],
    )


@router.patch("/lists/{list_id}", response_model=SharedListResponse)
async def rename_list(
    list_id: str,
    payload: SharedListUpdateRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> SharedListResponse:
    shopping_list = await update_shared_list(
        session,
        list_id=parse_uuid(list_id, "list_id"),
        name=payload.name,
        actor=current_user,
    )
    return to_list_response(shopping_list)


@router.delete("/lists/{list_id}", response_model=SharedListDeleteResponse)
async def delete_list(
    list_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> SharedListDeleteResponse:
    shopping_list = await delete_shared_list(
        session,
        list_id=parse_uuid(list_id, "list_id"),
        actor=current_user,
    )
    return SharedListDeleteResponse(
        list_id=str(shopping_list.id),
        message="Shared list deleted successfully.",
    )


@router.get("/lists/{list_id}/activity", response_model=ListActivityCollectionResponse)
async def read_list_activity(
    list_id: str,
    limit: int = Query(default=50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ListActivityCollectionResponse:
    activities = await list_activity(
        session,
        list_id=parse_uuid(list_id, "list_id"),
        actor=current_user,
        limit=limit,
    )
    return ListActivityCollectionResponse(
        items=[to_activity_response(activity) for activity in activities]
    )


@router.post(
    "/lists/{list_id}/items",
    response_model=SharedListItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_list_item(
    list_id: str,
    payload: SharedListItemCreateRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> SharedListItemResponse:
    item, product = await add_item(
        session,
        list_id=parse_uuid(list_id, "list_id"),
        product_id=parse_uuid(payload.product_id, "product_id"),
        quantity=payload.quantity,
        notes=payload.notes,
        actor=current_user,
    )
    return to_item_response(item, product, {current_user.id: current_user.full_name})


@router.patch("/lists/{list_id}/items/{item_id}", response_model=SharedListItemResponse)
async def update_list_item(
    list_id: str,
    item_id: str,
    payload: SharedListItemUpdateRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> SharedListItemResponse:
    item, product = await update_item(
        session,
        list_id=parse_uuid(list_id, "list_id"),
        item_id=parse_uuid(item_id, "item_id"),
        actor=current_user,
        quantity=payload.quantity,
        notes=payload.notes if "notes" in payload.model_fields_set else UNSET,
    )
    user_names = await resolve_user_names(session, {item.added_by})
    return to_item_response(item, product, user_names)


@router.delete("/lists/{list_id}/items/{item_id}", response_model=SharedListItemDeleteResponse)
async def remove_list_item(
    list_id: str,
    item_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> SharedListItemDeleteResponse:
    item = await remove_item(
        session,
        list_id=parse_uuid(list_id, "list_id"),
        item_id=parse_uuid(item_id, "item_id"),
        actor=current_user,
    )
    return SharedListItemDeleteResponse(
        item_id=str(item.id),
        message="Item removed from the list.",
    )
