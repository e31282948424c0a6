from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from shop_assist.api.deps import get_current_user, parse_uuid
from shop_assist.core.db import get_session
from shop_assist.models.product import Product
from shop_assist.models.user import User
from shop_assist.schemas.product import ProductCreateRequest, ProductResponse
from shop_assist.services.product_service import create_product, get_product_or_404

router = APIRouter(prefix="/products", tags=["products"])


def to_product_response(product: Product) -> ProductResponse:
    return ProductResponse(
        id=str(product.id),
        name=product.name,
        brand=product.brand,
        description=product.description,
        ean=product.ean,
        image_url=product.image_url,
        price=product.price,
        currency=product.currency,
        created_at=product.created_at.isoformat(),
    )


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def add_product(
    payload: ProductCreateRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ProductResponse:
    _ = current_user
    product = await create_product(
        session,
        name=payload.name,
        brand=payload.brand,
        description=payload.description,
        ean=payload.ean,
        image_url=payload.image_url,
        price=payload.price,
        currency=payload.currency,
    )
    return to_product_response(product)


@router.get("/{product_id}", response_model=ProductResponse)
async def read_product(
    product_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ProductResponse:
    _ = current_user
    product = await get_product_or_404(session, product_id=parse_uuid(product_id, "product_id"))
    return to_product_response(product)
