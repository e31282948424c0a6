from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from shop_assist.core.errors import ConflictError, NotFoundError, ValidationError
from shop_assist.models.product import Product


def clean_text(value: str | None) -> str | None:
    cleaned = " ".join(str(value or "").strip().split())
    return cleaned or None


async def get_product_or_404(session: AsyncSession, *, product_id: UUID) -> Product:
    product = await session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found.")
    return product


async def create_product(
    session: AsyncSession,
    *,
    name: str,
    brand: str | None = None,
    description: str | None = None,
    ean: str | None = None,
    image_url: str | None = None,
    price: float | None = None,
    currency: str = "CRC",
) -> Product:
    cleaned_name = clean_text(name)
    if not cleaned_name:
        raise ValidationError("Product name is required.")

    normalized_ean = "".join(ch for ch in str(ean or "") if ch.isdigit()) or None
    if normalized_ean:
        existing = await session.execute(select(Product).where(Product.ean == normalized_ean))
        if existing.scalar_one_or_none():
            raise ConflictError("A product with this barcode already exists.")

    product = Product(
        name=cleaned_name,
        brand=clean_text(brand),
        description=clean_text(description),
        ean=normalized_ean,
        image_url=(image_url or "").strip() or None,
        price=price,
        currency=(currency or "CRC").strip().upper(),
    )
    session.add(product)
    await session.commit()
    await session.refresh(product)
    return product
