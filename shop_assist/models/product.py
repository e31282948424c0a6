from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlalchemy import Column, String
from sqlmodel import Field, SQLModel


def utc_now_naive() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class Product(SQLModel, table=True):
    __tablename__ = "products"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    name: str = Field(nullable=False, max_length=255)
    brand: str | None = Field(default=None, max_length=120)
    description: str | None = Field(default=None, max_length=2000)
    ean: str | None = Field(
        default=None,
        sa_column=Column(String(32), unique=True, index=True, nullable=True),
    )
    image_url: str | None = Field(default=None, max_length=1024)
    price: float | None = Field(default=None)
    currency: str = Field(sa_column=Column(String(8), nullable=False, default="CRC"))
    created_at: datetime = Field(default_factory=utc_now_naive, nullable=False)
