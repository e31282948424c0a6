from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, UniqueConstraint
from sqlmodel import Field, SQLModel


def utc_now_naive() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class GroceryListItem(SQLModel, table=True):
    """A product on one user's personal grocery list."""

    __tablename__ = "grocery_list_items"
    __table_args__ = (
        UniqueConstraint("user_id", "product_id", name="uq_grocery_list_user_product"),
        CheckConstraint("quantity >= 1", name="ck_grocery_list_item_quantity_positive"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    user_id: UUID = Field(foreign_key="users.id", nullable=False, index=True)
    product_id: UUID = Field(foreign_key="products.id", nullable=False, index=True)
    quantity: int = Field(default=1, nullable=False)
    notes: str | None = Field(default=None, max_length=500)
    created_at: datetime = Field(default_factory=utc_now_naive, nullable=False)
    updated_at: datetime = Field(default_factory=utc_now_naive, nullable=False)
