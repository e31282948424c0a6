from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint
from sqlmodel import Field, SQLModel


def utc_now_naive() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class SharedGroceryList(SQLModel, table=True):
    __tablename__ = "shared_grocery_lists"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    family_id: UUID = Field(foreign_key="family_groups.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=120)
    created_by: UUID = Field(foreign_key="users.id", nullable=False, index=True)
    created_at: datetime = Field(default_factory=utc_now_naive, nullable=False)
    updated_at: datetime = Field(default_factory=utc_now_naive, nullable=False)


class SharedListItem(SQLModel, table=True):
    __tablename__ = "shared_list_items"
    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_shared_list_item_quantity_positive"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    list_id: UUID = Field(foreign_key="shared_grocery_lists.id", nullable=False, index=True)
    product_id: UUID = Field(foreign_key="products.id", nullable=False, index=True)
    quantity: int = Field(default=1, nullable=False)
    notes: str | None = Field(default=None, max_length=500)
    # added_by / updated_by outlive the member's membership.
    added_by: UUID = Field(foreign_key="users.id", nullable=False, index=True)
    created_at: datetime = Field(default_factory=utc_now_naive, nullable=False)
    updated_at: datetime = Field(default_factory=utc_now_naive, nullable=False)
    updated_by: UUID | None = Field(default=None, foreign_key="users.id")
