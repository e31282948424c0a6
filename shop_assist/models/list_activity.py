from datetime import UTC, datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import Column, String
from sqlmodel import Field, SQLModel


def utc_now_naive() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class ListActivityAction(str, Enum):
    CREATED_LIST = "created_list"
    UPDATED_LIST = "updated_list"
    DELETED_LIST = "deleted_list"
    ADDED_ITEM = "added_item"
    UPDATED_ITEM = "updated_item"
    REMOVED_ITEM = "removed_item"


class ListActivity(SQLModel, table=True):
    __tablename__ = "list_activity_log"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    family_id: UUID = Field(foreign_key="family_groups.id", nullable=False, index=True)
    list_id: UUID | None = Field(
        default=None,
        foreign_key="shared_grocery_lists.id",
        index=True,
    )
    user_id: UUID = Field(foreign_key="users.id", nullable=False, index=True)
    action: ListActivityAction = Field(nullable=False)
    details: str = Field(default="", sa_column=Column(String(500), nullable=False))
    created_at: datetime = Field(default_factory=utc_now_naive, nullable=False, index=True)
