from datetime import UTC, datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import Column, String
from sqlmodel import Field, SQLModel


def utc_now_naive() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class NotificationType(str, Enum):
    INVITATION = "invitation"
    INVITATION_ACCEPTED = "invitation_accepted"
    INVITATION_REJECTED = "invitation_rejected"
    MEMBER_JOINED = "member_joined"
    MEMBER_LEFT = "member_left"
    MEMBER_REMOVED = "member_removed"
    ROLE_UPDATED = "role_updated"
    LIST_CREATED = "list_created"
    LIST_UPDATED = "list_updated"
    LIST_DELETED = "list_deleted"
    ITEM_ADDED = "item_added"
    ITEM_UPDATED = "item_updated"
    ITEM_REMOVED = "item_removed"


class Notification(SQLModel, table=True):
    __tablename__ = "notifications"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    user_id: UUID = Field(foreign_key="users.id", nullable=False, index=True)
    # Cleared when the family group is deleted; the recipient keeps the record.
    family_id: UUID | None = Field(default=None, foreign_key="family_groups.id", index=True)
    type: NotificationType = Field(nullable=False)
    message: str = Field(sa_column=Column(String(500), nullable=False))
    sender_id: UUID | None = Field(default=None, foreign_key="users.id")
    read: bool = Field(default=False, nullable=False, index=True)
    created_at: datetime = Field(default_factory=utc_now_naive, nullable=False, index=True)
    read_at: datetime | None = Field(default=None)
