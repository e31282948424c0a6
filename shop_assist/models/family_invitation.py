from datetime import UTC, datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import Column, String
from sqlmodel import Field, SQLModel

from shop_assist.models.family_member import FamilyRole


def utc_now_naive() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class InvitationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class FamilyInvitation(SQLModel, table=True):
    __tablename__ = "family_invitations"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    family_id: UUID = Field(foreign_key="family_groups.id", nullable=False, index=True)
    email: str = Field(sa_column=Column(String(320), nullable=False, index=True))
    role: FamilyRole = Field(default=FamilyRole.EDITOR, nullable=False)
    status: InvitationStatus = Field(
        default=InvitationStatus.PENDING,
        nullable=False,
        index=True,
    )
    invited_by: UUID = Field(foreign_key="users.id", nullable=False, index=True)
    created_at: datetime = Field(default_factory=utc_now_naive, nullable=False)
    expires_at: datetime = Field(nullable=False, index=True)
    responded_at: datetime | None = Field(default=None)

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    @classmethod
    def unexpired_at(cls, now: datetime):
        """SQL filter matching the rows for which ``is_expired(now)`` is false."""
        return cls.expires_at >= now
