from pydantic import BaseModel, Field


class NotificationResponse(BaseModel):
    id: str
    user_id: str
    family_id: str | None = None
    type: str
    message: str
    sender_id: str | None = None
    read: bool
    created_at: str
    read_at: str | None = None


class NotificationListResponse(BaseModel):
    items: list[NotificationResponse]
    unread_count: int


class NotificationMarkReadRequest(BaseModel):
    notification_ids: list[str] = Field(min_length=1, max_length=200)


class NotificationUpdateResponse(BaseModel):
    updated_count: int


class NotificationDeleteResponse(BaseModel):
    notification_id: str
    message: str
