from pydantic import BaseModel, Field

from shop_assist.models.family_member import FamilyRole


class FamilyCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)


class FamilyUpdateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)


class FamilyResponse(BaseModel):
    id: str
    name: str
    created_by: str
    role: str
    created_at: str
    updated_at: str


class FamilyListResponse(BaseModel):
    items: list[FamilyResponse]


class FamilyDeleteResponse(BaseModel):
    family_id: str
    message: str


class MemberResponse(BaseModel):
    id: str
    family_id: str
    user_id: str
    email: str
    full_name: str | None = None
    role: str
    created_at: str
    updated_at: str
    updated_by: str | None = None


class MemberListResponse(BaseModel):
    items: list[MemberResponse]


class MemberRoleUpdateRequest(BaseModel):
    role: FamilyRole


class MemberRemoveResponse(BaseModel):
    family_id: str
    user_id: str
    message: str
