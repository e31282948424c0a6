from pydantic import BaseModel, EmailStr

from shop_assist.models.family_member import FamilyRole
from shop_assist.schemas.family import MemberResponse
from shop_assist.services.invitation_service import InvitationAction


class InvitationCreateRequest(BaseModel):
    email: EmailStr
    role: FamilyRole = FamilyRole.EDITOR


class InvitationRespondRequest(BaseModel):
    action: InvitationAction


class InvitationResponse(BaseModel):
    id: str
    family_id: str
    family_name: str | None = None
    email: str
    role: str
    status: str
    invited_by: str
    created_at: str
    expires_at: str
    responded_at: str | None = None
    is_expired: bool


class InvitationListResponse(BaseModel):
    items: list[InvitationResponse]


class InvitationRespondResponse(BaseModel):
    invitation: InvitationResponse
    member: MemberResponse | None = None
    message: str


class InvitationCancelResponse(BaseModel):
    invitation_id: str
    message: str
