from pydantic import BaseModel, Field


class SharedListCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)


class SharedListUpdateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)


class SharedListResponse(BaseModel):
    id: str
    family_id: str
    name: str
    created_by: str
    created_at: str
    updated_at: str
    item_count: int = 0


class SharedListCollectionResponse(BaseModel):
    items: list[SharedListResponse]


class SharedListItemCreateRequest(BaseModel):
    product_id: str
    quantity: int = Field(default=1, ge=1, le=999)
    notes: str | None = Field(default=None, max_length=500)


class SharedListItemUpdateRequest(BaseModel):
    quantity: int | None = Field(default=None, ge=1, le=999)
    notes: str | None = Field(default=None, max_length=500)


class SharedListItemResponse(BaseModel):
    id: str
    list_id: str
    product_id: str
    product_name: str
    product_brand: str | None = None
    quantity: int
    notes: str | None = None
    added_by: str
    added_by_name: str | None = None
    created_at: str
    updated_at: str
    updated_by: str | None = None


class SharedListDetailResponse(SharedListResponse):
    items: list[SharedListItemResponse]


class SharedListDeleteResponse(BaseModel):
    list_id: str
    message: str


class SharedListItemDeleteResponse(BaseModel):
    item_id: str
    message: str


class ListActivityResponse(BaseModel):
    id: str
    list_id: str | None = None
    user_id: str
    action: str
    details: str
    created_at: str


class ListActivityCollectionResponse(BaseModel):
    items: list[ListActivityResponse]
