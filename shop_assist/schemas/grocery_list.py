from pydantic import BaseModel, Field


class GroceryListItemCreateRequest(BaseModel):
    product_id: str
    quantity: int = Field(default=1, ge=1, le=999)
    notes: str | None = Field(default=None, max_length=500)


class GroceryListItemResponse(BaseModel):
    id: str
    product_id: str
    name: str
    brand: str | None = None
    description: str | None = None
    price: float | None = None
    currency: str
    image_url: str | None = None
    quantity: int
    notes: str | None = None
    created_at: str
    updated_at: str


class GroceryListResponse(BaseModel):
    items: list[GroceryListItemResponse]
    total: int


class GroceryListCountResponse(BaseModel):
    count: int


class GroceryListItemDeleteResponse(BaseModel):
    item_id: str
    message: str
