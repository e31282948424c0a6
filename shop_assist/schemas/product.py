from pydantic import BaseModel, Field


class ProductCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    brand: str | None = Field(default=None, max_length=120)
    description: str | None = Field(default=None, max_length=2000)
    ean: str | None = Field(default=None, max_length=32)
    image_url: str | None = Field(default=None, max_length=1024)
    price: float | None = Field(default=None, ge=0)
    currency: str = Field(default="CRC", min_length=3, max_length=8)


class ProductResponse(BaseModel):
    id: str
    name: str
    brand: str | None = None
    description: str | None = None
    ean: str | None = None
    image_url: str | None = None
    price: float | None = None
    currency: str
    created_at: str
