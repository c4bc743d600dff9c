import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class CreatorCreate(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)
    display_name: str = Field(min_length=1, max_length=255)


class CreatorResponse(BaseModel):
    id: uuid.UUID
    user_id: str
    display_name: str
    created_at: datetime

    class Config:
        from_attributes = True


class ProductCreate(BaseModel):
    creator_id: uuid.UUID
    name: str = Field(min_length=1, max_length=255)
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    stock: int = Field(default=0, ge=0)


class VariantCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    stock: int = Field(default=0, ge=0)


class VariantResponse(BaseModel):
    id: uuid.UUID
    product_id: uuid.UUID
    name: str
    price: Decimal
    stock: int

    class Config:
        from_attributes = True


class ProductResponse(BaseModel):
    id: uuid.UUID
    creator_id: uuid.UUID
    name: str
    price: Decimal
    stock: int
    variants: list[VariantResponse] = []

    class Config:
        from_attributes = True
