import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

Money = Decimal


class PaymentMethod(str, Enum):
    COD = "cod"
    CARD = "card"
    UPI = "upi"
    WALLET = "wallet"


class ShippingAddress(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    street: str = Field(min_length=1, max_length=255)
    city: str = Field(min_length=1, max_length=120)
    state: str = Field(min_length=1, max_length=120)
    zip_code: str = Field(min_length=1, max_length=20)
    country: str = Field(min_length=1, max_length=120)
    phone: str | None = Field(default=None, max_length=32)


class CartLine(BaseModel):
    product_id: uuid.UUID
    variant_id: uuid.UUID | None = None
    quantity: int = Field(gt=0)
    # Client-supplied snapshot price; catalog revalidation happens upstream
    unit_price: Money = Field(ge=0, max_digits=10, decimal_places=2)


class CheckoutRequest(BaseModel):
    lines: list[CartLine] = Field(min_length=1)
    shipping_total: Money = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    tax_total: Money = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    discount_total: Money = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    coupon_code: str | None = Field(default=None, max_length=100)
    shipping_address: ShippingAddress
    payment_method: PaymentMethod


class CreatedOrder(BaseModel):
    order_id: uuid.UUID
    creator_id: uuid.UUID
    total: Money


class CheckoutResponse(BaseModel):
    success: bool = True
    orders: list[CreatedOrder]
    message: str


class OrderItemResponse(BaseModel):
    id: uuid.UUID
    product_id: uuid.UUID
    variant_id: uuid.UUID | None
    quantity: int
    price: Money

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: uuid.UUID
    user_id: str
    creator_id: uuid.UUID
    status: str
    payment_status: str
    payment_method: str
    subtotal: Money
    shipping: Money
    tax: Money
    discount: Money
    total_amount: Money
    shipping_address: dict
    coupon_code: str | None
    tracking_number: str | None
    created_at: datetime
    items: list[OrderItemResponse]

    class Config:
        from_attributes = True


class OrderFilters(BaseModel):
    status: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    date_range: Literal["7d", "30d", "month"] | None = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)


class Pagination(BaseModel):
    page: int
    page_size: int
    total_count: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool


class OrderListResponse(BaseModel):
    success: bool = True
    orders: list[OrderResponse]
    pagination: Pagination
    filters: OrderFilters
