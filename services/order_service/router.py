import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.config.settings import settings
from shared.security import get_current_user, limiter

from .exceptions import CheckoutError
from .schemas import (
    CheckoutRequest,
    CheckoutResponse,
    OrderFilters,
    OrderListResponse,
    OrderResponse,
)
from .service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])
public_router = APIRouter()  # For any public endpoints (e.g. health check)


@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "checkout", "status": "running"}


async def checkout_error_handler(request: Request, exc: CheckoutError) -> JSONResponse:
    """Renders checkout failures as {success: false, error, detail, ...}."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.code, "detail": exc.message, **exc.payload()},
    )


@router.post(
    "/checkout",
    response_model=CheckoutResponse,
    summary="Split a cart into one order per creator",
)
@limiter.limit(settings.checkout_rate_limit)
async def checkout(
    request: Request,                          # REQUIRED: slowapi needs this to check IP/Headers
    payload: CheckoutRequest,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.create_orders(db, user_id, payload)


@router.get("", response_model=OrderListResponse, summary="Current user's order history")
async def list_orders(
    filters: Annotated[OrderFilters, Query()],
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.list_user_orders(db, user_id, filters)


@router.get("/creator", response_model=OrderListResponse, summary="Orders received as a creator")
async def list_creator_orders(
    filters: Annotated[OrderFilters, Query()],
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    orders = await OrderService.list_creator_orders(db, user_id, filters)
    if orders is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Creator account not found")
    return orders


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: uuid.UUID,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    order = await OrderService.get_order(db, user_id, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order
