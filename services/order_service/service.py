import math
import time
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import structlog
from opentelemetry import trace
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from services.catalog_service.repository import CatalogRepository
from shared.config.database import run_in_transaction
from shared.observability import (
    ecomm_checkout_duration_seconds,
    ecomm_checkout_partitions,
    ecomm_checkout_total,
    ecomm_stock_conflict_total,
)

from .allocator import allocate_costs
from .exceptions import CheckoutError, PersistenceError, StockConflictError, ValidationError
from .materializer import materialize_partition
from .partitioner import partition_cart
from .repository import OrderRepository
from .schemas import (
    CheckoutRequest,
    CheckoutResponse,
    CreatedOrder,
    OrderFilters,
    OrderListResponse,
    OrderResponse,
    Pagination,
)
from .stock import validate_stock

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)

# Postgres serialization_failure and deadlock_detected
RETRYABLE_SQLSTATES = {"40001", "40P01"}

# Largest value the orders money columns (Numeric(12, 2)) can hold
MAX_ORDER_AMOUNT = Decimal("9999999999.99")


def _sqlstate(exc: DBAPIError) -> str | None:
    orig = exc.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def validate_checkout_request(request: CheckoutRequest) -> None:
    if not request.lines:
        raise ValidationError("Cart is empty")
    for line in request.lines:
        if line.quantity <= 0:
            raise ValidationError(f"Quantity for product {line.product_id} must be positive")
        if line.unit_price < 0:
            raise ValidationError(f"Price for product {line.product_id} must not be negative")
    for name in ("shipping_total", "tax_total", "discount_total"):
        if getattr(request, name) < 0:
            raise ValidationError(f"{name} must not be negative")
    if request.shipping_address is None:
        raise ValidationError("Shipping address is required")

    subtotal = sum((line.unit_price * line.quantity for line in request.lines), Decimal("0"))
    gross = subtotal + request.shipping_total + request.tax_total
    if request.discount_total > gross:
        raise ValidationError(
            f"Discount {request.discount_total} exceeds the cart total {gross}"
        )
    if gross > MAX_ORDER_AMOUNT:
        raise ValidationError(f"Cart total {gross} exceeds the maximum of {MAX_ORDER_AMOUNT}")


def resolve_date_window(
    filters: OrderFilters, now: datetime | None = None
) -> tuple[datetime | None, datetime | None]:
    """Turns a date_range shortcut into bounds; explicit dates take precedence."""
    now = now or datetime.now(timezone.utc)
    date_from = None
    if filters.date_range == "7d":
        date_from = now - timedelta(days=7)
    elif filters.date_range == "30d":
        date_from = now - timedelta(days=30)
    elif filters.date_range == "month":
        date_from = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    if filters.date_from is not None:
        date_from = filters.date_from
    return date_from, filters.date_to


class OrderService:

    @staticmethod
    async def _checkout(
        db: AsyncSession, user_id: str, request: CheckoutRequest
    ) -> list[CreatedOrder]:
        with tracer.start_as_current_span("checkout.partition"):
            partitions = await partition_cart(db, request.lines)
        ecomm_checkout_partitions.observe(len(partitions))
        logger.info("checkout_partitioned", partitions=len(partitions), lines=len(request.lines))

        with tracer.start_as_current_span("checkout.allocate"):
            costs = allocate_costs(
                partitions,
                request.shipping_total,
                request.tax_total,
                request.discount_total,
                request.coupon_code,
            )
        for creator_id, allocated in costs.items():
            if allocated.total < 0:
                raise ValidationError(
                    f"Discount exceeds the order total for creator {creator_id}"
                )

        # All-or-nothing: every partition is checked before the first write
        with tracer.start_as_current_span("checkout.validate_stock"):
            await validate_stock(db, partitions)

        created = []
        with tracer.start_as_current_span("checkout.materialize"):
            for creator_id, partition in partitions.items():
                created.append(
                    await materialize_partition(db, user_id, request, partition, costs[creator_id])
                )
        return created

    @staticmethod
    async def create_orders(
        db: AsyncSession, user_id: str, request: CheckoutRequest
    ) -> CheckoutResponse:
        """
        Splits one cart into one pending order per creator.

        Partitioning, stock validation, order/item inserts and stock decrements
        share a single transaction on `db`; any failure rolls all of it back.
        """
        validate_checkout_request(request)

        started = time.perf_counter()
        with structlog.contextvars.bound_contextvars(user_id=user_id):
            logger.info("checkout_started", lines=len(request.lines))
            try:
                created = await run_in_transaction(
                    db, lambda session: OrderService._checkout(session, user_id, request)
                )
            except CheckoutError as exc:
                ecomm_checkout_total.labels(status=exc.code).inc()
                logger.warning("checkout_failed", error=exc.code, detail=exc.message)
                raise
            except DBAPIError as exc:
                if _sqlstate(exc) in RETRYABLE_SQLSTATES:
                    ecomm_checkout_total.labels(status=StockConflictError.code).inc()
                    ecomm_stock_conflict_total.labels(counter="transaction").inc()
                    logger.warning("checkout_failed", error=StockConflictError.code, sqlstate=_sqlstate(exc))
                    raise StockConflictError(
                        "Checkout conflicted with a concurrent order, please retry"
                    ) from exc
                ecomm_checkout_total.labels(status=PersistenceError.code).inc()
                logger.exception("checkout_failed", error=PersistenceError.code)
                raise PersistenceError("Failed to create order") from exc
            except SQLAlchemyError as exc:
                ecomm_checkout_total.labels(status=PersistenceError.code).inc()
                logger.exception("checkout_failed", error=PersistenceError.code)
                raise PersistenceError("Failed to create order") from exc
            finally:
                ecomm_checkout_duration_seconds.observe(time.perf_counter() - started)

            ecomm_checkout_total.labels(status="success").inc()
            logger.info("checkout_completed", orders=len(created))

        return CheckoutResponse(
            orders=created,
            message=f"{len(created)} order(s) created successfully",
        )

    @staticmethod
    def _page(orders, total_count: int, filters: OrderFilters) -> OrderListResponse:
        total_pages = math.ceil(total_count / filters.limit)
        return OrderListResponse(
            orders=[OrderResponse.model_validate(order) for order in orders],
            pagination=Pagination(
                page=filters.page,
                page_size=filters.limit,
                total_count=total_count,
                total_pages=total_pages,
                has_next_page=filters.page < total_pages,
                has_prev_page=filters.page > 1,
            ),
            filters=filters,
        )

    @staticmethod
    async def list_user_orders(
        db: AsyncSession, user_id: str, filters: OrderFilters
    ) -> OrderListResponse:
        date_from, date_to = resolve_date_window(filters)
        orders, total_count = await OrderRepository.list_orders(
            db,
            user_id=user_id,
            status=filters.status,
            date_from=date_from,
            date_to=date_to,
            limit=filters.limit,
            offset=(filters.page - 1) * filters.limit,
        )
        return OrderService._page(orders, total_count, filters)

    @staticmethod
    async def list_creator_orders(
        db: AsyncSession, user_id: str, filters: OrderFilters
    ) -> OrderListResponse | None:
        """Orders received by the creator account of `user_id`; None if there is none."""
        creator = await CatalogRepository.get_creator_by_user(db, user_id)
        if creator is None:
            return None
        date_from, date_to = resolve_date_window(filters)
        orders, total_count = await OrderRepository.list_orders(
            db,
            creator_id=creator.id,
            status=filters.status,
            date_from=date_from,
            date_to=date_to,
            limit=filters.limit,
            offset=(filters.page - 1) * filters.limit,
        )
        return OrderService._page(orders, total_count, filters)

    @staticmethod
    async def get_order(db: AsyncSession, user_id: str, order_id: uuid.UUID):
        creator = await CatalogRepository.get_creator_by_user(db, user_id)
        return await OrderRepository.get_visible_order(
            db, order_id, user_id, creator.id if creator else None
        )
