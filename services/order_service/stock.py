import uuid
from typing import Iterable

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from services.catalog_service.repository import CatalogRepository
from shared.observability import ecomm_stock_conflict_total

from .exceptions import (
    InsufficientStockError,
    ProductNotFoundError,
    StockConflictError,
    StockShortage,
    VariantNotFoundError,
)
from .partitioner import CreatorPartition
from .schemas import CartLine

logger = structlog.get_logger(__name__)

# A variant line draws on the variant counter, a plain line on the product counter
StockKey = tuple[uuid.UUID, uuid.UUID | None]


def requested_quantities(lines: Iterable[CartLine]) -> dict[StockKey, int]:
    requested: dict[StockKey, int] = {}
    for line in lines:
        key = (line.product_id, line.variant_id)
        requested[key] = requested.get(key, 0) + line.quantity
    return requested


async def validate_stock(
    db: AsyncSession, partitions: dict[uuid.UUID, CreatorPartition]
) -> None:
    """
    Checks every stock counter the checkout touches before anything is written.

    Counters are read with row locks in a fixed order so concurrent checkouts
    queue behind each other instead of deadlocking. All shortages are
    collected and reported together.
    """
    requested = requested_quantities(
        line for partition in partitions.values() for line in partition.lines
    )

    shortages: list[StockShortage] = []
    for key in sorted(requested, key=lambda k: (str(k[0]), str(k[1] or ""))):
        product_id, variant_id = key
        if variant_id is None:
            product = await CatalogRepository.get_product_owner_and_stock(
                db, product_id, for_update=True
            )
            if product is None:
                raise ProductNotFoundError(product_id)
            available = product.stock
        else:
            variant = await CatalogRepository.get_variant_owner_and_stock(
                db, variant_id, for_update=True
            )
            if variant is None:
                raise VariantNotFoundError(variant_id, product_id)
            available = variant.stock

        if requested[key] > available:
            shortages.append(
                StockShortage(
                    product_id=product_id,
                    variant_id=variant_id,
                    available=available,
                    requested=requested[key],
                )
            )

    if shortages:
        raise InsufficientStockError(shortages)


async def reserve_stock(db: AsyncSession, line: CartLine) -> None:
    """Takes a line's quantity with a conditional decrement, never read-then-write."""
    if line.variant_id is None:
        counter = "product"
        taken = await CatalogRepository.decrement_product_stock(
            db, line.product_id, line.quantity
        )
    else:
        counter = "variant"
        taken = await CatalogRepository.decrement_variant_stock(
            db, line.variant_id, line.quantity
        )

    if not taken:
        ecomm_stock_conflict_total.labels(counter=counter).inc()
        logger.warning(
            "stock_conflict",
            product_id=str(line.product_id),
            variant_id=str(line.variant_id) if line.variant_id else None,
            quantity=line.quantity,
        )
        raise StockConflictError(
            f"Stock for product {line.product_id} changed during checkout, please retry"
        )
