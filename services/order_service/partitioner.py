import uuid
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from services.catalog_service.repository import CatalogRepository

from .exceptions import ProductNotFoundError, VariantNotFoundError
from .schemas import CartLine


@dataclass(slots=True)
class CreatorPartition:
    creator_id: uuid.UUID
    lines: list[CartLine] = field(default_factory=list)

    @property
    def subtotal(self) -> Decimal:
        return sum(
            (line.unit_price * line.quantity for line in self.lines), Decimal("0.00")
        )


async def partition_cart(
    db: AsyncSession, lines: list[CartLine]
) -> dict[uuid.UUID, CreatorPartition]:
    """
    Groups cart lines by the creator that owns each product.

    The result is ordered by each creator's first appearance in the cart and
    lines keep their cart order inside a partition. Variants never change
    ownership, so a variant line joins its product's creator.
    """
    partitions: dict[uuid.UUID, CreatorPartition] = {}
    owners: dict[uuid.UUID, uuid.UUID] = {}

    for line in lines:
        creator_id = owners.get(line.product_id)
        if creator_id is None:
            product = await CatalogRepository.get_product_owner_and_stock(db, line.product_id)
            if product is None:
                raise ProductNotFoundError(line.product_id)
            creator_id = owners[line.product_id] = product.creator_id

        if line.variant_id is not None:
            variant = await CatalogRepository.get_variant_owner_and_stock(db, line.variant_id)
            if variant is None or variant.product_id != line.product_id:
                raise VariantNotFoundError(line.variant_id, line.product_id)

        partition = partitions.get(creator_id)
        if partition is None:
            partition = partitions[creator_id] = CreatorPartition(creator_id=creator_id)
        partition.lines.append(line)

    return partitions
