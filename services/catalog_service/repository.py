import uuid
from dataclasses import dataclass

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .models import Creator, Product, ProductVariant


@dataclass(slots=True, frozen=True)
class ProductStock:
    creator_id: uuid.UUID
    stock: int


@dataclass(slots=True, frozen=True)
class VariantStock:
    product_id: uuid.UUID
    stock: int


class CatalogRepository:
    """
    Catalog reads and stock mutations used by checkout.

    Nothing here commits: callers decide the transaction boundary.
    """

    @staticmethod
    async def add(db: AsyncSession, entity):
        db.add(entity)
        await db.flush()
        return entity

    @staticmethod
    async def get_creator(db: AsyncSession, creator_id: uuid.UUID):
        return await db.get(Creator, creator_id)

    @staticmethod
    async def get_creator_by_user(db: AsyncSession, user_id: str):
        result = await db.execute(select(Creator).where(Creator.user_id == user_id))
        return result.scalars().first()

    @staticmethod
    async def get_product_by_id(db: AsyncSession, product_id: uuid.UUID):
        result = await db.execute(
            select(Product)
            .options(selectinload(Product.variants))
            .where(Product.id == product_id)
        )
        return result.scalars().first()

    @staticmethod
    async def get_product_owner_and_stock(
        db: AsyncSession, product_id: uuid.UUID, for_update: bool = False
    ) -> ProductStock | None:
        # NO KEY UPDATE leaves room for the KEY SHARE lock order_items FK checks take
        stmt = select(Product.creator_id, Product.stock).where(Product.id == product_id)
        if for_update:
            stmt = stmt.with_for_update(key_share=True)
        row = (await db.execute(stmt)).first()
        if row is None:
            return None
        return ProductStock(creator_id=row.creator_id, stock=row.stock or 0)

    @staticmethod
    async def get_variant_owner_and_stock(
        db: AsyncSession, variant_id: uuid.UUID, for_update: bool = False
    ) -> VariantStock | None:
        stmt = select(ProductVariant.product_id, ProductVariant.stock).where(
            ProductVariant.id == variant_id
        )
        if for_update:
            stmt = stmt.with_for_update(key_share=True)
        row = (await db.execute(stmt)).first()
        if row is None:
            return None
        return VariantStock(product_id=row.product_id, stock=row.stock or 0)

    @staticmethod
    async def decrement_product_stock(
        db: AsyncSession, product_id: uuid.UUID, quantity: int
    ) -> bool:
        """Atomically take `quantity` units. False when the row lacks the stock."""
        result = await db.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    async def decrement_variant_stock(
        db: AsyncSession, variant_id: uuid.UUID, quantity: int
    ) -> bool:
        result = await db.execute(
            update(ProductVariant)
            .where(ProductVariant.id == variant_id, ProductVariant.stock >= quantity)
            .values(stock=ProductVariant.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
