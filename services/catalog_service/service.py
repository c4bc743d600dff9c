import uuid

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Creator, Product, ProductVariant
from .repository import CatalogRepository
from .schemas import CreatorCreate, ProductCreate, VariantCreate


class CatalogService:

    @staticmethod
    async def create_creator(db: AsyncSession, data: CreatorCreate) -> Creator:
        existing = await CatalogRepository.get_creator_by_user(db, data.user_id)
        if existing:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="User already has a creator account",
            )
        creator = Creator(user_id=data.user_id, display_name=data.display_name)
        await CatalogRepository.add(db, creator)
        await db.commit()
        return creator

    @staticmethod
    async def create_product(db: AsyncSession, data: ProductCreate) -> Product:
        if not await CatalogRepository.get_creator(db, data.creator_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Creator not found")
        product = Product(
            creator_id=data.creator_id,
            name=data.name,
            price=data.price,
            stock=data.stock,
            variants=[],
        )
        await CatalogRepository.add(db, product)
        await db.commit()
        return product

    @staticmethod
    async def create_variant(
        db: AsyncSession, product_id: uuid.UUID, data: VariantCreate
    ) -> ProductVariant:
        product = await CatalogRepository.get_product_by_id(db, product_id)
        if not product:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
        variant = ProductVariant(
            product_id=product.id, name=data.name, price=data.price, stock=data.stock
        )
        await CatalogRepository.add(db, variant)
        await db.commit()
        return variant

    @staticmethod
    async def get_product(db: AsyncSession, product_id: uuid.UUID) -> Product:
        product = await CatalogRepository.get_product_by_id(db, product_id)
        if not product:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
        return product
