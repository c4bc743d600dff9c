import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security.dependencies import verify_internal_api_key

from .schemas import (
    CreatorCreate,
    CreatorResponse,
    ProductCreate,
    ProductResponse,
    VariantCreate,
    VariantResponse,
)
from .service import CatalogService

# Catalog administration is internal-only; storefront reads live elsewhere
router = APIRouter(
    prefix="/catalog",
    tags=["Catalog"],
    dependencies=[Depends(verify_internal_api_key)],
)


@router.post("/creators", response_model=CreatorResponse, status_code=status.HTTP_201_CREATED)
async def create_creator(payload: CreatorCreate, db: AsyncSession = Depends(get_db)):
    return await CatalogService.create_creator(db, payload)


@router.post("/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(payload: ProductCreate, db: AsyncSession = Depends(get_db)):
    return await CatalogService.create_product(db, payload)


@router.post(
    "/products/{product_id}/variants",
    response_model=VariantResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_variant(
    product_id: uuid.UUID, payload: VariantCreate, db: AsyncSession = Depends(get_db)
):
    return await CatalogService.create_variant(db, product_id, payload)


@router.get("/products/{product_id}", response_model=ProductResponse)
async def get_product(product_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    return await CatalogService.get_product(db, product_id)
