"""Pytest fixtures: a throwaway sqlite database per test plus catalog seeding helpers."""
import os

os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret")
os.environ.setdefault("INTERNAL_API_KEY", "test-internal-key")
os.environ.setdefault("CHECKOUT_RATE_LIMIT", "1000/minute")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import uuid
from decimal import Decimal

import pytest
from sqlalchemy import event, func, select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.orm import selectinload

from shared.config.database import Base
from services.catalog_service.models import Creator, Product, ProductVariant
from services.order_service.models import Order
from services.order_service.schemas import CartLine, CheckoutRequest, PaymentMethod, ShippingAddress


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'checkout.db'}",
        connect_args={"timeout": 30},
    )

    # sqlite has no SELECT ... FOR UPDATE; taking the write lock at BEGIN
    # serializes concurrent checkouts the way row locks do on Postgres.
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


class Catalog:
    """Seeds creators, products and variants, each in its own committed transaction."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    async def _save(self, entity):
        async with self.session_factory() as session:
            session.add(entity)
            await session.commit()
        return entity

    async def creator(self, name: str = "Studio", user_id: str | None = None) -> Creator:
        return await self._save(
            Creator(user_id=user_id or f"user-{uuid.uuid4()}", display_name=name)
        )

    async def product(self, creator: Creator, price="10.00", stock: int = 10, name: str = "Mug") -> Product:
        return await self._save(
            Product(creator_id=creator.id, name=name, price=Decimal(price), stock=stock)
        )

    async def variant(self, product: Product, price="12.00", stock: int = 10, name: str = "Large") -> ProductVariant:
        return await self._save(
            ProductVariant(product_id=product.id, name=name, price=Decimal(price), stock=stock)
        )

    async def count(self, model) -> int:
        async with self.session_factory() as session:
            return await session.scalar(select(func.count()).select_from(model))

    async def orders(self) -> list:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Order).options(selectinload(Order.items)).order_by(Order.created_at)
            )
            return list(result.scalars().all())

    async def stock(self, entity) -> int:
        model = type(entity)
        async with self.session_factory() as session:
            return await session.scalar(select(model.stock).where(model.id == entity.id))


@pytest.fixture
def catalog(session_factory):
    return Catalog(session_factory)


def line(product, quantity: int = 1, price=None, variant=None) -> CartLine:
    return CartLine(
        product_id=product.id,
        variant_id=variant.id if variant is not None else None,
        quantity=quantity,
        unit_price=Decimal(str(price)) if price is not None else (variant or product).price,
    )


def checkout_request(lines, shipping="0", tax="0", discount="0", coupon=None, method=PaymentMethod.CARD) -> CheckoutRequest:
    return CheckoutRequest(
        lines=lines,
        shipping_total=Decimal(shipping),
        tax_total=Decimal(tax),
        discount_total=Decimal(discount),
        coupon_code=coupon,
        shipping_address=ShippingAddress(
            name="Asha Rao",
            street="12 Lake Road",
            city="Pune",
            state="MH",
            zip_code="411001",
            country="IN",
        ),
        payment_method=method,
    )
