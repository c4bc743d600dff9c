import uuid
from datetime import datetime

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .models import Order, OrderItem


class OrderRepository:
    @staticmethod
    async def add_order(db: AsyncSession, order: Order) -> Order:
        # Flush only: the checkout transaction commits once for every partition
        db.add(order)
        await db.flush()
        return order

    @staticmethod
    async def add_item(db: AsyncSession, item: OrderItem) -> OrderItem:
        db.add(item)
        await db.flush()
        return item

    @staticmethod
    async def get_visible_order(
        db: AsyncSession,
        order_id: uuid.UUID,
        user_id: str,
        creator_id: uuid.UUID | None = None,
    ):
        """An order as seen by its buyer, or by the creator who fulfils it."""
        owner = Order.user_id == user_id
        if creator_id is not None:
            owner = or_(owner, Order.creator_id == creator_id)
        result = await db.execute(
            select(Order)
            .options(selectinload(Order.items))
            .where(Order.id == order_id, owner)
        )
        return result.scalars().first()

    @staticmethod
    def _conditions(
        *,
        user_id: str | None,
        creator_id: uuid.UUID | None,
        status: str | None,
        date_from: datetime | None,
        date_to: datetime | None,
    ) -> list:
        conditions = []
        if user_id is not None:
            conditions.append(Order.user_id == user_id)
        if creator_id is not None:
            conditions.append(Order.creator_id == creator_id)
        if status:
            conditions.append(Order.status == status)
        if date_from is not None:
            conditions.append(Order.created_at >= date_from)
        if date_to is not None:
            conditions.append(Order.created_at <= date_to)
        return conditions

    @staticmethod
    async def list_orders(
        db: AsyncSession,
        *,
        user_id: str | None = None,
        creator_id: uuid.UUID | None = None,
        status: str | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[Order], int]:
        conditions = OrderRepository._conditions(
            user_id=user_id,
            creator_id=creator_id,
            status=status,
            date_from=date_from,
            date_to=date_to,
        )

        total_count = await db.scalar(
            select(func.count()).select_from(Order).where(*conditions)
        )

        result = await db.execute(
            select(Order)
            .options(selectinload(Order.items))
            .where(*conditions)
            .order_by(Order.created_at.desc(), Order.id)
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all()), int(total_count or 0)
