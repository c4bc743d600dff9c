import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.observability import ecomm_orders_created_total

from .allocator import AllocatedCosts
from .models import Order, OrderItem, OrderStatus, PaymentStatus
from .partitioner import CreatorPartition
from .repository import OrderRepository
from .schemas import CheckoutRequest, CreatedOrder, PaymentMethod
from .stock import reserve_stock

logger = structlog.get_logger(__name__)


def initial_payment_status(payment_method: PaymentMethod) -> str:
    # Cash on delivery is settled at the door; everything else is in flight
    if payment_method == PaymentMethod.COD:
        return PaymentStatus.PENDING
    return PaymentStatus.PROCESSING


async def materialize_partition(
    db: AsyncSession,
    user_id: str,
    request: CheckoutRequest,
    partition: CreatorPartition,
    costs: AllocatedCosts,
) -> CreatedOrder:
    """
    Writes one creator's order, its items and the matching stock decrements.

    Runs inside the caller's checkout transaction and never commits. Stock
    must already have been validated for the whole cart.
    """
    order = await OrderRepository.add_order(
        db,
        Order(
            user_id=user_id,
            creator_id=partition.creator_id,
            status=OrderStatus.PENDING,
            payment_status=initial_payment_status(request.payment_method),
            payment_method=request.payment_method.value,
            subtotal=costs.subtotal,
            shipping=costs.shipping,
            tax=costs.tax,
            discount=costs.discount,
            total_amount=costs.total,
            shipping_address=request.shipping_address.model_dump(),
            coupon_code=costs.coupon_code,
        ),
    )

    for position, line in enumerate(partition.lines):
        await OrderRepository.add_item(
            db,
            OrderItem(
                order_id=order.id,
                product_id=line.product_id,
                variant_id=line.variant_id,
                quantity=line.quantity,
                price=line.unit_price,
                position=position,
            ),
        )
        await reserve_stock(db, line)

    ecomm_orders_created_total.inc()
    logger.info(
        "order_materialized",
        order_id=str(order.id),
        creator_id=str(partition.creator_id),
        items=len(partition.lines),
        total=str(costs.total),
    )
    return CreatedOrder(order_id=order.id, creator_id=partition.creator_id, total=costs.total)
