"""
Proportional split of cart-wide shipping, tax and discount across creators.

All arithmetic is Decimal. Each partition's share is rounded to the cent with
ROUND_HALF_UP; the few cents that rounding gains or loses across the cart are
then settled on the partitions whose shares rounding moved the furthest, so
every shared cost sums exactly to its cart-wide figure and no share goes
negative.
"""
import uuid
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from .partitioner import CreatorPartition

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_cents(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(slots=True, frozen=True)
class AllocatedCosts:
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    discount: Decimal
    coupon_code: str | None

    @property
    def total(self) -> Decimal:
        return self.subtotal + self.shipping + self.tax - self.discount


def apportion(amount: Decimal, weights: list[Decimal]) -> list[Decimal]:
    """
    Splits `amount` by `weights` into cent amounts that add up to `amount`.

    Shares are rounded half-up first. A positive residue goes a cent at a time
    to the most under-rounded share (earliest wins ties); a negative one is
    taken from the most over-rounded share (latest wins ties).
    """
    total_weight = sum(weights, ZERO)
    if total_weight == 0:
        return [ZERO for _ in weights]

    exact = [amount * weight / total_weight for weight in weights]
    shares = [to_cents(value) for value in exact]
    residue = to_cents(amount) - sum(shares, ZERO)

    while residue != 0:
        if residue > 0:
            i = max(range(len(shares)), key=lambda k: (exact[k] - shares[k], -k))
            shares[i] += CENT
            residue -= CENT
        else:
            i = max(range(len(shares)), key=lambda k: (shares[k] - exact[k], k))
            shares[i] -= CENT
            residue += CENT
    return shares


def allocate_costs(
    partitions: dict[uuid.UUID, CreatorPartition],
    shipping_total: Decimal,
    tax_total: Decimal,
    discount_total: Decimal,
    coupon_code: str | None = None,
) -> dict[uuid.UUID, AllocatedCosts]:
    creator_ids = list(partitions)
    subtotals = [to_cents(partitions[creator_id].subtotal) for creator_id in creator_ids]

    # A free cart has nothing to weigh by, so every share comes out zero
    shipping = apportion(shipping_total, subtotals)
    tax = apportion(tax_total, subtotals)
    discount = apportion(discount_total, subtotals)

    return {
        creator_id: AllocatedCosts(
            subtotal=subtotals[i],
            shipping=shipping[i],
            tax=tax[i],
            discount=discount[i],
            coupon_code=coupon_code if discount[i] > 0 else None,
        )
        for i, creator_id in enumerate(creator_ids)
    }
