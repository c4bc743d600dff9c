"""
Checkout failures.

Every one of these aborts the whole multi-creator checkout: the transaction is
rolled back and no order, order item or stock change survives.
"""
import uuid
from dataclasses import dataclass, asdict


class CheckoutError(Exception):
    code = "checkout_failed"
    status_code = 500
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def payload(self) -> dict:
        return {}


class ValidationError(CheckoutError):
    """Malformed checkout input, rejected before any catalog lookup."""

    code = "validation_error"
    status_code = 400


class ProductNotFoundError(CheckoutError):
    code = "product_not_found"
    status_code = 404

    def __init__(self, product_id: uuid.UUID):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id

    def payload(self) -> dict:
        return {"product_id": str(self.product_id)}


class VariantNotFoundError(CheckoutError):
    code = "variant_not_found"
    status_code = 404

    def __init__(self, variant_id: uuid.UUID, product_id: uuid.UUID):
        super().__init__(f"Variant {variant_id} not found for product {product_id}")
        self.variant_id = variant_id
        self.product_id = product_id

    def payload(self) -> dict:
        return {"variant_id": str(self.variant_id), "product_id": str(self.product_id)}


@dataclass(slots=True, frozen=True)
class StockShortage:
    product_id: uuid.UUID
    variant_id: uuid.UUID | None
    available: int
    requested: int


class InsufficientStockError(CheckoutError):
    code = "insufficient_stock"
    status_code = 409

    def __init__(self, shortages: list[StockShortage]):
        described = ", ".join(
            f"{s.variant_id or s.product_id} (available={s.available}, requested={s.requested})"
            for s in shortages
        )
        super().__init__(f"Insufficient stock: {described}")
        self.shortages = shortages

    def payload(self) -> dict:
        return {
            "shortages": [
                {
                    key: (str(value) if isinstance(value, uuid.UUID) else value)
                    for key, value in asdict(shortage).items()
                }
                for shortage in self.shortages
            ]
        }


class StockConflictError(CheckoutError):
    """A concurrent checkout took the stock after validation. Retry from scratch."""

    code = "stock_conflict"
    status_code = 409
    retryable = True

    def payload(self) -> dict:
        return {"retryable": True}


class PersistenceError(CheckoutError):
    code = "persistence_error"
    status_code = 500
