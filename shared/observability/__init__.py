from .setup import setup_observability, configure_logging
from .metrics import (
    ecomm_checkout_total,
    ecomm_checkout_duration_seconds,
    ecomm_orders_created_total,
    ecomm_checkout_partitions,
    ecomm_stock_conflict_total,
)
