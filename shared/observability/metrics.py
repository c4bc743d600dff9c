from prometheus_client import Counter, Histogram

# Business Metrics
ecomm_checkout_total = Counter(
    "ecomm_checkout_total",
    "Total checkouts processed",
    ["status"] # Labels: 'success', 'insufficient_stock', 'stock_conflict', ...
)

ecomm_checkout_duration_seconds = Histogram(
    "ecomm_checkout_duration_seconds",
    "Checkout duration in seconds"
)

ecomm_orders_created_total = Counter(
    "ecomm_orders_created_total",
    "Total per-creator orders created by checkout"
)

ecomm_checkout_partitions = Histogram(
    "ecomm_checkout_partitions",
    "Number of creator partitions per checkout",
    buckets=(1, 2, 3, 5, 8, 13)
)

ecomm_stock_conflict_total = Counter(
    "ecomm_stock_conflict_total",
    "Conditional stock decrements that lost a race",
    ["counter"] # Labels: 'product', 'variant', 'transaction'
)
