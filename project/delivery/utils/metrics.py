# delivery/utils/metrics.py

from prometheus_client import Counter

ORDERS_CREATED = Counter(
    "delivery_orders_created_total",
    "Total orders created"
)

ORDER_STATUS_CHANGES = Counter(
    "delivery_order_status_changes_total",
    "Order status transitions",
    ["status"]
)

DRIVER_ASSIGNMENTS = Counter(
    "delivery_driver_assignments_total",
    "Driver assignment attempts",
    ["result"]
)

NOTIFICATIONS_PROCESSED = Counter(
    "delivery_notifications_processed_total",
    "Notifications handled by the dispatcher",
    ["result"]
)
