"""Order domain constants.

Defines the closed set of order statuses and the transition table the
Order Lifecycle Manager follows.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "Pending", "Pending"
    PROCESSING = "Processing", "Processing"
    PAID = "Paid", "Paid"
    DENIED = "Denied", "Denied"
    CANCELLED = "Cancelled", "Cancelled"
    SHIPPED = "Shipped", "Shipped"
    DELIVERED = "Delivered", "Delivered"


# Dedicated operations; the generic status update accepts any target.
ACCEPTABLE_FROM: frozenset[str] = frozenset({OrderStatus.PENDING})
DENIABLE_FROM: frozenset[str] = frozenset({OrderStatus.PENDING})

# Only a cancel from this state gives stock back.
RESTOCK_ON_CANCEL_FROM: str = OrderStatus.PROCESSING

ORDER_NUMBER_MAX_RETRIES = 5
ORDER_NUMBER_PREFIX = "ORD"
