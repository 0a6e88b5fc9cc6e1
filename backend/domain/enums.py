"""
Domain enums (order status state machine and user roles).
"""

from enum import Enum


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

# Fulfilment progression; admins may only move forward along it.
_FULFILMENT_ORDER = [
    OrderStatus.PENDING,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
]


def can_advance(current: OrderStatus, target: OrderStatus) -> bool:
    """True if an admin status update from `current` to `target` is legal.

    CANCELLED is never an admin target; only the customer cancel flow sets it.
    """
    if current in TERMINAL_STATUSES or target not in _FULFILMENT_ORDER:
        return False
    return _FULFILMENT_ORDER.index(target) > _FULFILMENT_ORDER.index(current)
