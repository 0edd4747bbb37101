"""Order lifecycle constants.

The backend owns the lifecycle; these tables only drive which
"advance status" actions the client offers.  Role gating here is
advisory and never a security boundary.
"""

from enum import Enum

from ferretex.api.constants import Role


class OrderStatus(str, Enum):
    PENDING_PAYMENT = "pending_payment"
    PAID = "paid"
    PREPARING = "preparing"
    READY_FOR_PICKUP = "ready_for_pickup"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


LIFECYCLE: tuple[OrderStatus, ...] = (
    OrderStatus.PENDING_PAYMENT,
    OrderStatus.PAID,
    OrderStatus.PREPARING,
    OrderStatus.READY_FOR_PICKUP,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
)

VALID_TRANSITIONS: dict[OrderStatus, set[OrderStatus]] = {
    OrderStatus.PENDING_PAYMENT: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.PREPARING, OrderStatus.CANCELLED},
    OrderStatus.PREPARING: {OrderStatus.READY_FOR_PICKUP, OrderStatus.CANCELLED},
    # Pickup orders are handed over at the counter and skip shipping.
    OrderStatus.READY_FOR_PICKUP: {
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

TERMINAL_STATES: set[OrderStatus] = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

MANAGER_ONLY_TARGETS: set[OrderStatus] = {OrderStatus.SHIPPED, OrderStatus.CANCELLED}

OPERATOR_ROLES: set[Role] = {Role.STAFF, Role.MANAGER}
