"""Order lifecycle helpers.

Pure functions over ``ferretex.orders.constants``: which transitions a
role may offer, the kanban grouping of the staff board.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from ferretex.api.constants import Role
from ferretex.api.dtos import Order
from ferretex.orders.constants import (
    LIFECYCLE,
    MANAGER_ONLY_TARGETS,
    OPERATOR_ROLES,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    OrderStatus,
)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def parse_status(value) -> Optional[OrderStatus]:
    try:
        return OrderStatus(getattr(value, "value", value))
    except ValueError:
        return None


def is_terminal(status) -> bool:
    return parse_status(status) in TERMINAL_STATES


def can_transition(current, target) -> bool:
    current_status = parse_status(current)
    target_status = parse_status(target)
    if current_status is None or target_status is None:
        return False
    return target_status in VALID_TRANSITIONS[current_status]


def next_status(current) -> Optional[OrderStatus]:
    """The next step along the forward chain, or ``None`` when terminal."""
    status = parse_status(current)
    if status is None or status in TERMINAL_STATES:
        return None
    index = LIFECYCLE.index(status)
    return LIFECYCLE[index + 1]


def role_may_offer(role: Optional[Role], target) -> bool:
    if role not in OPERATOR_ROLES:
        return False
    if parse_status(target) in MANAGER_ONLY_TARGETS:
        return role == Role.MANAGER
    return True


def available_transitions(current, role: Optional[Role]) -> List[OrderStatus]:
    """Transitions the UI should offer, in lifecycle order (cancel last)."""
    status = parse_status(current)
    if status is None:
        return []
    allowed = VALID_TRANSITIONS[status]
    ordered = [s for s in (*LIFECYCLE, OrderStatus.CANCELLED) if s in allowed]
    return [s for s in ordered if role_may_offer(role, s)]


def _created_key(order: Order) -> datetime:
    created = order.created_at
    if created is None:
        return _EPOCH
    if created.tzinfo is None:
        return created.replace(tzinfo=timezone.utc)
    return created


def group_by_status(orders: Iterable[Order]) -> Dict[OrderStatus, List[Order]]:
    """Kanban columns in lifecycle order, newest order first.

    Orders carrying an unknown status land in ``pending_payment``.
    """
    columns: Dict[OrderStatus, List[Order]] = {
        status: [] for status in (*LIFECYCLE, OrderStatus.CANCELLED)
    }
    for order in orders:
        status = parse_status(order.status) or OrderStatus.PENDING_PAYMENT
        columns[status].append(order)
    for column in columns.values():
        column.sort(key=_created_key, reverse=True)
    return columns
