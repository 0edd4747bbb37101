"""Store actions.

Each action is an immutable command describing one atomic state
transition; ``ferretex.store.reducer.reduce`` interprets them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

from ferretex.api.dtos import Order, Product, User
from ferretex.store.constants import Severity, SortOrder


@dataclass(frozen=True)
class Action:
    """Base store action."""

    @property
    def name(self) -> str:
        return self.__class__.__name__


@dataclass(frozen=True)
class Login(Action):
    token: str
    user: User


@dataclass(frozen=True)
class Logout(Action):
    """Full session teardown: session, cart and order cache in one step."""


@dataclass(frozen=True)
class AddToCart(Action):
    product: Product


@dataclass(frozen=True)
class IncrementQuantity(Action):
    product_id: str


@dataclass(frozen=True)
class DecrementQuantity(Action):
    product_id: str


@dataclass(frozen=True)
class RemoveFromCart(Action):
    product_id: str


@dataclass(frozen=True)
class ClearCart(Action):
    pass


@dataclass(frozen=True)
class SetSortOrder(Action):
    order: SortOrder


@dataclass(frozen=True)
class Notify(Action):
    message: str
    severity: Severity = Severity.INFO


@dataclass(frozen=True)
class DismissNotification(Action):
    pass


@dataclass(frozen=True)
class CacheMyOrders(Action):
    orders: Tuple[Order, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ResetPersistence(Action):
    """Escape hatch for corrupted local state; not used in normal flow."""
