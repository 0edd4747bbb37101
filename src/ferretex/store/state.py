"""Client-side application state.

Immutable Pydantic v2 models (``frozen=True``); every transition builds
a new ``AppState`` via ``model_copy``.

- ``Session``: authenticated identity and bearer token.
- ``CartLine`` / ``Cart``: line items, quantity always >= 1.
- ``Notification`` / ``UiPreferences``: sort order and transient banner.
- ``OrderCache``: the customer's own orders, replaced wholesale.
- ``AppState``: the four sections above.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ferretex.api.dtos import Order, User
from ferretex.store.constants import DEFAULT_SORT_ORDER, Severity, SortOrder


class Session(BaseModel):
    """Authenticated identity carried by the client.

    ``is_authenticated`` is derived: it is true iff both ``token`` and
    ``user`` are present, whatever the input claimed.
    """

    model_config = ConfigDict(frozen=True)

    is_authenticated: bool = False
    token: Optional[str] = None
    user: Optional[User] = None

    @model_validator(mode="before")
    @classmethod
    def authenticated_iff_token_and_user(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            data["is_authenticated"] = (
                bool(data.get("token")) and data.get("user") is not None
            )
        return data


class CartLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: str
    name: str = ""
    unit_price: Decimal = Decimal(0)
    quantity: int = 1
    stock_cap: Optional[int] = None
    image_url: str = ""

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v

    @model_validator(mode="after")
    def quantity_within_stock_cap(self):
        if self.stock_cap is not None and self.quantity > self.stock_cap:
            raise ValueError("Quantity cannot exceed the known stock.")
        return self

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def can_increment(self) -> bool:
        return self.stock_cap is None or self.quantity + 1 <= self.stock_cap


class Cart(BaseModel):
    model_config = ConfigDict(frozen=True)

    items: List[CartLine] = []

    @property
    def total_items(self) -> int:
        return sum(line.quantity for line in self.items)

    @property
    def subtotal(self) -> Decimal:
        return sum((line.line_total for line in self.items), Decimal(0))

    def find(self, product_id: str) -> Optional[CartLine]:
        for line in self.items:
            if line.product_id == product_id:
                return line
        return None


class Notification(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    visible: bool = False
    message: str = ""
    severity: Severity = Severity.INFO


class UiPreferences(BaseModel):
    model_config = ConfigDict(frozen=True)

    sort: SortOrder = DEFAULT_SORT_ORDER
    notification: Notification = Field(default_factory=Notification)


class OrderCache(BaseModel):
    model_config = ConfigDict(frozen=True)

    orders: List[Order] = []


class AppState(BaseModel):
    model_config = ConfigDict(frozen=True)

    auth: Session = Field(default_factory=Session)
    cart: Cart = Field(default_factory=Cart)
    ui: UiPreferences = Field(default_factory=UiPreferences)
    orders: OrderCache = Field(default_factory=OrderCache)

    @property
    def role(self):
        return self.auth.user.role if self.auth.user else None


def base_state() -> AppState:
    """Hard-coded cold-start state."""
    return AppState()
