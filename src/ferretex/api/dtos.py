"""Canonical records returned by the API client.

Pydantic v2 models, immutable (``frozen=True``).  Instances are built
by ``ferretex.api.normalization`` from whatever field naming scheme the
backend used, so every field here has exactly one canonical name.

- ``User`` / ``LoginResult``: authentication results.
- ``Product`` / ``InventoryRow``: catalog and staff inventory rows.
- ``Category``: catalog category.
- ``OrderItem`` / ``Order``: order snapshots.
- ``ChangeMarker``: ``/meta`` staleness marker.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from ferretex.api.constants import DeliveryMode, ProductStatus, Role


class User(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    name: str = ""
    email: str = ""
    role: Role = Role.CUSTOMER


class LoginResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str
    user: User


class Product(BaseModel):
    """Normalized projection of a backend product."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    sku: str = ""
    price: Decimal = Decimal(0)
    image_url: str = ""
    stock: int = 0
    category: Optional[str] = None
    status: ProductStatus = ProductStatus.NONE

    @property
    def in_stock(self) -> bool:
        return self.stock > 0


class InventoryRow(Product):
    """Product row from the staff inventory endpoint.

    ``stock`` mirrors the available quantity; the on-hand and reserved
    figures are only present when the backend reports them.
    """

    stock_on_hand: Optional[int] = None
    stock_reserved: Optional[int] = None
    stock_available: Optional[int] = None


class Category(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    slug: str = ""


class OrderItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: str
    name: str = ""
    quantity: int = 0
    unit_price: Decimal = Decimal(0)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class Order(BaseModel):
    """Normalized order snapshot.

    ``status`` stays a plain string: the lifecycle is owned by the
    backend, and an unknown value must still be displayable.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    status: str = "pending_payment"
    delivery_mode: DeliveryMode = DeliveryMode.PICKUP
    items: List[OrderItem] = []
    total: Decimal = Decimal(0)
    created_at: Optional[datetime] = None
    customer: Optional[Dict[str, Any]] = None


class ChangeMarker(BaseModel):
    model_config = ConfigDict(frozen=True)

    last_changed: Optional[str] = None
