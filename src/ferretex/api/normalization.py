"""Backend payload normalization.

The backend has shipped several field naming schemes for the same
concept (English, Spanish, snake_case, camelCase).  Each canonical field
has an ordered alias list below: the first alias whose value is present
(not ``None``) wins, otherwise the field falls back to a typed default.
Nothing in this module raises on missing or malformed input.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, List, Mapping, Optional, Sequence

from ferretex.api.constants import DeliveryMode, ProductStatus, Role
from ferretex.api.dtos import (
    Category,
    ChangeMarker,
    InventoryRow,
    Order,
    OrderItem,
    Product,
    User,
)

PRODUCT_NAME_ALIASES = ("name", "nombre")
PRODUCT_PRICE_ALIASES = ("price", "precio")
PRODUCT_IMAGE_ALIASES = ("image", "imagen", "imagen_url", "image_url", "imageUrl")
PRODUCT_STOCK_ALIASES = (
    "stock",
    "stock_available",
    "stock_actual",
    "stockActual",
    "inventory_stock",
)
PRODUCT_CATEGORY_ALIASES = (
    "category",
    "categoria",
    "category_name",
    "categoryNombre",
    "category_nombre",
    "category_slug",
)
USER_ROLE_ALIASES = ("role", "rol")
USER_NAME_ALIASES = ("name", "nombre")
ORDER_DELIVERY_MODE_ALIASES = ("deliveryMode", "delivery_mode", "delivery_type", "mode")
ORDER_CREATED_AT_ALIASES = ("createdAt", "created_at")
ORDER_TOTAL_ALIASES = ("total", "total_amount")
ORDER_ITEMS_ALIASES = ("items", "order_items")
ITEM_PRODUCT_ID_ALIASES = ("productId", "product_id", "id")
ITEM_NAME_ALIASES = ("name", "product_name", "nombre")
ITEM_QUANTITY_ALIASES = ("quantity", "qty")
ITEM_UNIT_PRICE_ALIASES = ("unitPrice", "unit_price", "price")
MARKER_ALIASES = ("lastChanged", "last_changed")

ROLE_ALIASES: Mapping[str, Role] = {
    "cliente": Role.CUSTOMER,
    "customer": Role.CUSTOMER,
    "staff": Role.STAFF,
    "admin": Role.MANAGER,
    "manager": Role.MANAGER,
}

DEFAULT_ORDER_STATUS = "pending_payment"
MAX_INT_DIGITS = 18


# ---------------------------------------------------------------------------
# Primitive helpers
# ---------------------------------------------------------------------------


def first_present(raw: Mapping[str, Any], aliases: Sequence[str], default: Any = None) -> Any:
    """Return the value of the first alias present in ``raw``."""
    for alias in aliases:
        value = raw.get(alias)
        if value is not None:
            return value
    return default


def to_decimal(value: Any, default: Decimal = Decimal(0)) -> Decimal:
    if value is None or isinstance(value, bool):
        return default
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return default
    return result if result.is_finite() else default


def to_int(value: Any, default: int = 0) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return default
    # Non-finite or absurdly large values would hang int() or overflow.
    if not number.is_finite() or number.adjusted() > MAX_INT_DIGITS:
        return default
    return int(number)


def to_optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    return to_int(value)


def to_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _as_mapping(raw: Any) -> Mapping[str, Any]:
    return raw if isinstance(raw, Mapping) else {}


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def normalize_role(role: Any) -> Role:
    """Map any backend role spelling onto ``customer``/``staff``/``manager``.

    Unknown or missing values fall back to ``customer``, the least
    privileged role.
    """
    key = str(role or "").strip().lower()
    return ROLE_ALIASES.get(key, Role.CUSTOMER)


def normalize_user(raw: Any) -> Optional[User]:
    if not isinstance(raw, Mapping):
        return None
    user_id = raw.get("id")
    return User(
        id=None if user_id is None else str(user_id),
        name=_as_text(first_present(raw, USER_NAME_ALIASES, "")),
        email=_as_text(raw.get("email")),
        role=normalize_role(first_present(raw, USER_ROLE_ALIASES)),
    )


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


def normalize_product_status(value: Any) -> ProductStatus:
    try:
        return ProductStatus(str(value or "").strip().lower())
    except ValueError:
        return ProductStatus.NONE


def _product_fields(raw: Mapping[str, Any]) -> dict:
    category = first_present(raw, PRODUCT_CATEGORY_ALIASES)
    return {
        "id": _as_text(raw.get("id")),
        "name": _as_text(first_present(raw, PRODUCT_NAME_ALIASES, "")),
        "sku": _as_text(raw.get("sku")),
        "price": to_decimal(first_present(raw, PRODUCT_PRICE_ALIASES)),
        "image_url": _as_text(first_present(raw, PRODUCT_IMAGE_ALIASES, "")),
        "stock": to_int(first_present(raw, PRODUCT_STOCK_ALIASES)),
        "category": None if category is None else str(category),
        "status": normalize_product_status(raw.get("status")),
    }


def normalize_product(raw: Any) -> Product:
    return Product(**_product_fields(_as_mapping(raw)))


def normalize_inventory_row(raw: Any) -> InventoryRow:
    data = _as_mapping(raw)
    return InventoryRow(
        **_product_fields(data),
        stock_on_hand=to_optional_int(data.get("stock_on_hand")),
        stock_reserved=to_optional_int(data.get("stock_reserved")),
        stock_available=to_optional_int(data.get("stock_available")),
    )


def normalize_category(raw: Any) -> Category:
    if not isinstance(raw, Mapping):
        # Some deployments return bare category names.
        text = _as_text(raw)
        return Category(id=text, name=text, slug=text)
    return Category(
        id=_as_text(raw.get("id")),
        name=_as_text(first_present(raw, ("name", "nombre"), "")),
        slug=_as_text(raw.get("slug")),
    )


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


def normalize_delivery_mode(value: Any) -> DeliveryMode:
    try:
        return DeliveryMode(str(value or "").strip().lower())
    except ValueError:
        return DeliveryMode.PICKUP


def normalize_order_item(raw: Any) -> OrderItem:
    data = _as_mapping(raw)
    return OrderItem(
        product_id=_as_text(first_present(data, ITEM_PRODUCT_ID_ALIASES, "")),
        name=_as_text(first_present(data, ITEM_NAME_ALIASES, "")),
        quantity=to_int(first_present(data, ITEM_QUANTITY_ALIASES)),
        unit_price=to_decimal(first_present(data, ITEM_UNIT_PRICE_ALIASES)),
    )


def normalize_order(raw: Any) -> Order:
    data = _as_mapping(raw)
    items = first_present(data, ORDER_ITEMS_ALIASES, [])
    total = first_present(data, ORDER_TOTAL_ALIASES)
    if total is None:
        total = _as_mapping(data.get("totals")).get("total")
    customer = data.get("customer")
    if customer is not None and not isinstance(customer, Mapping):
        customer = {"name": str(customer)}
    return Order(
        id=_as_text(data.get("id")),
        status=_as_text(data.get("status")) or DEFAULT_ORDER_STATUS,
        delivery_mode=normalize_delivery_mode(
            first_present(data, ORDER_DELIVERY_MODE_ALIASES)
        ),
        items=[normalize_order_item(item) for item in _as_list(items)],
        total=to_decimal(total),
        created_at=to_datetime(first_present(data, ORDER_CREATED_AT_ALIASES)),
        customer=dict(customer) if customer is not None else None,
    )


def normalize_marker(raw: Any) -> ChangeMarker:
    value = first_present(_as_mapping(raw), MARKER_ALIASES)
    return ChangeMarker(last_changed=None if value in (None, "") else str(value))


# ---------------------------------------------------------------------------
# Lists
# ---------------------------------------------------------------------------


def _as_list(raw: Any) -> List[Any]:
    return list(raw) if isinstance(raw, (list, tuple)) else []


def normalize_many(raw: Any, normalizer) -> list:
    """Apply ``normalizer`` to a list payload; anything else yields ``[]``."""
    return [normalizer(entry) for entry in _as_list(raw)]


def present_params(params: Mapping[str, Any]) -> dict:
    """Drop ``None`` and empty-string values from query parameters."""
    cleaned = {}
    for key, value in params.items():
        if value is None or value == "":
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        cleaned[key] = str(getattr(value, "value", value))
    return cleaned


__all__ = [
    "first_present",
    "normalize_category",
    "normalize_inventory_row",
    "normalize_many",
    "normalize_marker",
    "normalize_order",
    "normalize_order_item",
    "normalize_product",
    "normalize_role",
    "normalize_user",
    "present_params",
]
