"""Unit tests for backend payload normalization.

Covers:
- Role spellings map onto customer/staff/manager.
- Product, order, category and marker field aliases and precedence.
- Missing or malformed fields fall back to typed defaults.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from ferretex.api.constants import DeliveryMode, ProductStatus, Role
from ferretex.api.normalization import (
    normalize_category,
    normalize_inventory_row,
    normalize_many,
    normalize_marker,
    normalize_order,
    normalize_product,
    normalize_role,
    normalize_user,
    present_params,
)

pytestmark = pytest.mark.unit


# ===========================================================================
# Roles / users
# ===========================================================================


class TestNormalizeRole:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("cliente", Role.CUSTOMER),
            ("customer", Role.CUSTOMER),
            ("staff", Role.STAFF),
            ("admin", Role.MANAGER),
            ("manager", Role.MANAGER),
            ("  ADMIN ", Role.MANAGER),
            ("Staff", Role.STAFF),
        ],
    )
    def test_known_spellings(self, raw, expected):
        assert normalize_role(raw) is expected

    @pytest.mark.parametrize("raw", [None, "", "superuser", 3])
    def test_unknown_falls_back_to_customer(self, raw):
        assert normalize_role(raw) is Role.CUSTOMER

    @pytest.mark.parametrize(
        "raw", ["cliente", "customer", "staff", "admin", "manager", "x", None]
    )
    def test_output_is_always_canonical(self, raw):
        assert normalize_role(raw).value in {"customer", "staff", "manager"}


class TestNormalizeUser:
    def test_spanish_fields(self):
        user = normalize_user({"id": 7, "nombre": "Ana", "email": "a@x.cl", "rol": "admin"})

        assert user.id == "7"
        assert user.name == "Ana"
        assert user.role is Role.MANAGER

    def test_role_wins_over_rol(self):
        user = normalize_user({"role": "staff", "rol": "admin"})
        assert user.role is Role.STAFF

    def test_non_mapping_is_none(self):
        assert normalize_user(None) is None
        assert normalize_user("ana") is None


# ===========================================================================
# Products
# ===========================================================================


class TestNormalizeProduct:
    def test_english_fields(self):
        product = normalize_product(
            {
                "id": 1,
                "name": "Martillo",
                "sku": "MAR-1",
                "price": "1990.50",
                "image": "https://img/m.png",
                "stock": "4",
                "category": "herramientas",
                "status": "offer",
            }
        )

        assert product.id == "1"
        assert product.price == Decimal("1990.50")
        assert product.stock == 4
        assert product.image_url == "https://img/m.png"
        assert product.category == "herramientas"
        assert product.status is ProductStatus.OFFER

    def test_spanish_fields(self):
        product = normalize_product(
            {"id": "2", "nombre": "Taladro", "precio": 5000, "imagen_url": "t.png", "categoria": "eléctricas"}
        )

        assert product.name == "Taladro"
        assert product.price == Decimal(5000)
        assert product.image_url == "t.png"
        assert product.category == "eléctricas"

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ({"stock": 1, "stock_available": 2, "stock_actual": 3}, 1),
            ({"stock_available": 2, "stock_actual": 3}, 2),
            ({"stock_actual": 3, "stockActual": 4}, 3),
            ({"stockActual": 4, "inventory_stock": 5}, 4),
            ({"inventory_stock": 5}, 5),
            ({"stock": None, "stock_available": 6}, 6),
        ],
    )
    def test_stock_alias_precedence(self, raw, expected):
        assert normalize_product({"id": "p", **raw}).stock == expected

    def test_missing_fields_use_defaults(self):
        product = normalize_product({"id": "p"})

        assert product.name == ""
        assert product.price == Decimal(0)
        assert product.stock == 0
        assert product.image_url == ""
        assert product.category is None
        assert product.status is ProductStatus.NONE

    def test_malformed_values_use_defaults(self):
        product = normalize_product({"id": "p", "price": "abc", "stock": "many", "status": "hot"})

        assert product.price == Decimal(0)
        assert product.stock == 0
        assert product.status is ProductStatus.NONE

    @pytest.mark.parametrize("stock", ["1e999999999", "NaN", "Infinity", "-inf", "1e19"])
    def test_non_finite_or_huge_stock_uses_default(self, stock):
        assert normalize_product({"id": "p", "stock": stock}).stock == 0

    def test_exponent_within_range_is_accepted(self):
        assert normalize_product({"id": "p", "stock": "1e3"}).stock == 1000

    def test_non_mapping_does_not_raise(self):
        assert normalize_product(None).id == ""

    def test_inventory_row_keeps_stock_breakdown(self):
        row = normalize_inventory_row(
            {"id": "p", "stock_on_hand": 10, "stock_reserved": 3, "stock_available": 7}
        )

        assert row.stock == 7
        assert row.stock_on_hand == 10
        assert row.stock_reserved == 3
        assert row.stock_available == 7


class TestNormalizeCategory:
    def test_object(self):
        category = normalize_category({"id": 3, "nombre": "Jardín", "slug": "jardin"})
        assert (category.id, category.name, category.slug) == ("3", "Jardín", "jardin")

    def test_bare_string(self):
        category = normalize_category("pinturas")
        assert (category.id, category.name, category.slug) == ("pinturas",) * 3


# ===========================================================================
# Orders / markers / lists
# ===========================================================================


class TestNormalizeOrder:
    def test_camel_case_fields(self):
        order = normalize_order(
            {
                "id": 10,
                "status": "paid",
                "deliveryMode": "delivery",
                "createdAt": "2024-05-01T12:00:00Z",
                "total": "15990",
                "items": [{"productId": "p1", "name": "Martillo", "qty": 2, "unitPrice": "7995"}],
                "customer": {"name": "Ana"},
            }
        )

        assert order.id == "10"
        assert order.delivery_mode is DeliveryMode.DELIVERY
        assert order.created_at == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        assert order.total == Decimal("15990")
        assert order.items[0].quantity == 2
        assert order.items[0].line_total == Decimal("15990")
        assert order.customer == {"name": "Ana"}

    def test_snake_case_fields(self):
        order = normalize_order(
            {
                "id": "11",
                "delivery_type": "pickup",
                "created_at": "2024-05-01T12:00:00+00:00",
                "total_amount": 100,
                "order_items": [{"product_id": "p1", "quantity": 1, "unit_price": 100}],
            }
        )

        assert order.delivery_mode is DeliveryMode.PICKUP
        assert order.total == Decimal(100)
        assert order.items[0].product_id == "p1"

    def test_total_falls_back_to_totals_object(self):
        order = normalize_order({"id": "1", "totals": {"total": "42"}})
        assert order.total == Decimal("42")

    def test_defaults(self):
        order = normalize_order({"id": "1"})

        assert order.status == "pending_payment"
        assert order.delivery_mode is DeliveryMode.PICKUP
        assert order.items == []
        assert order.created_at is None
        assert order.customer is None

    def test_unknown_status_is_kept(self):
        assert normalize_order({"id": "1", "status": "on_hold"}).status == "on_hold"

    def test_string_customer_is_wrapped(self):
        assert normalize_order({"id": "1", "customer": "Ana"}).customer == {"name": "Ana"}


class TestNormalizeMarker:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ({"lastChanged": "2024-05-01T00:00:00Z"}, "2024-05-01T00:00:00Z"),
            ({"last_changed": 123}, "123"),
            ({"lastChanged": ""}, None),
            ({}, None),
            (None, None),
        ],
    )
    def test_marker(self, raw, expected):
        assert normalize_marker(raw).last_changed == expected


class TestNormalizeMany:
    def test_list_payload(self):
        products = normalize_many([{"id": "1"}, {"id": "2"}], normalize_product)
        assert [p.id for p in products] == ["1", "2"]

    @pytest.mark.parametrize("raw", [None, {"items": []}, "oops"])
    def test_non_list_payload_is_empty(self, raw):
        assert normalize_many(raw, normalize_product) == []


class TestPresentParams:
    def test_drops_empty_values(self):
        assert present_params({"q": "", "cat": None, "sort": "price_asc"}) == {
            "sort": "price_asc"
        }

    def test_stringifies_values(self):
        params = present_params({"inStock": True, "minPrice": Decimal("10"), "role": Role.STAFF})
        assert params == {"inStock": "true", "minPrice": "10", "role": "staff"}
