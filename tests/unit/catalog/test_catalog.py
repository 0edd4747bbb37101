"""Unit tests for catalog queries, local filtering and ``CatalogService``."""

from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from conftest import RecordingHandler, make_product
from ferretex.api.constants import ProductStatus
from ferretex.catalog.dtos import ProductQuery
from ferretex.catalog.services import CatalogService, filter_products, sort_products
from ferretex.store.constants import SortOrder
from ferretex.store.events import NotificationRaised

pytestmark = pytest.mark.unit


def _catalog():
    return [
        make_product("p1", name="Martillo", price="5000", stock=3, category="herramientas"),
        make_product("p2", name="alicate", price="3000", stock=0, category="herramientas",
                     status=ProductStatus.OFFER),
        make_product("p3", name="Pintura", price="12000", stock=8, category="pinturas",
                     status=ProductStatus.NEW),
        make_product("p4", name="Brocha", price="3000", stock=1),
    ]


# ===========================================================================
# ProductQuery
# ===========================================================================


class TestProductQuery:
    def test_defaults_send_no_params(self):
        assert ProductQuery().to_params() == {}

    def test_params(self):
        query = ProductQuery(
            q=" martillo ",
            category="herramientas",
            status="offer",
            sort=SortOrder.PRICE_DESC,
            in_stock=True,
            min_price=Decimal("100"),
            max_price=Decimal("9000"),
        )
        assert query.to_params() == {
            "q": "martillo",
            "cat": "herramientas",
            "status": "offer",
            "sort": "price_desc",
            "inStock": "true",
            "minPrice": "100",
            "maxPrice": "9000",
        }

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            ProductQuery(min_price=Decimal("-1"))

    def test_inverted_bounds_rejected(self):
        with pytest.raises(ValidationError):
            ProductQuery(min_price=Decimal("10"), max_price=Decimal("5"))


# ===========================================================================
# Local filter / sort
# ===========================================================================


class TestFilterProducts:
    def test_text_search_is_case_insensitive(self):
        result = filter_products(_catalog(), ProductQuery(q="MART"))
        assert [p.id for p in result] == ["p1"]

    def test_category_without_value_counts_as_general(self):
        result = filter_products(_catalog(), ProductQuery(category="general"))
        assert [p.id for p in result] == ["p4"]

    def test_status_and_stock(self):
        assert [p.id for p in filter_products(_catalog(), ProductQuery(status="new"))] == ["p3"]
        in_stock = filter_products(_catalog(), ProductQuery(in_stock=True))
        assert "p2" not in [p.id for p in in_stock]

    def test_price_bounds_inclusive(self):
        query = ProductQuery(min_price=Decimal("3000"), max_price=Decimal("5000"))
        assert {p.id for p in filter_products(_catalog(), query)} == {"p1", "p2", "p4"}

    def test_default_sort_is_price_then_name(self):
        result = filter_products(_catalog(), ProductQuery())
        assert [p.id for p in result] == ["p2", "p4", "p1", "p3"]

    @pytest.mark.parametrize(
        "order, expected",
        [
            (SortOrder.PRICE_DESC, ["p3", "p1", "p4", "p2"]),
            (SortOrder.NAME_ASC, ["p2", "p4", "p1", "p3"]),
            (SortOrder.NAME_DESC, ["p3", "p1", "p4", "p2"]),
        ],
    )
    def test_sort_orders(self, order, expected):
        assert [p.id for p in sort_products(_catalog(), order)] == expected


# ===========================================================================
# CatalogService
# ===========================================================================


class TestCatalogService:
    def test_uses_stored_sort_preference(self, api, store):
        store.set_sort_order(SortOrder.NAME_ASC)
        api.list_products.return_value = _catalog()

        products = CatalogService(api, store).list_products()

        api.list_products.assert_called_once_with({"sort": "name_asc"})
        assert [p.id for p in products] == ["p2", "p4", "p1", "p3"]

    def test_reapplies_filters_locally(self, api, store):
        api.list_products.return_value = _catalog()
        products = CatalogService(api, store).list_products(ProductQuery(category="pinturas"))
        assert [p.id for p in products] == ["p3"]

    def test_stale_response_keeps_current_list(self, api, store):
        service = CatalogService(api, store)
        fresh = [make_product("fresh")]

        def overtaken(params):
            api.list_products.side_effect = None
            api.list_products.return_value = fresh
            service.list_products()
            return [make_product("stale")]

        api.list_products.side_effect = overtaken
        products = service.list_products()

        assert [p.id for p in products] == ["fresh"]

    def test_set_sort_order_persists_and_resorts(self, api, store):
        api.list_products.return_value = _catalog()
        service = CatalogService(api, store)
        service.list_products()

        result = service.set_sort_order(SortOrder.PRICE_DESC)

        assert store.state.ui.sort is SortOrder.PRICE_DESC
        assert [p.id for p in result] == ["p3", "p1", "p4", "p2"]

    def test_add_to_cart_notifies_success(self, api, store):
        handler = RecordingHandler()
        store.subscribe(NotificationRaised, handler)

        CatalogService(api, store).add_to_cart(make_product(stock=2))

        assert store.state.cart.find("p1").quantity == 1
        assert [e.message for e in handler.events] == ["Martillo agregado al carrito."]

    def test_add_to_cart_at_cap_only_warns(self, api, store):
        handler = RecordingHandler()
        store.subscribe(NotificationRaised, handler)
        service = CatalogService(api, store)
        product = make_product(stock=1)

        service.add_to_cart(product)
        service.add_to_cart(product)

        assert store.state.cart.find("p1").quantity == 1
        assert len(handler.events) == 2
        assert "Stock máximo" in handler.events[-1].message
