"""Unit tests for the checkout form and ``CheckoutService``."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from conftest import make_product
from ferretex.api.constants import DeliveryMode
from ferretex.api.dtos import Order
from ferretex.api.exceptions import AuthRequired, HttpError, NetworkError
from ferretex.checkout.dtos import CheckoutForm
from ferretex.checkout.exceptions import ValidationError
from ferretex.checkout.services import CheckoutService
from ferretex.store.constants import Severity

pytestmark = pytest.mark.unit


def _delivery_form(**overrides):
    data = {"mode": "delivery", "name": "Ana", "phone": "+56911112222", "address": "Av. Siempre Viva 742"}
    data.update(overrides)
    return CheckoutForm(**data)


@pytest.fixture()
def cart_store(customer_store):
    customer_store.add_to_cart(make_product("p1", stock=5))
    customer_store.add_to_cart(make_product("p1", stock=5))
    customer_store.add_to_cart(make_product("p2", name="Taladro", stock=5))
    return customer_store


# ===========================================================================
# CheckoutForm
# ===========================================================================


class TestCheckoutForm:
    def test_delivery_without_address_is_invalid(self, cart_store):
        errors = _delivery_form(address="  ").field_errors(cart_store.state.cart)
        assert set(errors) == {"address"}

    def test_pickup_does_not_need_address(self, cart_store):
        form = CheckoutForm(name="Ana", phone="123")
        assert form.field_errors(cart_store.state.cart) == {}

    def test_empty_cart_and_blank_fields(self, store):
        errors = CheckoutForm(name=None).field_errors(store.state.cart)
        assert set(errors) == {"cart", "name", "phone"}

    def test_payload_for_delivery(self, cart_store):
        payload = _delivery_form(notes=" timbre roto ").to_payload(cart_store.state.cart)

        assert payload == {
            "mode": "delivery",
            "name": "Ana",
            "phone": "+56911112222",
            "notes": "timbre roto",
            "address": "Av. Siempre Viva 742",
            "items": [{"productId": "p1", "qty": 2}, {"productId": "p2", "qty": 1}],
        }

    def test_payload_for_pickup_has_no_address(self, cart_store):
        form = CheckoutForm(name="Ana", phone="123", address="ignored")
        assert "address" not in form.to_payload(cart_store.state.cart)

    def test_validation_error_message(self, store):
        with pytest.raises(ValidationError) as excinfo:
            CheckoutForm(name="Ana", phone="1").validate_against(store.state.cart)
        assert excinfo.value.errors == {"cart": "Tu carrito está vacío."}
        assert str(excinfo.value) == "Tu carrito está vacío."


# ===========================================================================
# CheckoutService
# ===========================================================================


class TestSubmit:
    def test_delivery_without_address_sends_nothing(self, api, cart_store):
        service = CheckoutService(api, cart_store)

        with pytest.raises(ValidationError) as excinfo:
            service.submit(_delivery_form(address=""))

        assert "address" in excinfo.value.errors
        api.create_order.assert_not_called()
        assert cart_store.state.cart.total_items == 3

    def test_success_clears_cart_and_refreshes_history(self, api, cart_store):
        api.create_order.return_value = Order(id="o1")
        auth = MagicMock()
        service = CheckoutService(api, cart_store, auth=auth)

        order = service.submit(_delivery_form())

        assert order.id == "o1"
        token, payload = api.create_order.call_args.args
        assert token == "tok-customer"
        assert payload["mode"] == DeliveryMode.DELIVERY.value
        assert cart_store.state.cart.items == []
        assert cart_store.state.ui.notification.severity is Severity.SUCCESS
        auth.refresh_my_orders.assert_called_once()
        assert service.submitting is False

    def test_failure_keeps_cart(self, api, cart_store):
        api.create_order.side_effect = HttpError("Sin stock para Taladro", status=409)
        service = CheckoutService(api, cart_store)

        with pytest.raises(HttpError, match="Sin stock"):
            service.submit(_delivery_form())

        assert cart_store.state.cart.total_items == 3
        assert service.submitting is False

    def test_network_failure_keeps_cart(self, api, cart_store):
        api.create_order.side_effect = NetworkError("offline")
        with pytest.raises(NetworkError):
            CheckoutService(api, cart_store).submit(_delivery_form())
        assert cart_store.state.cart.total_items == 3

    def test_anonymous_checkout_requires_login(self, api, store):
        store.add_to_cart(make_product())
        with pytest.raises(AuthRequired):
            CheckoutService(api, store).submit(CheckoutForm(name="Ana", phone="1"))
        api.create_order.assert_not_called()

    def test_duplicate_submit_is_ignored(self, api, cart_store):
        service = CheckoutService(api, cart_store)
        nested = []

        def create_order(token, payload):
            assert service.submitting is True
            nested.append(service.submit(_delivery_form()))
            return Order(id="o1")

        api.create_order.side_effect = create_order
        service.submit(_delivery_form())

        assert nested == [None]
        assert api.create_order.call_count == 1

    def test_history_refresh_failure_does_not_fail_checkout(self, api, cart_store):
        api.create_order.return_value = Order(id="o1")
        auth = MagicMock()
        auth.refresh_my_orders.side_effect = NetworkError("offline")

        order = CheckoutService(api, cart_store, auth=auth).submit(_delivery_form())

        assert order.id == "o1"
        assert cart_store.state.cart.items == []
