"""Checkout (Use Case).

Validates the form locally, submits the order, then clears the cart and
refreshes the order history.  Stock is not re-checked here: the backend
rejects orders it cannot fulfil.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Optional

import structlog

from ferretex.api.dtos import Order
from ferretex.api.exceptions import ApiError, AuthRequired
from ferretex.checkout.dtos import CheckoutForm
from ferretex.store.constants import Severity
from ferretex.store.store import Store

if TYPE_CHECKING:
    from ferretex.api.client import FerretexApiClient
    from ferretex.auth.services import AuthService

logger = structlog.get_logger(__name__)


class CheckoutService:
    """Receives its collaborators via constructor injection."""

    def __init__(
        self, api: FerretexApiClient, store: Store, auth: Optional[AuthService] = None
    ) -> None:
        self._api = api
        self._store = store
        self._auth = auth
        self._in_flight = threading.Lock()

    @property
    def submitting(self) -> bool:
        """True while an order request is in flight (submit disabled)."""
        return self._in_flight.locked()

    def submit(self, form: CheckoutForm) -> Optional[Order]:
        """Place the order described by ``form`` and the current cart.

        Returns ``None`` when a submission is already in flight.

        Raises:
            ValidationError: the form is incomplete; no request was sent.
            AuthRequired: there is no signed-in session.
            ApiError: the backend rejected the order; cart kept intact.
        """
        if not self._in_flight.acquire(blocking=False):
            logger.info("checkout.duplicate_submit_ignored")
            return None
        try:
            cart = self._store.state.cart
            form.validate_against(cart)
            token = self._store.current_token()
            if not token:
                raise AuthRequired("Inicia sesión para confirmar tu pedido.")

            log = logger.bind(mode=form.mode.value, lines=len(cart.items))
            log.info("checkout.submitting")
            order = self._api.create_order(token, form.to_payload(cart))
            log.info("checkout.order_created", order_id=order.id)

            self._store.clear_cart()
            self._store.notify("Pedido confirmado.", Severity.SUCCESS)
            if self._auth is not None:
                try:
                    self._auth.refresh_my_orders()
                except ApiError as exc:
                    log.warning("checkout.order_history_refresh_failed", error=str(exc))
            return order
        finally:
            self._in_flight.release()
