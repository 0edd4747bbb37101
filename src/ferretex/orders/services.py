"""Staff operations panel (Use Cases).

Backs the staff/manager screen: the order kanban, inventory table and
manager-only product maintenance.  Lists are view-model state owned by
the service instance; the store is only consulted for the session.

Rules applied client-side (the backend stays authoritative):
- Only staff/manager may load the order board.
- ``shipped`` and ``cancelled`` are manager-only targets.
- Cancelling an order and deactivating a product need password
  re-verification through ``ConfirmationFlow``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

import structlog

from ferretex.api.client import FerretexApiClient
from ferretex.api.constants import Resource, Role
from ferretex.api.dtos import Order, Product
from ferretex.api.exceptions import AuthRequired
from ferretex.checkout.exceptions import ValidationError
from ferretex.orders.confirmation import ConfirmationFlow, PendingAction
from ferretex.orders.constants import OPERATOR_ROLES, OrderStatus
from ferretex.orders.exceptions import InvalidOrderStatus, RoleRequired
from ferretex.orders.lifecycle import (
    can_transition,
    group_by_status,
    parse_status,
    role_may_offer,
)
from ferretex.store.store import Store
from ferretex.sync.poller import ResourcePoller, always_visible
from ferretex.sync.sequencing import RequestSequencer

logger = structlog.get_logger(__name__)


class StockFilter(str, Enum):
    ALL = "all"
    LOW = "low"
    OUT = "out"


STOCK_ON_HAND_MESSAGE = "El stock debe ser un número entero mayor o igual a 0."


def _parse_stock(value: Any) -> Optional[int]:
    """``None`` when no stock was entered, else a whole number >= 0."""
    if value is None or str(value).strip() == "":
        return None
    if isinstance(value, bool):
        raise ValidationError({"stock_on_hand": STOCK_ON_HAND_MESSAGE})
    try:
        stock = int(str(value).strip())
    except ValueError:
        raise ValidationError({"stock_on_hand": STOCK_ON_HAND_MESSAGE}) from None
    if stock < 0:
        raise ValidationError({"stock_on_hand": STOCK_ON_HAND_MESSAGE})
    return stock


@dataclass(frozen=True)
class InventoryKpis:
    out_of_stock: int
    low_stock: int


class OperationsService:
    """Application service for the staff panel.

    Receives the API client and the store via constructor injection.
    """

    def __init__(
        self,
        api: FerretexApiClient,
        store: Store,
        orders_limit: int = 200,
        low_stock_threshold: int = 5,
        poll_interval: float = 4.0,
        is_visible: Callable[[], bool] = always_visible,
        sequencer: Optional[RequestSequencer] = None,
    ) -> None:
        self._api = api
        self._store = store
        self._orders_limit = orders_limit
        self._low_stock_threshold = low_stock_threshold
        self._poll_interval = poll_interval
        self._is_visible = is_visible
        self._sequencer = sequencer or RequestSequencer()
        self.orders: List[Order] = []
        self.inventory: List[Product] = []
        self.confirmation = ConfirmationFlow(self._verify_password)

    # ------------------------------------------------------------------
    # Session helpers
    # ------------------------------------------------------------------

    @property
    def role(self) -> Optional[Role]:
        return self._store.state.role

    @property
    def is_operator(self) -> bool:
        return self.role in OPERATOR_ROLES

    @property
    def is_manager(self) -> bool:
        return self.role == Role.MANAGER

    def _token(self) -> str:
        token = self._store.current_token()
        if not token:
            raise AuthRequired("Sign in as staff or manager to continue.")
        return token

    def _require_operator(self) -> None:
        if not self.is_operator:
            raise RoleRequired("Restricted to staff and managers.")

    def _require_manager(self) -> None:
        if not self.is_manager:
            raise RoleRequired("Restricted to managers.")

    def _verify_password(self, password: str) -> None:
        self._api.verify_password(self._token(), password)

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def load_orders(self) -> List[Order]:
        """Reload the order board; a superseded response is discarded."""
        self._require_operator()
        token = self._token()
        seq = self._sequencer.issue(Resource.ORDERS.value)
        orders = self._api.list_orders(token, limit=self._orders_limit)
        if self._sequencer.is_current(Resource.ORDERS.value, seq):
            self.orders = orders
            logger.info("ops.orders_loaded", count=len(orders))
        else:
            logger.info("ops.orders_response_stale", seq=seq)
        return self.orders

    def load_order(self, order_id: str) -> Order:
        self._require_operator()
        return self._api.get_order(self._token(), order_id)

    def board(self) -> Dict[OrderStatus, List[Order]]:
        return group_by_status(self.orders)

    def _find_order(self, order_id: str) -> Optional[Order]:
        for order in self.orders:
            if order.id == str(order_id):
                return order
        return None

    def _apply_status(self, order_id: str, status: OrderStatus) -> None:
        self._api.update_order_status(self._token(), order_id, status.value)
        self.orders = [
            order.model_copy(update={"status": status.value})
            if order.id == str(order_id)
            else order
            for order in self.orders
        ]
        logger.info("ops.order_status_updated", order_id=str(order_id), status=status.value)

    def advance_status(self, order_id: str, status: Any) -> None:
        """Move an order forward along the lifecycle.

        Raises:
            InvalidOrderStatus: unknown target, transition not offered
                from the current status, or a cancellation (which must
                go through ``request_cancel``).
            RoleRequired: the role may not offer this target.
        """
        target = parse_status(status)
        if target is None:
            raise InvalidOrderStatus(f"Unknown order status {status!r}.")
        if target is OrderStatus.CANCELLED:
            raise InvalidOrderStatus("Cancellation requires password confirmation.")
        self._require_operator()
        if not role_may_offer(self.role, target):
            raise RoleRequired(f"Only managers may mark orders as {target.value}.")
        current = self._find_order(order_id)
        if current is not None and not can_transition(current.status, target):
            raise InvalidOrderStatus(
                f"Cannot transition from {current.status} to {target.value}."
            )
        self._apply_status(order_id, target)

    def request_cancel(self, order_id: str) -> PendingAction:
        self._require_manager()
        current = self._find_order(order_id)
        if current is not None and not can_transition(current.status, OrderStatus.CANCELLED):
            raise InvalidOrderStatus(f"Cannot cancel order in status {current.status}.")
        return self.confirmation.request_confirmation(
            f"Cancel order {order_id}",
            lambda: self._apply_status(order_id, OrderStatus.CANCELLED),
        )

    # ------------------------------------------------------------------
    # Inventory / products
    # ------------------------------------------------------------------

    def load_inventory(self) -> List[Product]:
        """Inventory rows for operators, the public catalog otherwise."""
        seq = self._sequencer.issue(Resource.PRODUCTS.value)
        token = self._store.current_token()
        if self.is_operator and token:
            rows = self._api.list_inventory(token)
        else:
            rows = self._api.list_products({"sort": "price_asc"})
        if self._sequencer.is_current(Resource.PRODUCTS.value, seq):
            self.inventory = list(rows)
            logger.info("ops.inventory_loaded", count=len(rows))
        return self.inventory

    def create_product(self, data: Mapping[str, Any]) -> Product:
        self._require_manager()
        product = self._api.create_product(self._token(), data)
        self.load_inventory()
        return product

    def update_product(self, product_id: str, data: Mapping[str, Any]) -> None:
        """Update product fields; ``stock_on_hand`` goes to the inventory endpoint.

        Raises:
            ValidationError: ``stock_on_hand`` is not a whole number >= 0;
                nothing was sent.
        """
        self._require_manager()
        payload = dict(data)
        stock_on_hand = _parse_stock(payload.pop("stock_on_hand", None))
        token = self._token()
        self._api.update_product(token, product_id, payload)
        if stock_on_hand is not None:
            self._api.update_inventory(token, product_id, stock_on_hand)
        self.load_inventory()

    def request_deactivate(self, product_id: str) -> PendingAction:
        self._require_manager()

        def deactivate() -> None:
            self._api.deactivate_product(self._token(), product_id)
            self.load_inventory()

        return self.confirmation.request_confirmation(
            f"Deactivate product {product_id}", deactivate
        )

    def confirm(self, password: str) -> Any:
        return self.confirmation.confirm(password)

    def inventory_kpis(self) -> InventoryKpis:
        stocks = [product.stock for product in self.inventory]
        return InventoryKpis(
            out_of_stock=sum(1 for s in stocks if s <= 0),
            low_stock=sum(1 for s in stocks if 0 < s <= self._low_stock_threshold),
        )

    def filter_inventory(
        self, query: str = "", stock_filter: StockFilter = StockFilter.ALL
    ) -> List[Product]:
        rows = list(self.inventory)
        needle = query.strip().lower()
        if needle:
            rows = [p for p in rows if needle in p.name.lower()]
        stock_filter = StockFilter(stock_filter)
        if stock_filter is StockFilter.LOW:
            rows = [p for p in rows if 0 < p.stock <= self._low_stock_threshold]
        elif stock_filter is StockFilter.OUT:
            rows = [p for p in rows if p.stock <= 0]
        return rows

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def products_poller(self) -> ResourcePoller:
        return ResourcePoller(
            Resource.PRODUCTS.value,
            fetch_marker=lambda: self._api.get_resource_change_marker(Resource.PRODUCTS),
            refetch=self.load_inventory,
            interval=self._poll_interval,
            is_visible=self._is_visible,
        )

    def orders_poller(self) -> ResourcePoller:
        return ResourcePoller(
            Resource.ORDERS.value,
            fetch_marker=lambda: self._api.get_resource_change_marker(
                Resource.ORDERS, self._token()
            ),
            refetch=self.load_orders,
            interval=self._poll_interval,
            is_visible=lambda: self._is_visible()
            and self.is_operator
            and bool(self._store.current_token()),
        )

    def pollers(self) -> List[ResourcePoller]:
        return [self.products_poller(), self.orders_poller()]
