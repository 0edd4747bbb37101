"""Persisted application store.

One ``Store`` instance is built by the composition root and passed by
reference to every consumer.  All mutation goes through ``dispatch``:
the reducer runs, the snapshot is written, and only then does the new
state become visible.  A re-entrant lock serializes dispatches, so the
polling threads and the view never observe a torn state.
"""

from __future__ import annotations

import threading
from typing import Iterable, List, Optional, Type

import structlog

from ferretex.api.dtos import Order, Product, User
from ferretex.config import settings
from ferretex.shared.domain.bus import IEventBus, IEventHandler
from ferretex.shared.domain.events import DomainEvent
from ferretex.shared.infrastructure.bus import InMemoryEventBus
from ferretex.store.actions import (
    Action,
    AddToCart,
    CacheMyOrders,
    ClearCart,
    DecrementQuantity,
    DismissNotification,
    IncrementQuantity,
    Login,
    Logout,
    Notify,
    RemoveFromCart,
    ResetPersistence,
    SetSortOrder,
)
from ferretex.store.constants import Severity, SortOrder
from ferretex.store.events import NotificationRaised, SessionEnded, StateChanged
from ferretex.store.persistence import load_state, save_state
from ferretex.store.reducer import reduce
from ferretex.store.repositories.interfaces import IKeyValueStorage
from ferretex.store.state import AppState

logger = structlog.get_logger(__name__)


class Store:
    """Single owner of the client-side state.

    Receives its storage and event bus via constructor injection.
    """

    def __init__(
        self,
        storage: IKeyValueStorage,
        bus: Optional[IEventBus] = None,
        storage_key: str = settings.STORAGE_KEY,
        token_key: str = settings.TOKEN_KEY,
    ) -> None:
        self._storage = storage
        self._bus = bus if bus is not None else InMemoryEventBus()
        self._storage_key = storage_key
        self._token_key = token_key
        self._lock = threading.RLock()
        self._state = load_state(storage, storage_key)
        logger.info(
            "store.loaded",
            authenticated=self._state.auth.is_authenticated,
            cart_lines=len(self._state.cart.items),
        )

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def bus(self) -> IEventBus:
        return self._bus

    def current_token(self) -> Optional[str]:
        return self._state.auth.token if self._state.auth.is_authenticated else None

    def subscribe(self, event_class: Type[DomainEvent], handler: IEventHandler) -> None:
        self._bus.subscribe(event_class, handler)

    def unsubscribe(self, event_class: Type[DomainEvent], handler: IEventHandler) -> None:
        self._bus.unsubscribe(event_class, handler)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, action: Action) -> AppState:
        """Apply ``action`` atomically and persist the result.

        Raises whatever the storage raises on a failed write; in that
        case the in-memory state is left unchanged.
        """
        with self._lock:
            previous = self._state
            new_state = reduce(previous, action)
            self._persist(action, new_state)
            self._state = new_state
            events = self._events_for(action, previous, new_state)

        logger.debug("store.action_applied", action=action.name)
        for event in events:
            self._bus.publish(event)
        return new_state

    def _persist(self, action: Action, state: AppState) -> None:
        if isinstance(action, ResetPersistence):
            self._storage.remove(self._storage_key)
            self._storage.remove(self._token_key)
            return
        if isinstance(action, Login):
            # Token first: a failed write must not leave a logged-in snapshot.
            self._storage.set(self._token_key, action.token)
            try:
                save_state(self._storage, self._storage_key, state)
            except Exception:
                self._storage.remove(self._token_key)
                raise
            return
        save_state(self._storage, self._storage_key, state)
        if isinstance(action, Logout):
            self._storage.remove(self._token_key)

    def _events_for(
        self, action: Action, previous: AppState, state: AppState
    ) -> List[DomainEvent]:
        events: List[DomainEvent] = []
        notification = state.ui.notification
        if notification.visible and notification.id != previous.ui.notification.id:
            events.append(
                NotificationRaised(message=notification.message, severity=notification.severity)
            )
        if isinstance(action, Logout):
            events.append(SessionEnded(reason="logout"))
        elif isinstance(action, ResetPersistence):
            events.append(SessionEnded(reason="reset"))
        events.append(StateChanged(action_name=action.name))
        return events

    # ------------------------------------------------------------------
    # Named operations
    # ------------------------------------------------------------------

    def login(self, token: str, user: User) -> AppState:
        return self.dispatch(Login(token=token, user=user))

    def logout(self) -> AppState:
        return self.dispatch(Logout())

    def add_to_cart(self, product: Product) -> AppState:
        return self.dispatch(AddToCart(product=product))

    def increment_quantity(self, product_id: str) -> AppState:
        return self.dispatch(IncrementQuantity(product_id=str(product_id)))

    def decrement_quantity(self, product_id: str) -> AppState:
        return self.dispatch(DecrementQuantity(product_id=str(product_id)))

    def remove_from_cart(self, product_id: str) -> AppState:
        return self.dispatch(RemoveFromCart(product_id=str(product_id)))

    def clear_cart(self) -> AppState:
        return self.dispatch(ClearCart())

    def set_sort_order(self, order: SortOrder) -> AppState:
        return self.dispatch(SetSortOrder(order=SortOrder(order)))

    def notify(self, message: str, severity: Severity = Severity.INFO) -> AppState:
        return self.dispatch(Notify(message=message, severity=Severity(severity)))

    def dismiss_notification(self) -> AppState:
        return self.dispatch(DismissNotification())

    def cache_my_orders(self, orders: Iterable[Order]) -> AppState:
        return self.dispatch(CacheMyOrders(orders=tuple(orders)))

    def reset_persistence(self) -> AppState:
        logger.warning("store.persistence_reset")
        return self.dispatch(ResetPersistence())
