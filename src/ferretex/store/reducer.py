"""Pure state transitions.

``reduce(state, action)`` never mutates its input and never performs
I/O; persistence and event publication belong to ``Store.dispatch``.
"""

from __future__ import annotations

from functools import singledispatch

import structlog

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
from ferretex.store.constants import MAX_STOCK_MESSAGE, Severity, SortOrder
from ferretex.store.state import (
    AppState,
    Cart,
    CartLine,
    Notification,
    OrderCache,
    Session,
    base_state,
)

logger = structlog.get_logger(__name__)


def _with_cart(state: AppState, items) -> AppState:
    return state.model_copy(update={"cart": Cart(items=list(items))})


def _with_notification(state: AppState, message: str, severity: Severity) -> AppState:
    notification = Notification(visible=True, message=message, severity=severity)
    ui = state.ui.model_copy(update={"notification": notification})
    return state.model_copy(update={"ui": ui})


def _max_stock(state: AppState, product_id: str, name: str, stock_cap) -> AppState:
    logger.info("cart.stock_cap_reached", product_id=product_id, stock_cap=stock_cap)
    return _with_notification(
        state, MAX_STOCK_MESSAGE.format(name=name or product_id), Severity.WARNING
    )


def _increment(state: AppState, product_id: str) -> AppState:
    line = state.cart.find(product_id)
    if line is None:
        return state
    if not line.can_increment():
        return _max_stock(state, line.product_id, line.name, line.stock_cap)
    items = [
        x.model_copy(update={"quantity": x.quantity + 1}) if x.product_id == product_id else x
        for x in state.cart.items
    ]
    return _with_cart(state, items)


@singledispatch
def _apply(action: Action, state: AppState) -> AppState:
    """Unknown actions leave the state untouched."""
    logger.warning("store.unknown_action", action=type(action).__name__)
    return state


@_apply.register
def _(action: Login, state: AppState) -> AppState:
    return state.model_copy(update={"auth": Session(token=action.token, user=action.user)})


@_apply.register
def _(action: Logout, state: AppState) -> AppState:
    return state.model_copy(
        update={"auth": Session(), "cart": Cart(), "orders": OrderCache()}
    )


@_apply.register
def _(action: AddToCart, state: AppState) -> AppState:
    product = action.product
    if state.cart.find(product.id) is not None:
        return _increment(state, product.id)
    if product.stock <= 0:
        return _max_stock(state, product.id, product.name, product.stock)
    line = CartLine(
        product_id=product.id,
        name=product.name,
        unit_price=product.price,
        quantity=1,
        stock_cap=product.stock,
        image_url=product.image_url,
    )
    return _with_cart(state, [*state.cart.items, line])


@_apply.register
def _(action: IncrementQuantity, state: AppState) -> AppState:
    return _increment(state, action.product_id)


@_apply.register
def _(action: DecrementQuantity, state: AppState) -> AppState:
    items = []
    for line in state.cart.items:
        if line.product_id != action.product_id:
            items.append(line)
        elif line.quantity > 1:
            items.append(line.model_copy(update={"quantity": line.quantity - 1}))
    return _with_cart(state, items)


@_apply.register
def _(action: RemoveFromCart, state: AppState) -> AppState:
    return _with_cart(
        state, [x for x in state.cart.items if x.product_id != action.product_id]
    )


@_apply.register
def _(action: ClearCart, state: AppState) -> AppState:
    return _with_cart(state, [])


@_apply.register
def _(action: SetSortOrder, state: AppState) -> AppState:
    ui = state.ui.model_copy(update={"sort": SortOrder(action.order)})
    return state.model_copy(update={"ui": ui})


@_apply.register
def _(action: Notify, state: AppState) -> AppState:
    return _with_notification(state, action.message, Severity(action.severity))


@_apply.register
def _(action: DismissNotification, state: AppState) -> AppState:
    hidden = state.ui.notification.model_copy(update={"visible": False})
    ui = state.ui.model_copy(update={"notification": hidden})
    return state.model_copy(update={"ui": ui})


@_apply.register
def _(action: CacheMyOrders, state: AppState) -> AppState:
    return state.model_copy(update={"orders": OrderCache(orders=list(action.orders))})


@_apply.register
def _(action: ResetPersistence, state: AppState) -> AppState:
    return base_state()


def reduce(state: AppState, action: Action) -> AppState:
    """Apply ``action`` to ``state`` and return the resulting state."""
    return _apply(action, state)
