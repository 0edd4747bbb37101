"""Snapshot (de)serialization for the store.

The persisted blob is one JSON document ``{auth, cart, ui, orders}``
stored under a single namespaced key.  The notification banner is
session-transient and never written.

Loading never raises: an absent, unparsable or malformed blob is a cold
start, and each section falls back to its base value independently.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Mapping, Optional, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from ferretex.store.constants import DEFAULT_SORT_ORDER, SortOrder
from ferretex.store.repositories.interfaces import IKeyValueStorage
from ferretex.store.state import (
    AppState,
    Cart,
    CartLine,
    OrderCache,
    Session,
    UiPreferences,
    base_state,
)

logger = structlog.get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


def sanitize_session(session: Session) -> Session:
    """Downgrade a session that lacks either token or user.

    Idempotent: a sanitized session is a fixed point.
    """
    if session.token and session.user is not None:
        return session
    return Session()


def serialize_state(state: AppState) -> str:
    payload = {
        "auth": state.auth.model_dump(mode="json"),
        "cart": state.cart.model_dump(mode="json"),
        "ui": {"sort": state.ui.sort.value},
        "orders": state.orders.model_dump(mode="json"),
    }
    return json.dumps(payload, ensure_ascii=False)


def _section(
    parsed: Mapping[str, Any], name: str, build: Callable[[Any], M], default: Callable[[], M]
) -> M:
    raw = parsed.get(name)
    if raw is None:
        return default()
    try:
        return build(raw)
    except (ValidationError, TypeError, ValueError):
        logger.warning("store.snapshot_section_invalid", section=name)
        return default()


def _build_cart(raw: Any) -> Cart:
    if not isinstance(raw, Mapping):
        raise TypeError("cart section must be an object")
    lines = []
    seen = set()
    for entry in raw.get("items") or []:
        try:
            line = CartLine.model_validate(entry)
        except ValidationError:
            logger.warning("store.snapshot_cart_line_dropped")
            continue
        # First line wins; later duplicates of a product are dropped.
        if line.product_id in seen:
            logger.warning("store.snapshot_cart_line_duplicate", product_id=line.product_id)
            continue
        seen.add(line.product_id)
        lines.append(line)
    return Cart(items=lines)


def _build_ui(raw: Any) -> UiPreferences:
    if not isinstance(raw, Mapping):
        raise TypeError("ui section must be an object")
    try:
        sort = SortOrder(raw.get("sort", DEFAULT_SORT_ORDER))
    except ValueError:
        sort = DEFAULT_SORT_ORDER
    return UiPreferences(sort=sort)


def deserialize_state(raw: Optional[str]) -> AppState:
    """Rebuild an ``AppState`` from a persisted blob.

    Session sanitization runs on every load, not only when values are
    literally absent.
    """
    if not raw:
        return base_state()
    try:
        parsed = json.loads(raw)
    except ValueError:
        logger.warning("store.snapshot_corrupt")
        return base_state()
    if not isinstance(parsed, Mapping):
        logger.warning("store.snapshot_corrupt")
        return base_state()

    auth = _section(parsed, "auth", Session.model_validate, Session)
    return AppState(
        auth=sanitize_session(auth),
        cart=_section(parsed, "cart", _build_cart, Cart),
        ui=_section(parsed, "ui", _build_ui, UiPreferences),
        orders=_section(parsed, "orders", OrderCache.model_validate, OrderCache),
    )


def load_state(storage: IKeyValueStorage, key: str) -> AppState:
    try:
        raw = storage.get(key)
    except OSError:
        logger.warning("store.snapshot_unreadable", key=key)
        return base_state()
    return deserialize_state(raw)


def save_state(storage: IKeyValueStorage, key: str, state: AppState) -> None:
    storage.set(key, serialize_state(state))
