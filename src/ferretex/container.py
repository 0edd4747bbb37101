"""Composition root.

``build_storefront`` constructs the single store, the API client and
every service once, wiring them together by reference.  Views receive
the resulting ``Storefront`` instead of reaching for ambient globals.

Usage:
    storefront = build_storefront()
    storefront.auth.login("ana@ferretex.cl", "secret")
    storefront.catalog.list_products()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional

import requests
import structlog

from ferretex.api.client import FerretexApiClient
from ferretex.auth.services import AuthService
from ferretex.catalog.services import CatalogService
from ferretex.checkout.services import CheckoutService
from ferretex.config import settings
from ferretex.orders.services import OperationsService
from ferretex.shared.infrastructure.bus import InMemoryEventBus
from ferretex.store.events import NotificationRaised, SessionEnded
from ferretex.store.handlers import notification_log_handler, session_ended_handler
from ferretex.store.repositories import IKeyValueStorage, JsonFileStorage
from ferretex.store.store import Store
from ferretex.sync.poller import ResourcePoller, always_visible

logger = structlog.get_logger(__name__)


@dataclass
class Storefront:
    api: FerretexApiClient
    store: Store
    bus: InMemoryEventBus
    auth: AuthService
    catalog: CatalogService
    checkout: CheckoutService
    operations: OperationsService
    pollers: List[ResourcePoller] = field(default_factory=list)

    def start_polling(self) -> None:
        """Start the products/orders change pollers (staff panel)."""
        if not self.pollers:
            self.pollers = self.operations.pollers()
        for poller in self.pollers:
            poller.start()

    def stop_polling(self) -> None:
        for poller in self.pollers:
            poller.stop()


def build_storefront(
    storage: Optional[IKeyValueStorage] = None,
    session: Optional[requests.Session] = None,
    is_visible: Callable[[], bool] = always_visible,
    api_url: Optional[str] = None,
    configure_logging: bool = False,
) -> Storefront:
    if configure_logging:
        settings.configure_logging()

    bus = InMemoryEventBus()
    bus.subscribe(NotificationRaised, notification_log_handler)
    bus.subscribe(SessionEnded, session_ended_handler)

    store = Store(
        storage if storage is not None else JsonFileStorage(settings.STORAGE_PATH),
        bus=bus,
    )
    api = FerretexApiClient(
        api_url or settings.API_URL,
        timeout=settings.REQUEST_TIMEOUT,
        session=session,
    )
    auth = AuthService(api, store)
    storefront = Storefront(
        api=api,
        store=store,
        bus=bus,
        auth=auth,
        catalog=CatalogService(api, store),
        checkout=CheckoutService(api, store, auth=auth),
        operations=OperationsService(
            api,
            store,
            orders_limit=settings.ORDERS_LIST_LIMIT,
            low_stock_threshold=settings.LOW_STOCK_THRESHOLD,
            poll_interval=settings.POLL_INTERVAL_SECONDS,
            is_visible=is_visible,
        ),
    )
    logger.info("storefront.built", api_url=api.base_url)
    return storefront
