"""Catalog browsing (Use Cases).

Server-side filtering is requested first; the same filters are then
re-applied locally so the list is correct even against backends that
ignore some query parameters.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

import structlog

from ferretex.api.client import FerretexApiClient
from ferretex.api.constants import Resource
from ferretex.api.dtos import Category, Product
from ferretex.catalog.dtos import ALL, ProductQuery
from ferretex.store.constants import SortOrder
from ferretex.store.store import Store
from ferretex.sync.sequencing import RequestSequencer

logger = structlog.get_logger(__name__)

DEFAULT_CATEGORY = "general"

_SORT_KEYS = {
    SortOrder.PRICE_ASC: (lambda p: (p.price, p.name.lower()), False),
    SortOrder.PRICE_DESC: (lambda p: (p.price, p.name.lower()), True),
    SortOrder.NAME_ASC: (lambda p: p.name.lower(), False),
    SortOrder.NAME_DESC: (lambda p: p.name.lower(), True),
}


def sort_products(products: Iterable[Product], order: SortOrder) -> List[Product]:
    key, reverse = _SORT_KEYS[SortOrder(order)]
    return sorted(products, key=key, reverse=reverse)


def filter_products(
    products: Iterable[Product],
    query: ProductQuery,
    default_sort: SortOrder = SortOrder.PRICE_ASC,
) -> List[Product]:
    result = list(products)
    needle = query.q.lower()
    if needle:
        result = [p for p in result if needle in p.name.lower()]
    if query.category not in ("", ALL):
        result = [p for p in result if (p.category or DEFAULT_CATEGORY) == query.category]
    if query.status not in ("", ALL):
        result = [p for p in result if p.status.value == query.status]
    if query.in_stock:
        result = [p for p in result if p.stock > 0]
    if query.min_price is not None:
        result = [p for p in result if p.price >= query.min_price]
    if query.max_price is not None:
        result = [p for p in result if p.price <= query.max_price]
    return sort_products(result, query.sort or default_sort)


class CatalogService:
    """Application service for catalog browsing.

    Receives the API client and the store via constructor injection.
    """

    def __init__(
        self,
        api: FerretexApiClient,
        store: Store,
        sequencer: Optional[RequestSequencer] = None,
    ) -> None:
        self._api = api
        self._store = store
        self._sequencer = sequencer or RequestSequencer()
        self.products: List[Product] = []

    def list_products(self, query: Optional[ProductQuery] = None) -> List[Product]:
        """Fetch, filter and sort the catalog.

        When the query has no sort order the stored preference is used.
        A response overtaken by a newer request is discarded and the
        current list is returned unchanged.
        """
        query = query or ProductQuery()
        sort = query.sort or self._store.state.ui.sort
        seq = self._sequencer.issue(Resource.PRODUCTS.value)
        params = query.model_copy(update={"sort": sort}).to_params()
        fetched = self._api.list_products(params)
        if not self._sequencer.is_current(Resource.PRODUCTS.value, seq):
            logger.info("catalog.response_stale", seq=seq)
            return self.products
        self.products = filter_products(fetched, query, default_sort=sort)
        logger.info("catalog.products_loaded", count=len(self.products))
        return self.products

    def set_sort_order(self, order: SortOrder) -> List[Product]:
        """Persist the preference and re-sort the current list locally."""
        self._store.set_sort_order(order)
        self.products = sort_products(self.products, order)
        return self.products

    def get_product(self, product_id: str) -> Product:
        return self._api.get_product(product_id)

    def list_categories(self) -> List[Category]:
        return self._api.list_categories()

    def add_to_cart(self, product: Product) -> None:
        before = self._store.state.cart.find(product.id)
        state = self._store.add_to_cart(product)
        after = state.cart.find(product.id)
        if after is not None and (before is None or after.quantity > before.quantity):
            self._store.notify(f"{product.name} agregado al carrito.")
