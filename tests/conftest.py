import json
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Tuple
from unittest.mock import MagicMock

import pytest

from ferretex.api.client import FerretexApiClient
from ferretex.api.constants import ProductStatus, Role
from ferretex.api.dtos import Product, User
from ferretex.shared.infrastructure.bus import InMemoryEventBus
from ferretex.store.repositories import InMemoryStorage
from ferretex.store.store import Store


@dataclass
class StubResponse:
    """Minimal stand-in for ``requests.Response``."""

    status_code: int = 200
    text: str = ""

    @property
    def ok(self) -> bool:
        return self.status_code < 400


def json_response(payload: Any, status_code: int = 200) -> StubResponse:
    return StubResponse(status_code=status_code, text=json.dumps(payload))


@dataclass
class RecordingHandler:
    """Event handler that remembers every event it receives."""

    events: List[Any] = field(default_factory=list)

    def handle(self, event) -> None:
        self.events.append(event)


@dataclass
class RoutedSession:
    """Fake ``requests.Session`` answering by (method, path).

    ``routes`` maps ``("GET", "/api/products")`` to a response or to a
    callable receiving the request kwargs.
    """

    base_url: str = "http://api.test"
    routes: Dict[Tuple[str, str], Any] = field(default_factory=dict)
    calls: List[Dict[str, Any]] = field(default_factory=list)

    def request(self, method, url, **kwargs):
        path = url[len(self.base_url):]
        self.calls.append({"method": method, "path": path, **kwargs})
        route = self.routes.get((method, path))
        if route is None:
            return json_response({"message": "Not found"}, status_code=404)
        if callable(route):
            return route(**kwargs)
        return route

    def paths(self) -> List[Tuple[str, str]]:
        return [(call["method"], call["path"]) for call in self.calls]


def make_product(
    product_id: str = "p1",
    name: str = "Martillo",
    price: str = "100",
    stock: int = 3,
    category=None,
    status: ProductStatus = ProductStatus.NONE,
) -> Product:
    return Product(
        id=product_id,
        name=name,
        price=Decimal(price),
        stock=stock,
        category=category,
        status=status,
    )


def make_user(role: Role = Role.CUSTOMER, email: str = "ana@ferretex.cl") -> User:
    return User(id="u1", name="Ana", email=email, role=role)


@pytest.fixture()
def storage():
    return InMemoryStorage()


@pytest.fixture()
def bus():
    return InMemoryEventBus()


@pytest.fixture()
def store(storage, bus):
    return Store(storage, bus=bus)


@pytest.fixture()
def api():
    """API client mock; every endpoint is a ``MagicMock``."""
    return MagicMock(spec=FerretexApiClient)


@pytest.fixture()
def customer_store(store):
    store.login("tok-customer", make_user(Role.CUSTOMER))
    return store


@pytest.fixture()
def staff_store(store):
    store.login("tok-staff", make_user(Role.STAFF, "staff@ferretex.cl"))
    return store


@pytest.fixture()
def manager_store(store):
    store.login("tok-manager", make_user(Role.MANAGER, "jefe@ferretex.cl"))
    return store
