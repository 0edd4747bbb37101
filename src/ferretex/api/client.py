"""HTTP client for the Ferretex backend.

Thin, stateless wrapper around ``requests``: one method per endpoint,
responses normalized into ``ferretex.api.dtos`` records, failures raised
as ``ferretex.api.exceptions``.  No caching happens here; the store owns
all client-side state.
"""

from __future__ import annotations

import json
import time
import uuid
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import quote

import requests
import structlog

from ferretex.api.constants import Resource
from ferretex.api.dtos import (
    Category,
    ChangeMarker,
    InventoryRow,
    LoginResult,
    Order,
    Product,
)
from ferretex.api.exceptions import (
    AuthFailed,
    AuthRequired,
    HttpError,
    NetworkError,
    NotFound,
)
from ferretex.api.normalization import (
    normalize_category,
    normalize_inventory_row,
    normalize_many,
    normalize_marker,
    normalize_order,
    normalize_product,
    normalize_user,
    present_params,
)

logger = structlog.get_logger(__name__)

PRODUCT_FILTER_PARAMS = {
    "q": "q",
    "category": "cat",
    "cat": "cat",
    "status": "status",
    "sort": "sort",
    "in_stock": "inStock",
    "inStock": "inStock",
    "min_price": "minPrice",
    "minPrice": "minPrice",
    "max_price": "maxPrice",
    "maxPrice": "maxPrice",
}


def parse_payload(response: requests.Response) -> Any:
    """Decode a response body: JSON when possible, raw text otherwise."""
    text = response.text
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return text


def error_message(payload: Any, fallback: str) -> str:
    if not payload:
        return fallback
    if isinstance(payload, str):
        return payload
    if isinstance(payload, Mapping):
        return str(payload.get("message") or payload.get("error") or fallback)
    return fallback


def _segment(value: Any) -> str:
    return quote(str(value), safe="")


class FerretexApiClient:
    """Client for the Ferretex REST API.

    ``session`` may be injected (tests, connection pooling shared with
    other components); otherwise one is created per client.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        *,
        token: Optional[str] = None,
        body: Any = None,
        params: Optional[Dict[str, str]] = None,
        require_token: bool = False,
        not_found: bool = False,
        auth_failure: bool = False,
    ) -> Any:
        if require_token and not token:
            raise AuthRequired(f"{method} {path} requires an authenticated session.")

        request_id = str(uuid.uuid4())
        headers = {
            "Content-Type": "application/json; charset=utf-8",
            "Accept": "application/json",
            "X-Request-ID": request_id,
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"

        with structlog.contextvars.bound_contextvars(correlation_id=request_id):
            logger.debug("api.request_started", method=method, path=path)
            start = time.monotonic()
            try:
                response = self._session.request(
                    method,
                    f"{self.base_url}{path}",
                    headers=headers,
                    params=params or None,
                    data=json.dumps(body) if body is not None else None,
                    timeout=self.timeout,
                )
            except requests.RequestException as exc:
                logger.warning(
                    "api.request_failed", method=method, path=path, error=str(exc)
                )
                raise NetworkError(f"Could not reach the server: {exc}") from exc

            payload = parse_payload(response)
            logger.info(
                "api.request_finished",
                method=method,
                path=path,
                status_code=response.status_code,
                duration_ms=round((time.monotonic() - start) * 1000, 2),
            )

        if not response.ok:
            message = error_message(payload, f"HTTP {response.status_code}")
            error_class = HttpError
            if auth_failure:
                error_class = AuthFailed
            elif not_found and response.status_code == 404:
                error_class = NotFound
            raise error_class(message, status=response.status_code, payload=payload)

        return payload

    # ------------------------------------------------------------------
    # Health / auth
    # ------------------------------------------------------------------

    def health(self) -> Any:
        return self._request("GET", "/api/health")

    def login(self, email: str, password: str) -> LoginResult:
        """Authenticate and return the bearer token plus normalized user.

        Raises:
            AuthFailed: any non-2xx answer, or a 2xx without token/user.
        """
        payload = self._request(
            "POST",
            "/api/auth/login",
            body={"email": email, "password": password},
            auth_failure=True,
        )
        data = payload if isinstance(payload, Mapping) else {}
        token = data.get("token")
        user = normalize_user(data.get("user"))
        if not token or user is None:
            raise AuthFailed("Login response missing token or user.", status=200, payload=payload)
        return LoginResult(token=str(token), user=user)

    def register(
        self, name: str, email: str, password: str, role: Optional[str] = None
    ) -> Any:
        body = {"name": name, "email": email, "password": password}
        if role:
            body["role"] = role
        return self._request("POST", "/api/auth/register", body=body)

    def verify_password(self, token: str, password: str) -> None:
        self._request(
            "POST",
            "/api/auth/verify-password",
            token=token,
            body={"password": password},
            require_token=True,
            auth_failure=True,
        )

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def list_products(self, filters: Optional[Mapping[str, Any]] = None) -> List[Product]:
        params = {}
        for key, value in (filters or {}).items():
            name = PRODUCT_FILTER_PARAMS.get(key)
            if name is None:
                continue
            if name == "inStock" and value is False:
                continue
            params[name] = value
        payload = self._request("GET", "/api/products", params=present_params(params))
        return normalize_many(payload, normalize_product)

    def get_product(self, product_id: Any) -> Product:
        payload = self._request(
            "GET", f"/api/products/{_segment(product_id)}", not_found=True
        )
        if not payload:
            raise NotFound(f"Product {product_id} not found.", status=404, payload=payload)
        return normalize_product(payload)

    def create_product(self, token: str, data: Mapping[str, Any]) -> Product:
        payload = self._request(
            "POST", "/api/products", token=token, body=dict(data), require_token=True
        )
        return normalize_product(payload)

    def update_product(
        self, token: str, product_id: Any, data: Mapping[str, Any]
    ) -> Product:
        payload = self._request(
            "PATCH",
            f"/api/products/{_segment(product_id)}",
            token=token,
            body=dict(data),
            require_token=True,
            not_found=True,
        )
        return normalize_product(payload)

    def deactivate_product(self, token: str, product_id: Any) -> None:
        self._request(
            "PATCH",
            f"/api/products/{_segment(product_id)}/deactivate",
            token=token,
            require_token=True,
            not_found=True,
        )

    def list_categories(self) -> List[Category]:
        payload = self._request("GET", "/api/categories")
        return normalize_many(payload, normalize_category)

    # ------------------------------------------------------------------
    # Inventory (staff / manager)
    # ------------------------------------------------------------------

    def list_inventory(self, token: str) -> List[InventoryRow]:
        payload = self._request("GET", "/api/inventory", token=token, require_token=True)
        return normalize_many(payload, normalize_inventory_row)

    def update_inventory(self, token: str, product_id: Any, stock_on_hand: int) -> None:
        self._request(
            "PATCH",
            f"/api/inventory/{_segment(product_id)}",
            token=token,
            body={"stock_on_hand": stock_on_hand},
            require_token=True,
            not_found=True,
        )

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def create_order(self, token: str, payload: Mapping[str, Any]) -> Order:
        result = self._request(
            "POST", "/api/orders", token=token, body=dict(payload), require_token=True
        )
        return normalize_order(result)

    def list_my_orders(self, token: str) -> List[Order]:
        payload = self._request("GET", "/api/orders/me", token=token, require_token=True)
        return normalize_many(payload, normalize_order)

    def list_orders(self, token: str, limit: Optional[int] = None) -> List[Order]:
        payload = self._request(
            "GET",
            "/api/orders",
            token=token,
            params=present_params({"limit": limit}),
            require_token=True,
        )
        return normalize_many(payload, normalize_order)

    def get_order(self, token: str, order_id: Any) -> Order:
        payload = self._request(
            "GET",
            f"/api/orders/{_segment(order_id)}",
            token=token,
            require_token=True,
            not_found=True,
        )
        return normalize_order(payload)

    def update_order_status(self, token: str, order_id: Any, status: str) -> None:
        self._request(
            "PATCH",
            f"/api/orders/{_segment(order_id)}/status",
            token=token,
            body={"status": getattr(status, "value", status)},
            require_token=True,
            not_found=True,
        )

    # ------------------------------------------------------------------
    # Change markers
    # ------------------------------------------------------------------

    def get_resource_change_marker(
        self, resource: str, token: Optional[str] = None
    ) -> ChangeMarker:
        """Fetch the cheap ``/meta`` staleness marker for a resource.

        The orders marker is private to staff and requires a token; the
        products marker is public.
        """
        try:
            resource = Resource(resource)
        except ValueError:
            raise ValueError(f"Unknown resource {resource!r}.") from None
        payload = self._request(
            "GET",
            f"/api/{resource.value}/meta",
            token=token,
            require_token=resource is Resource.ORDERS,
        )
        return normalize_marker(payload)
