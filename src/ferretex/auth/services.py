"""Authentication and customer session (Use Cases).

Login stores the normalized user and bearer token in the store; logout
performs the store's full session teardown.  The customer's order
history is fetched here too, since it is keyed by the session token.
"""

from __future__ import annotations

from typing import Any, List, Optional

import structlog

from ferretex.api.client import FerretexApiClient
from ferretex.api.constants import Role, STAFF_ROLES
from ferretex.api.dtos import Order, User
from ferretex.api.exceptions import AuthRequired
from ferretex.store.constants import Severity
from ferretex.store.store import Store
from ferretex.sync.sequencing import RequestSequencer

logger = structlog.get_logger(__name__)

MY_ORDERS = "orders:me"


class AuthService:
    """Application service for the session lifecycle.

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

    @property
    def user(self) -> Optional[User]:
        return self._store.state.auth.user

    @property
    def role(self) -> Optional[Role]:
        return self._store.state.role

    @property
    def is_authenticated(self) -> bool:
        return self._store.state.auth.is_authenticated

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES

    @property
    def is_manager(self) -> bool:
        return self.role == Role.MANAGER

    def login(self, email: str, password: str) -> User:
        """Authenticate and open a session.

        Raises:
            AuthFailed: credentials rejected; the store is untouched.
        """
        result = self._api.login(email.strip(), password)
        log = logger.bind(user_id=result.user.id)
        self._store.login(result.token, result.user)
        self._store.notify(f"Bienvenido, {result.user.name or result.user.email}.", Severity.SUCCESS)
        log.info("auth.logged_in", role=result.user.role.value)
        return result.user

    def register(
        self, name: str, email: str, password: str, role: Optional[str] = None
    ) -> Any:
        result = self._api.register(name.strip(), email.strip(), password, role)
        logger.info("auth.registered", role=role)
        return result

    def logout(self) -> None:
        # Invalidate any in-flight history refresh for the old session.
        self._sequencer.issue(MY_ORDERS)
        self._store.logout()
        logger.info("auth.logged_out")

    def refresh_my_orders(self) -> List[Order]:
        """Replace the cached order history with a fresh copy.

        A response overtaken by a newer refresh is dropped.

        Raises:
            AuthRequired: no session token.
        """
        token = self._store.current_token()
        if not token:
            raise AuthRequired("Inicia sesión para ver tus pedidos.")
        seq = self._sequencer.issue(MY_ORDERS)
        orders = self._api.list_my_orders(token)
        if self._sequencer.is_current(MY_ORDERS, seq):
            self._store.cache_my_orders(orders)
        else:
            logger.info("auth.orders_response_stale", seq=seq)
        return list(self._store.state.orders.orders)
