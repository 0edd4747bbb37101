"""Two-phase confirmation for destructive manager actions.

Cancelling an order or deactivating a product requires the manager to
re-enter their password.  The flow is an explicit state machine::

    idle -> awaiting_confirmation -> executing -> idle

``confirm`` first verifies the password against the backend and only
then runs the pending action.  A rejected password sends the flow back
to ``awaiting_confirmation`` so the user can retry; any other failure
of the action itself also keeps it pending.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

import structlog

from ferretex.api.exceptions import AuthFailed
from ferretex.orders.exceptions import ConfirmationError

logger = structlog.get_logger(__name__)


class ConfirmationState(str, Enum):
    IDLE = "idle"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    EXECUTING = "executing"


@dataclass(frozen=True)
class PendingAction:
    description: str
    execute: Callable[[], Any]


class ConfirmationFlow:
    """Receives the password verifier via constructor injection.

    ``verify_password`` is called with the password and must raise
    ``AuthFailed`` when it is rejected.
    """

    def __init__(self, verify_password: Callable[[str], None]) -> None:
        self._verify_password = verify_password
        self._state = ConfirmationState.IDLE
        self._pending: Optional[PendingAction] = None
        self._lock = threading.Lock()

    @property
    def state(self) -> ConfirmationState:
        return self._state

    @property
    def pending(self) -> Optional[PendingAction]:
        return self._pending

    def request_confirmation(
        self, description: str, action: Callable[[], Any]
    ) -> PendingAction:
        with self._lock:
            if self._state is not ConfirmationState.IDLE:
                raise ConfirmationError(
                    f"Another action is {self._state.value.replace('_', ' ')}."
                )
            self._pending = PendingAction(description=description, execute=action)
            self._state = ConfirmationState.AWAITING_CONFIRMATION
        logger.info("confirmation.requested", description=description)
        return self._pending

    def cancel(self) -> None:
        with self._lock:
            if self._state is ConfirmationState.EXECUTING:
                raise ConfirmationError("Cannot cancel an action that is executing.")
            self._pending = None
            self._state = ConfirmationState.IDLE

    def confirm(self, password: str) -> Any:
        """Verify ``password`` then run the pending action.

        Raises:
            ConfirmationError: nothing is awaiting confirmation.
            AuthFailed: the password was rejected (flow stays pending).
        """
        with self._lock:
            if self._state is not ConfirmationState.AWAITING_CONFIRMATION:
                raise ConfirmationError("No action is awaiting confirmation.")
            pending = self._pending
            self._state = ConfirmationState.EXECUTING

        log = logger.bind(description=pending.description)
        try:
            self._verify_password(password)
            result = pending.execute()
        except AuthFailed:
            log.warning("confirmation.password_rejected")
            self._state = ConfirmationState.AWAITING_CONFIRMATION
            raise
        except Exception:
            log.warning("confirmation.action_failed")
            self._state = ConfirmationState.AWAITING_CONFIRMATION
            raise

        with self._lock:
            self._pending = None
            self._state = ConfirmationState.IDLE
        log.info("confirmation.executed")
        return result
