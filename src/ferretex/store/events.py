"""Domain events published by the store."""

from __future__ import annotations

from dataclasses import dataclass

from ferretex.shared.domain.events import DomainEvent
from ferretex.store.constants import Severity


@dataclass(frozen=True)
class StateChanged(DomainEvent):
    """Raised after every dispatched action; views re-render on it."""

    action_name: str


@dataclass(frozen=True)
class NotificationRaised(DomainEvent):
    """Raised once per new notification banner."""

    message: str
    severity: Severity


@dataclass(frozen=True)
class SessionEnded(DomainEvent):
    """Raised on logout and on a persistence reset."""

    reason: str
