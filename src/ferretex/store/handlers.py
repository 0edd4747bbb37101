"""Event handlers for store domain events."""

from __future__ import annotations

import structlog

from ferretex.shared.domain.bus import IEventHandler
from ferretex.store.constants import Severity
from ferretex.store.events import NotificationRaised, SessionEnded

logger = structlog.get_logger(__name__)


class NotificationLogHandler(IEventHandler[NotificationRaised]):
    def handle(self, event: NotificationRaised) -> None:
        log = logger.warning if event.severity in (Severity.WARNING, Severity.ERROR) else logger.info
        log(
            f"Notification shown: {event.message}",
            severity=event.severity.value,
        )


class SessionEndedHandler(IEventHandler[SessionEnded]):
    def handle(self, event: SessionEnded) -> None:
        logger.info(f"Session ended ({event.reason})", reason=event.reason)


notification_log_handler = NotificationLogHandler()
session_ended_handler = SessionEndedHandler()
