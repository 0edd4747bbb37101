"""Change-marker polling.

Each resource (products, orders) gets its own ``ResourcePoller`` with
its own marker and timer.  The poller asks the backend for a cheap
"last changed" marker and triggers a full refetch only when the marker
moves, which avoids redundant reloads and UI flicker.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional

import structlog

from ferretex.api.dtos import ChangeMarker
from ferretex.api.exceptions import ApiError

logger = structlog.get_logger(__name__)


def always_visible() -> bool:
    return True


class ResourcePoller:
    """Poll one resource's change marker and refetch on change.

    ``fetch_marker`` returns a ``ChangeMarker``; ``refetch`` performs the
    full reload and feeds the result into the store (or a view model).
    ``is_visible`` lets the host skip ticks while backgrounded.
    """

    def __init__(
        self,
        name: str,
        fetch_marker: Callable[[], ChangeMarker],
        refetch: Callable[[], Any],
        interval: float,
        is_visible: Callable[[], bool] = always_visible,
    ) -> None:
        self.name = name
        self.interval = interval
        self._fetch_marker = fetch_marker
        self._refetch = refetch
        self._is_visible = is_visible
        self._last_marker: Optional[str] = None
        self._busy = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._log = logger.bind(resource=name)

    @property
    def last_marker(self) -> Optional[str]:
        return self._last_marker

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # ------------------------------------------------------------------
    # Fetch paths
    # ------------------------------------------------------------------

    def refresh(self) -> bool:
        """Run the full refetch unless one is already in flight.

        This is the explicit path: errors propagate to the caller.
        Returns ``False`` when skipped by the busy guard.
        """
        if not self._busy.acquire(blocking=False):
            self._log.info("sync.refetch_skipped_busy")
            return False
        try:
            self._refetch()
        finally:
            self._busy.release()
        return True

    def tick(self) -> bool:
        """One polling step.  Returns whether a refetch ran.

        Never raises: API failures are logged and swallowed so transient
        network blips never reach the user.
        """
        if not self._is_visible():
            return False
        try:
            marker = self._fetch_marker().last_changed
            if marker is None:
                return False
            if self._last_marker is None:
                self._last_marker = marker
                self._log.debug("sync.marker_recorded", marker=marker)
                return False
            if marker == self._last_marker:
                return False
            self._log.info(
                "sync.marker_changed", previous=self._last_marker, marker=marker
            )
            self._last_marker = marker
            return self.refresh()
        except ApiError as exc:
            self._log.warning("sync.poll_failed", error=str(exc))
            return False
        except Exception:
            self._log.exception("sync.poll_crashed")
            return False

    def reset(self) -> None:
        """Forget the recorded marker (e.g. after the session changes)."""
        self._last_marker = None

    # ------------------------------------------------------------------
    # Timer
    # ------------------------------------------------------------------

    def _run(self) -> None:
        self.tick()
        while not self._stop.wait(self.interval):
            self.tick()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name=f"poller-{self.name}", daemon=True
        )
        self._thread.start()
        self._log.info("sync.poller_started", interval=self.interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._log.info("sync.poller_stopped")
