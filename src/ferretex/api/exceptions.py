"""Remote API exceptions.

Raised by ``FerretexApiClient``.  View-facing services let them
propagate so the initiating view can render ``str(exc)``; background
polling catches ``ApiError`` and only logs it.
"""

from __future__ import annotations

from typing import Any


class ApiError(Exception):
    """Base class for every failure talking to the backend."""


class AuthRequired(ApiError):
    """An authenticated endpoint was called without a bearer token."""


class NetworkError(ApiError):
    """The request never produced an HTTP response (DNS, refused, timeout)."""


class HttpError(ApiError):
    """The backend answered with a non-2xx status."""

    def __init__(self, message: str, status: int, payload: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.payload = payload


class AuthFailed(HttpError):
    """Credentials were rejected (login or password re-verification)."""


class NotFound(HttpError):
    """The requested product or order does not exist."""
