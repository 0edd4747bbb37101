"""Order lifecycle and staff-panel exceptions."""

from __future__ import annotations


class InvalidOrderStatus(Exception):
    """The requested transition is not offered from the current status."""


class RoleRequired(Exception):
    """The signed-in role may not perform this action (advisory gating)."""


class ConfirmationError(Exception):
    """A two-phase confirmation was used out of order."""
