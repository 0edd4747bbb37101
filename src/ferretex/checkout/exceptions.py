"""Checkout exceptions."""

from __future__ import annotations

from typing import Dict


class ValidationError(Exception):
    """Client-side form guard failed; nothing was sent to the backend.

    ``errors`` maps field names to human-readable messages.
    """

    def __init__(self, errors: Dict[str, str]) -> None:
        self.errors = dict(errors)
        super().__init__("; ".join(self.errors.values()))
