"""Ferretex storefront client.

Client-side state, remote API access and change polling for the
Ferretex hardware-store backend.  Build everything through
``ferretex.container.build_storefront``.
"""

__version__ = "1.0.0"
