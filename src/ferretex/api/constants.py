"""Canonical enumerations shared by the API client and the store."""

from enum import Enum


class Role(str, Enum):
    CUSTOMER = "customer"
    STAFF = "staff"
    MANAGER = "manager"


class ProductStatus(str, Enum):
    NONE = "none"
    NEW = "new"
    OFFER = "offer"


class DeliveryMode(str, Enum):
    PICKUP = "pickup"
    DELIVERY = "delivery"


class Resource(str, Enum):
    """Resources exposing a ``/meta`` change marker."""

    PRODUCTS = "products"
    ORDERS = "orders"


STAFF_ROLES: frozenset[Role] = frozenset({Role.STAFF, Role.MANAGER})
