"""Store-level enumerations and messages."""

from enum import Enum


class SortOrder(str, Enum):
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    NAME_ASC = "name_asc"
    NAME_DESC = "name_desc"


class Severity(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


DEFAULT_SORT_ORDER = SortOrder.PRICE_ASC

MAX_STOCK_MESSAGE = "Stock máximo alcanzado para {name}."
