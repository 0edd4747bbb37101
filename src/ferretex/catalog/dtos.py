"""Catalog query DTO.

``ProductQuery`` carries the catalog filters as the view collects them
and translates them into backend query parameters.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from ferretex.api.normalization import present_params
from ferretex.store.constants import SortOrder

ALL = "all"


class ProductQuery(BaseModel):
    """Immutable catalog filter set.

    Validates:
    - ``min_price`` / ``max_price`` are non-negative.
    - ``min_price`` does not exceed ``max_price``.
    """

    model_config = ConfigDict(frozen=True)

    q: str = ""
    category: str = ALL
    status: str = ALL
    sort: Optional[SortOrder] = None
    in_stock: bool = False
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None

    @field_validator("q", "category", "status")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return (v or "").strip()

    @field_validator("min_price", "max_price")
    @classmethod
    def price_must_be_non_negative(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and v < 0:
            raise ValueError("Price bounds cannot be negative.")
        return v

    @model_validator(mode="after")
    def bounds_in_order(self):
        if (
            self.min_price is not None
            and self.max_price is not None
            and self.min_price > self.max_price
        ):
            raise ValueError("Minimum price cannot exceed maximum price.")
        return self

    def to_params(self) -> dict:
        """Backend query parameters, empty values omitted."""
        return present_params(
            {
                "q": self.q,
                "cat": None if self.category in ("", ALL) else self.category,
                "status": None if self.status in ("", ALL) else self.status,
                "sort": self.sort,
                "inStock": True if self.in_stock else None,
                "minPrice": self.min_price,
                "maxPrice": self.max_price,
            }
        )
