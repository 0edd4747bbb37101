"""Checkout form DTO.

The form is immutable and survives a failed submission untouched, so
the view can re-render it with the user's values.
"""

from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, field_validator

from ferretex.api.constants import DeliveryMode
from ferretex.checkout.exceptions import ValidationError
from ferretex.store.state import Cart


class CheckoutForm(BaseModel):
    model_config = ConfigDict(frozen=True)

    mode: DeliveryMode = DeliveryMode.PICKUP
    name: str = ""
    phone: str = ""
    address: str = ""
    notes: str = ""

    @field_validator("name", "phone", "address", "notes", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    def field_errors(self, cart: Cart) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        if not cart.items:
            errors["cart"] = "Tu carrito está vacío."
        if not self.name.strip():
            errors["name"] = "Ingresa tu nombre."
        if not self.phone.strip():
            errors["phone"] = "Ingresa un teléfono de contacto."
        if self.mode is DeliveryMode.DELIVERY and not self.address.strip():
            errors["address"] = "La dirección es obligatoria para despacho."
        return errors

    def validate_against(self, cart: Cart) -> None:
        """Raise ``ValidationError`` when the form cannot be submitted."""
        errors = self.field_errors(cart)
        if errors:
            raise ValidationError(errors)

    def to_payload(self, cart: Cart) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "mode": self.mode.value,
            "name": self.name.strip(),
            "phone": self.phone.strip(),
            "notes": self.notes.strip(),
            "items": [
                {"productId": line.product_id, "qty": line.quantity}
                for line in cart.items
            ],
        }
        if self.mode is DeliveryMode.DELIVERY:
            payload["address"] = self.address.strip()
        return payload
