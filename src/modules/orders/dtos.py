"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the callers (DRF views, the WhatsApp
conversation engine) and the Service layer.  DTOs are immutable
(``frozen=True``).

- ``CreateOrderItemDTO``: input for a single order line item.
- ``CreateOrderDTO``: input for order creation (nested items).
- ``OrderCreatedDTO``: result of a successful creation.
- ``WeightResultDTO``: output of the weight calculator.
"""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from modules.orders.constants import DeliveryType

# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateOrderItemDTO(BaseModel):
    """Immutable DTO for a single order item in a creation request.

    The caller sends ``item_id`` and ``quantity``; the unit price is
    resolved by the Service Layer from the catalog.
    """

    model_config = ConfigDict(frozen=True)

    item_id: UUID
    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    Validates:
    - ``items`` must contain at least one item, without duplicates.
    - ``school_code`` is four digits.
    - Home delivery requires an address.
    """

    model_config = ConfigDict(frozen=True)

    school_code: str
    class_id: Optional[UUID] = None
    items: List[CreateOrderItemDTO]
    delivery_type: DeliveryType
    parent_phone: str
    parent_name: Optional[str] = ""
    address: Optional[str] = ""
    idempotency_key: Optional[str] = None

    @field_validator("school_code")
    @classmethod
    def school_code_must_be_four_digits(cls, v: str) -> str:
        v = v.strip()
        if len(v) != 4 or not v.isdigit():
            raise ValueError("School code must be 4 digits.")
        return v

    @field_validator("parent_phone")
    @classmethod
    def phone_must_not_be_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Parent phone is required.")
        return v

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v

    @model_validator(mode="after")
    def no_duplicate_items(self):
        item_ids = [item.item_id for item in self.items]
        if len(item_ids) != len(set(item_ids)):
            raise ValueError("Duplicate item IDs are not allowed in the same order.")
        return self

    @model_validator(mode="after")
    def home_delivery_needs_address(self):
        if self.delivery_type == DeliveryType.HOME and not (self.address or "").strip():
            raise ValueError("Address is required for home delivery.")
        return self


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class OrderCreatedDTO(BaseModel):
    """Immutable result of order creation."""

    model_config = ConfigDict(frozen=True)

    order_id: UUID
    order_number: str
    total_amount_paise: int
    payment_link: Optional[str] = None


class DimensionsDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    length_cm: int
    width_cm: int
    height_cm: int


class WeightResultDTO(BaseModel):
    """Immutable output of the weight calculator."""

    model_config = ConfigDict(frozen=True)

    package_count: int
    actual_weight_grams: int
    volumetric_grams: int
    billed_weight_grams: int
    dimensions: DimensionsDTO
