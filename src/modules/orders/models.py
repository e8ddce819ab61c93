"""Order, OrderItem and CourierParcel models.

Business rules implemented:
- Money is integer paise; weights grams; dimensions centimetres.
- ``total_amount_paise = items_total_paise + delivery_charge_paise`` is
  fixed at creation (service layer and a database check constraint) and
  never recomputed afterwards.
- OrderItem snapshots the item price at creation time (``unit_price_paise``)
  and ``subtotal_paise`` is always ``quantity * unit_price_paise``.
- Idempotency via ``idempotency_key`` unique constraint.
- Order number auto-generated as human-readable identifier.
- Catalog FKs use PROTECT to preserve financial history.
"""

from __future__ import annotations

import secrets
from typing import Any

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.orders.constants import (
    ORDER_NUMBER_MAX_RETRIES,
    TERMINAL_STATES,
    DeliveryType,
    OrderStatus,
    PaymentStatus,
)
from shared.domain.events import DomainEventMixin


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root.

    ``order_number`` is a human-readable identifier auto-generated on first
    save (format: ``ORD-YYYYMMDD-XXXXXX``).  The UUIDv7 ``id`` is used for
    all internal references, payment link notes and API lookups.

    ``idempotency_key`` is nullable: orders from a WhatsApp conversation
    carry ``wa:<message id>``; API clients may send their own key.
    """

    order_number: models.CharField = models.CharField(
        max_length=20, unique=True, editable=False
    )
    idempotency_key: models.CharField = models.CharField(
        max_length=255, unique=True, null=True, blank=True
    )
    school: models.ForeignKey = models.ForeignKey(
        "catalog.School", on_delete=models.PROTECT, related_name="orders"
    )
    school_class: models.ForeignKey = models.ForeignKey(
        "catalog.SchoolClass",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )
    parent_phone: models.CharField = models.CharField(max_length=20)
    parent_name: models.CharField = models.CharField(
        max_length=255, blank=True, default=""
    )
    delivery_type: models.CharField = models.CharField(
        max_length=10, choices=DeliveryType.choices
    )
    delivery_address: models.TextField = models.TextField(blank=True, default="")

    items_total_paise: models.PositiveIntegerField = models.PositiveIntegerField(
        default=0
    )
    delivery_charge_paise: models.PositiveIntegerField = models.PositiveIntegerField(
        default=0
    )
    total_amount_paise: models.PositiveIntegerField = models.PositiveIntegerField(
        default=0
    )

    status: models.CharField = models.CharField(
        max_length=20, choices=OrderStatus.choices, default=OrderStatus.PENDING
    )
    payment_status: models.CharField = models.CharField(
        max_length=10, choices=PaymentStatus.choices, default=PaymentStatus.PENDING
    )
    payment_reference: models.CharField = models.CharField(
        max_length=100, blank=True, default="", db_index=True
    )
    payment_link: models.URLField = models.URLField(blank=True, default="")
    paid_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)

    package_count: models.PositiveIntegerField = models.PositiveIntegerField(
        default=1
    )
    actual_weight_grams: models.PositiveIntegerField = models.PositiveIntegerField(
        null=True, blank=True
    )
    volumetric_weight_grams: models.PositiveIntegerField = (
        models.PositiveIntegerField(null=True, blank=True)
    )
    billed_weight_grams: models.PositiveIntegerField = models.PositiveIntegerField(
        null=True, blank=True
    )

    courier_tracking_id: models.CharField = models.CharField(
        max_length=100, blank=True, default="", db_index=True
    )
    courier_service: models.CharField = models.CharField(
        max_length=50, blank=True, default=""
    )
    tracking_is_placeholder: models.BooleanField = models.BooleanField(default=False)
    raw_request: models.JSONField = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
            models.Index(fields=["parent_phone"], name="orders_parent_phone_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(
                    total_amount_paise=models.F("items_total_paise")
                    + models.F("delivery_charge_paise")
                ),
                name="orders_total_is_items_plus_delivery",
            ),
        ]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    @property
    def weights_computed(self) -> bool:
        return self.billed_weight_grams is not None

    @staticmethod
    def generate_order_number() -> str:
        """Generate a human-readable order number: ``ORD-YYYYMMDD-XXXXXX``."""
        now = timezone.now()
        suffix = secrets.token_hex(3).upper()
        return f"ORD-{now:%Y%m%d}-{suffix}"

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            for _ in range(ORDER_NUMBER_MAX_RETRIES):
                candidate = self.generate_order_number()
                if not Order.objects.filter(order_number=candidate).exists():
                    self.order_number = candidate
                    break
            else:
                raise RuntimeError(
                    f"Failed to generate unique order_number after "
                    f"{ORDER_NUMBER_MAX_RETRIES} attempts"
                )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class OrderItem(BaseModel):
    """Line item linking an Order to a catalog Item.

    ``unit_price_paise`` is a snapshot of the item price at the time of
    ordering; later catalog price edits never touch it.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order", on_delete=models.CASCADE, related_name="items"
    )
    item: models.ForeignKey = models.ForeignKey(
        "catalog.Item", on_delete=models.PROTECT, related_name="order_items"
    )
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        default=1, validators=[MinValueValidator(1)]
    )
    unit_price_paise: models.PositiveIntegerField = models.PositiveIntegerField()
    subtotal_paise: models.PositiveIntegerField = models.PositiveIntegerField(
        editable=False
    )

    class Meta:
        db_table = "order_items"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    def save(self, *args: Any, **kwargs: Any) -> None:
        if self.unit_price_paise is None:
            unit_price = getattr(self.item, "price_paise", None)
            if unit_price is None:
                raise ValidationError({"unit_price_paise": "Item price is required."})
            self.unit_price_paise = unit_price
        self.subtotal_paise = self.quantity * self.unit_price_paise
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.item} x{self.quantity} ({self.subtotal_paise}p)"


class CourierParcel(BaseModel):
    """Physical parcel of an order; index 0 for single-parcel orders."""

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order", on_delete=models.CASCADE, related_name="parcels"
    )
    parcel_index: models.PositiveIntegerField = models.PositiveIntegerField(default=0)
    actual_weight_grams: models.PositiveIntegerField = models.PositiveIntegerField(
        default=0
    )
    volumetric_weight_grams: models.PositiveIntegerField = (
        models.PositiveIntegerField(default=0)
    )
    billed_weight_grams: models.PositiveIntegerField = models.PositiveIntegerField(
        default=0
    )
    length_cm: models.PositiveIntegerField = models.PositiveIntegerField(default=0)
    width_cm: models.PositiveIntegerField = models.PositiveIntegerField(default=0)
    height_cm: models.PositiveIntegerField = models.PositiveIntegerField(default=0)
    tracking_id: models.CharField = models.CharField(
        max_length=100, blank=True, default=""
    )

    class Meta:
        db_table = "courier_parcels"
        ordering = ["parcel_index"]
        constraints = [
            models.UniqueConstraint(
                fields=["order", "parcel_index"], name="courier_parcel_unique_index"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order_id} parcel {self.parcel_index}"
