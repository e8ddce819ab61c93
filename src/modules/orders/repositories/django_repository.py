"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.
Creation is wrapped in ``transaction.atomic()`` so the Order aggregate
(Order + OrderItems) is persisted atomically.

Conditional updates filter on the allowed current state and rely on the
row count returned by ``QuerySet.update()``; no read-modify-write happens
in Python.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from modules.orders.constants import (
    PAYABLE_STATUSES,
    OrderStatus,
    PaymentStatus,
    allowed_predecessors,
)
from modules.orders.dtos import WeightResultDTO
from modules.orders.models import CourierParcel, Order, OrderItem
from modules.orders.repositories.interfaces import IOrderRepository
from shared.infrastructure.bus import publish_on_commit

logger = structlog.get_logger(__name__)

ORDER_RELATIONS = ("items__item", "parcels")


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        items = data.get("items", [])
        items_total = sum(i["unit_price_paise"] * i["quantity"] for i in items)
        delivery_charge = data["delivery_charge_paise"]

        order = Order(
            school_id=data["school_id"],
            school_class_id=data.get("school_class_id"),
            parent_phone=data["parent_phone"],
            parent_name=data.get("parent_name") or "",
            delivery_type=data["delivery_type"],
            delivery_address=data.get("delivery_address") or "",
            items_total_paise=items_total,
            delivery_charge_paise=delivery_charge,
            total_amount_paise=items_total + delivery_charge,
            idempotency_key=data.get("idempotency_key"),
            raw_request=data.get("raw_request") or {},
        )
        order.save()

        for item_data in items:
            OrderItem(
                order=order,
                item_id=item_data["item_id"],
                quantity=item_data["quantity"],
                unit_price_paise=item_data["unit_price_paise"],
            ).save()

        logger.info("order.persisted", order_id=str(order.id), item_count=len(items))
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with eager-loaded relations.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return (
                Order.objects.select_related("school", "school_class")
                .prefetch_related(*ORDER_RELATIONS)
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        queryset = Order.objects.select_related("school", "school_class")
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def get_for_update(self, id: str) -> Optional[Order]:
        try:
            return (
                Order.objects.select_for_update()
                .select_related("school")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        return Order.objects.filter(idempotency_key=key).first()

    def get_by_payment_reference(self, reference: str) -> Optional[Order]:
        if not reference:
            return None
        return Order.objects.filter(payment_reference=reference).first()

    def get_by_tracking_id(self, tracking_id: str) -> Optional[Order]:
        if not tracking_id:
            return None
        return Order.objects.filter(courier_tracking_id=tracking_id).first()

    # ------------------------------------------------------------------
    # Save (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist an order and publish its collected events after commit."""
        entity.save()
        events = entity.pull_events()
        publish_on_commit(events)
        logger.info("order.saved", order_id=str(entity.id), event_count=len(events))
        return entity

    # ------------------------------------------------------------------
    # Targeted updates
    # ------------------------------------------------------------------

    def set_payment_link(self, id: UUID, reference: str, url: str) -> None:
        Order.objects.filter(id=id).update(
            payment_reference=reference, payment_link=url, updated_at=timezone.now()
        )

    @transaction.atomic
    def save_weights(self, id: UUID, result: WeightResultDTO) -> None:
        Order.objects.filter(id=id).update(
            package_count=result.package_count,
            actual_weight_grams=result.actual_weight_grams,
            volumetric_weight_grams=result.volumetric_grams,
            billed_weight_grams=result.billed_weight_grams,
            updated_at=timezone.now(),
        )
        CourierParcel.objects.update_or_create(
            order_id=id,
            parcel_index=0,
            defaults={
                "actual_weight_grams": result.actual_weight_grams,
                "volumetric_weight_grams": result.volumetric_grams,
                "billed_weight_grams": result.billed_weight_grams,
                "length_cm": result.dimensions.length_cm,
                "width_cm": result.dimensions.width_cm,
                "height_cm": result.dimensions.height_cm,
            },
        )

    # ------------------------------------------------------------------
    # Conditional updates
    # ------------------------------------------------------------------

    def mark_paid(self, id: UUID) -> bool:
        now = timezone.now()
        updated = (
            Order.objects.filter(id=id, status__in=PAYABLE_STATUSES)
            .exclude(payment_status=PaymentStatus.PAID)
            .update(
                payment_status=PaymentStatus.PAID,
                status=OrderStatus.CONFIRMED,
                paid_at=now,
                updated_at=now,
            )
        )
        return updated == 1

    def mark_payment_failed(self, id: UUID) -> bool:
        updated = Order.objects.filter(
            id=id,
            payment_status=PaymentStatus.PENDING,
            status=OrderStatus.PENDING,
        ).update(
            payment_status=PaymentStatus.FAILED,
            status=OrderStatus.PAYMENT_FAILED,
            updated_at=timezone.now(),
        )
        return updated == 1

    def advance_status(self, id: UUID, new_status: str) -> bool:
        predecessors = allowed_predecessors(new_status)
        if not predecessors:
            return False
        updated = Order.objects.filter(id=id, status__in=predecessors).update(
            status=new_status, updated_at=timezone.now()
        )
        return updated == 1

    @transaction.atomic
    def set_tracking(
        self, id: UUID, tracking_id: str, courier_service: str, placeholder: bool
    ) -> bool:
        updated = Order.objects.filter(id=id, courier_tracking_id="").update(
            courier_tracking_id=tracking_id,
            courier_service=courier_service,
            tracking_is_placeholder=placeholder,
            updated_at=timezone.now(),
        )
        if updated:
            CourierParcel.objects.filter(order_id=id, parcel_index=0).update(
                tracking_id=tracking_id, updated_at=timezone.now()
            )
        return updated == 1
