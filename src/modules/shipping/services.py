"""Shipping services: courier dispatch and courier status webhooks.

``CourierDispatcher`` requests a shipment for a paid order and stores the
tracking id.  Dispatching an order that already has a tracking id returns
it unchanged, so the step can be re-run safely.  Without Delhivery
credentials a placeholder tracking id is stored and flagged.

``CourierWebhookService`` maps carrier status updates onto orders.  Moves
are monotonic: an update applies only when the order's current status is
an allowed predecessor of the mapped one, so late or repeated deliveries
never move an order backwards.
"""

from __future__ import annotations

import secrets
from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog
from django.conf import settings
from django.db import transaction

from modules.orders.constants import (
    COURIER_SERVICE_DELHIVERY,
    NOT_DISPATCHABLE,
    DeliveryType,
    OrderStatus,
    PaymentStatus,
)
from modules.orders.events import OrderStatusChanged
from modules.orders.exceptions import InvalidOrderStatus, OrderNotFound
from modules.shipping.dtos import (
    CourierUpdateDTO,
    CourierUpdateResultDTO,
    DispatchResultDTO,
)
from modules.shipping.events import ShipmentCreated
from modules.shipping.exceptions import MissingTrackingId
from modules.shipping.status import map_status
from shared.infrastructure.bus import publish_on_commit

if TYPE_CHECKING:
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.orders.weights import WeightService
    from modules.shipping.clients import DelhiveryClient
    from modules.shipping.repositories.interfaces import ICourierEventRepository

logger = structlog.get_logger(__name__)

PLACEHOLDER_PREFIX = "PLACEHOLDER-"
SHIPMENT_CREATED_EVENT = "shipment_created"


def placeholder_tracking_id() -> str:
    return f"{PLACEHOLDER_PREFIX}{secrets.token_hex(6).upper()}"


class CourierDispatcher:
    def __init__(
        self,
        order_repository: IOrderRepository,
        event_repository: ICourierEventRepository,
        weight_service: WeightService,
        client: Optional[DelhiveryClient] = None,
    ) -> None:
        self._order_repo = order_repository
        self._event_repo = event_repository
        self._weights = weight_service
        self._client = client

    def dispatch(self, order_id: str) -> DispatchResultDTO:
        """Request a shipment for an order, once.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: the order is unpaid, cancelled or its payment failed.
            CourierProviderError: Delhivery rejected or failed the request.
        """
        order = self._load(order_id)
        log = logger.bind(order_id=str(order.id))

        if order.courier_tracking_id:
            log.info("shipment.already_dispatched", tracking_id=order.courier_tracking_id)
            return self._result(order, created=False)
        if order.status in NOT_DISPATCHABLE:
            raise InvalidOrderStatus(
                f"Cannot ship order {order.order_number} in status {order.status}."
            )
        if order.payment_status != PaymentStatus.PAID:
            raise InvalidOrderStatus(
                f"Cannot ship order {order.order_number} before it is paid."
            )
        if not order.weights_computed:
            self._weights.compute(str(order.id))
            order = self._load(order_id)

        payload = build_shipment_payload(order)
        if self._client is None:
            tracking_id, placeholder = placeholder_tracking_id(), True
            log.warning("shipment.placeholder_tracking", tracking_id=tracking_id)
        else:
            tracking_id, placeholder = self._client.create_shipment(payload), False

        with transaction.atomic():
            if not self._order_repo.set_tracking(
                order.id, tracking_id, COURIER_SERVICE_DELHIVERY, placeholder
            ):
                log.warning("shipment.concurrent_dispatch", discarded=tracking_id)
                return self._result(self._load(order_id), created=False)

            self._order_repo.advance_status(order.id, OrderStatus.PROCESSING)
            self._event_repo.record(
                order_id=order.id,
                tracking_id=tracking_id,
                event_type=SHIPMENT_CREATED_EVENT,
                payload={"request": payload, "placeholder": placeholder},
            )
            publish_on_commit(
                ShipmentCreated(
                    aggregate_id=order.id, tracking_id=tracking_id, placeholder=placeholder
                )
            )

        log.info("shipment.created", tracking_id=tracking_id, placeholder=placeholder)
        return DispatchResultDTO(
            order_id=order.id,
            tracking_id=tracking_id,
            courier_service=COURIER_SERVICE_DELHIVERY,
            placeholder=placeholder,
            created=True,
        )

    def _load(self, order_id: str) -> Order:
        order = self._order_repo.get_by_id(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    @staticmethod
    def _result(order: Order, created: bool) -> DispatchResultDTO:
        return DispatchResultDTO(
            order_id=order.id,
            tracking_id=order.courier_tracking_id,
            courier_service=order.courier_service or COURIER_SERVICE_DELHIVERY,
            placeholder=order.tracking_is_placeholder,
            created=created,
        )


def build_shipment_payload(order: Order) -> Dict[str, Any]:
    """Delhivery create-shipment body for a single-parcel order."""
    if order.delivery_type == DeliveryType.HOME:
        address = order.delivery_address
    else:
        address = order.school.address
    parcel = order.parcels.first()
    billed_grams = order.billed_weight_grams or 0
    return {
        "shipments": [
            {
                "name": order.parent_name or "Customer",
                "add": address or "Address not provided",
                "pin": settings.DELHIVERY_DEFAULT_PIN,
                "country": "India",
                "phone": order.parent_phone,
                "order": order.order_number,
                "payment_mode": "Prepaid",
                "products_desc": "Books and Stationery",
                "cod_amount": "0",
                "total_amount": f"{order.total_amount_paise / 100:.2f}",
                "seller_name": settings.DELHIVERY_SELLER_NAME,
                "quantity": str(order.package_count),
                "waybill": "",
                "shipment_length": str(parcel.length_cm if parcel else 0),
                "shipment_width": str(parcel.width_cm if parcel else 0),
                "shipment_height": str(parcel.height_cm if parcel else 0),
                "weight": str(billed_grams / 1000),
                "shipping_mode": "Surface",
                "address_type": "home" if order.delivery_type == DeliveryType.HOME else "office",
            }
        ],
        "pickup_location": {"name": settings.DELHIVERY_PICKUP_LOCATION},
    }


class CourierWebhookService:
    def __init__(
        self,
        order_repository: IOrderRepository,
        event_repository: ICourierEventRepository,
    ) -> None:
        self._order_repo = order_repository
        self._event_repo = event_repository

    @staticmethod
    def parse(payload: Dict[str, Any]) -> CourierUpdateDTO:
        """Accepts flat payloads and Delhivery's nested ``Shipment`` form.

        Raises:
            MissingTrackingId: no tracking id anywhere in the payload.
        """
        shipment = payload.get("Shipment") if isinstance(payload.get("Shipment"), dict) else {}
        tracking_id = (
            payload.get("awb")
            or payload.get("waybill")
            or payload.get("tracking_id")
            or shipment.get("AWB")
        )
        if not tracking_id:
            raise MissingTrackingId("No tracking id in webhook payload")

        nested = shipment.get("Status")
        if isinstance(nested, dict):
            nested = nested.get("Status")
        status_text = (
            payload.get("status")
            or payload.get("Status")
            or payload.get("status_code")
            or payload.get("StatusCode")
            or nested
            or ""
        )
        return CourierUpdateDTO(tracking_id=str(tracking_id), status_text=str(status_text))

    @transaction.atomic
    def handle(self, payload: Dict[str, Any]) -> CourierUpdateResultDTO:
        update = self.parse(payload)
        log = logger.bind(tracking_id=update.tracking_id, status_text=update.status_text)

        order = self._order_repo.get_by_tracking_id(update.tracking_id)
        mapped = map_status(update.status_text)
        applied = False
        if order is not None and mapped is not None:
            applied = self._order_repo.advance_status(order.id, mapped)
            if applied:
                publish_on_commit(
                    OrderStatusChanged(
                        aggregate_id=order.id, old_status=order.status, new_status=mapped
                    )
                )

        self._event_repo.record(
            order_id=order.id if order else None,
            tracking_id=update.tracking_id,
            event_type=update.status_text,
            payload=payload,
            mapped_status=mapped or "",
            applied=applied,
        )

        if order is None:
            log.warning("courier.unmatched_tracking_id")
        elif applied:
            log.info("courier.status_applied", order_id=str(order.id), new_status=mapped)
        else:
            log.info("courier.status_unchanged", order_id=str(order.id), mapped=mapped)

        return CourierUpdateResultDTO(
            tracking_id=update.tracking_id,
            order_id=order.id if order else None,
            status=mapped if applied else None,
            applied=applied,
        )


def get_courier_dispatcher() -> CourierDispatcher:
    from modules.orders.repositories.django_repository import OrderDjangoRepository
    from modules.orders.weights import get_weight_service
    from modules.shipping.clients import DelhiveryClient
    from modules.shipping.repositories.django_repository import (
        CourierEventDjangoRepository,
    )

    return CourierDispatcher(
        OrderDjangoRepository(),
        CourierEventDjangoRepository(),
        get_weight_service(),
        client=DelhiveryClient.from_settings(),
    )


def get_courier_webhook_service() -> CourierWebhookService:
    from modules.orders.repositories.django_repository import OrderDjangoRepository
    from modules.shipping.repositories.django_repository import (
        CourierEventDjangoRepository,
    )

    return CourierWebhookService(OrderDjangoRepository(), CourierEventDjangoRepository())
