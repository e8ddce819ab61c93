"""Unit tests for the courier status mapper, dispatcher and webhook service."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from modules.orders.constants import DeliveryType, OrderStatus, PaymentStatus
from modules.orders.exceptions import InvalidOrderStatus, OrderNotFound
from modules.orders.models import Order, OrderItem
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.weights import get_weight_service
from modules.shipping.exceptions import CourierProviderError, MissingTrackingId
from modules.shipping.models import CourierEvent
from modules.shipping.repositories.django_repository import (
    CourierEventDjangoRepository,
)
from modules.shipping.services import (
    PLACEHOLDER_PREFIX,
    CourierDispatcher,
    CourierWebhookService,
    build_shipment_payload,
)
from modules.shipping.status import map_status

pytestmark = pytest.mark.unit


class TestMapStatus:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Picked Up", OrderStatus.PROCESSING),
            ("PICKUP scheduled", OrderStatus.PROCESSING),
            ("In Transit", OrderStatus.OUT_FOR_DELIVERY),
            ("in_transit", OrderStatus.OUT_FOR_DELIVERY),
            ("Dispatched", OrderStatus.OUT_FOR_DELIVERY),
            ("Out for Delivery", OrderStatus.OUT_FOR_DELIVERY),
            ("DELIVERED", OrderStatus.DELIVERED),
            ("Cancelled by seller", OrderStatus.CANCELLED),
            ("RTO initiated", OrderStatus.CANCELLED),
            ("Return accepted", OrderStatus.CANCELLED),
        ],
    )
    def test_rules(self, text, expected):
        assert map_status(text) == expected

    @pytest.mark.parametrize("text", ["Manifested", "", None])
    def test_unmatched_text(self, text):
        assert map_status(text) is None


def _dispatcher(client=None):
    return CourierDispatcher(
        OrderDjangoRepository(),
        CourierEventDjangoRepository(),
        get_weight_service(),
        client=client,
    )


@pytest.fixture()
def paid_order(school, notebook, default_settings):
    order = Order.objects.create(
        school=school,
        parent_phone="919876543210",
        parent_name="Asha",
        delivery_type=DeliveryType.HOME,
        delivery_address="22 Lake View, Pune",
        items_total_paise=6000,
        delivery_charge_paise=15000,
        total_amount_paise=21000,
        status=OrderStatus.CONFIRMED,
        payment_status=PaymentStatus.PAID,
    )
    OrderItem.objects.create(order=order, item=notebook, quantity=2, unit_price_paise=3000)
    return order


class TestCourierDispatcher:
    def test_placeholder_without_credentials(self, paid_order):
        result = _dispatcher().dispatch(str(paid_order.id))

        paid_order.refresh_from_db()
        assert result.created is True
        assert result.placeholder is True
        assert result.tracking_id.startswith(PLACEHOLDER_PREFIX)
        assert paid_order.courier_tracking_id == result.tracking_id
        assert paid_order.tracking_is_placeholder is True
        assert paid_order.courier_service == "delhivery"
        assert paid_order.status == OrderStatus.PROCESSING
        assert paid_order.billed_weight_grams == 500
        assert paid_order.parcels.get(parcel_index=0).tracking_id == result.tracking_id
        assert CourierEvent.objects.filter(
            order=paid_order, event_type="shipment_created"
        ).count() == 1

    def test_rerun_returns_existing_tracking_id(self, paid_order):
        client = MagicMock()
        client.create_shipment.return_value = "WB100"
        dispatcher = _dispatcher(client)

        first = dispatcher.dispatch(str(paid_order.id))
        second = dispatcher.dispatch(str(paid_order.id))

        assert first.tracking_id == second.tracking_id == "WB100"
        assert second.created is False
        client.create_shipment.assert_called_once()
        assert CourierEvent.objects.count() == 1

    def test_live_payload_uses_home_address_and_weights(self, paid_order):
        client = MagicMock()
        client.create_shipment.return_value = "WB200"

        _dispatcher(client).dispatch(str(paid_order.id))

        shipment = client.create_shipment.call_args[0][0]["shipments"][0]
        assert shipment["add"] == "22 Lake View, Pune"
        assert shipment["weight"] == "0.5"
        assert shipment["order"] == paid_order.order_number
        assert shipment["shipment_length"] == "20"

    def test_school_delivery_ships_to_school(self, paid_order, school):
        paid_order.delivery_type = DeliveryType.SCHOOL
        paid_order.save()

        payload = build_shipment_payload(paid_order)

        assert payload["shipments"][0]["add"] == school.address

    @pytest.mark.parametrize("status", [OrderStatus.CANCELLED, OrderStatus.PAYMENT_FAILED])
    def test_not_dispatchable(self, paid_order, status):
        Order.objects.filter(id=paid_order.id).update(status=status)

        with pytest.raises(InvalidOrderStatus):
            _dispatcher().dispatch(str(paid_order.id))

    @pytest.mark.parametrize(
        "payment_status", [PaymentStatus.PENDING, PaymentStatus.FAILED]
    )
    def test_unpaid_order_is_not_dispatched(self, paid_order, payment_status):
        Order.objects.filter(id=paid_order.id).update(
            status=OrderStatus.PENDING, payment_status=payment_status
        )
        client = MagicMock()

        with pytest.raises(InvalidOrderStatus):
            _dispatcher(client).dispatch(str(paid_order.id))

        client.create_shipment.assert_not_called()
        paid_order.refresh_from_db()
        assert paid_order.status == OrderStatus.PENDING
        assert paid_order.courier_tracking_id == ""
        assert CourierEvent.objects.count() == 0

    def test_shipping_waits_for_payment_and_stays_forward(self, paid_order):
        from modules.payments.services import get_payment_reconciler

        Order.objects.filter(id=paid_order.id).update(
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
            payment_reference="plink_ship",
        )
        dispatcher = _dispatcher()

        with pytest.raises(InvalidOrderStatus):
            dispatcher.dispatch(str(paid_order.id))
        get_payment_reconciler().reconcile(
            {
                "event": "payment_link.paid",
                "payload": {"payment_link": {"entity": {"id": "plink_ship"}}},
            }
        )
        dispatcher.dispatch(str(paid_order.id))
        get_payment_reconciler().reconcile(
            {
                "event": "payment_link.paid",
                "payload": {"payment_link": {"entity": {"id": "plink_ship"}}},
            }
        )

        paid_order.refresh_from_db()
        assert paid_order.payment_status == PaymentStatus.PAID
        assert paid_order.status == OrderStatus.PROCESSING

    def test_unknown_order(self):
        with pytest.raises(OrderNotFound):
            _dispatcher().dispatch("00000000-0000-0000-0000-000000000000")

    def test_provider_error_leaves_order_untouched(self, paid_order):
        client = MagicMock()
        client.create_shipment.side_effect = CourierProviderError("down")

        with pytest.raises(CourierProviderError):
            _dispatcher(client).dispatch(str(paid_order.id))

        paid_order.refresh_from_db()
        assert paid_order.courier_tracking_id == ""
        assert paid_order.status == OrderStatus.CONFIRMED


class TestCourierWebhookService:
    def _service(self):
        return CourierWebhookService(
            OrderDjangoRepository(), CourierEventDjangoRepository()
        )

    def test_parse_flat_payload(self):
        update = CourierWebhookService.parse({"waybill": "WB1", "Status": "Delivered"})

        assert update.tracking_id == "WB1"
        assert update.status_text == "Delivered"

    def test_parse_nested_payload(self):
        update = CourierWebhookService.parse(
            {"Shipment": {"AWB": "WB2", "Status": {"Status": "In Transit"}}}
        )

        assert update.tracking_id == "WB2"
        assert update.status_text == "In Transit"

    def test_missing_tracking_id(self):
        with pytest.raises(MissingTrackingId):
            CourierWebhookService.parse({"status": "Delivered"})

    def test_status_never_moves_backwards(self, paid_order):
        Order.objects.filter(id=paid_order.id).update(courier_tracking_id="WB9")
        service = self._service()

        delivered = service.handle({"awb": "WB9", "status": "Delivered"})
        stale = service.handle({"awb": "WB9", "status": "Picked up"})

        paid_order.refresh_from_db()
        assert delivered.applied is True
        assert stale.applied is False
        assert paid_order.status == OrderStatus.DELIVERED
        assert CourierEvent.objects.filter(tracking_id="WB9").count() == 2

    def test_unmatched_text_keeps_status(self, paid_order):
        Order.objects.filter(id=paid_order.id).update(courier_tracking_id="WB10")

        result = self._service().handle({"awb": "WB10", "status": "Manifested"})

        paid_order.refresh_from_db()
        assert result.applied is False
        assert result.status is None
        assert paid_order.status == OrderStatus.CONFIRMED

    def test_unknown_tracking_id_is_recorded(self):
        result = self._service().handle({"awb": "NOPE", "status": "Delivered"})

        assert result.order_id is None
        event = CourierEvent.objects.get(tracking_id="NOPE")
        assert event.order_id is None
        assert event.mapped_status == OrderStatus.DELIVERED
        assert event.applied is False
