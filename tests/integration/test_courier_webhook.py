"""Integration tests for the Delhivery status webhook."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from modules.orders.constants import DeliveryType, OrderStatus
from modules.orders.models import Order
from modules.shipping.models import CourierEvent

pytestmark = pytest.mark.integration

URL = "/webhooks/delhivery/"


@pytest.fixture()
def shipped_order(school):
    return Order.objects.create(
        school=school,
        parent_phone="919876543210",
        delivery_type=DeliveryType.SCHOOL,
        items_total_paise=10000,
        delivery_charge_paise=5000,
        total_amount_paise=15000,
        status=OrderStatus.PROCESSING,
        courier_tracking_id="WB555",
        courier_service="delhivery",
    )


class TestDelhiveryWebhook:
    def test_missing_tracking_id(self, api_client):
        response = api_client.post(URL, {"status": "Delivered"}, format="json")

        assert response.status_code == 400

    def test_unknown_tracking_id_is_acknowledged(self, api_client):
        response = api_client.post(
            URL, {"awb": "UNKNOWN", "status": "Delivered"}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["applied"] is False
        assert CourierEvent.objects.filter(tracking_id="UNKNOWN").count() == 1

    def test_nested_payload_moves_order_forward_and_notifies(
        self, api_client, shipped_order, django_capture_on_commit_callbacks
    ):
        payload = {"Shipment": {"AWB": "WB555", "Status": {"Status": "Out for Delivery"}}}

        with patch("modules.messaging.tasks.send_whatsapp_message.delay") as send:
            with django_capture_on_commit_callbacks(execute=True):
                response = api_client.post(URL, payload, format="json")

        assert response.json()["status"] == OrderStatus.OUT_FOR_DELIVERY
        shipped_order.refresh_from_db()
        assert shipped_order.status == OrderStatus.OUT_FOR_DELIVERY
        send.assert_called_once()
        assert "on its way" in send.call_args.args[1]

    def test_stale_event_after_delivery_is_recorded_but_ignored(
        self, api_client, shipped_order
    ):
        api_client.post(URL, {"awb": "WB555", "status": "Delivered"}, format="json")
        response = api_client.post(URL, {"awb": "WB555", "status": "Picked Up"}, format="json")

        assert response.status_code == 200
        assert response.json()["applied"] is False
        shipped_order.refresh_from_db()
        assert shipped_order.status == OrderStatus.DELIVERED
        events = CourierEvent.objects.filter(tracking_id="WB555")
        assert events.filter(applied=True, mapped_status=OrderStatus.DELIVERED).count() == 1
        assert events.filter(applied=False, mapped_status=OrderStatus.PROCESSING).count() == 1

    def test_unmatched_status_text(self, api_client, shipped_order):
        response = api_client.post(
            URL, {"waybill": "WB555", "Status": "Manifested"}, format="json"
        )

        assert response.status_code == 200
        shipped_order.refresh_from_db()
        assert shipped_order.status == OrderStatus.PROCESSING
