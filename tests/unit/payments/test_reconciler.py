"""Unit tests for signature verification and payment reconciliation."""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest

from modules.orders.constants import DeliveryType, OrderStatus, PaymentStatus
from modules.orders.models import Order
from modules.payments.events import PaymentConfirmed, PaymentFailed
from modules.payments.exceptions import InvalidSignature, MalformedPayload
from modules.payments.models import PaymentEvent, ReconcileOutcome
from modules.payments.services import PaymentLinkService, PaymentReconciler
from modules.payments.signature import compute_signature, verify_signature

pytestmark = pytest.mark.unit

SECRET = "whsec_test"


def _link_paid(link_id="plink_1"):
    return {
        "event": "payment_link.paid",
        "payload": {"payment_link": {"entity": {"id": link_id, "status": "paid"}}},
    }


class TestSignature:
    def test_valid_signature(self):
        body = b'{"event":"payment_link.paid"}'

        assert verify_signature(body, compute_signature(body, SECRET), SECRET)

    def test_tampered_body(self):
        signature = compute_signature(b'{"amount":100}', SECRET)

        assert not verify_signature(b'{"amount":1}', signature, SECRET)

    def test_missing_signature(self):
        assert not verify_signature(b"{}", "", SECRET)


@pytest.fixture()
def repos():
    order_repo = MagicMock()
    order = MagicMock(id=uuid4())
    order_repo.get_by_payment_reference.return_value = order
    order_repo.get_by_id.return_value = order
    order_repo.mark_paid.return_value = True
    order_repo.mark_payment_failed.return_value = True
    return order_repo, MagicMock(), order


class TestPaymentReconciler:
    def test_bad_signature_is_rejected_before_parsing(self, repos):
        order_repo, event_repo, _ = repos
        reconciler = PaymentReconciler(order_repo, event_repo, webhook_secret=SECRET)

        with pytest.raises(InvalidSignature):
            reconciler.handle(b"not json", signature="deadbeef")

        event_repo.record.assert_not_called()

    def test_malformed_json(self, repos):
        order_repo, event_repo, _ = repos
        reconciler = PaymentReconciler(order_repo, event_repo)

        with pytest.raises(MalformedPayload):
            reconciler.handle(b"{broken")

    def test_non_object_json(self, repos):
        reconciler = PaymentReconciler(*repos[:2])

        with pytest.raises(MalformedPayload):
            reconciler.handle(b"[1, 2]")

    def test_link_paid_applies_and_publishes(self, repos):
        order_repo, event_repo, order = repos
        body = json.dumps(_link_paid()).encode()
        reconciler = PaymentReconciler(order_repo, event_repo, webhook_secret=SECRET)

        with patch("modules.payments.services.publish_on_commit") as publish:
            result = reconciler.handle(
                body, signature=compute_signature(body, SECRET), event_id="evt_1"
            )

        assert result.outcome == ReconcileOutcome.APPLIED
        assert result.order_id == order.id
        order_repo.get_by_payment_reference.assert_called_once_with("plink_1")
        order_repo.mark_paid.assert_called_once_with(order.id)
        event = publish.call_args[0][0]
        assert isinstance(event, PaymentConfirmed)
        assert event.aggregate_id == order.id
        assert event_repo.record.call_args.kwargs["signature_verified"] is True
        assert event_repo.record.call_args.kwargs["event_id"] == "evt_1"

    def test_already_paid_is_duplicate(self, repos):
        order_repo, event_repo, _ = repos
        order_repo.mark_paid.return_value = False

        with patch("modules.payments.services.publish_on_commit") as publish:
            result = PaymentReconciler(order_repo, event_repo).reconcile(_link_paid())

        assert result.outcome == ReconcileOutcome.DUPLICATE
        publish.assert_not_called()
        event_repo.record.assert_called_once()

    def test_unknown_reference_is_unmatched(self, repos):
        order_repo, event_repo, _ = repos
        order_repo.get_by_payment_reference.return_value = None

        result = PaymentReconciler(order_repo, event_repo).reconcile(_link_paid("nope"))

        assert result.outcome == ReconcileOutcome.UNMATCHED
        assert result.order_id is None
        order_repo.mark_paid.assert_not_called()

    def test_payment_captured_resolves_order_from_notes(self, repos):
        order_repo, event_repo, order = repos
        event = {
            "event": "payment.captured",
            "payload": {"payment": {"entity": {"notes": {"order_id": str(order.id)}}}},
        }

        with patch("modules.payments.services.publish_on_commit"):
            result = PaymentReconciler(order_repo, event_repo).reconcile(event)

        order_repo.get_by_id.assert_called_once_with(str(order.id))
        assert result.outcome == ReconcileOutcome.APPLIED

    def test_payment_failed(self, repos):
        order_repo, event_repo, order = repos
        event = {
            "event": "payment.failed",
            "payload": {"payment": {"entity": {"notes": {"order_id": str(order.id)}}}},
        }

        with patch("modules.payments.services.publish_on_commit") as publish:
            result = PaymentReconciler(order_repo, event_repo).reconcile(event)

        assert result.outcome == ReconcileOutcome.APPLIED
        order_repo.mark_payment_failed.assert_called_once_with(order.id)
        assert isinstance(publish.call_args[0][0], PaymentFailed)

    def test_other_events_are_ignored(self, repos):
        order_repo, event_repo, _ = repos

        result = PaymentReconciler(order_repo, event_repo).reconcile(
            {"event": "refund.created"}
        )

        assert result.outcome == ReconcileOutcome.IGNORED
        order_repo.mark_paid.assert_not_called()
        event_repo.record.assert_called_once()


class TestConditionalPaymentUpdates:
    """The guarded UPDATEs decide which delivery owns the side effects."""

    @pytest.fixture()
    def order(self, school):
        return Order.objects.create(
            school=school,
            parent_phone="919876543210",
            delivery_type=DeliveryType.SCHOOL,
            items_total_paise=10000,
            delivery_charge_paise=5000,
            total_amount_paise=15000,
            payment_reference="plink_db",
        )

    def test_mark_paid_once(self, order):
        from modules.orders.repositories.django_repository import OrderDjangoRepository

        repo = OrderDjangoRepository()

        assert repo.mark_paid(order.id) is True
        assert repo.mark_paid(order.id) is False

        order.refresh_from_db()
        assert order.status == OrderStatus.CONFIRMED
        assert order.payment_status == PaymentStatus.PAID
        assert order.paid_at is not None

    def test_paid_after_failure_still_confirms(self, order):
        from modules.orders.repositories.django_repository import OrderDjangoRepository

        repo = OrderDjangoRepository()

        assert repo.mark_payment_failed(order.id) is True
        assert repo.mark_paid(order.id) is True
        assert repo.mark_payment_failed(order.id) is False

    @pytest.mark.parametrize(
        "status",
        [
            OrderStatus.CONFIRMED,
            OrderStatus.PROCESSING,
            OrderStatus.OUT_FOR_DELIVERY,
            OrderStatus.DELIVERED,
            OrderStatus.CANCELLED,
        ],
    )
    def test_late_payment_never_moves_status_back(self, order, status):
        from modules.orders.repositories.django_repository import OrderDjangoRepository

        Order.objects.filter(id=order.id).update(status=status)

        assert OrderDjangoRepository().mark_paid(order.id) is False

        order.refresh_from_db()
        assert order.status == status
        assert order.payment_status == PaymentStatus.PENDING

    def test_paid_webhook_for_cancelled_order_is_a_no_op(self, order):
        from modules.payments.services import get_payment_reconciler

        Order.objects.filter(id=order.id).update(status=OrderStatus.CANCELLED)

        with patch("modules.payments.services.publish_on_commit") as publish:
            result = get_payment_reconciler().reconcile(_link_paid("plink_db"))

        assert result.outcome == ReconcileOutcome.DUPLICATE
        publish.assert_not_called()
        order.refresh_from_db()
        assert order.status == OrderStatus.CANCELLED

    def test_reconciler_writes_audit_rows(self, order):
        from modules.payments.services import get_payment_reconciler

        reconciler = get_payment_reconciler()
        reconciler.reconcile(_link_paid("plink_db"), event_id="evt_a")
        reconciler.reconcile(_link_paid("plink_db"), event_id="evt_a")

        outcomes = sorted(PaymentEvent.objects.values_list("outcome", flat=True))
        assert outcomes == [ReconcileOutcome.APPLIED, ReconcileOutcome.DUPLICATE]


class TestPaymentLinkService:
    def test_issue_stores_link(self):
        order_repo = MagicMock()
        client = MagicMock()
        client.create_payment_link.return_value = {
            "id": "plink_9",
            "short_url": "https://rzp.io/i/9",
        }
        order = MagicMock(
            id=uuid4(),
            order_number="ORD-20240101-AAAAAA",
            total_amount_paise=25000,
            parent_name="",
            parent_phone="919876543210",
        )

        url = PaymentLinkService(order_repo, client).issue(order)

        assert url == "https://rzp.io/i/9"
        payload = client.create_payment_link.call_args[0][0]
        assert payload["amount"] == 25000
        assert payload["currency"] == "INR"
        assert payload["reference_id"] == "ORD-20240101-AAAAAA"
        assert payload["notes"]["order_id"] == str(order.id)
        order_repo.set_payment_link.assert_called_once_with(
            order.id, "plink_9", "https://rzp.io/i/9"
        )
