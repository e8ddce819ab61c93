"""Payment services: payment link issuance and webhook reconciliation.

Reconciliation is idempotent.  The order's payment state is changed by a
single conditional UPDATE; only the delivery that actually changed the row
publishes ``PaymentConfirmed`` (or ``PaymentFailed``), so duplicate or
concurrent deliveries of the same event never repeat notifications or
shipments.  Every verified delivery is written to the audit log.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog
from django.conf import settings
from django.db import transaction

from modules.payments.dtos import ReconcileResultDTO
from modules.payments.events import PaymentConfirmed, PaymentFailed
from modules.payments.exceptions import InvalidSignature, MalformedPayload
from modules.payments.models import ReconcileOutcome
from modules.payments.signature import verify_signature
from shared.infrastructure.bus import publish_on_commit

if TYPE_CHECKING:
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.payments.clients import RazorpayClient
    from modules.payments.repositories.interfaces import IPaymentEventRepository

logger = structlog.get_logger(__name__)

PAYMENT_LINK_PAID = "payment_link.paid"
PAYMENT_CAPTURED = "payment.captured"
PAYMENT_FAILED = "payment.failed"


class PaymentLinkService:
    """Requests hosted payment links from Razorpay and stores them on the order."""

    def __init__(self, order_repository: IOrderRepository, client: RazorpayClient) -> None:
        self._order_repo = order_repository
        self._client = client

    def issue(self, order: Order) -> str:
        """Raises:
        PaymentProviderError: Razorpay rejected the request or was unreachable.
        """
        payload = {
            "amount": order.total_amount_paise,
            "currency": "INR",
            "accept_partial": False,
            "description": f"Order {order.order_number}",
            "reference_id": order.order_number,
            "customer": {
                "name": order.parent_name or f"Parent for order {order.order_number}",
                "contact": order.parent_phone,
            },
            "notify": {"sms": True, "email": False},
            "notes": {"order_id": str(order.id), "parent_phone": order.parent_phone},
        }
        response = self._client.create_payment_link(payload)
        link_id = response.get("id") or ""
        url = response.get("short_url") or response.get("long_url") or ""
        self._order_repo.set_payment_link(order.id, link_id, url)
        logger.info("payment.link_issued", order_id=str(order.id), link_id=link_id)
        return url


class PaymentReconciler:
    """Applies Razorpay webhook deliveries to orders."""

    def __init__(
        self,
        order_repository: IOrderRepository,
        event_repository: IPaymentEventRepository,
        webhook_secret: str = "",
    ) -> None:
        self._order_repo = order_repository
        self._event_repo = event_repository
        self._secret = webhook_secret

    def handle(
        self, raw_body: bytes, signature: str = "", event_id: str = ""
    ) -> ReconcileResultDTO:
        """Verify, parse and reconcile one webhook delivery.

        Raises:
            InvalidSignature: a secret is configured and the signature is wrong.
            MalformedPayload: the body is not a JSON object.
        """
        verified = self._verify(raw_body, signature)
        try:
            event = json.loads(raw_body)
        except (ValueError, UnicodeDecodeError) as exc:
            raise MalformedPayload("Invalid JSON") from exc
        if not isinstance(event, dict):
            raise MalformedPayload("Webhook body must be a JSON object.")
        return self.reconcile(event, event_id=event_id, signature_verified=verified)

    @transaction.atomic
    def reconcile(
        self, event: Dict[str, Any], event_id: str = "", signature_verified: bool = False
    ) -> ReconcileResultDTO:
        event_type = str(event.get("event") or "")
        log = logger.bind(event_type=event_type, event_id=event_id)

        if event_type == PAYMENT_LINK_PAID:
            order = self._order_for_link(event)
            outcome = self._apply_paid(order)
        elif event_type in (PAYMENT_CAPTURED, PAYMENT_FAILED):
            order = self._order_for_payment(event)
            if event_type == PAYMENT_CAPTURED:
                outcome = self._apply_paid(order)
            else:
                outcome = self._apply_failed(order)
        else:
            order, outcome = None, ReconcileOutcome.IGNORED

        order_id = order.id if order else None
        self._event_repo.record(
            order_id=order_id,
            event_id=event_id,
            event_type=event_type,
            outcome=outcome,
            signature_verified=signature_verified,
            payload=event,
        )
        log.info(
            f"payment.{outcome}",
            order_id=str(order_id) if order_id else None,
        )
        return ReconcileResultDTO(
            event_type=event_type, outcome=str(outcome), order_id=order_id
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _verify(self, raw_body: bytes, signature: str) -> bool:
        if not self._secret:
            logger.warning("payment.signature_check_skipped")
            return False
        if not verify_signature(raw_body, signature, self._secret):
            logger.warning("payment.invalid_signature")
            raise InvalidSignature("Invalid signature")
        return True

    def _order_for_link(self, event: Dict[str, Any]) -> Optional[Order]:
        entity = _entity(event, "payment_link")
        return self._order_repo.get_by_payment_reference(str(entity.get("id") or ""))

    def _order_for_payment(self, event: Dict[str, Any]) -> Optional[Order]:
        entity = _entity(event, "payment")
        notes = entity.get("notes") if isinstance(entity.get("notes"), dict) else {}
        order = None
        if notes.get("order_id"):
            order = self._order_repo.get_by_id(str(notes["order_id"]))
        if order is None and entity.get("order_id"):
            order = self._order_repo.get_by_payment_reference(str(entity["order_id"]))
        return order

    def _apply_paid(self, order: Optional[Order]) -> str:
        if order is None:
            return ReconcileOutcome.UNMATCHED
        if not self._order_repo.mark_paid(order.id):
            return ReconcileOutcome.DUPLICATE
        publish_on_commit(PaymentConfirmed(aggregate_id=order.id))
        return ReconcileOutcome.APPLIED

    def _apply_failed(self, order: Optional[Order]) -> str:
        if order is None:
            return ReconcileOutcome.UNMATCHED
        if not self._order_repo.mark_payment_failed(order.id):
            return ReconcileOutcome.DUPLICATE
        publish_on_commit(PaymentFailed(aggregate_id=order.id))
        return ReconcileOutcome.APPLIED


def _entity(event: Dict[str, Any], name: str) -> Dict[str, Any]:
    payload = event.get("payload")
    if not isinstance(payload, dict):
        return {}
    wrapper = payload.get(name)
    if not isinstance(wrapper, dict):
        return {}
    entity = wrapper.get("entity")
    return entity if isinstance(entity, dict) else {}


def get_payment_link_service(
    order_repository: Optional[IOrderRepository] = None,
) -> Optional[PaymentLinkService]:
    """``None`` when Razorpay credentials are not configured."""
    from modules.orders.repositories.django_repository import OrderDjangoRepository
    from modules.payments.clients import RazorpayClient

    client = RazorpayClient.from_settings()
    if client is None:
        return None
    return PaymentLinkService(order_repository or OrderDjangoRepository(), client)


def get_payment_reconciler() -> PaymentReconciler:
    from modules.orders.repositories.django_repository import OrderDjangoRepository
    from modules.payments.repositories.django_repository import (
        PaymentEventDjangoRepository,
    )

    return PaymentReconciler(
        OrderDjangoRepository(),
        PaymentEventDjangoRepository(),
        webhook_secret=settings.RAZORPAY_WEBHOOK_SECRET,
    )
