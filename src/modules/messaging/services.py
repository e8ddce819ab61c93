"""Inbound and outbound WhatsApp message handling.

``InboundMessageService`` logs every inbound webhook, drops transport
retries of a message id it has already seen, runs the conversation engine
and sends the reply.  ``OutboundMessenger`` sends text through the Cloud
API, or only logs it when credentials are not configured.  Send failures
are logged and recorded; they never propagate to the caller.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple
from uuid import UUID

import structlog
from django.db import transaction

from modules.messaging.constants import DeliveryStatus
from modules.messaging.conversation import Inbound
from modules.messaging.exceptions import MessagingProviderError

if TYPE_CHECKING:
    from modules.messaging.clients import WhatsAppClient
    from modules.messaging.conversation import ConversationEngine
    from modules.messaging.repositories.interfaces import IMessageLogRepository

logger = structlog.get_logger(__name__)

WHATSAPP_PREFIX_RE = re.compile(r"^whatsapp:", re.IGNORECASE)


def normalize_phone(raw: str) -> str:
    """Strip the ``whatsapp:`` prefix and a leading ``+``."""
    return WHATSAPP_PREFIX_RE.sub("", (raw or "").strip()).lstrip("+")


@dataclass(frozen=True)
class DeliveryReceipt:
    message_id: str
    status: str


@dataclass(frozen=True)
class ParsedWebhook:
    message: Optional[Inbound]
    receipts: Tuple[DeliveryReceipt, ...]
    raw: Dict[str, Any]


def parse_meta_payload(payload: Dict[str, Any]) -> ParsedWebhook:
    """Extract the first message (and any delivery receipts) from a Cloud API webhook."""
    try:
        value = payload["entry"][0]["changes"][0]["value"]
    except (KeyError, IndexError, TypeError):
        return ParsedWebhook(None, (), payload)
    if not isinstance(value, dict):
        return ParsedWebhook(None, (), payload)

    receipts = tuple(
        DeliveryReceipt(str(s.get("id", "")), str(s.get("status", "")))
        for s in value.get("statuses") or []
        if isinstance(s, dict) and s.get("id")
    )

    messages = value.get("messages") or []
    if not messages or not isinstance(messages[0], dict):
        return ParsedWebhook(None, receipts, payload)
    message = messages[0]

    interactive = message.get("interactive") or {}
    text = (
        (message.get("text") or {}).get("body")
        or (interactive.get("button_reply") or {}).get("title")
        or (interactive.get("list_reply") or {}).get("title")
        or (message.get("button") or {}).get("text")
        or message.get("body")
        or ""
    )
    profile_name = ""
    contacts: List[Dict[str, Any]] = value.get("contacts") or []
    if contacts and isinstance(contacts[0], dict):
        profile_name = (contacts[0].get("profile") or {}).get("name", "") or ""

    inbound = Inbound(
        phone=normalize_phone(str(message.get("from", ""))),
        text=str(text),
        message_id=str(message.get("id", "")),
        profile_name=profile_name,
    )
    return ParsedWebhook(inbound, receipts, payload)


def parse_twilio_form(form: Dict[str, Any]) -> ParsedWebhook:
    inbound = Inbound(
        phone=normalize_phone(str(form.get("From", ""))),
        text=str(form.get("Body", "")),
        message_id=str(form.get("MessageSid", "")),
        profile_name=str(form.get("ProfileName", "")),
    )
    return ParsedWebhook(inbound, (), form)


class OutboundMessenger:
    def __init__(
        self,
        message_log: IMessageLogRepository,
        client: Optional[WhatsAppClient] = None,
    ) -> None:
        self._log = message_log
        self._client = client

    def send(self, phone: str, body: str, order_id: Optional[UUID] = None) -> str:
        """Send ``body`` to ``phone``; returns the recorded delivery status."""
        to = normalize_phone(phone)
        log = logger.bind(to=to, order_id=str(order_id) if order_id else None)

        if self._client is None:
            log.info("whatsapp.log_only", body=body)
            self._log.record_outbound(to, body, DeliveryStatus.LOGGED, order_id=order_id)
            return DeliveryStatus.LOGGED

        try:
            message_id = self._client.send_text(to, body)
        except MessagingProviderError:
            log.exception("whatsapp.send_failed")
            self._log.record_outbound(to, body, DeliveryStatus.FAILED, order_id=order_id)
            return DeliveryStatus.FAILED

        self._log.record_outbound(
            to, body, DeliveryStatus.SENT, provider_message_id=message_id, order_id=order_id
        )
        log.info("whatsapp.sent", message_id=message_id)
        return DeliveryStatus.SENT


class InboundMessageService:
    def __init__(
        self,
        engine: ConversationEngine,
        messenger: OutboundMessenger,
        message_log: IMessageLogRepository,
    ) -> None:
        self._engine = engine
        self._messenger = messenger
        self._log = message_log

    def process(self, parsed: ParsedWebhook) -> Optional[str]:
        """Run one webhook delivery through the engine; returns the reply sent, if any."""
        for receipt in parsed.receipts:
            self._log.update_delivery_status(receipt.message_id, receipt.status)

        inbound = parsed.message
        if inbound is None:
            if not parsed.receipts:
                self._log.record_inbound("", "", None, parsed.raw)
            logger.info("whatsapp.no_message", receipts=len(parsed.receipts))
            return None
        if not inbound.phone or not inbound.text.strip():
            self._log.record_inbound(
                inbound.phone, inbound.text, inbound.message_id or None, parsed.raw
            )
            logger.info("whatsapp.empty_message", phone=inbound.phone)
            return None

        log = logger.bind(phone=inbound.phone, message_id=inbound.message_id)
        # Log row and state change commit or roll back together.
        with transaction.atomic():
            if not self._log.record_inbound(
                inbound.phone, inbound.text, inbound.message_id or None, parsed.raw
            ):
                log.info("whatsapp.duplicate_message")
                return None
            step = self._engine.advance(inbound)

        reply = self._engine.reply_for(step)
        if reply:
            self._messenger.send(inbound.phone, reply)
        return reply


def get_outbound_messenger() -> OutboundMessenger:
    from modules.messaging.clients import WhatsAppClient
    from modules.messaging.repositories.django_repository import (
        MessageLogDjangoRepository,
    )

    return OutboundMessenger(MessageLogDjangoRepository(), WhatsAppClient.from_settings())


def get_inbound_message_service() -> InboundMessageService:
    from modules.messaging.conversation import get_conversation_engine
    from modules.messaging.repositories.django_repository import (
        MessageLogDjangoRepository,
    )

    return InboundMessageService(
        get_conversation_engine(), get_outbound_messenger(), MessageLogDjangoRepository()
    )
