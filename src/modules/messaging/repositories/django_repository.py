"""Django ORM implementations of the messaging repositories."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

import structlog
from django.utils import timezone

from modules.messaging.constants import (
    ConversationState,
    DeliveryStatus,
    MessageDirection,
)
from modules.messaging.models import Conversation, MessageLog
from modules.messaging.repositories.interfaces import (
    IConversationRepository,
    IMessageLogRepository,
)

logger = structlog.get_logger(__name__)


class ConversationDjangoRepository(IConversationRepository):
    def get_for_update(self, phone: str) -> Conversation:
        Conversation.objects.get_or_create(
            phone=phone, defaults={"state": ConversationState.AWAIT_CODE}
        )
        return Conversation.objects.select_for_update().get(phone=phone)

    def save_state(self, phone: str, state: str, context: Dict[str, Any]) -> None:
        Conversation.objects.update_or_create(
            phone=phone,
            defaults={
                "state": state,
                "context": context,
                "last_activity_at": timezone.now(),
            },
        )

    def delete(self, phone: str) -> bool:
        deleted, _ = Conversation.objects.filter(phone=phone).delete()
        return deleted > 0

    def purge_inactive(self, before: datetime) -> int:
        deleted, _ = Conversation.objects.filter(last_activity_at__lt=before).delete()
        return deleted


class MessageLogDjangoRepository(IMessageLogRepository):
    def record_inbound(
        self,
        phone: str,
        body: str,
        provider_message_id: Optional[str],
        raw_payload: Dict[str, Any],
    ) -> bool:
        fields = {
            "phone": phone,
            "direction": MessageDirection.INBOUND,
            "body": body,
            "raw_payload": raw_payload,
            "delivery_status": DeliveryStatus.RECEIVED,
        }
        if not provider_message_id:
            MessageLog.objects.create(**fields)
            return True
        _, created = MessageLog.objects.get_or_create(
            provider_message_id=provider_message_id, defaults=fields
        )
        return created

    def record_outbound(
        self,
        phone: str,
        body: str,
        delivery_status: str,
        provider_message_id: Optional[str] = None,
        order_id: Optional[UUID] = None,
    ) -> MessageLog:
        return MessageLog.objects.create(
            phone=phone,
            direction=MessageDirection.OUTBOUND,
            body=body,
            delivery_status=delivery_status,
            provider_message_id=provider_message_id or None,
            order_id=order_id,
        )

    def update_delivery_status(self, provider_message_id: str, status: str) -> bool:
        if status not in DeliveryStatus.values:
            logger.info("whatsapp.unknown_delivery_status", status=status)
            return False
        updated = MessageLog.objects.filter(
            provider_message_id=provider_message_id,
            direction=MessageDirection.OUTBOUND,
        ).update(delivery_status=status, updated_at=timezone.now())
        return updated == 1
