"""WhatsApp conversation state and message log.

Business rules implemented:
- At most one conversation per sender (``phone`` unique).  No row means
  the sender is at the start of the flow.
- Inbound provider message ids are unique in the log; a transport retry
  of an already-logged message is recognised and dropped.
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.messaging.constants import (
    ConversationState,
    DeliveryStatus,
    MessageDirection,
)


class Conversation(BaseModel):
    phone = models.CharField(max_length=20, unique=True)
    state = models.CharField(
        max_length=20,
        choices=ConversationState.choices,
        default=ConversationState.AWAIT_CODE,
    )
    context = models.JSONField(default=dict, blank=True)
    last_activity_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "whatsapp_conversations"
        ordering = ["-last_activity_at"]
        indexes = [
            models.Index(fields=["last_activity_at"], name="conversations_activity_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.phone} ({self.state})"


class MessageLog(BaseModel):
    phone = models.CharField(max_length=20, blank=True, default="")
    direction = models.CharField(max_length=3, choices=MessageDirection.choices)
    provider_message_id = models.CharField(
        max_length=128, unique=True, null=True, blank=True
    )
    body = models.TextField(blank=True, default="")
    raw_payload = models.JSONField(default=dict, blank=True)
    delivery_status = models.CharField(
        max_length=20, choices=DeliveryStatus.choices, default=DeliveryStatus.RECEIVED
    )
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="messages",
    )

    class Meta:
        db_table = "whatsapp_messages"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["phone", "-created_at"], name="messages_phone_created_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.direction} {self.phone}"
