"""Asynchronous WhatsApp tasks."""

from datetime import timedelta

import structlog
from celery import shared_task
from django.conf import settings
from django.utils import timezone

logger = structlog.get_logger(__name__)


@shared_task(name="messaging.send_whatsapp_message")
def send_whatsapp_message(phone: str, body: str, order_id: str = ""):
    """Send one outbound message; failures are recorded, not retried."""
    from modules.messaging.services import get_outbound_messenger

    return str(get_outbound_messenger().send(phone, body, order_id=order_id or None))


@shared_task(name="messaging.purge_stale_conversations")
def purge_stale_conversations():
    """Delete conversations idle longer than ``CONVERSATION_TTL_HOURS``."""
    from modules.messaging.repositories.django_repository import (
        ConversationDjangoRepository,
    )

    cutoff = timezone.now() - timedelta(hours=settings.CONVERSATION_TTL_HOURS)
    purged = ConversationDjangoRepository().purge_inactive(cutoff)
    logger.info("conversation.purged", count=purged, ttl_hours=settings.CONVERSATION_TTL_HOURS)
    return purged
