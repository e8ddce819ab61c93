"""Messaging repositories package."""

from modules.messaging.repositories.django_repository import (
    ConversationDjangoRepository,
    MessageLogDjangoRepository,
)
from modules.messaging.repositories.interfaces import (
    IConversationRepository,
    IMessageLogRepository,
)

__all__ = [
    "ConversationDjangoRepository",
    "IConversationRepository",
    "IMessageLogRepository",
    "MessageLogDjangoRepository",
]
