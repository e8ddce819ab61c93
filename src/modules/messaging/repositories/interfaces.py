"""Messaging repository interfaces.

``IConversationRepository.get_for_update`` must be called inside a
transaction: it returns the sender's conversation (creating it in the
initial state when absent) holding a row lock until commit, so messages
from one sender are processed one at a time.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Optional
from uuid import UUID

if TYPE_CHECKING:
    from modules.messaging.models import Conversation, MessageLog


class IConversationRepository(ABC):
    @abstractmethod
    def get_for_update(self, phone: str) -> Conversation:
        """Locked conversation for ``phone``; created when absent."""

    @abstractmethod
    def save_state(self, phone: str, state: str, context: Dict[str, Any]) -> None:
        """Store the new state and context and touch ``last_activity_at``."""

    @abstractmethod
    def delete(self, phone: str) -> bool:
        """Remove the conversation; ``True`` if one existed."""

    @abstractmethod
    def purge_inactive(self, before: datetime) -> int:
        """Delete conversations idle since before ``before``; return the count."""


class IMessageLogRepository(ABC):
    @abstractmethod
    def record_inbound(
        self,
        phone: str,
        body: str,
        provider_message_id: Optional[str],
        raw_payload: Dict[str, Any],
    ) -> bool:
        """Log an inbound message; ``False`` if its provider id was already logged."""

    @abstractmethod
    def record_outbound(
        self,
        phone: str,
        body: str,
        delivery_status: str,
        provider_message_id: Optional[str] = None,
        order_id: Optional[UUID] = None,
    ) -> MessageLog:
        """Log an outbound message."""

    @abstractmethod
    def update_delivery_status(self, provider_message_id: str, status: str) -> bool:
        """Apply a provider delivery receipt to an outbound message."""
