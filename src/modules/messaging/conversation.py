"""Conversation engine: turns a sender's message stream into an order.

One step handler per ``ConversationState``; the transition table below is
checked against the enum when this module is imported.  Each inbound
message is processed inside one transaction holding a row lock on the
sender's conversation:

- ``START`` (any case) deletes the conversation and sends the welcome.
- Valid input stores the next state and merged context.
- Invalid input only re-prompts; state and context stay as they were.
- A successful ``CONFIRM`` submits the order and deletes the conversation.

``advance`` runs that locked step.  ``reply_for`` renders the reply after
the lock is released; for a new order it is also where the payment link is
requested, so a slow provider never holds the row lock.  ``handle`` does
both.  Sending the reply is the caller's job.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

import structlog
from django.core.exceptions import ImproperlyConfigured
from django.db import transaction
from pydantic import ValidationError as DTOValidationError

from modules.messaging import messages
from modules.messaging.constants import (
    CATEGORY_CHOICES,
    CONFIRM_COMMAND,
    DELIVERY_CHOICES,
    ITEM_PREVIEW_LIMIT,
    START_COMMAND,
    ConversationState,
)
from modules.orders.constants import (
    CONVERSATION_ITEM_QUANTITY,
    MAX_CONVERSATION_ITEMS,
    DeliveryType,
)
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO, OrderCreatedDTO
from modules.orders.exceptions import InsufficientStock, InvalidSchool, UnknownItem

if TYPE_CHECKING:
    from modules.catalog.repositories.interfaces import ICatalogRepository
    from modules.configuration.services import SettingsService
    from modules.messaging.repositories.interfaces import IConversationRepository
    from modules.orders.services import OrderService

logger = structlog.get_logger(__name__)

SCHOOL_CODE_RE = re.compile(r"^\d{4}$")


@dataclass
class Step:
    """Result of one step handler.

    ``next_state`` ``None`` leaves the conversation untouched; ``finished``
    deletes it.
    """

    reply: str
    next_state: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict)
    finished: bool = False
    order: Optional[OrderCreatedDTO] = None


@dataclass(frozen=True)
class Inbound:
    phone: str
    text: str
    message_id: str = ""
    profile_name: str = ""


StepHandler = Callable[["ConversationEngine", Inbound, Dict[str, Any]], Step]


class ConversationEngine:
    def __init__(
        self,
        conversation_repository: IConversationRepository,
        catalog_repository: ICatalogRepository,
        settings_service: SettingsService,
        order_service: OrderService,
    ) -> None:
        self._conversations = conversation_repository
        self._catalog = catalog_repository
        self._settings = settings_service
        self._orders = order_service

    def handle(self, inbound: Inbound) -> str:
        return self.reply_for(self.advance(inbound))

    def reply_for(self, step: Step) -> str:
        if step.order is None:
            return step.reply
        order = step.order
        link = order.payment_link or self._orders.payment_link_for(order.order_id)
        return messages.order_created(order.order_number, order.total_amount_paise, link)

    @transaction.atomic
    def advance(self, inbound: Inbound) -> Step:
        text = inbound.text.strip()
        inbound = Inbound(inbound.phone, text, inbound.message_id, inbound.profile_name)
        conversation = self._conversations.get_for_update(inbound.phone)
        log = logger.bind(phone=inbound.phone, state=conversation.state)

        if text.upper() == START_COMMAND:
            self._conversations.delete(inbound.phone)
            log.info("conversation.reset")
            return Step(messages.WELCOME)

        handler = TRANSITIONS.get(conversation.state)
        if handler is None:
            log.error("conversation.unknown_state")
            return Step(messages.UNKNOWN_STATE)

        context = dict(conversation.context or {})
        step = handler(self, inbound, context)

        if step.finished:
            self._conversations.delete(inbound.phone)
            log.info("conversation.finished")
        elif step.next_state is not None:
            merged = {**context, **step.context}
            if inbound.profile_name and not merged.get("parent_name"):
                merged["parent_name"] = inbound.profile_name
            self._conversations.save_state(inbound.phone, step.next_state, merged)
            log.info("conversation.advanced", next_state=step.next_state)
        else:
            log.info("conversation.invalid_input")
        return step

    # ------------------------------------------------------------------
    # Step handlers
    # ------------------------------------------------------------------

    def _on_code(self, inbound: Inbound, context: Dict[str, Any]) -> Step:
        if not SCHOOL_CODE_RE.match(inbound.text):
            return Step(messages.ASK_CODE)
        school = self._catalog.get_active_school_by_code(inbound.text)
        if not school:
            return Step(messages.INVALID_CODE)

        classes = [
            {"id": str(c.id), "name": c.name} for c in self._catalog.list_classes(school.id)
        ]
        return Step(
            messages.class_menu(school.name, [c["name"] for c in classes]),
            ConversationState.AWAIT_CLASS,
            {
                "school_id": str(school.id),
                "school_name": school.name,
                "school_code": school.code,
                "classes": classes,
            },
        )

    def _on_class(self, inbound: Inbound, context: Dict[str, Any]) -> Step:
        classes = context.get("classes") or []
        if not inbound.text.isdigit() or not 1 <= int(inbound.text) <= len(classes):
            return Step(messages.INVALID_CLASS)
        chosen = classes[int(inbound.text) - 1]
        return Step(
            messages.ASK_CATEGORY,
            ConversationState.AWAIT_CATEGORY,
            {"class_id": chosen["id"], "class_name": chosen["name"]},
        )

    def _on_category(self, inbound: Inbound, context: Dict[str, Any]) -> Step:
        category = CATEGORY_CHOICES.get(inbound.text)
        if category is None:
            return Step(messages.INVALID_CATEGORY)
        group = self._catalog.first_group_for_class(context.get("class_id", ""), category)
        if group is None:
            return Step(messages.NO_ITEMS_FOR_CLASS)

        items = [
            {"id": str(item.id), "title": item.title, "price_paise": item.price_paise}
            for item in self._catalog.list_active_items(group.id)
        ]
        return Step(
            messages.delivery_menu(
                items[:ITEM_PREVIEW_LIMIT],
                self._settings.delivery_charge_paise(DeliveryType.SCHOOL),
                self._settings.delivery_charge_paise(DeliveryType.HOME),
            ),
            ConversationState.AWAIT_DELIVERY,
            {"category": str(category), "items": items},
        )

    def _on_delivery(self, inbound: Inbound, context: Dict[str, Any]) -> Step:
        delivery_type = DELIVERY_CHOICES.get(inbound.text)
        if delivery_type is None:
            return Step(messages.INVALID_DELIVERY)
        if delivery_type == DeliveryType.HOME:
            return Step(
                messages.ASK_ADDRESS,
                ConversationState.AWAIT_ADDRESS,
                {"delivery_type": str(delivery_type)},
            )
        return Step(
            messages.ASK_CONFIRM,
            ConversationState.AWAIT_CONFIRM,
            {"delivery_type": str(delivery_type)},
        )

    def _on_address(self, inbound: Inbound, context: Dict[str, Any]) -> Step:
        if not inbound.text:
            return Step(messages.ASK_ADDRESS)
        return Step(
            messages.ASK_CONFIRM, ConversationState.AWAIT_CONFIRM, {"address": inbound.text}
        )

    def _on_confirm(self, inbound: Inbound, context: Dict[str, Any]) -> Step:
        if inbound.text.upper() != CONFIRM_COMMAND:
            return Step(messages.INVALID_CONFIRM)
        if not context.get("school_code"):
            logger.error("conversation.missing_school_code", phone=inbound.phone)
            return Step(messages.BROKEN_CONTEXT)

        candidates = (context.get("items") or [])[:MAX_CONVERSATION_ITEMS]
        if not candidates:
            return Step(messages.NO_ITEMS_TO_ORDER)

        try:
            dto = CreateOrderDTO(
                school_code=context["school_code"],
                class_id=context.get("class_id"),
                items=[
                    CreateOrderItemDTO(item_id=item["id"], quantity=CONVERSATION_ITEM_QUANTITY)
                    for item in candidates
                ],
                delivery_type=context.get("delivery_type", DeliveryType.SCHOOL),
                parent_phone=inbound.phone,
                parent_name=context.get("parent_name") or inbound.profile_name,
                address=context.get("address", ""),
                idempotency_key=f"wa:{inbound.message_id}" if inbound.message_id else None,
            )
            result = self._orders.create_order(dto, with_payment_link=False)
        except (InvalidSchool, UnknownItem, InsufficientStock) as exc:
            logger.warning(
                "conversation.order_rejected", phone=inbound.phone, error=type(exc).__name__
            )
            return Step(messages.order_failed(str(exc)))
        except DTOValidationError as exc:
            logger.warning("conversation.order_invalid", phone=inbound.phone)
            return Step(messages.order_failed(exc.errors()[0]["msg"]))

        return Step("", finished=True, order=result)


TRANSITIONS: Dict[str, StepHandler] = {
    ConversationState.AWAIT_CODE: ConversationEngine._on_code,
    ConversationState.AWAIT_CLASS: ConversationEngine._on_class,
    ConversationState.AWAIT_CATEGORY: ConversationEngine._on_category,
    ConversationState.AWAIT_DELIVERY: ConversationEngine._on_delivery,
    ConversationState.AWAIT_ADDRESS: ConversationEngine._on_address,
    ConversationState.AWAIT_CONFIRM: ConversationEngine._on_confirm,
}

_missing = set(ConversationState.values) - set(TRANSITIONS)
if _missing:
    raise ImproperlyConfigured(f"No conversation step handler for: {sorted(_missing)}")


def get_conversation_engine() -> ConversationEngine:
    from modules.catalog.repositories.django_repository import CatalogDjangoRepository
    from modules.configuration.services import get_settings_service
    from modules.messaging.repositories.django_repository import (
        ConversationDjangoRepository,
    )
    from modules.orders.services import get_order_service

    return ConversationEngine(
        ConversationDjangoRepository(),
        CatalogDjangoRepository(),
        get_settings_service(),
        get_order_service(),
    )
