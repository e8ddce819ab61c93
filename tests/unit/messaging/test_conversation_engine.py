"""Tests for the WhatsApp conversation engine."""

from __future__ import annotations

from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from modules.messaging import messages
from modules.messaging.constants import ConversationState
from modules.messaging.conversation import (
    TRANSITIONS,
    ConversationEngine,
    Inbound,
    get_conversation_engine,
)
from modules.messaging.models import Conversation
from modules.orders.dtos import OrderCreatedDTO
from modules.orders.models import Order

pytestmark = pytest.mark.unit

PHONE = "919800000001"


def send(engine, text, message_id="", profile_name=""):
    return engine.handle(Inbound(PHONE, text, message_id, profile_name))


def state():
    conversation = Conversation.objects.filter(phone=PHONE).first()
    return conversation.state if conversation else None


@pytest.fixture()
def engine(school, school_class, books, default_settings):
    return get_conversation_engine()


def walk_to_confirm(engine, delivery="1"):
    send(engine, "1234", profile_name="Asha")
    send(engine, "1")
    send(engine, "1")
    send(engine, delivery)
    if delivery == "2":
        send(engine, "22 Lake View, Pune")


class TestTransitionTable:
    def test_every_state_has_a_handler(self):
        assert set(TRANSITIONS) == set(ConversationState.values)


class TestConversationFlow:
    @pytest.mark.parametrize(
        "inputs, reached",
        [
            (["hello"], ConversationState.AWAIT_CODE),
            (["1234"], ConversationState.AWAIT_CLASS),
            (["1234", "1"], ConversationState.AWAIT_CATEGORY),
            (["1234", "1", "1"], ConversationState.AWAIT_DELIVERY),
            (["1234", "1", "1", "2"], ConversationState.AWAIT_ADDRESS),
            (["1234", "1", "1", "1"], ConversationState.AWAIT_CONFIRM),
        ],
    )
    def test_start_resets_from_any_state(self, engine, inputs, reached):
        for text in inputs:
            send(engine, text)
        assert state() == reached

        reply = send(engine, "start")

        assert reply == messages.WELCOME
        assert state() is None

    def test_every_state_is_covered_by_the_reset_test(self):
        covered = {
            ConversationState.AWAIT_CODE,
            ConversationState.AWAIT_CLASS,
            ConversationState.AWAIT_CATEGORY,
            ConversationState.AWAIT_DELIVERY,
            ConversationState.AWAIT_ADDRESS,
            ConversationState.AWAIT_CONFIRM,
        }
        assert covered == set(ConversationState.values)

    def test_non_code_text_asks_for_code(self, engine):
        assert send(engine, "hello") == messages.ASK_CODE
        assert state() == ConversationState.AWAIT_CODE

    def test_invalid_code(self, engine):
        assert send(engine, "9999") == messages.INVALID_CODE
        assert state() == ConversationState.AWAIT_CODE

    def test_code_lists_classes(self, engine):
        reply = send(engine, "1234")

        assert "Green Valley School" in reply
        assert "1. Class 1" in reply
        assert state() == ConversationState.AWAIT_CLASS

    def test_invalid_input_keeps_state_and_context(self, engine):
        send(engine, "1234")
        before = Conversation.objects.get(phone=PHONE).context

        reply = send(engine, "7")

        assert reply == messages.INVALID_CLASS
        conversation = Conversation.objects.get(phone=PHONE)
        assert conversation.state == ConversationState.AWAIT_CLASS
        assert conversation.context == before

    def test_category_shows_items_and_charges(self, engine):
        send(engine, "1234")
        send(engine, "1")

        reply = send(engine, "1")

        assert "Art Book" in reply
        assert "₹100.00" in reply
        assert "School Delivery - ₹50" in reply
        assert "Home Delivery - ₹150" in reply
        assert state() == ConversationState.AWAIT_DELIVERY

    def test_category_without_group(self, engine):
        send(engine, "1234")
        send(engine, "1")

        assert send(engine, "2") == messages.NO_ITEMS_FOR_CLASS
        assert state() == ConversationState.AWAIT_CATEGORY

    def test_school_delivery_skips_address(self, engine):
        walk_to_confirm(engine, delivery="1")

        assert state() == ConversationState.AWAIT_CONFIRM

    def test_wrong_confirmation_word(self, engine):
        walk_to_confirm(engine)

        assert send(engine, "yes") == messages.INVALID_CONFIRM
        assert state() == ConversationState.AWAIT_CONFIRM

    def test_confirm_creates_order_with_three_items(self, engine):
        walk_to_confirm(engine, delivery="2")

        reply = send(engine, "Confirm", message_id="wamid.confirm-1")

        order = Order.objects.get()
        assert f"Order #{order.order_number} created" in reply
        assert order.items.count() == 3
        assert set(order.items.values_list("quantity", flat=True)) == {1}
        assert sorted(order.items.values_list("item__title", flat=True)) == [
            "Art Book",
            "English Reader",
            "Maths Workbook",
        ]
        assert order.delivery_type == "home"
        assert order.delivery_address == "22 Lake View, Pune"
        assert order.parent_name == "Asha"
        assert order.idempotency_key == "wa:wamid.confirm-1"
        assert order.total_amount_paise == 10000 + 24000 + 18000 + 15000
        assert state() is None

    def test_rejected_order_keeps_conversation(self, engine, books):
        walk_to_confirm(engine)
        for book in books:
            book.stock = 0
            book.save()

        reply = send(engine, "CONFIRM")

        assert reply.startswith("Order failed:")
        assert Order.objects.count() == 0
        assert state() == ConversationState.AWAIT_CONFIRM

    def test_broken_context(self, engine):
        Conversation.objects.create(
            phone=PHONE, state=ConversationState.AWAIT_CONFIRM, context={}
        )

        assert send(engine, "CONFIRM") == messages.BROKEN_CONTEXT

    def test_unknown_stored_state(self, engine):
        Conversation.objects.create(phone=PHONE, state="LEGACY", context={})

        assert send(engine, "hi") == messages.UNKNOWN_STATE


class TestEngineWithMocks:
    def test_order_rejection_is_reported(self):
        from modules.orders.exceptions import InvalidSchool

        conversations = MagicMock()
        conversations.get_for_update.return_value = MagicMock(
            state=ConversationState.AWAIT_CONFIRM,
            context={
                "school_code": "1234",
                "delivery_type": "school",
                "items": [{"id": "0190a1b2-0000-7000-8000-000000000001"}],
            },
        )
        orders = MagicMock()
        orders.create_order.side_effect = InvalidSchool("School code 1234 is not valid.")
        engine = ConversationEngine(conversations, MagicMock(), MagicMock(), orders)

        reply = engine.handle(Inbound(PHONE, "CONFIRM", "wamid.x"))

        assert reply == messages.order_failed("School code 1234 is not valid.")
        conversations.delete.assert_not_called()
        conversations.save_state.assert_not_called()
        dto = orders.create_order.call_args[0][0]
        assert dto.idempotency_key == "wa:wamid.x"
        assert dto.items[0].quantity == 1

    def test_payment_link_is_requested_after_the_locked_step(self):
        calls = MagicMock()
        calls.conversations.get_for_update.return_value = MagicMock(
            state=ConversationState.AWAIT_CONFIRM,
            context={
                "school_code": "1234",
                "delivery_type": "school",
                "items": [{"id": "0190a1b2-0000-7000-8000-000000000001"}],
            },
        )
        order_id = uuid4()
        calls.orders.create_order.return_value = OrderCreatedDTO(
            order_id=order_id, order_number="ORD-20240101-ABCDEF", total_amount_paise=15000
        )
        calls.orders.payment_link_for.return_value = "https://rzp.io/i/abc"
        engine = ConversationEngine(
            calls.conversations, MagicMock(), MagicMock(), calls.orders
        )

        step = engine.advance(Inbound(PHONE, "CONFIRM", "wamid.y"))

        assert calls.orders.create_order.call_args.kwargs == {"with_payment_link": False}
        calls.conversations.delete.assert_called_once_with(PHONE)
        calls.orders.payment_link_for.assert_not_called()

        reply = engine.reply_for(step)

        calls.orders.payment_link_for.assert_called_once_with(order_id)
        assert reply == messages.order_created(
            "ORD-20240101-ABCDEF", 15000, "https://rzp.io/i/abc"
        )
