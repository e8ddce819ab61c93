"""Conversation and message constants."""

from django.db import models

from modules.catalog.models import GroupType
from modules.orders.constants import DeliveryType


class ConversationState(models.TextChoices):
    AWAIT_CODE = "AWAIT_CODE", "Awaiting school code"
    AWAIT_CLASS = "AWAIT_CLASS", "Awaiting class"
    AWAIT_CATEGORY = "AWAIT_CATEGORY", "Awaiting category"
    AWAIT_DELIVERY = "AWAIT_DELIVERY", "Awaiting delivery type"
    AWAIT_ADDRESS = "AWAIT_ADDRESS", "Awaiting address"
    AWAIT_CONFIRM = "AWAIT_CONFIRM", "Awaiting confirmation"


class MessageDirection(models.TextChoices):
    INBOUND = "in", "Inbound"
    OUTBOUND = "out", "Outbound"


class DeliveryStatus(models.TextChoices):
    RECEIVED = "received", "Received"
    LOGGED = "logged", "Logged only"
    SENT = "sent", "Sent"
    DELIVERED = "delivered", "Delivered"
    READ = "read", "Read"
    FAILED = "failed", "Failed"


START_COMMAND = "START"
CONFIRM_COMMAND = "CONFIRM"

CATEGORY_CHOICES = {"1": GroupType.BOOKS, "2": GroupType.STATIONERY}
DELIVERY_CHOICES = {"1": DeliveryType.SCHOOL, "2": DeliveryType.HOME}

ITEM_PREVIEW_LIMIT = 5
