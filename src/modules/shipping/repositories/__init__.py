"""Courier event repositories package."""

from modules.shipping.repositories.django_repository import CourierEventDjangoRepository
from modules.shipping.repositories.interfaces import ICourierEventRepository

__all__ = ["CourierEventDjangoRepository", "ICourierEventRepository"]
