"""Settings repositories package."""

from modules.configuration.repositories.django_repository import (
    SettingDjangoRepository,
)
from modules.configuration.repositories.interfaces import ISettingRepository

__all__ = ["ISettingRepository", "SettingDjangoRepository"]
