"""Django ORM implementation of the settings repository."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

from modules.configuration.models import Setting
from modules.configuration.repositories.interfaces import ISettingRepository


class SettingDjangoRepository(ISettingRepository):
    """Concrete settings repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Setting]:
        return Setting.objects.filter(key=id).first()

    def get_values(self, keys: Iterable[str]) -> Dict[str, Any]:
        return dict(Setting.objects.filter(key__in=list(keys)).values_list("key", "value"))

    def get_value(self, key: str) -> Optional[Any]:
        return self.get_values([key]).get(key)
