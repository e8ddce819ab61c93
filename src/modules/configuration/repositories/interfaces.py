"""Settings repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional

from modules.core.repositories.interfaces import IReadRepository

if TYPE_CHECKING:
    from modules.configuration.models import Setting


class ISettingRepository(IReadRepository["Setting"]):
    """Read-only access to the settings table."""

    @abstractmethod
    def get_values(self, keys: Iterable[str]) -> Dict[str, Any]:
        """Return ``{key: value}`` for the keys present; absent keys are omitted."""

    @abstractmethod
    def get_value(self, key: str) -> Optional[Any]:
        """Return the raw value of one setting, ``None`` when absent."""
