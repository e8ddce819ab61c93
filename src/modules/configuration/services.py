"""Settings service: typed reads with hard-coded fallbacks.

Every key consumed by the order lifecycle has a default (see
``constants.DEFAULTS``).  A missing row, a non-numeric value, or a
non-positive value for a divisor-like key falls back to the default and is
logged, so a bad edit in the settings table never stops orders from being
priced or weighed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Iterable

import structlog

from modules.configuration.constants import (
    DEFAULTS,
    HOME_DELIVERY_CHARGE_KEY,
    PACKAGING_WEIGHT_KEY,
    POSITIVE_KEYS,
    SCHOOL_DELIVERY_CHARGE_KEY,
    VOLUMETRIC_DIVISOR_KEY,
    WEIGHT_ROUNDING_KEY,
)

if TYPE_CHECKING:
    from modules.configuration.repositories.interfaces import ISettingRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class WeightSettings:
    packaging_weight_grams: int
    volumetric_divisor: int
    rounding_grams: int


class SettingsService:
    """Application service for reading configuration values."""

    def __init__(self, repository: ISettingRepository) -> None:
        self._repo = repository

    def get_ints(self, keys: Iterable[str]) -> Dict[str, int]:
        keys = list(keys)
        raw = self._repo.get_values(keys)
        return {key: self._coerce(key, raw.get(key)) for key in keys}

    def get_int(self, key: str) -> int:
        return self.get_ints([key])[key]

    def weight_settings(self) -> WeightSettings:
        values = self.get_ints(
            [PACKAGING_WEIGHT_KEY, VOLUMETRIC_DIVISOR_KEY, WEIGHT_ROUNDING_KEY]
        )
        return WeightSettings(
            packaging_weight_grams=values[PACKAGING_WEIGHT_KEY],
            volumetric_divisor=values[VOLUMETRIC_DIVISOR_KEY],
            rounding_grams=values[WEIGHT_ROUNDING_KEY],
        )

    def delivery_charge_paise(self, delivery_type: str) -> int:
        key = (
            HOME_DELIVERY_CHARGE_KEY
            if delivery_type == "home"
            else SCHOOL_DELIVERY_CHARGE_KEY
        )
        return self.get_int(key)

    @staticmethod
    def _coerce(key: str, value: Any) -> int:
        default = DEFAULTS[key]
        if value is None:
            return default
        try:
            number = int(value)
        except (TypeError, ValueError):
            logger.warning("settings.invalid_value", key=key, value=repr(value))
            return default
        if number < 0 or (key in POSITIVE_KEYS and number == 0):
            logger.warning("settings.out_of_range", key=key, value=number)
            return default
        return number


def get_settings_service() -> SettingsService:
    from modules.configuration.repositories.django_repository import (
        SettingDjangoRepository,
    )

    return SettingsService(SettingDjangoRepository())
