"""Weight calculator.

``calculate_weights`` is a pure function over order lines and weight
settings; ``WeightService`` loads an order, runs the calculation and
persists the result on the order and on parcel index 0.

Rules:
- actual = sum(item weight x qty) + packaging weight x package count
- volumetric = round half up(max L x max W x max H / divisor x 1000),
  0 when any maximum dimension is 0
- billed = max(actual, volumetric) rounded up to a multiple of the
  rounding unit
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Iterable, Optional

import structlog
from django.db import transaction

from modules.orders.constants import DEFAULT_PACKAGE_COUNT
from modules.orders.dtos import DimensionsDTO, WeightResultDTO
from modules.orders.exceptions import OrderNotFound

if TYPE_CHECKING:
    from modules.configuration.services import SettingsService, WeightSettings
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class WeightLine:
    weight_grams: int
    quantity: int
    length_cm: Optional[int] = None
    width_cm: Optional[int] = None
    height_cm: Optional[int] = None


def volumetric_grams(length_cm: int, width_cm: int, height_cm: int, divisor: int) -> int:
    if not (length_cm > 0 and width_cm > 0 and height_cm > 0):
        return 0
    grams = Decimal(length_cm * width_cm * height_cm * 1000) / Decimal(divisor)
    return int(grams.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def round_up_to(value: int, unit: int) -> int:
    return -(-value // unit) * unit


def calculate_weights(
    lines: Iterable[WeightLine],
    settings: WeightSettings,
    package_count: int = DEFAULT_PACKAGE_COUNT,
) -> WeightResultDTO:
    items_weight = 0
    max_length = max_width = max_height = 0
    for line in lines:
        items_weight += line.weight_grams * line.quantity
        max_length = max(max_length, line.length_cm or 0)
        max_width = max(max_width, line.width_cm or 0)
        max_height = max(max_height, line.height_cm or 0)

    actual = items_weight + settings.packaging_weight_grams * package_count
    volumetric = volumetric_grams(
        max_length, max_width, max_height, settings.volumetric_divisor
    )
    billed = round_up_to(max(actual, volumetric), settings.rounding_grams)

    return WeightResultDTO(
        package_count=package_count,
        actual_weight_grams=actual,
        volumetric_grams=volumetric,
        billed_weight_grams=billed,
        dimensions=DimensionsDTO(
            length_cm=max_length, width_cm=max_width, height_cm=max_height
        ),
    )


class WeightService:
    """Computes and stores the shipping weights of an order.

    Re-running it for the same order and settings rewrites the same
    values, so callers may invoke it as often as they like.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        settings_service: SettingsService,
    ) -> None:
        self._order_repo = order_repository
        self._settings = settings_service

    @transaction.atomic
    def compute(self, order_id: str) -> WeightResultDTO:
        """Raises:
        OrderNotFound: order does not exist.
        """
        order = self._order_repo.get_by_id(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        lines = [
            WeightLine(
                weight_grams=line.item.weight_grams,
                quantity=line.quantity,
                length_cm=line.item.length_cm,
                width_cm=line.item.width_cm,
                height_cm=line.item.height_cm,
            )
            for line in order.items.all()
        ]
        result = calculate_weights(lines, self._settings.weight_settings())
        self._order_repo.save_weights(order.id, result)

        logger.info(
            "order.weights_computed",
            order_id=str(order.id),
            actual=result.actual_weight_grams,
            volumetric=result.volumetric_grams,
            billed=result.billed_weight_grams,
        )
        return result


def get_weight_service() -> WeightService:
    from modules.configuration.services import get_settings_service
    from modules.orders.repositories.django_repository import OrderDjangoRepository

    return WeightService(OrderDjangoRepository(), get_settings_service())
