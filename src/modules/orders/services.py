"""Order service layer (Use Cases).

Orchestrates order assembly: validation against the catalog, price
snapshotting, delivery charge lookup and atomic persistence.  The
service defines the unit-of-work boundary; payment link issuance and
weight computation are best-effort side effects that never fail a
committed order.

Business rules enforced:
- The school must exist and be active; a class must belong to it.
- Every item must exist and be active, with enough stock for the
  requested quantity.  Stock is checked, not decremented.
- ``total = items_total + delivery_charge``, computed once at creation.
- An idempotency key already used returns the existing order.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

import structlog
from django.db import IntegrityError, transaction

from modules.orders.constants import PaymentStatus
from modules.orders.dtos import OrderCreatedDTO
from modules.orders.events import OrderCreated
from modules.orders.exceptions import (
    InsufficientStock,
    InvalidOrderStatus,
    InvalidSchool,
    OrderNotFound,
    UnknownItem,
)
from modules.payments.exceptions import PaymentProviderError

if TYPE_CHECKING:
    from modules.catalog.repositories.interfaces import ICatalogRepository
    from modules.configuration.services import SettingsService
    from modules.orders.dtos import CreateOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.payments.services import PaymentLinkService

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives repositories and collaborators via constructor injection (DIP).
    ``payment_links`` is optional: without it orders are created and the
    payment link is left for a later re-issue.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        catalog_repository: ICatalogRepository,
        settings_service: SettingsService,
        payment_links: Optional[PaymentLinkService] = None,
    ) -> None:
        self._order_repo = order_repository
        self._catalog_repo = catalog_repository
        self._settings = settings_service
        self._payment_links = payment_links

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_order(
        self, dto: CreateOrderDTO, with_payment_link: bool = True
    ) -> OrderCreatedDTO:
        """Validate, persist and announce a new order.

        With ``with_payment_link=False`` the caller requests the link later
        through ``payment_link_for``, typically once its own locks are released.

        Raises:
            InvalidSchool: unknown/inactive school code or foreign class.
            UnknownItem: an item does not exist or is inactive.
            InsufficientStock: an item has less stock than requested.
        """
        order, created = self._persist_order(dto)

        payment_link: Optional[str] = order.payment_link or None
        if created and with_payment_link:
            payment_link = self._issue_payment_link(order)

        return OrderCreatedDTO(
            order_id=order.id,
            order_number=order.order_number,
            total_amount_paise=order.total_amount_paise,
            payment_link=payment_link,
        )

    @transaction.atomic
    def _persist_order(self, dto: CreateOrderDTO) -> Tuple[Order, bool]:
        log = logger.bind(school_code=dto.school_code, parent_phone=dto.parent_phone)
        log.info("order.creation_started", item_count=len(dto.items))

        # 0. Idempotency check
        if dto.idempotency_key:
            existing = self._order_repo.get_by_idempotency_key(dto.idempotency_key)
            if existing:
                log.info(
                    "order.idempotency_hit",
                    order_id=str(existing.id),
                    key=dto.idempotency_key,
                )
                return existing, False

        # 1. School and class
        school = self._catalog_repo.get_active_school_by_code(dto.school_code)
        if not school:
            raise InvalidSchool(f"School code {dto.school_code} is not valid.")
        if dto.class_id and not self._catalog_repo.get_class(str(dto.class_id), school.id):
            raise InvalidSchool(
                f"Class {dto.class_id} does not belong to school {dto.school_code}."
            )

        # 2. Items with current price and stock
        catalog_items = self._catalog_repo.get_items(i.item_id for i in dto.items)
        repo_items: List[Dict[str, Any]] = []
        for item_dto in dto.items:
            item = catalog_items.get(item_dto.item_id)
            if item is None or not item.is_active:
                raise UnknownItem(f"Item {item_dto.item_id} not found.")
            if item.stock < item_dto.quantity:
                raise InsufficientStock(
                    f"Item {item.title}: requested {item_dto.quantity}, "
                    f"available {item.stock}."
                )
            repo_items.append(
                {
                    "item_id": item.id,
                    "quantity": item_dto.quantity,
                    "unit_price_paise": item.price_paise,
                }
            )

        # 3. Delivery charge
        delivery_charge = self._settings.delivery_charge_paise(dto.delivery_type)

        # 4. Persist order + items. A concurrent request with the same key
        # loses on the unique constraint and gets the winner's order.
        try:
            with transaction.atomic():
                order = self._order_repo.create(
                    {
                        "school_id": school.id,
                        "school_class_id": dto.class_id,
                        "parent_phone": dto.parent_phone,
                        "parent_name": dto.parent_name,
                        "delivery_type": dto.delivery_type,
                        "delivery_address": dto.address,
                        "delivery_charge_paise": delivery_charge,
                        "items": repo_items,
                        "idempotency_key": dto.idempotency_key,
                        "raw_request": dto.model_dump(mode="json"),
                    }
                )
        except IntegrityError:
            existing = (
                self._order_repo.get_by_idempotency_key(dto.idempotency_key)
                if dto.idempotency_key
                else None
            )
            if existing is None:
                raise
            log.info(
                "order.idempotency_race",
                order_id=str(existing.id),
                key=dto.idempotency_key,
            )
            return existing, False

        order.record_event(OrderCreated(aggregate_id=order.id))
        self._order_repo.save(order)

        log.info(
            "order.created",
            order_id=str(order.id),
            order_number=order.order_number,
            total_amount_paise=order.total_amount_paise,
        )
        return order, True

    def payment_link_for(self, order_id: Any) -> Optional[str]:
        """Existing or newly issued link; ``None`` when none can be issued now."""
        order = self.get_order(str(order_id))
        if order.payment_link:
            return order.payment_link
        return self._issue_payment_link(order)

    def issue_payment_link(self, order_id: str) -> str:
        """Re-issue a payment link for a pending order that has none.

        Returns the existing link when one was already issued.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: the order is no longer awaiting payment.
        """
        order = self.get_order(order_id)
        if order.payment_status != PaymentStatus.PENDING or order.is_terminal:
            raise InvalidOrderStatus(
                f"Order {order.order_number} is not awaiting payment."
            )
        if order.payment_link:
            return order.payment_link
        if self._payment_links is None:
            raise PaymentProviderError("Razorpay credentials are not configured.")
        return self._payment_links.issue(order)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> Order:
        """Raises:
        OrderNotFound: if the order does not exist.
        """
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_orders(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        return self._order_repo.list(filters)

    # ------------------------------------------------------------------
    # Side effects
    # ------------------------------------------------------------------

    def _issue_payment_link(self, order: Order) -> Optional[str]:
        if self._payment_links is None:
            logger.warning("order.payment_link_skipped", order_id=str(order.id))
            return None
        try:
            return self._payment_links.issue(order)
        except Exception:
            logger.exception("order.payment_link_failed", order_id=str(order.id))
            return None


def get_order_service() -> OrderService:
    from modules.catalog.repositories.django_repository import CatalogDjangoRepository
    from modules.configuration.services import get_settings_service
    from modules.orders.repositories.django_repository import OrderDjangoRepository
    from modules.payments.services import get_payment_link_service

    order_repository = OrderDjangoRepository()
    return OrderService(
        order_repository=order_repository,
        catalog_repository=CatalogDjangoRepository(),
        settings_service=get_settings_service(),
        payment_links=get_payment_link_service(order_repository),
    )
