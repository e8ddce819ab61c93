"""Unit tests for OrderService."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest
from django.db import IntegrityError

from modules.orders.constants import DeliveryType, OrderStatus, PaymentStatus
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
from modules.orders.exceptions import (
    InsufficientStock,
    InvalidOrderStatus,
    InvalidSchool,
    OrderNotFound,
    UnknownItem,
)
from modules.orders.models import Order, OrderItem
from modules.orders.services import OrderService, get_order_service
from modules.payments.exceptions import PaymentProviderError

pytestmark = pytest.mark.unit


def _item(price=10000, stock=5, active=True):
    return SimpleNamespace(
        id=uuid4(), title="Reader", price_paise=price, stock=stock, is_active=active
    )


def _dto(items, **overrides):
    data = {
        "school_code": "1234",
        "items": [CreateOrderItemDTO(item_id=i.id, quantity=q) for i, q in items],
        "delivery_type": DeliveryType.SCHOOL,
        "parent_phone": "919876543210",
    }
    data.update(overrides)
    return CreateOrderDTO(**data)


@pytest.fixture()
def deps():
    order_repo = MagicMock()
    order_repo.get_by_idempotency_key.return_value = None
    created = MagicMock(
        id=uuid4(), order_number="ORD-20240101-ABC123", total_amount_paise=25000
    )
    created.payment_link = ""
    order_repo.create.return_value = created

    catalog_repo = MagicMock()
    catalog_repo.get_active_school_by_code.return_value = SimpleNamespace(id=uuid4())

    settings_service = MagicMock()
    settings_service.delivery_charge_paise.return_value = 5000

    return SimpleNamespace(
        order_repo=order_repo,
        catalog_repo=catalog_repo,
        settings=settings_service,
        payment_links=MagicMock(),
        created=created,
    )


def _service(deps, with_links=True):
    return OrderService(
        deps.order_repo,
        deps.catalog_repo,
        deps.settings,
        deps.payment_links if with_links else None,
    )


class TestCreateOrderWithMocks:
    def test_snapshots_price_and_adds_delivery_charge(self, deps):
        item = _item(price=10000)
        deps.catalog_repo.get_items.return_value = {item.id: item}
        deps.payment_links.issue.return_value = "https://rzp.io/i/abc"

        result = _service(deps).create_order(_dto([(item, 2)]))

        data = deps.order_repo.create.call_args[0][0]
        assert data["delivery_charge_paise"] == 5000
        assert data["items"] == [
            {"item_id": item.id, "quantity": 2, "unit_price_paise": 10000}
        ]
        deps.settings.delivery_charge_paise.assert_called_once_with(DeliveryType.SCHOOL)
        deps.order_repo.save.assert_called_once_with(deps.created)
        assert result.payment_link == "https://rzp.io/i/abc"
        assert result.order_number == "ORD-20240101-ABC123"

    def test_unknown_school(self, deps):
        deps.catalog_repo.get_active_school_by_code.return_value = None

        with pytest.raises(InvalidSchool):
            _service(deps).create_order(_dto([(_item(), 1)]))

        deps.order_repo.create.assert_not_called()

    def test_class_from_another_school(self, deps):
        deps.catalog_repo.get_class.return_value = None

        with pytest.raises(InvalidSchool):
            _service(deps).create_order(_dto([(_item(), 1)], class_id=uuid4()))

    def test_unknown_item(self, deps):
        deps.catalog_repo.get_items.return_value = {}

        with pytest.raises(UnknownItem):
            _service(deps).create_order(_dto([(_item(), 1)]))

        deps.order_repo.create.assert_not_called()

    def test_inactive_item_is_unknown(self, deps):
        item = _item(active=False)
        deps.catalog_repo.get_items.return_value = {item.id: item}

        with pytest.raises(UnknownItem):
            _service(deps).create_order(_dto([(item, 1)]))

    def test_insufficient_stock(self, deps):
        item = _item(stock=1)
        deps.catalog_repo.get_items.return_value = {item.id: item}

        with pytest.raises(InsufficientStock):
            _service(deps).create_order(_dto([(item, 2)]))

        deps.order_repo.create.assert_not_called()

    def test_idempotency_hit_returns_existing_order(self, deps):
        existing = MagicMock(
            id=uuid4(),
            order_number="ORD-20240101-EXIST1",
            total_amount_paise=9000,
            payment_link="https://rzp.io/i/old",
        )
        deps.order_repo.get_by_idempotency_key.return_value = existing

        result = _service(deps).create_order(
            _dto([(_item(), 1)], idempotency_key="wa:msg-1")
        )

        assert result.order_id == existing.id
        assert result.payment_link == "https://rzp.io/i/old"
        deps.order_repo.create.assert_not_called()
        deps.payment_links.issue.assert_not_called()

    def test_payment_link_failure_keeps_order(self, deps):
        item = _item()
        deps.catalog_repo.get_items.return_value = {item.id: item}
        deps.payment_links.issue.side_effect = PaymentProviderError("boom")

        result = _service(deps).create_order(_dto([(item, 1)]))

        assert result.payment_link is None
        deps.order_repo.save.assert_called_once()

    def test_without_payment_service_link_is_skipped(self, deps):
        item = _item()
        deps.catalog_repo.get_items.return_value = {item.id: item}

        result = _service(deps, with_links=False).create_order(_dto([(item, 1)]))

        assert result.payment_link is None


class TestCreateOrderWithDatabase:
    def test_persists_order_items_and_totals(self, school, school_class, books, default_settings):
        service = get_order_service()

        result = service.create_order(
            _dto(
                [(books[0], 1), (books[1], 2)],
                class_id=school_class.id,
                delivery_type=DeliveryType.HOME,
                address="22 Lake View, Pune",
            )
        )

        order = Order.objects.get(id=result.order_id)
        assert order.items_total_paise == 10000 + 2 * 24000
        assert order.delivery_charge_paise == 15000
        assert order.total_amount_paise == order.items_total_paise + 15000
        assert order.status == OrderStatus.PENDING
        assert order.payment_status == PaymentStatus.PENDING
        assert order.order_number.startswith("ORD-")
        assert order.delivery_address == "22 Lake View, Pune"
        assert result.payment_link is None
        subtotals = sorted(i.subtotal_paise for i in order.items.all())
        assert subtotals == [10000, 48000]

    def test_price_edit_after_creation_does_not_change_order(self, school, books, default_settings):
        result = get_order_service().create_order(_dto([(books[1], 1)]))

        books[1].price_paise = 99900
        books[1].save()

        line = OrderItem.objects.get(order_id=result.order_id)
        assert line.unit_price_paise == 24000
        assert Order.objects.get(id=result.order_id).total_amount_paise == 29000

    def test_unknown_item_creates_no_rows(self, school, default_settings):
        with pytest.raises(UnknownItem):
            get_order_service().create_order(
                _dto([(SimpleNamespace(id=uuid4()), 1)])
            )

        assert Order.objects.count() == 0
        assert OrderItem.objects.count() == 0

    def test_stock_is_checked_not_decremented(self, school, books, default_settings):
        get_order_service().create_order(_dto([(books[0], 3)]))

        books[0].refresh_from_db()
        assert books[0].stock == 10

    def test_same_idempotency_key_creates_one_order(self, school, books, default_settings):
        service = get_order_service()
        dto = _dto([(books[0], 1)], idempotency_key="wa:wamid.1")

        first = service.create_order(dto)
        second = service.create_order(dto)

        assert first.order_id == second.order_id
        assert Order.objects.count() == 1

    def test_key_taken_by_concurrent_request_returns_that_order(
        self, school, books, default_settings
    ):
        service = get_order_service()
        dto = _dto([(books[0], 1)], idempotency_key="ops-race")
        winner = service.create_order(dto)
        existing = Order.objects.get(idempotency_key="ops-race")

        # The lookup misses as if the other request had not committed yet.
        with patch.object(
            service._order_repo, "get_by_idempotency_key", side_effect=[None, existing]
        ):
            loser = service.create_order(dto)

        assert loser.order_id == winner.order_id
        assert Order.objects.count() == 1
        assert OrderItem.objects.count() == 1

    def test_other_integrity_errors_propagate(self, school, books, default_settings):
        service = get_order_service()

        with patch.object(
            service._order_repo, "create", side_effect=IntegrityError("order_number")
        ):
            with pytest.raises(IntegrityError):
                service.create_order(_dto([(books[0], 1)]))


class TestIssuePaymentLink:
    def test_not_found(self, deps):
        deps.order_repo.get_by_id.return_value = None

        with pytest.raises(OrderNotFound):
            _service(deps).issue_payment_link("missing")

    def test_paid_order_is_rejected(self, deps):
        deps.order_repo.get_by_id.return_value = SimpleNamespace(
            payment_status=PaymentStatus.PAID,
            is_terminal=False,
            order_number="ORD-1",
            payment_link="",
        )

        with pytest.raises(InvalidOrderStatus):
            _service(deps).issue_payment_link("id")

    def test_existing_link_is_returned(self, deps):
        deps.order_repo.get_by_id.return_value = SimpleNamespace(
            payment_status=PaymentStatus.PENDING,
            is_terminal=False,
            order_number="ORD-1",
            payment_link="https://rzp.io/i/x",
        )

        assert _service(deps).issue_payment_link("id") == "https://rzp.io/i/x"
        deps.payment_links.issue.assert_not_called()

    def test_unconfigured_provider(self, deps):
        deps.order_repo.get_by_id.return_value = SimpleNamespace(
            payment_status=PaymentStatus.PENDING,
            is_terminal=False,
            order_number="ORD-1",
            payment_link="",
        )

        with pytest.raises(PaymentProviderError):
            _service(deps, with_links=False).issue_payment_link("id")
