"""Order API views.

Exposes the order services via HTTP using a DRF ViewSet.
Domain exceptions are caught and translated into HTTP responses with a
``{"code", "detail"}`` body; the view never swallows generic exceptions.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as DTOValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.pagination import StandardResultsSetPagination
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
from modules.orders.exceptions import (
    InsufficientStock,
    InvalidOrderStatus,
    InvalidSchool,
    OrderNotFound,
    UnknownItem,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.serializers import (
    CreateOrderSerializer,
    OrderListSerializer,
    OrderSerializer,
)
from modules.orders.services import get_order_service
from modules.orders.weights import get_weight_service
from modules.payments.exceptions import PaymentProviderError
from modules.shipping.exceptions import CourierProviderError
from modules.shipping.services import get_courier_dispatcher

CREATE_ERRORS = {
    InvalidSchool: status.HTTP_400_BAD_REQUEST,
    UnknownItem: status.HTTP_404_NOT_FOUND,
    InsufficientStock: status.HTTP_409_CONFLICT,
}


def error_response(exc: Exception, http_status: int) -> Response:
    return Response(
        {"code": type(exc).__name__, "detail": str(exc)}, status=http_status
    )


def not_found() -> Response:
    return Response(
        {"code": "OrderNotFound", "detail": "Order not found."},
        status=status.HTTP_404_NOT_FOUND,
    )


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Does **not** extend ``ModelViewSet``; all writes go through the
    service/repository layer.
    """

    queryset = Order.objects.all()
    filterset_class = OrderFilter
    search_fields = ["order_number", "parent_phone", "parent_name"]
    ordering_fields = ["created_at", "total_amount_paise", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = get_order_service()

    def get_throttles(self) -> list[BaseThrottle]:
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Supports idempotency via the ``Idempotency-Key`` header.
        """
        create_serializer = CreateOrderSerializer(data=request.data)
        create_serializer.is_valid(raise_exception=True)
        data = create_serializer.validated_data

        try:
            dto = CreateOrderDTO(
                school_code=data["school_code"],
                class_id=data.get("class_id"),
                items=[
                    CreateOrderItemDTO(item_id=item["item_id"], quantity=item["qty"])
                    for item in data["items"]
                ],
                delivery_type=data["delivery_type"],
                parent_phone=data["parent_phone"],
                parent_name=data.get("parent_name", ""),
                address=data.get("address", ""),
                idempotency_key=request.headers.get("Idempotency-Key"),
            )
        except DTOValidationError as exc:
            return Response(
                {"code": "ValidationError", "detail": exc.errors()[0]["msg"]},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            result = self._service.create_order(dto)
        except tuple(CREATE_ERRORS) as exc:
            return error_response(exc, CREATE_ERRORS[type(exc)])

        return Response(result.model_dump(mode="json"), status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def get_queryset(self):
        return Order.objects.select_related("school")

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/"""
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._service.get_order(str(pk))
        except OrderNotFound:
            return not_found()
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Lifecycle actions (re-runnable)
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def weights(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/weights/"""
        try:
            result = get_weight_service().compute(str(pk))
        except OrderNotFound:
            return not_found()
        return Response({"order_id": str(pk), **result.model_dump()})

    @action(detail=True, methods=["post"])
    def shipment(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/shipment/"""
        try:
            result = get_courier_dispatcher().dispatch(str(pk))
        except OrderNotFound:
            return not_found()
        except InvalidOrderStatus as exc:
            return error_response(exc, status.HTTP_409_CONFLICT)
        except CourierProviderError as exc:
            return error_response(exc, status.HTTP_502_BAD_GATEWAY)
        return Response(result.model_dump(mode="json"))

    @action(detail=True, methods=["post"], url_path="payment-link")
    def payment_link(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/payment-link/"""
        try:
            link = self._service.issue_payment_link(str(pk))
        except OrderNotFound:
            return not_found()
        except InvalidOrderStatus as exc:
            return error_response(exc, status.HTTP_409_CONFLICT)
        except PaymentProviderError as exc:
            return error_response(exc, status.HTTP_502_BAD_GATEWAY)
        return Response({"order_id": str(pk), "payment_link": link})
