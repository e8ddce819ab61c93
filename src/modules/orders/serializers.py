"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import DeliveryType
from modules.orders.models import CourierParcel, Order, OrderItem

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateOrderItemSerializer(serializers.Serializer):
    item_id = serializers.UUIDField()
    qty = serializers.IntegerField(min_value=1)


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order creation request payload."""

    school_code = serializers.RegexField(r"^\d{4}$")
    class_id = serializers.UUIDField(required=False, allow_null=True)
    items = CreateOrderItemSerializer(many=True, allow_empty=False)
    delivery_type = serializers.ChoiceField(choices=DeliveryType.choices)
    parent_phone = serializers.CharField(max_length=20)
    parent_name = serializers.CharField(required=False, default="", allow_blank=True)
    address = serializers.CharField(required=False, default="", allow_blank=True)

    def validate(self, attrs):
        if attrs["delivery_type"] == DeliveryType.HOME and not attrs.get("address", "").strip():
            raise serializers.ValidationError(
                {"address": "Address is required for home delivery."}
            )
        return attrs


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    """Read serializer for order items with catalog snapshot."""

    item_title = serializers.CharField(source="item.title", read_only=True)
    item_sku = serializers.CharField(source="item.sku", read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "item_id",
            "item_title",
            "item_sku",
            "quantity",
            "unit_price_paise",
            "subtotal_paise",
        ]
        read_only_fields = fields


class CourierParcelSerializer(serializers.ModelSerializer):
    class Meta:
        model = CourierParcel
        fields = [
            "parcel_index",
            "actual_weight_grams",
            "volumetric_weight_grams",
            "billed_weight_grams",
            "length_cm",
            "width_cm",
            "height_cm",
            "tracking_id",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items and parcels."""

    items = OrderItemSerializer(many=True, read_only=True)
    parcels = CourierParcelSerializer(many=True, read_only=True)
    school_code = serializers.CharField(source="school.code", read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "school_id",
            "school_code",
            "school_class_id",
            "parent_phone",
            "parent_name",
            "delivery_type",
            "delivery_address",
            "items_total_paise",
            "delivery_charge_paise",
            "total_amount_paise",
            "status",
            "payment_status",
            "payment_reference",
            "payment_link",
            "paid_at",
            "package_count",
            "actual_weight_grams",
            "volumetric_weight_grams",
            "billed_weight_grams",
            "courier_service",
            "courier_tracking_id",
            "tracking_is_placeholder",
            "created_at",
            "updated_at",
            "items",
            "parcels",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order list (no nested relations)."""

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "parent_phone",
            "status",
            "payment_status",
            "total_amount_paise",
            "courier_tracking_id",
            "created_at",
        ]
        read_only_fields = fields
