"""Courier webhook and shipment audit log (append-only)."""

from __future__ import annotations

from django.db import models

from modules.core.models import AppendOnlyModel


class CourierEvent(AppendOnlyModel):
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="courier_events",
    )
    courier_name = models.CharField(max_length=50, default="delhivery")
    tracking_id = models.CharField(max_length=100, blank=True, default="")
    event_type = models.CharField(max_length=255, blank=True, default="")
    mapped_status = models.CharField(max_length=20, blank=True, default="")
    applied = models.BooleanField(default=False)
    payload = models.JSONField(default=dict)

    class Meta:
        db_table = "courier_events"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["tracking_id"], name="courier_events_tracking_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.courier_name}:{self.tracking_id} {self.event_type}"
