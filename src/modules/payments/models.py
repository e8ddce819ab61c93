"""Payment webhook audit log.

Every Razorpay webhook that passes signature verification is stored with
the outcome of its reconciliation.  Rows are append-only.
"""

from __future__ import annotations

from django.db import models

from modules.core.models import AppendOnlyModel


class ReconcileOutcome(models.TextChoices):
    APPLIED = "applied", "Applied"
    DUPLICATE = "duplicate", "Duplicate"
    UNMATCHED = "unmatched", "Unmatched"
    IGNORED = "ignored", "Ignored"


class PaymentEvent(AppendOnlyModel):
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payment_events",
    )
    provider = models.CharField(max_length=30, default="razorpay")
    event_id = models.CharField(max_length=100, blank=True, default="")
    event_type = models.CharField(max_length=100, blank=True, default="")
    outcome = models.CharField(max_length=20, choices=ReconcileOutcome.choices)
    signature_verified = models.BooleanField(default=False)
    payload = models.JSONField(default=dict)

    class Meta:
        db_table = "payment_events"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["event_type"], name="payment_events_type_idx"),
            models.Index(fields=["event_id"], name="payment_events_event_id_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.event_type} ({self.outcome})"
