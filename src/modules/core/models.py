"""Base abstract models shared by every module.

Provides:
- ``BaseModel``: UUIDv7 primary key + created_at / updated_at timestamps.
- ``AppendOnlyModel``: BaseModel for audit records that may be inserted but
  never updated or deleted (payment and courier webhook logs).

Design decisions:
- UUIDv7 keys sort by creation time, so audit tables stay index-friendly.
- ``save()`` guard ensures ``updated_at`` is included when ``update_fields``
  is specified (Django skips ``auto_now`` fields otherwise).
"""

from __future__ import annotations

import uuid6
from django.db import models

# ---------------------------------------------------------------------------
# BaseModel
# ---------------------------------------------------------------------------


class BaseModel(models.Model):
    """Abstract base with UUIDv7 PK and timestamp bookkeeping."""

    id = models.UUIDField(
        primary_key=True,
        default=uuid6.uuid7,
        editable=False,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs) -> None:
        """Ensure ``updated_at`` is refreshed even when ``update_fields`` is passed."""
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "updated_at" not in update_fields:
            kwargs["update_fields"] = list(update_fields) + ["updated_at"]
        super().save(*args, **kwargs)


# ---------------------------------------------------------------------------
# Append-only audit records
# ---------------------------------------------------------------------------


class ImmutableRecordError(Exception):
    """Raised when code tries to modify or delete an append-only record."""


class AppendOnlyModel(BaseModel):
    """Abstract model for audit logs.

    Rows are written once.  Updating an existing row or deleting one raises
    ``ImmutableRecordError``; bulk queryset operations are not guarded and
    must not be used on these tables.
    """

    class Meta:
        abstract = True

    def save(self, *args, **kwargs) -> None:
        if not self._state.adding:
            raise ImmutableRecordError(
                f"{self._meta.label} records are append-only."
            )
        super().save(*args, **kwargs)

    def delete(self, using=None, keep_parents=False):
        raise ImmutableRecordError(f"{self._meta.label} records are append-only.")
