"""Key/value settings table.

Edited by operators outside this service; the order lifecycle only reads
it.  ``value`` is JSON so a setting can hold a number, a string or a small
structure.
"""

from __future__ import annotations

from django.db import models


class Setting(models.Model):
    key = models.CharField(max_length=100, primary_key=True)
    value = models.JSONField()

    class Meta:
        db_table = "settings"
        ordering = ["key"]

    def __str__(self) -> str:
        return f"{self.key}={self.value!r}"
