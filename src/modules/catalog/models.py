"""Catalog models: schools, classes, item groups and items.

The catalog is maintained by operators; the order lifecycle reads it.

Business rules implemented:
- School codes are unique 4-digit strings.
- A class belongs to exactly one school; ``sort_order`` drives the list
  shown to buyers.
- Groups are typed (books or stationery) and made available to classes via
  ``ClassGroupAssignment`` (unique per class/group pair).
- Item prices are integer paise, weights grams, dimensions centimetres.
"""

from __future__ import annotations

from django.core.validators import MinValueValidator, RegexValidator
from django.db import models

from modules.core.models import BaseModel


class GroupType(models.TextChoices):
    BOOKS = "books", "Books"
    STATIONERY = "stationery", "Stationery"


class School(BaseModel):
    name = models.CharField(max_length=255)
    code = models.CharField(
        max_length=4,
        unique=True,
        validators=[RegexValidator(r"^\d{4}$", "School code must be 4 digits.")],
    )
    address = models.TextField(blank=True, default="")
    contact_phone = models.CharField(max_length=20, blank=True, default="")
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "schools"
        ordering = ["name"]

    def __str__(self) -> str:
        return f"{self.code} - {self.name}"


class SchoolClass(BaseModel):
    school = models.ForeignKey(
        School, on_delete=models.CASCADE, related_name="classes"
    )
    name = models.CharField(max_length=100)
    sort_order = models.IntegerField(default=0)

    class Meta:
        db_table = "classes"
        ordering = ["sort_order", "name"]
        indexes = [
            models.Index(fields=["school", "sort_order"], name="classes_school_sort_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.school.name} / {self.name}"


class ItemGroup(BaseModel):
    name = models.CharField(max_length=255)
    type = models.CharField(max_length=20, choices=GroupType.choices)

    class Meta:
        db_table = "groups"
        ordering = ["name"]

    def __str__(self) -> str:
        return f"{self.name} ({self.type})"


class ClassGroupAssignment(BaseModel):
    school_class = models.ForeignKey(
        SchoolClass, on_delete=models.CASCADE, related_name="group_assignments"
    )
    group = models.ForeignKey(
        ItemGroup, on_delete=models.CASCADE, related_name="class_assignments"
    )

    class Meta:
        db_table = "class_group_assignments"
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["school_class", "group"], name="class_group_unique"
            ),
        ]


class Item(BaseModel):
    group = models.ForeignKey(
        ItemGroup,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="items",
    )
    title = models.CharField(max_length=255)
    sku = models.CharField(max_length=64, blank=True, default="")
    description = models.TextField(blank=True, default="")
    price_paise = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    stock = models.PositiveIntegerField(default=0)
    weight_grams = models.PositiveIntegerField(default=0)
    length_cm = models.PositiveIntegerField(null=True, blank=True)
    width_cm = models.PositiveIntegerField(null=True, blank=True)
    height_cm = models.PositiveIntegerField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "items"
        ordering = ["title"]
        indexes = [
            models.Index(fields=["group", "is_active"], name="items_group_active_idx"),
        ]

    def __str__(self) -> str:
        return self.title
