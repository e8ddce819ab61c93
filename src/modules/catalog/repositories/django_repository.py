"""Django ORM implementation of the catalog repository."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional
from uuid import UUID

from django.core.exceptions import ValidationError

from modules.catalog.models import Item, ItemGroup, School, SchoolClass
from modules.catalog.repositories.interfaces import ICatalogRepository


class CatalogDjangoRepository(ICatalogRepository):
    """Concrete catalog repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[School]:
        try:
            return School.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_active_school_by_code(self, code: str) -> Optional[School]:
        return School.objects.filter(code=code, is_active=True).first()

    def list_classes(self, school_id: UUID) -> List[SchoolClass]:
        return list(
            SchoolClass.objects.filter(school_id=school_id).order_by("sort_order", "name")
        )

    def get_class(self, class_id: str, school_id: UUID) -> Optional[SchoolClass]:
        try:
            return SchoolClass.objects.filter(id=class_id, school_id=school_id).first()
        except (ValueError, ValidationError):
            return None

    def first_group_for_class(self, class_id: str, group_type: str) -> Optional[ItemGroup]:
        try:
            return (
                ItemGroup.objects.filter(
                    type=group_type, class_assignments__school_class_id=class_id
                )
                .order_by("class_assignments__created_at", "id")
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list_active_items(self, group_id: UUID) -> List[Item]:
        return list(Item.objects.filter(group_id=group_id, is_active=True).order_by("title"))

    def get_items(self, ids: Iterable[UUID]) -> Dict[UUID, Item]:
        return {item.id: item for item in Item.objects.filter(id__in=list(ids))}
