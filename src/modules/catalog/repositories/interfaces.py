"""Catalog repository interface.

Read-only contract used by the conversation engine and the order
assembler.  Look-ups return ``None`` (or empty collections) instead of
raising; callers decide what a missing record means for them.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IReadRepository

if TYPE_CHECKING:
    from modules.catalog.models import Item, ItemGroup, School, SchoolClass


class ICatalogRepository(IReadRepository["School"]):
    @abstractmethod
    def get_active_school_by_code(self, code: str) -> Optional[School]:
        """Return the active school with this 4-digit code."""

    @abstractmethod
    def list_classes(self, school_id: UUID) -> List[SchoolClass]:
        """Classes of a school in presentation order."""

    @abstractmethod
    def get_class(self, class_id: str, school_id: UUID) -> Optional[SchoolClass]:
        """Return the class only if it belongs to the given school."""

    @abstractmethod
    def first_group_for_class(self, class_id: str, group_type: str) -> Optional[ItemGroup]:
        """First group of ``group_type`` assigned to the class, by assignment order."""

    @abstractmethod
    def list_active_items(self, group_id: UUID) -> List[Item]:
        """Active items of a group."""

    @abstractmethod
    def get_items(self, ids: Iterable[UUID]) -> Dict[UUID, Item]:
        """Items by id; unknown ids are simply absent from the result."""
