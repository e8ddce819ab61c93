"""Generic repository interfaces (Dependency Inversion Principle).

``IReadRepository[T]`` covers the collaborators the order lifecycle only
reads from (catalog, settings).  ``IRepository[T]`` adds saving for the
aggregate the lifecycle owns (orders). Orders are never deleted; a dead
order ends in a terminal status instead.  Service-layer code
depends on these abstractions, never on the Django ORM directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class IReadRepository(ABC, Generic[T]):
    """Read-only repository contract.

    Type parameter ``T`` represents the entity managed by the repository
    (e.g. ``School``, ``Item``).
    """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Retrieve an entity by its primary key, ``None`` when absent."""


class IRepository(IReadRepository[T]):
    """Read/write repository contract."""

    @abstractmethod
    def save(self, entity: T) -> T:
        """Persist (create or update) an entity."""
