"""Catalog repositories package."""

from modules.catalog.repositories.django_repository import CatalogDjangoRepository
from modules.catalog.repositories.interfaces import ICatalogRepository

__all__ = ["CatalogDjangoRepository", "ICatalogRepository"]
