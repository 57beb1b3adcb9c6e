"""Catalog locations, loading, caching and reference resolution.

Catalogs hold reusable entries (vehicles, controllers, routes, ...) that a
scenario pulls in by name:
  <CatalogReference catalogName="VehicleCatalog" entryName="car_white"/>
"""

from .cache import CacheStats, CatalogCache
from .loader import CatalogEntry, CatalogIndex, CatalogLoader
from .locations import CatalogKind, CatalogLocations
from .resolver import (
    DEFAULT_MAX_DEPTH,
    CatalogReference,
    CatalogResolver,
    ResolvedCatalogEntry,
)

__all__ = [
    "CatalogKind",
    "CatalogLocations",
    "CatalogCache",
    "CacheStats",
    "CatalogLoader",
    "CatalogIndex",
    "CatalogEntry",
    "CatalogReference",
    "CatalogResolver",
    "ResolvedCatalogEntry",
    "DEFAULT_MAX_DEPTH",
]
