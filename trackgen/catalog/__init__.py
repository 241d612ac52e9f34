"""Catalog backends."""

from __future__ import annotations

from trackgen.catalog.base import Catalog
from trackgen.catalog.sqlite_catalog import SqliteCatalog
from trackgen.config import get_settings

_catalog: Catalog | None = None


def get_catalog() -> Catalog:
    """Return singleton catalog (SQLite under the data dir)."""
    global _catalog
    if _catalog is None:
        _catalog = SqliteCatalog(get_settings().catalog_path)
    return _catalog


__all__ = ["Catalog", "SqliteCatalog", "get_catalog"]
