"""Catalog lookups needed by tier pricing (existence and remote product links)"""

from .service import CatalogService

__all__ = ["CatalogService"]
