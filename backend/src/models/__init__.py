"""SQLAlchemy Models for the LTS backend"""

from .base import Base
from .product import Product, Variant
from .lock_tech import LockTech
from .price_tier import PriceTier, PricedItemKind, PricedItemRef, SyncStatus

__all__ = [
    "Base",
    "Product",
    "Variant",
    "LockTech",
    "PriceTier",
    "PricedItemKind",
    "PricedItemRef",
    "SyncStatus",
]
