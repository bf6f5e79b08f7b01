"""Catalog lookup service.

Only the two questions tier pricing asks of the catalog live here: does the
priced item exist, and which payment-provider product do its prices attach to.
"""

from typing import Optional

from sqlalchemy.orm import Session

from models.lock_tech import LockTech
from models.price_tier import PricedItemKind, PricedItemRef
from models.product import Product, Variant
from pricing.errors import ItemNotFoundError


class CatalogService:
    """Read-only catalog access for priced items (variants and lock technologies)"""

    def __init__(self, db: Session):
        self.db = db

    def _load(self, item: PricedItemRef):
        if item.kind == PricedItemKind.VARIANT:
            return self.db.get(Variant, item.item_id)
        return self.db.get(LockTech, item.item_id)

    def item_exists(self, item: PricedItemRef) -> bool:
        """Check whether the variant or lock technology exists."""
        return self._load(item) is not None

    def require_item(self, item: PricedItemRef):
        """Load the priced item.

        Raises:
            ItemNotFoundError: If it does not exist
        """
        entity = self._load(item)
        if entity is None:
            label = "Variant" if item.kind == PricedItemKind.VARIANT else "Lock technology"
            raise ItemNotFoundError(f"{label} not found")
        return entity

    def get_remote_product_ref(self, item: PricedItemRef) -> Optional[str]:
        """Payment-provider product the item's prices attach to.

        Variants use their product's reference, lock technologies their own.

        Returns:
            Product reference, or None if the item is not linked yet
        """
        if item.kind == PricedItemKind.VARIANT:
            ref = self.db.query(Product.remote_product_ref).join(
                Variant, Variant.product_id == Product.id
            ).filter(Variant.id == item.item_id).scalar()
        else:
            ref = self.db.query(LockTech.remote_product_ref).filter(
                LockTech.id == item.item_id
            ).scalar()
        return str(ref) if ref else None
