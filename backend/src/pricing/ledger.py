"""Price ledger: persisted tier generations per priced item.

The ledger is the single source of truth for "what price applies now".
Rows are never deleted; retiring a generation only flips active=false so the
remote prices of retired rows can still be archived afterwards.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.price_tier import PriceTier, PricedItemKind, PricedItemRef, SyncStatus
from .errors import LocalConstraintError
from .normalizer import Band

logger = logging.getLogger(__name__)

MAX_SYNC_ERROR_LENGTH = 1000


class PriceLedger:
    """Data access for PriceTier rows.

    deactivate_active and insert_generation only flush; replace_generation
    wraps both in one commit. Sync status updates commit immediately so that
    each remote outcome is durable on its own.
    """

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_active_bands(self, item: PricedItemRef, currency: Optional[str] = None) -> list[PriceTier]:
        """Active generation of an item, ordered by min_qty."""
        query = self.db.query(PriceTier).filter(
            PriceTier.owned_by(item),
            PriceTier.active.is_(True),
        )
        if currency:
            query = query.filter(PriceTier.currency == currency.lower())
        return query.order_by(PriceTier.min_qty, PriceTier.created_at).all()

    def get_all_bands(self, item: PricedItemRef) -> list[PriceTier]:
        """Every generation of an item, oldest generation first."""
        return self.db.query(PriceTier).filter(
            PriceTier.owned_by(item)
        ).order_by(PriceTier.generation, PriceTier.min_qty).all()

    def get_bands(
        self,
        item: PricedItemRef,
        active: Optional[bool] = True,
        sync_status: Optional[SyncStatus] = None,
    ) -> list[PriceTier]:
        """Filtered listing used by the admin API.

        Args:
            item: Priced item
            active: True/False to filter on the active flag, None for all rows
            sync_status: Optional sync status filter
        """
        query = self.db.query(PriceTier).filter(PriceTier.owned_by(item))
        if active is not None:
            query = query.filter(PriceTier.active.is_(active))
        if sync_status is not None:
            query = query.filter(PriceTier.sync_status == SyncStatus(sync_status).value)
        return query.order_by(PriceTier.generation, PriceTier.min_qty).all()

    def get_tier(self, tier_id: UUID) -> Optional[PriceTier]:
        return self.db.get(PriceTier, tier_id)

    def retired_unarchived(self, item: PricedItemRef) -> list[PriceTier]:
        """Retired rows whose remote price still needs to be archived."""
        return self.db.query(PriceTier).filter(
            PriceTier.owned_by(item),
            PriceTier.active.is_(False),
            PriceTier.remote_price_ref.isnot(None),
            PriceTier.archived_at.is_(None),
        ).order_by(PriceTier.generation, PriceTier.min_qty).all()

    def current_generation(self, item: PricedItemRef) -> int:
        """Highest generation number written for an item (0 if none)."""
        value = self.db.query(func.max(PriceTier.generation)).filter(
            PriceTier.owned_by(item)
        ).scalar()
        return value or 0

    # ------------------------------------------------------------------
    # Generation writes (caller commits)
    # ------------------------------------------------------------------

    def deactivate_active(self, item: PricedItemRef) -> list[PriceTier]:
        """Retire the active generation. remote_price_ref values are kept."""
        rows = self.get_active_bands(item)
        for row in rows:
            row.active = False
        self.db.flush()
        return rows

    def insert_generation(self, item: PricedItemRef, bands: Sequence[Band]) -> list[PriceTier]:
        """Insert a new generation as active and pending."""
        generation = self.current_generation(item) + 1
        rows = []
        for band in bands:
            row = PriceTier(
                variant_id=item.item_id if item.kind == PricedItemKind.VARIANT else None,
                lock_tech_id=item.item_id if item.kind == PricedItemKind.LOCK_TECH else None,
                generation=generation,
                min_qty=band.min_qty,
                max_qty=band.max_qty,
                currency=band.currency,
                unit_amount=band.unit_amount,
                active=True,
                remote_price_ref=None,
                sync_status=SyncStatus.PENDING.value,
                sync_error=None,
            )
            self.db.add(row)
            rows.append(row)
        self.db.flush()
        return rows

    def replace_generation(
        self,
        item: PricedItemRef,
        bands: Sequence[Band],
    ) -> tuple[list[PriceTier], list[PriceTier]]:
        """Retire the active generation and insert a new one atomically.

        Returns:
            Tuple of (retired rows, new rows)

        Raises:
            LocalConstraintError: If the store rejects the write; nothing is kept
        """
        try:
            retired = self.deactivate_active(item)
            new_rows = self.insert_generation(item, bands)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(
                f"Tier replace rejected by local store for {item}",
                extra={"item": str(item), "error": str(e.orig)},
            )
            raise LocalConstraintError(
                "Constraint failed while saving tiers (check quantities, amounts and item reference)"
            ) from e
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"Tier generation written for {item}",
            extra={
                "item": str(item),
                "generation": new_rows[0].generation if new_rows else None,
                "retired": len(retired),
                "inserted": len(new_rows),
            },
        )
        return retired, new_rows

    # ------------------------------------------------------------------
    # Sync status (commits)
    # ------------------------------------------------------------------

    def _require(self, tier_id: UUID) -> PriceTier:
        row = self.get_tier(tier_id)
        if row is None:
            raise LookupError(f"PriceTier {tier_id} not found")
        return row

    def mark_pending(self, tier_id: UUID) -> PriceTier:
        row = self._require(tier_id)
        row.sync_status = SyncStatus.PENDING.value
        row.sync_error = None
        self.db.commit()
        return row

    def mark_synced(self, tier_id: UUID, remote_price_ref: str) -> PriceTier:
        """Record the remote price created for a tier.

        Raises:
            LocalConstraintError: If the tier already points at another remote price
        """
        row = self._require(tier_id)
        if row.remote_price_ref and row.remote_price_ref != remote_price_ref:
            raise LocalConstraintError(
                f"PriceTier {tier_id} is already linked to remote price {row.remote_price_ref}"
            )
        row.remote_price_ref = remote_price_ref
        row.sync_status = SyncStatus.SYNCED.value
        row.sync_error = None
        self.db.commit()
        return row

    def mark_failed(self, tier_id: UUID, error: str) -> PriceTier:
        row = self._require(tier_id)
        row.sync_status = SyncStatus.FAILED.value
        row.sync_error = (error or "unknown error")[:MAX_SYNC_ERROR_LENGTH]
        self.db.commit()
        return row

    def mark_archived(self, tier_id: UUID) -> PriceTier:
        row = self._require(tier_id)
        row.archived_at = datetime.now(timezone.utc)
        self.db.commit()
        return row
