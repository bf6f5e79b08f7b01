"""Remote price synchronizer.

Mirrors tier rows into the payment provider and records the outcome on each
row. Remote prices are append-only: a tier's price is created once and later
archived, never updated.
"""

import hashlib
import logging
import time
from typing import Optional

from models.price_tier import PriceTier, SyncStatus
from observability.metrics import (
    remote_call_latency_ms,
    remote_price_archives_total,
    remote_price_syncs_total,
)
from payments.ports import RemotePricePort
from .errors import RemoteArchiveError, RemoteSyncError
from .ledger import PriceLedger

logger = logging.getLogger(__name__)


def idempotency_key_for(tier: PriceTier, product_ref: str) -> str:
    """Provider idempotency key for creating the remote price of a row.

    Re-sending the same request for a row reuses the key, so the row never gets
    a second price. A new product, amount or currency produces a new key.
    """
    digest = hashlib.sha256(
        f"{product_ref}|{tier.unit_amount}|{tier.currency}".encode("utf-8")
    ).hexdigest()[:16]
    return f"price-tier-{tier.id}-{digest}"


class RemotePriceSynchronizer:
    """Creates and archives remote prices for ledger rows.

    Usage:
        sync = RemotePriceSynchronizer(ledger, gateway)
        ok = sync.sync_tier(tier, product_ref="prod_123")
    """

    def __init__(self, ledger: PriceLedger, gateway: RemotePricePort):
        self.ledger = ledger
        self.gateway = gateway

    def create_remote(self, tier: PriceTier, product_ref: Optional[str]) -> str:
        """Create the remote price for one tier row.

        Raises:
            RemoteSyncError: If the item has no remote product or the provider call fails
        """
        if not product_ref:
            raise RemoteSyncError(
                "Cannot create remote price: item is not linked to a payment-provider product"
            )
        start_time = time.time()
        try:
            return self.gateway.create_price(
                product_ref=product_ref,
                unit_amount=tier.unit_amount,
                currency=tier.currency,
                idempotency_key=idempotency_key_for(tier, product_ref),
                metadata={
                    "tier_id": str(tier.id),
                    "item": str(tier.item),
                    "min_qty": str(tier.min_qty),
                    "max_qty": "" if tier.max_qty is None else str(tier.max_qty),
                },
            )
        finally:
            remote_call_latency_ms.labels(operation="create").observe((time.time() - start_time) * 1000)

    def archive_remote(self, remote_price_ref: str) -> None:
        """Deactivate a remote price. Idempotent.

        Raises:
            RemoteArchiveError: If the provider call fails
        """
        start_time = time.time()
        try:
            self.gateway.archive_price(remote_price_ref)
        finally:
            remote_call_latency_ms.labels(operation="archive").observe((time.time() - start_time) * 1000)

    def sync_tier(self, tier: PriceTier, product_ref: Optional[str]) -> bool:
        """Create the remote price for a row and record the result on it.

        Never raises RemoteSyncError: failures are stored as sync_status=failed
        with the provider message in sync_error.

        Returns:
            True if the row ended up synced
        """
        item_kind = tier.item.kind.value
        tier_id = tier.id

        if tier.remote_price_ref and tier.sync_status == SyncStatus.SYNCED.value:
            return True

        self.ledger.mark_pending(tier_id)
        try:
            ref = self.create_remote(tier, product_ref)
        except RemoteSyncError as e:
            self.ledger.mark_failed(tier_id, e.message)
            remote_price_syncs_total.labels(item_kind=item_kind, status="failed").inc()
            logger.warning(
                f"Remote price creation failed for tier {tier_id}: {e.message}",
                extra={"tier_id": str(tier_id), "error": e.message},
            )
            return False

        self.ledger.mark_synced(tier_id, ref)
        remote_price_syncs_total.labels(item_kind=item_kind, status="synced").inc()
        logger.info(
            f"Tier {tier_id} synced to remote price {ref}",
            extra={"tier_id": str(tier_id), "remote_price_ref": ref},
        )
        return True

    def archive_tier(self, tier: PriceTier) -> bool:
        """Archive the remote price of a retired row and mark it archived.

        Failures are logged and reported as False; they never raise.
        """
        item_kind = tier.item.kind.value
        ref = tier.remote_price_ref
        if not ref:
            return True
        if tier.active:
            raise ValueError(f"Refusing to archive remote price of active tier {tier.id}")

        try:
            self.archive_remote(ref)
        except RemoteArchiveError as e:
            remote_price_archives_total.labels(item_kind=item_kind, status="failed").inc()
            logger.error(
                f"Archiving remote price {ref} failed: {e.message}",
                extra={"tier_id": str(tier.id), "remote_price_ref": ref, "error": e.message},
            )
            return False

        self.ledger.mark_archived(tier.id)
        remote_price_archives_total.labels(item_kind=item_kind, status="archived").inc()
        return True
