"""
Replace-Tiers Orchestrator - the only mutating entry point into the price ledger

Handles the complete replace workflow:
- Validation (catalog existence, tier normalization)
- One local transaction: retire the active generation, insert the new one as pending
- Sequential remote price creation for every new row (never aborting early)
- Safety gate: old remote prices are archived only when ALL new rows synced
- Archival of retired remote prices (failures logged, non-fatal)

A failed gate leaves the old remote prices active so the payment surface never
ends up without valid prices. The new generation still serves local quotes;
retry_sync finishes the job once the provider problem is fixed.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from catalog.service import CatalogService
from config import Settings, get_settings
from models.price_tier import PriceTier, PricedItemRef, SyncStatus
from observability.metrics import tier_replacements_total, tier_validation_failures_total
from payments.ports import RemotePricePort
from .errors import ItemNotFoundError, LocalConstraintError, TierValidationError
from .ledger import PriceLedger
from .locks import ItemLockRegistry, item_locks
from .normalizer import normalize
from .replace_state import ReplaceRun, ReplaceState
from .synchronizer import RemotePriceSynchronizer


logger = logging.getLogger(__name__)


@dataclass
class ReplaceOutcome:
    """
    Result of a replace-tiers or retry-sync run.

    Attributes:
        item: Priced item the run applied to
        state: Final state (DONE or PARTIAL_FAILURE)
        tiers: Active generation as stored locally, with per-row sync status
        synced_count: New rows that reached sync_status=synced
        total: Number of rows in the new generation
        archived_refs: Remote prices archived by this run
        archive_failures: Remote prices whose archival failed (left active)
        history: States visited by the run
    """
    item: PricedItemRef
    state: ReplaceState
    tiers: list[PriceTier]
    synced_count: int
    total: int
    archived_refs: list[str] = field(default_factory=list)
    archive_failures: list[str] = field(default_factory=list)
    history: list[ReplaceState] = field(default_factory=list)

    @property
    def fully_synced(self) -> bool:
        return self.state == ReplaceState.DONE

    @property
    def summary(self) -> str:
        head = f"{self.synced_count} of {self.total} new bands synced"
        if self.state == ReplaceState.PARTIAL_FAILURE:
            return f"{head}; old prices retained"
        text = f"{head}; {len(self.archived_refs)} old prices archived"
        if self.archive_failures:
            text += f"; {len(self.archive_failures)} could not be archived"
        return text


class ReplaceTiersOrchestrator:
    """
    Coordinates tier replacement across the local ledger and the payment provider.

    Usage:
        orchestrator = ReplaceTiersOrchestrator(db, gateway)
        outcome = orchestrator.replace_tiers(
            PricedItemRef(PricedItemKind.VARIANT, variant_id),
            [{"min_qty": 1, "unit_amount": 100}, {"min_qty": 10, "unit_amount": 80}],
        )
        if not outcome.fully_synced:
            ...  # later: orchestrator.retry_sync(item)
    """

    def __init__(
        self,
        db: Session,
        gateway: RemotePricePort,
        catalog: Optional[CatalogService] = None,
        locks: Optional[ItemLockRegistry] = None,
        settings: Optional[Settings] = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.ledger = PriceLedger(db)
        self.catalog = catalog or CatalogService(db)
        self.synchronizer = RemotePriceSynchronizer(self.ledger, gateway)
        self.locks = locks or item_locks

    def replace_tiers(
        self,
        item: PricedItemRef,
        raw_tiers: Any,
        currency: Optional[str] = None,
    ) -> ReplaceOutcome:
        """
        Replace the whole tier generation of an item.

        Args:
            item: Variant or lock technology to reprice
            raw_tiers: Client tier breakpoints (min_qty, unit_amount, currency?)
            currency: Default currency for tiers that omit one

        Returns:
            ReplaceOutcome in state DONE or PARTIAL_FAILURE

        Raises:
            ItemNotFoundError: If the item does not exist (nothing persisted)
            TierValidationError: If the tiers are invalid (nothing persisted)
            LocalConstraintError: If the local write is rejected (nothing persisted)
            ReplaceInProgressError: If another run holds the item lock
        """
        run = ReplaceRun(ReplaceState.VALIDATING)
        operation = "replace"

        with self.locks.hold(item, timeout=self.settings.REPLACE_LOCK_TIMEOUT_SECONDS):
            try:
                self.catalog.require_item(item)
                bands = normalize(
                    raw_tiers,
                    default_currency=currency or self.settings.DEFAULT_CURRENCY,
                    max_tiers=self.settings.MAX_TIERS_PER_ITEM,
                )
            except (ItemNotFoundError, TierValidationError) as e:
                if isinstance(e, TierValidationError):
                    tier_validation_failures_total.labels(item_kind=item.kind.value).inc()
                self._abort(run, item, operation, e)
                raise

            run.advance(ReplaceState.PERSISTING)
            try:
                retired, new_rows = self.ledger.replace_generation(item, bands)
            except (LocalConstraintError, SQLAlchemyError) as e:
                self._abort(run, item, operation, e)
                raise

            to_archive = self.ledger.retired_unarchived(item)
            logger.info(
                f"Replacing tiers for {item}: {len(new_rows)} new, {len(retired)} retired",
                extra={
                    "item": str(item),
                    "new_rows": len(new_rows),
                    "retired_rows": len(retired),
                    "pending_archive": len(to_archive),
                },
            )

            run.advance(ReplaceState.SYNCING_NEW)
            return self._sync_gate_archive(run, item, new_rows, to_archive, operation)

    def retry_sync(self, item: PricedItemRef) -> ReplaceOutcome:
        """
        Re-run the remote sync step for the active generation.

        Rows already synced are skipped; pending and failed rows are retried.
        If the gate then passes, every retired remote price that is still
        active gets archived.

        Raises:
            ItemNotFoundError: If the item does not exist or has no active tiers
            ReplaceInProgressError: If another run holds the item lock
        """
        run = ReplaceRun(ReplaceState.VALIDATING)
        operation = "retry"

        with self.locks.hold(item, timeout=self.settings.REPLACE_LOCK_TIMEOUT_SECONDS):
            try:
                self.catalog.require_item(item)
                rows = self.ledger.get_active_bands(item)
                if not rows:
                    raise ItemNotFoundError(f"No active price tiers for {item}")
            except ItemNotFoundError as e:
                self._abort(run, item, operation, e)
                raise

            to_archive = self.ledger.retired_unarchived(item)
            run.advance(ReplaceState.SYNCING_NEW)
            return self._sync_gate_archive(run, item, rows, to_archive, operation)

    def _sync_gate_archive(
        self,
        run: ReplaceRun,
        item: PricedItemRef,
        new_rows: list[PriceTier],
        to_archive: list[PriceTier],
        operation: str,
    ) -> ReplaceOutcome:
        product_ref = self.catalog.get_remote_product_ref(item)
        ordered = sorted(new_rows, key=lambda r: r.min_qty)
        row_ids = [r.id for r in ordered]

        # Every row is attempted before the gate is evaluated
        for row in ordered:
            self.synchronizer.sync_tier(row, product_ref)

        run.advance(ReplaceState.GATE)
        statuses = [self.ledger.get_tier(row_id).sync_status for row_id in row_ids]
        synced_count = sum(1 for s in statuses if s == SyncStatus.SYNCED.value)
        total = len(row_ids)

        archived_refs: list[str] = []
        archive_failures: list[str] = []

        if total == 0 or synced_count != total:
            run.advance(ReplaceState.PARTIAL_FAILURE)
            logger.warning(
                f"Sync gate blocked archival for {item}: {synced_count}/{total} synced",
                extra={
                    "item": str(item),
                    "synced": synced_count,
                    "total": total,
                    "retained_remote_prices": len(to_archive),
                },
            )
        else:
            run.advance(ReplaceState.ARCHIVING_OLD)
            for old in to_archive:
                ref = old.remote_price_ref
                if self.synchronizer.archive_tier(old):
                    archived_refs.append(ref)
                else:
                    archive_failures.append(ref)
            run.advance(ReplaceState.DONE)

        tier_replacements_total.labels(
            item_kind=item.kind.value, operation=operation, state=run.state.value
        ).inc()

        outcome = ReplaceOutcome(
            item=item,
            state=run.state,
            tiers=self.ledger.get_active_bands(item),
            synced_count=synced_count,
            total=total,
            archived_refs=archived_refs,
            archive_failures=archive_failures,
            history=list(run.history),
        )
        logger.info(
            f"Tier {operation} for {item} finished: {outcome.summary}",
            extra={"item": str(item), "state": run.state.value},
        )
        return outcome

    def _abort(self, run: ReplaceRun, item: PricedItemRef, operation: str, error: Exception) -> None:
        run.advance(ReplaceState.ABORTED)
        tier_replacements_total.labels(
            item_kind=item.kind.value, operation=operation, state=run.state.value
        ).inc()
        logger.info(
            f"Tier {operation} for {item} aborted: {error}",
            extra={"item": str(item), "error_type": type(error).__name__},
        )
