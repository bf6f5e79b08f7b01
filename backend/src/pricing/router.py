"""Tier price management API endpoints

Routes exist per priced item kind:
    /variants/{variant_id}/prices      (product variants)
    /lock-techs/{lock_tech_id}/prices  (lock technologies / keycard boxes)

Replace and sync handlers make blocking payment-provider calls, so they are
plain `def` endpoints and run in FastAPI's threadpool.
"""

import logging
from typing import Optional, Union
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, Response, status
from sqlalchemy.orm import Session

from database import get_db
from models.price_tier import PricedItemKind, PricedItemRef, SyncStatus
from payments.ports import RemotePricePort
from payments.registry import get_price_gateway
from catalog.service import CatalogService
from .errors import ItemNotFoundError, TierValidationError
from .ledger import PriceLedger
from .orchestrator import ReplaceOutcome, ReplaceTiersOrchestrator
from .replace_state import ReplaceState
from .resolver import quote
from .schemas import (
    PriceQuoteResponse,
    PriceTierInput,
    PriceTierListResponse,
    PriceTierResponse,
    ReplaceOutcomeResponse,
    ReplaceTiersRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pricing"])

# PUT .../prices also accepts a bare array of tiers
ReplaceTiersBody = Union[ReplaceTiersRequest, list[PriceTierInput]]


# ============================================================================
# Shared handlers
# ============================================================================

def parse_active_flag(active: Optional[str]) -> tuple[Optional[bool], Optional[SyncStatus]]:
    """
    Translate the `active` query flag into ledger filters.

    Accepted values:
        absent / "1": active rows only
        "0": retired rows only
        "all": every row
        "pending" / "synced" / "failed": active rows with that sync status

    Raises:
        TierValidationError: For any other value
    """
    if active is None or active == "1":
        return True, None
    if active == "0":
        return False, None
    if active == "all":
        return None, None
    try:
        return True, SyncStatus(active)
    except ValueError:
        raise TierValidationError(
            f"invalid active flag '{active}' (use 1, 0, all, pending, synced or failed)"
        )


def _list_prices(db: Session, item: PricedItemRef, active: Optional[str]) -> PriceTierListResponse:
    CatalogService(db).require_item(item)
    active_filter, sync_status = parse_active_flag(active)
    rows = PriceLedger(db).get_bands(item, active=active_filter, sync_status=sync_status)
    return PriceTierListResponse(
        items=[PriceTierResponse.model_validate(r) for r in rows],
        total=len(rows),
    )


def _outcome_response(outcome: ReplaceOutcome, response: Response) -> ReplaceOutcomeResponse:
    if outcome.state == ReplaceState.PARTIAL_FAILURE:
        response.status_code = status.HTTP_207_MULTI_STATUS
    return ReplaceOutcomeResponse.from_outcome(outcome)


def _replace_prices(
    db: Session,
    gateway: RemotePricePort,
    item: PricedItemRef,
    body: ReplaceTiersBody,
    response: Response,
) -> ReplaceOutcomeResponse:
    if isinstance(body, ReplaceTiersRequest):
        raw_tiers, currency = body.tiers, body.currency
    else:
        raw_tiers, currency = body, None

    outcome = ReplaceTiersOrchestrator(db, gateway).replace_tiers(item, raw_tiers, currency=currency)
    return _outcome_response(outcome, response)


def _sync_prices(
    db: Session,
    gateway: RemotePricePort,
    item: PricedItemRef,
    response: Response,
) -> ReplaceOutcomeResponse:
    outcome = ReplaceTiersOrchestrator(db, gateway).retry_sync(item)
    return _outcome_response(outcome, response)


def _quote_price(db: Session, item: PricedItemRef, qty: str) -> PriceQuoteResponse:
    CatalogService(db).require_item(item)
    bands = PriceLedger(db).get_active_bands(item)
    result = quote(bands, qty)
    if result is None:
        raise ItemNotFoundError("No active price tiers for this item")
    return PriceQuoteResponse(
        qty=result.qty,
        unit_amount=result.unit_amount,
        currency=result.currency,
        subtotal=result.subtotal,
        min_qty=result.band.min_qty,
        max_qty=result.band.max_qty,
        tier_id=result.band.id,
        remote_price_ref=result.remote_price_ref,
    )


# ============================================================================
# Variant Endpoints
# ============================================================================

@router.get("/variants/{variant_id}/prices", response_model=PriceTierListResponse)
def list_variant_prices(
    variant_id: UUID,
    active: Optional[str] = Query(None, description="1 (default), 0, all, pending, synced or failed"),
    db: Session = Depends(get_db),
):
    """List the price tiers of a variant."""
    return _list_prices(db, PricedItemRef(PricedItemKind.VARIANT, variant_id), active)


@router.put(
    "/variants/{variant_id}/prices",
    response_model=ReplaceOutcomeResponse,
    responses={207: {"model": ReplaceOutcomeResponse, "description": "New tiers saved, remote sync incomplete"}},
)
def replace_variant_prices(
    variant_id: UUID,
    response: Response,
    body: ReplaceTiersBody = Body(...),
    db: Session = Depends(get_db),
    gateway: RemotePricePort = Depends(get_price_gateway),
):
    """
    Replace all price tiers of a variant.

    The body is either a bare array of tiers or {"currency": ..., "tiers": [...]}.
    Returns 200 when every new tier reached the payment provider and the old
    prices were archived, 207 when some tiers failed to sync (old prices kept).
    """
    item = PricedItemRef(PricedItemKind.VARIANT, variant_id)
    return _replace_prices(db, gateway, item, body, response)


@router.post("/variants/{variant_id}/prices/sync", response_model=ReplaceOutcomeResponse)
def sync_variant_prices(
    variant_id: UUID,
    response: Response,
    db: Session = Depends(get_db),
    gateway: RemotePricePort = Depends(get_price_gateway),
):
    """Retry the payment-provider sync of a variant's active tiers."""
    item = PricedItemRef(PricedItemKind.VARIANT, variant_id)
    return _sync_prices(db, gateway, item, response)


@router.get("/variants/{variant_id}/price", response_model=PriceQuoteResponse)
def quote_variant_price(
    variant_id: UUID,
    qty: str = Query(..., description="Quantity to price (positive integer)"),
    db: Session = Depends(get_db),
):
    """Unit price and subtotal of a variant for a quantity."""
    return _quote_price(db, PricedItemRef(PricedItemKind.VARIANT, variant_id), qty)


# ============================================================================
# Lock Technology Endpoints
# ============================================================================

@router.get("/lock-techs/{lock_tech_id}/prices", response_model=PriceTierListResponse)
def list_lock_tech_prices(
    lock_tech_id: UUID,
    active: Optional[str] = Query(None, description="1 (default), 0, all, pending, synced or failed"),
    db: Session = Depends(get_db),
):
    """List the price tiers of a lock technology."""
    return _list_prices(db, PricedItemRef(PricedItemKind.LOCK_TECH, lock_tech_id), active)


@router.put(
    "/lock-techs/{lock_tech_id}/prices",
    response_model=ReplaceOutcomeResponse,
    responses={207: {"model": ReplaceOutcomeResponse, "description": "New tiers saved, remote sync incomplete"}},
)
def replace_lock_tech_prices(
    lock_tech_id: UUID,
    response: Response,
    body: ReplaceTiersBody = Body(...),
    db: Session = Depends(get_db),
    gateway: RemotePricePort = Depends(get_price_gateway),
):
    """Replace all price tiers of a lock technology (same contract as variants)."""
    item = PricedItemRef(PricedItemKind.LOCK_TECH, lock_tech_id)
    return _replace_prices(db, gateway, item, body, response)


@router.post("/lock-techs/{lock_tech_id}/prices/sync", response_model=ReplaceOutcomeResponse)
def sync_lock_tech_prices(
    lock_tech_id: UUID,
    response: Response,
    db: Session = Depends(get_db),
    gateway: RemotePricePort = Depends(get_price_gateway),
):
    """Retry the payment-provider sync of a lock technology's active tiers."""
    item = PricedItemRef(PricedItemKind.LOCK_TECH, lock_tech_id)
    return _sync_prices(db, gateway, item, response)


@router.get("/lock-techs/{lock_tech_id}/price", response_model=PriceQuoteResponse)
def quote_lock_tech_price(
    lock_tech_id: UUID,
    qty: str = Query(..., description="Quantity to price (positive integer)"),
    db: Session = Depends(get_db),
):
    """Unit price and subtotal of a lock technology for a quantity."""
    return _quote_price(db, PricedItemRef(PricedItemKind.LOCK_TECH, lock_tech_id), qty)
