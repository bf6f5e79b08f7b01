"""Pydantic schemas for tier pricing"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PriceTierInput(BaseModel):
    """One tier breakpoint as submitted by a client.

    Values are kept loose here; the normalizer decides which entries are
    dropped and which are rejected. max_qty is accepted but ignored.
    """
    model_config = ConfigDict(extra="ignore")

    min_qty: Any = None
    max_qty: Any = None
    unit_amount: Any = None
    currency: Optional[str] = None


class ReplaceTiersRequest(BaseModel):
    """Body of PUT .../prices when sent as an object"""
    currency: Optional[str] = Field(None, description="Default currency for tiers that omit one")
    tiers: list[PriceTierInput]


class PriceTierResponse(BaseModel):
    """Schema for a stored price tier"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    variant_id: Optional[UUID] = None
    lock_tech_id: Optional[UUID] = None
    generation: int
    min_qty: int
    max_qty: Optional[int] = None
    currency: str
    unit_amount: int
    active: bool
    remote_price_ref: Optional[str] = None
    sync_status: str
    sync_error: Optional[str] = None
    archived_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PriceTierListResponse(BaseModel):
    """Schema for a tier listing"""
    items: list[PriceTierResponse]
    total: int


class ReplaceOutcomeResponse(BaseModel):
    """Result of a replace or retry-sync run"""
    state: str
    summary: str
    synced_count: int
    total: int
    tiers: list[PriceTierResponse]
    archived_refs: list[str] = Field(default_factory=list)
    archive_failures: list[str] = Field(default_factory=list)
    history: list[str] = Field(default_factory=list)

    @classmethod
    def from_outcome(cls, outcome) -> "ReplaceOutcomeResponse":
        return cls(
            state=outcome.state.value,
            summary=outcome.summary,
            synced_count=outcome.synced_count,
            total=outcome.total,
            tiers=[PriceTierResponse.model_validate(t) for t in outcome.tiers],
            archived_refs=outcome.archived_refs,
            archive_failures=outcome.archive_failures,
            history=[s.value for s in outcome.history],
        )


class PriceQuoteResponse(BaseModel):
    """Schema for a quantity price quote"""
    qty: int
    unit_amount: int
    currency: str
    subtotal: int
    min_qty: int
    max_qty: Optional[int] = None
    tier_id: UUID
    remote_price_ref: Optional[str] = None
