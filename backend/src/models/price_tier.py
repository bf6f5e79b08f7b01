"""PriceTier SQLAlchemy model"""

from dataclasses import dataclass
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import (
    Column, Text, ForeignKey, Boolean, Integer, DateTime, CheckConstraint, Index, Uuid, func,
)
from sqlalchemy.orm import validates

from .base import Base


class PricedItemKind(str, Enum):
    """Kinds of catalog entities that own a generation of price tiers."""
    VARIANT = "VARIANT"
    LOCK_TECH = "LOCK_TECH"


class SyncStatus(str, Enum):
    """Synchronization status of a tier against the payment provider."""
    PENDING = "pending"
    SYNCED = "synced"
    FAILED = "failed"


@dataclass(frozen=True)
class PricedItemRef:
    """Reference to the owner of a tier generation (variant or lock tech)."""
    kind: PricedItemKind
    item_id: UUID

    def __str__(self) -> str:
        return f"{self.kind.value.lower()}:{self.item_id}"


class PriceTier(Base):
    """One quantity band of a priced item's tier generation.

    Rows are written once per replace operation and never deleted:
    - active=true marks the current generation (exactly one per item)
    - min_qty/max_qty form a gapless partition, max_qty NULL means open-ended
    - unit_amount is in minor currency units (cents)
    - remote_price_ref is set once the remote price exists and is never rewritten
    - archived_at records that the remote price of a retired row was deactivated
    """
    __tablename__ = "price_tier"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    variant_id = Column(Uuid(as_uuid=True), ForeignKey("variant.id", ondelete="RESTRICT"), nullable=True)
    lock_tech_id = Column(Uuid(as_uuid=True), ForeignKey("lock_tech.id", ondelete="RESTRICT"), nullable=True)
    generation = Column(Integer, nullable=False)
    min_qty = Column(Integer, nullable=False)
    max_qty = Column(Integer, nullable=True)
    currency = Column(Text, nullable=False)
    unit_amount = Column(Integer, nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    remote_price_ref = Column(Text, nullable=True)
    sync_status = Column(Text, nullable=False, default=SyncStatus.PENDING.value)
    sync_error = Column(Text, nullable=True)
    archived_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("ix_price_tier_variant_active", "variant_id", "active"),
        Index("ix_price_tier_lock_tech_active", "lock_tech_id", "active"),
        CheckConstraint(
            "(variant_id IS NULL) <> (lock_tech_id IS NULL)",
            name="ck_price_tier_single_owner",
        ),
        CheckConstraint("min_qty >= 1", name="ck_price_tier_min_qty_positive"),
        CheckConstraint("max_qty IS NULL OR max_qty >= min_qty", name="ck_price_tier_max_qty_range"),
        CheckConstraint("unit_amount >= 0", name="ck_price_tier_unit_amount_non_negative"),
        CheckConstraint(
            "sync_status IN ('pending', 'synced', 'failed')",
            name="ck_price_tier_sync_status",
        ),
    )

    @classmethod
    def owned_by(cls, item: PricedItemRef):
        """SQL filter selecting the tiers of one priced item."""
        if item.kind == PricedItemKind.VARIANT:
            return cls.variant_id == item.item_id
        return cls.lock_tech_id == item.item_id

    @validates("currency")
    def validate_currency(self, key, value):
        """Currencies are stored lowercase (Stripe convention)."""
        return value.lower() if value else value

    @property
    def item(self) -> PricedItemRef:
        if self.variant_id is not None:
            return PricedItemRef(PricedItemKind.VARIANT, self.variant_id)
        return PricedItemRef(PricedItemKind.LOCK_TECH, self.lock_tech_id)

    @property
    def is_open(self) -> bool:
        return self.max_qty is None

    def __repr__(self) -> str:
        upper = self.max_qty if self.max_qty is not None else "+"
        return (
            f"<PriceTier {self.id} {self.min_qty}-{upper} "
            f"{self.unit_amount} {self.currency} {self.sync_status}>"
        )
