"""Product and Variant SQLAlchemy models"""

from uuid import uuid4

from sqlalchemy import Column, Text, ForeignKey, Boolean, DateTime, Index, Uuid, func
from sqlalchemy.orm import relationship

from .base import Base


class Product(Base):
    """Product model representing a sellable physical product.

    The payment-provider product reference is owned by the product; every variant's
    price tiers attach their remote prices to it.
    """
    __tablename__ = "product"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    remote_product_ref = Column(Text, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    variants = relationship("Variant", back_populates="product")


class Variant(Base):
    """Variant model: the unit a product is sold and priced in.

    Each variant carries its own generation of quantity price tiers.
    """
    __tablename__ = "variant"
    __table_args__ = (
        Index("ix_variant_product_id", "product_id"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    product_id = Column(Uuid(as_uuid=True), ForeignKey("product.id", ondelete="RESTRICT"), nullable=False)
    sku = Column(Text, nullable=True)
    name = Column(Text, nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    product = relationship("Product", back_populates="variants")
