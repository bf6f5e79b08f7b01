"""LockTech SQLAlchemy model"""

from uuid import uuid4

from sqlalchemy import Column, Text, Boolean, DateTime, Uuid, func

from .base import Base


class LockTech(Base):
    """Keycard lock technology (e.g. MIFARE, RFID 125kHz).

    Keycards are sold in boxes and priced per lock technology, so a lock
    technology is a priced item of its own with its own payment-provider product.
    """
    __tablename__ = "lock_tech"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(Text, nullable=False, unique=True)
    remote_product_ref = Column(Text, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
