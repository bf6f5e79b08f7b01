"""Pytest fixtures for the LTS backend.

Provides reusable test fixtures for:
- Database session on a fresh in-memory SQLite schema per test
- Catalog entities (product, variant, lock technology)
- In-memory payment-provider gateway
- Test client with database and gateway dependencies overridden

Usage:
    def test_replace(client, variant, memory_gateway):
        response = client.put(f"/api/v1/variants/{variant.id}/prices", json=[...])
        assert response.status_code == 200
"""

import sys
import os
from pathlib import Path

# Set environment variables BEFORE any imports to ensure they take effect
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["PRICE_GATEWAY"] = "memory"
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from typing import Generator

backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

from config import Settings
from models.base import Base
from models.lock_tech import LockTech
from models.price_tier import PricedItemKind, PricedItemRef
from models.product import Product, Variant
from payments.memory_gateway import InMemoryPriceGateway
from payments.registry import get_price_gateway

# One shared in-memory connection so every session sees the same schema
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


# Import the actual get_db from database to use for dependency override
from database import get_db as database_get_db


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database session for each test.

    Creates all tables before the test and drops them after.
    """
    Base.metadata.create_all(bind=test_engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def test_settings() -> Settings:
    """Settings with a short lock timeout so contention tests fail fast."""
    return Settings(REPLACE_LOCK_TIMEOUT_SECONDS=0.05)


@pytest.fixture
def product(db_session: Session) -> Product:
    product = Product(name="Hotel door lock", remote_product_ref="prod_lock")
    db_session.add(product)
    db_session.commit()
    db_session.refresh(product)
    return product


@pytest.fixture
def variant(db_session: Session, product: Product) -> Variant:
    variant = Variant(product_id=product.id, sku="LOCK-BRASS", name="Brass")
    db_session.add(variant)
    db_session.commit()
    db_session.refresh(variant)
    return variant


@pytest.fixture
def unlinked_variant(db_session: Session) -> Variant:
    """Variant whose product has no payment-provider product yet."""
    product = Product(name="Prototype lock", remote_product_ref=None)
    db_session.add(product)
    db_session.commit()
    variant = Variant(product_id=product.id, sku="PROTO-1", name="Prototype")
    db_session.add(variant)
    db_session.commit()
    db_session.refresh(variant)
    return variant


@pytest.fixture
def lock_tech(db_session: Session) -> LockTech:
    lock_tech = LockTech(name="MIFARE Classic", remote_product_ref="prod_mifare")
    db_session.add(lock_tech)
    db_session.commit()
    db_session.refresh(lock_tech)
    return lock_tech


@pytest.fixture
def variant_ref(variant: Variant) -> PricedItemRef:
    return PricedItemRef(PricedItemKind.VARIANT, variant.id)


@pytest.fixture
def lock_tech_ref(lock_tech: LockTech) -> PricedItemRef:
    return PricedItemRef(PricedItemKind.LOCK_TECH, lock_tech.id)


@pytest.fixture
def memory_gateway() -> InMemoryPriceGateway:
    return InMemoryPriceGateway()


@pytest.fixture(scope="function")
def client(db_session: Session, memory_gateway: InMemoryPriceGateway):
    """Create a test client bound to the test session and the in-memory gateway."""
    from main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[database_get_db] = override_get_db
    app.dependency_overrides[get_price_gateway] = lambda: memory_gateway

    yield TestClient(app)

    app.dependency_overrides.clear()
