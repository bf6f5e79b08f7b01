"""Unit tests for the in-memory price gateway"""

import pytest

import sys
from pathlib import Path
backend_src = Path(__file__).parent.parent.parent.parent / "src"
sys.path.insert(0, str(backend_src))

from payments.memory_gateway import InMemoryPriceGateway
from payments.ports import RemoteArchiveError, RemoteSyncError


class TestInMemoryPriceGateway:
    """Test cases for InMemoryPriceGateway"""

    def test_create_returns_active_price(self):
        gateway = InMemoryPriceGateway()

        ref = gateway.create_price("prod_1", 100, "usd", metadata={"tier_id": "t1"})

        price = gateway.prices[ref]
        assert price.active is True
        assert (price.product_ref, price.unit_amount, price.currency) == ("prod_1", 100, "usd")
        assert price.metadata == {"tier_id": "t1"}

    def test_idempotency_key_returns_same_price(self):
        gateway = InMemoryPriceGateway()

        first = gateway.create_price("prod_1", 100, "usd", idempotency_key="price-tier-1")
        second = gateway.create_price("prod_1", 100, "usd", idempotency_key="price-tier-1")

        assert first == second
        assert len(gateway.prices) == 1

    def test_reused_key_with_other_parameters_is_refused(self):
        gateway = InMemoryPriceGateway()
        gateway.create_price("prod_1", 100, "usd", idempotency_key="price-tier-1")

        with pytest.raises(RemoteSyncError, match="same parameters"):
            gateway.create_price("prod_2", 100, "usd", idempotency_key="price-tier-1")

        assert len(gateway.prices) == 1

    def test_unknown_product_rejection_is_replayed(self):
        """Given a key whose first use was rejected, then reusing it replays the rejection"""
        gateway = InMemoryPriceGateway(known_products={"prod_1"})

        for _ in range(2):
            with pytest.raises(RemoteSyncError, match="No such product: 'prod_x'"):
                gateway.create_price("prod_x", 100, "usd", idempotency_key="price-tier-1")

        gateway.known_products.add("prod_x")
        with pytest.raises(RemoteSyncError, match="No such product"):
            gateway.create_price("prod_x", 100, "usd", idempotency_key="price-tier-1")

        assert gateway.create_price("prod_x", 100, "usd", idempotency_key="price-tier-2")

    def test_archive_twice_succeeds(self):
        """Archiving an already archived price is a no-op success"""
        gateway = InMemoryPriceGateway()
        ref = gateway.create_price("prod_1", 100, "usd")

        gateway.archive_price(ref)
        gateway.archive_price(ref)

        assert gateway.prices[ref].active is False
        assert gateway.archive_calls == [ref, ref]
        assert gateway.active_refs() == set()

    def test_archive_unknown_price_fails(self):
        with pytest.raises(RemoteArchiveError):
            InMemoryPriceGateway().archive_price("price_missing")

    @pytest.mark.parametrize("mode", ["failure", "timeout"])
    def test_simulated_create_failures(self, mode):
        gateway = InMemoryPriceGateway(mode=mode)

        with pytest.raises(RemoteSyncError):
            gateway.create_price("prod_1", 100, "usd")

        assert gateway.prices == {}

    def test_fail_unit_amounts(self):
        gateway = InMemoryPriceGateway(fail_unit_amounts={80})

        gateway.create_price("prod_1", 100, "usd")
        with pytest.raises(RemoteSyncError):
            gateway.create_price("prod_1", 80, "usd")

    def test_gateway_type(self):
        assert InMemoryPriceGateway().get_gateway_type() == "INMEMORY"
