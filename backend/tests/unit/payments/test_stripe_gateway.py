"""Unit tests for the Stripe price gateway

The Stripe client is mocked; no network calls are made.
"""

import pytest
from unittest.mock import MagicMock

import stripe

import sys
from pathlib import Path
backend_src = Path(__file__).parent.parent.parent.parent / "src"
sys.path.insert(0, str(backend_src))

from payments.ports import RemoteArchiveError, RemoteSyncError
from payments.stripe_gateway import StripePriceGateway


@pytest.fixture
def stripe_client():
    client = MagicMock()
    client.prices.create.return_value = MagicMock(id="price_123")
    return client


class TestCreatePrice:
    """Test cases for StripePriceGateway.create_price()"""

    def test_creates_price_with_idempotency_key(self, stripe_client):
        gateway = StripePriceGateway(client=stripe_client)

        ref = gateway.create_price(
            "prod_ABC", 1000, "usd",
            idempotency_key="price-tier-1",
            metadata={"tier_id": "1"},
        )

        assert ref == "price_123"
        stripe_client.prices.create.assert_called_once_with(
            params={
                "product": "prod_ABC",
                "unit_amount": 1000,
                "currency": "usd",
                "active": True,
                "metadata": {"tier_id": "1"},
            },
            options={"idempotency_key": "price-tier-1"},
        )

    @pytest.mark.parametrize("error,fragment", [
        (stripe.AuthenticationError("bad key"), "authentication"),
        (stripe.RateLimitError("slow down"), "rate limit"),
        (stripe.APIConnectionError("timed out"), "timed out"),
        (stripe.InvalidRequestError("No such product: 'prod_X'", "product"), "rejected"),
        (stripe.APIError("server error"), "API error"),
    ])
    def test_stripe_errors_become_remote_sync_errors(self, stripe_client, error, fragment):
        stripe_client.prices.create.side_effect = error
        gateway = StripePriceGateway(client=stripe_client)

        with pytest.raises(RemoteSyncError) as exc_info:
            gateway.create_price("prod_X", 1000, "usd")

        assert fragment in exc_info.value.message
        assert exc_info.value.__cause__ is error

    def test_missing_price_id_is_an_error(self, stripe_client):
        stripe_client.prices.create.return_value = MagicMock(id=None)
        gateway = StripePriceGateway(client=stripe_client)

        with pytest.raises(RemoteSyncError):
            gateway.create_price("prod_ABC", 1000, "usd")


class TestArchivePrice:
    """Test cases for StripePriceGateway.archive_price()"""

    def test_sets_active_false(self, stripe_client):
        gateway = StripePriceGateway(client=stripe_client)

        gateway.archive_price("price_123")
        gateway.archive_price("price_123")

        stripe_client.prices.update.assert_called_with("price_123", params={"active": False})
        assert stripe_client.prices.update.call_count == 2

    def test_stripe_error_becomes_remote_archive_error(self, stripe_client):
        stripe_client.prices.update.side_effect = stripe.APIConnectionError("network down")
        gateway = StripePriceGateway(client=stripe_client)

        with pytest.raises(RemoteArchiveError):
            gateway.archive_price("price_123")


class TestConfiguration:
    """Test cases for gateway construction"""

    def test_requires_api_key(self, monkeypatch):
        monkeypatch.delenv("STRIPE_SECRET_KEY", raising=False)

        with pytest.raises(RemoteSyncError):
            StripePriceGateway()

    def test_builds_client_from_key(self):
        gateway = StripePriceGateway(api_key="sk_test_123", timeout=5)

        assert isinstance(gateway.client, stripe.StripeClient)
        assert gateway.get_gateway_type() == "STRIPE"
