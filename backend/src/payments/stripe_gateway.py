"""Stripe price gateway - Implementation of RemotePricePort using the Stripe Prices API.

Stripe prices cannot be edited after creation (amount, currency and product
are fixed); the only mutable field used here is `active`. Every tier row gets a
brand-new Stripe price and retired rows get their price archived.
"""

import logging
import os
import time
from typing import Optional

import stripe

from .ports import RemotePricePort, RemoteArchiveError, RemoteSyncError

logger = logging.getLogger(__name__)


class StripePriceGateway(RemotePricePort):
    """Stripe implementation of RemotePricePort.

    Configuration (environment variables):
        STRIPE_SECRET_KEY: Stripe secret API key (required)

    Timeouts are enforced by the SDK HTTP client; a timed out request raises
    stripe.APIConnectionError which is reported as RemoteSyncError.

    Example Usage:
        gateway = StripePriceGateway(timeout=20)
        ref = gateway.create_price("prod_ABC", 1000, "usd", idempotency_key="price-tier-...")
        gateway.archive_price(ref)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: int = 20,
        max_network_retries: int = 2,
        client: Optional[stripe.StripeClient] = None,
    ):
        """Initialize Stripe price gateway.

        Args:
            api_key: Stripe secret key (if None, reads STRIPE_SECRET_KEY env var)
            timeout: Request timeout in seconds
            max_network_retries: Automatic SDK retries on network errors
            client: Preconfigured StripeClient (tests inject a mock here)

        Raises:
            RemoteSyncError: If no client is given and no API key is configured
        """
        if client is None:
            api_key = api_key or os.getenv("STRIPE_SECRET_KEY")
            if not api_key:
                raise RemoteSyncError("STRIPE_SECRET_KEY not provided and not found in environment")
            client = stripe.StripeClient(
                api_key,
                http_client=stripe.RequestsClient(timeout=timeout),
                max_network_retries=max_network_retries,
            )
        self.client = client
        self.timeout = timeout

    def create_price(
        self,
        product_ref: str,
        unit_amount: int,
        currency: str,
        idempotency_key: Optional[str] = None,
        metadata: Optional[dict[str, str]] = None,
    ) -> str:
        """Create an active Stripe price for a product.

        Raises:
            RemoteSyncError: Authentication, rate limit, network/timeout,
                invalid request (e.g. unknown product) or any other Stripe error
        """
        params = {
            "product": product_ref,
            "unit_amount": unit_amount,
            "currency": currency,
            "active": True,
        }
        if metadata:
            params["metadata"] = metadata
        options = {"idempotency_key": idempotency_key} if idempotency_key else {}

        start_time = time.time()
        try:
            price = self.client.prices.create(params=params, options=options)
        except stripe.AuthenticationError as e:
            raise RemoteSyncError(f"Stripe authentication failed: {e.user_message or e}") from e
        except stripe.RateLimitError as e:
            raise RemoteSyncError(f"Stripe rate limit exceeded: {e.user_message or e}") from e
        except stripe.APIConnectionError as e:
            raise RemoteSyncError(f"Stripe connection failed or timed out: {e.user_message or e}") from e
        except stripe.InvalidRequestError as e:
            raise RemoteSyncError(f"Stripe rejected price: {e.user_message or e}") from e
        except stripe.StripeError as e:
            raise RemoteSyncError(f"Stripe API error: {e.user_message or e}") from e

        if not getattr(price, "id", None):
            raise RemoteSyncError("Stripe returned a price without an id")

        logger.info(
            f"Stripe price created: {price.id}",
            extra={
                "product_ref": product_ref,
                "unit_amount": unit_amount,
                "currency": currency,
                "latency_ms": int((time.time() - start_time) * 1000),
            },
        )
        return price.id

    def archive_price(self, price_ref: str) -> None:
        """Set active=false on a Stripe price.

        Stripe accepts the update for prices that are already inactive, so
        archiving twice is a no-op success.

        Raises:
            RemoteArchiveError: If the update fails
        """
        try:
            self.client.prices.update(str(price_ref), params={"active": False})
        except stripe.StripeError as e:
            raise RemoteArchiveError(f"Stripe archive of {price_ref} failed: {e.user_message or e}") from e

        logger.info(f"Stripe price archived: {price_ref}")
