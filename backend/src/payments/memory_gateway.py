"""
In-memory price gateway

Simulates payment-provider price objects without network access. Used for
local development (PRICE_GATEWAY=memory) and tests.
"""

import logging
import threading
from typing import Optional
from uuid import uuid4

from .ports import RemotePrice, RemotePricePort, RemoteArchiveError, RemoteSyncError


logger = logging.getLogger(__name__)


class InMemoryPriceGateway(RemotePricePort):
    """
    Fake payment-provider price store.

    Configuration:
        - mode: "success" | "failure" | "timeout" for create_price (default: "success")
        - archive_mode: "success" | "failure" for archive_price (default: "success")
        - fail_unit_amounts: unit amounts whose creation always fails, to
          simulate a partially failing generation
        - error_message: custom error message for simulated failures
        - known_products: when set, creating a price for any other product fails
          with "No such product"

    Idempotency follows the provider: a reused key returns the stored result
    (including a stored rejection) and a reused key with different parameters
    is refused. Simulated timeouts and failures are not stored.

    Usage:
        gateway = InMemoryPriceGateway(fail_unit_amounts={80})
        gateway.create_price("prod_1", 100, "usd")   # -> "price_mem_..."
        gateway.create_price("prod_1", 80, "usd")    # raises RemoteSyncError
    """

    def __init__(
        self,
        mode: str = "success",
        archive_mode: str = "success",
        fail_unit_amounts: Optional[set[int]] = None,
        error_message: Optional[str] = None,
        known_products: Optional[set[str]] = None,
    ):
        self.mode = mode
        self.archive_mode = archive_mode
        self.fail_unit_amounts = set(fail_unit_amounts or ())
        self.error_message = error_message
        self.known_products = set(known_products) if known_products is not None else None
        self.prices: dict[str, RemotePrice] = {}
        self.create_calls: list[dict] = []
        self.archive_calls: list[str] = []
        # key -> ((product_ref, unit_amount, currency), ref, error)
        self._idempotency: dict[str, tuple[tuple, Optional[str], Optional[str]]] = {}
        self._lock = threading.Lock()

    def create_price(
        self,
        product_ref: str,
        unit_amount: int,
        currency: str,
        idempotency_key: Optional[str] = None,
        metadata: Optional[dict[str, str]] = None,
    ) -> str:
        with self._lock:
            self.create_calls.append({
                "product_ref": product_ref,
                "unit_amount": unit_amount,
                "currency": currency,
                "idempotency_key": idempotency_key,
            })

            if self.mode == "timeout":
                logger.info("InMemoryPriceGateway: Simulating timeout")
                raise RemoteSyncError("Request to payment provider timed out")
            if self.mode == "failure" or unit_amount in self.fail_unit_amounts:
                logger.info("InMemoryPriceGateway: Simulating create failure")
                raise RemoteSyncError(self.error_message or "Simulated price creation failure")
            if not product_ref:
                raise RemoteSyncError("No such product: ''")

            params = (product_ref, unit_amount, currency)
            if idempotency_key and idempotency_key in self._idempotency:
                stored_params, stored_ref, stored_error = self._idempotency[idempotency_key]
                if stored_params != params:
                    raise RemoteSyncError(
                        "Keys for idempotent requests can only be used with the same parameters "
                        "they were first used with"
                    )
                if stored_error:
                    raise RemoteSyncError(stored_error)
                return stored_ref

            if self.known_products is not None and product_ref not in self.known_products:
                error = f"No such product: '{product_ref}'"
                if idempotency_key:
                    self._idempotency[idempotency_key] = (params, None, error)
                raise RemoteSyncError(error)

            ref = f"price_mem_{uuid4().hex[:16]}"
            self.prices[ref] = RemotePrice(
                ref=ref,
                product_ref=product_ref,
                unit_amount=unit_amount,
                currency=currency,
                active=True,
                metadata=dict(metadata or {}),
            )
            if idempotency_key:
                self._idempotency[idempotency_key] = (params, ref, None)
            return ref

    def archive_price(self, price_ref: str) -> None:
        with self._lock:
            self.archive_calls.append(price_ref)

            if self.archive_mode == "failure":
                logger.info("InMemoryPriceGateway: Simulating archive failure")
                raise RemoteArchiveError(self.error_message or "Simulated price archive failure")

            price = self.prices.get(price_ref)
            if price is None:
                raise RemoteArchiveError(f"No such price: '{price_ref}'")
            price.active = False

    def active_refs(self) -> set[str]:
        """References of prices that have not been archived."""
        return {ref for ref, price in self.prices.items() if price.active}
