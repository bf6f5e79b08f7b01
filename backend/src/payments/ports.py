"""
RemotePricePort - Port interface for payment-provider price objects

Domain logic depends only on this port. Payment-provider prices are immutable
once created and support only an active flag, so the port offers exactly two
operations: create a price and archive (deactivate) a price. There is no update.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from pricing.errors import RemoteArchiveError, RemoteSyncError

__all__ = [
    "RemotePrice",
    "RemotePricePort",
    "RemoteSyncError",
    "RemoteArchiveError",
]


@dataclass
class RemotePrice:
    """
    Snapshot of a price object held by the payment provider.

    Attributes:
        ref: Provider identifier of the price (e.g. "price_123")
        product_ref: Provider product the price is attached to
        unit_amount: Amount in minor currency units
        currency: Lowercase currency code
        active: False once archived
        metadata: Free-form key/value pairs stored with the price
    """
    ref: str
    product_ref: str
    unit_amount: int
    currency: str
    active: bool = True
    metadata: dict[str, str] = field(default_factory=dict)


class RemotePricePort(ABC):
    """
    Abstract interface for payment-provider price gateways.

    Implementations:
    - StripePriceGateway: Stripe Prices API
    - InMemoryPriceGateway: process-local fake for development and tests
    """

    @abstractmethod
    def create_price(
        self,
        product_ref: str,
        unit_amount: int,
        currency: str,
        idempotency_key: Optional[str] = None,
        metadata: Optional[dict[str, str]] = None,
    ) -> str:
        """
        Create a new active price object.

        Args:
            product_ref: Provider product to attach the price to
            unit_amount: Amount in minor currency units
            currency: Lowercase currency code
            idempotency_key: Key that makes retries return the same price
            metadata: Key/value pairs stored on the remote object

        Returns:
            Provider reference of the created price

        Raises:
            RemoteSyncError: Provider rejected the request, network failure,
                rate limit or timeout
        """
        pass

    @abstractmethod
    def archive_price(self, price_ref: str) -> None:
        """
        Deactivate a price object. Never deletes it.

        Archiving an already archived price succeeds without error.

        Raises:
            RemoteArchiveError: If the provider call failed
        """
        pass

    def get_gateway_type(self) -> str:
        """Gateway identifier, derived from the class name by default."""
        return self.__class__.__name__.replace("PriceGateway", "").upper()
