"""
Payments module - payment-provider price objects

Provides the RemotePricePort interface, the Stripe and in-memory
implementations, and the GatewayRegistry that selects one from settings.
"""

from .ports import RemotePrice, RemotePricePort, RemoteSyncError, RemoteArchiveError
from .memory_gateway import InMemoryPriceGateway
from .stripe_gateway import StripePriceGateway
from .registry import GatewayRegistry, get_price_gateway

__all__ = [
    "RemotePrice",
    "RemotePricePort",
    "RemoteSyncError",
    "RemoteArchiveError",
    "InMemoryPriceGateway",
    "StripePriceGateway",
    "GatewayRegistry",
    "get_price_gateway",
]
