"""
Gateway Registry - Registration and resolution of remote price gateways

Maps gateway type strings (the PRICE_GATEWAY setting) to factories that build
a RemotePricePort from application settings.
"""

from functools import lru_cache
from typing import Callable, Dict

from config import Settings, get_settings
from .ports import RemotePricePort
from .memory_gateway import InMemoryPriceGateway
from .stripe_gateway import StripePriceGateway

GatewayFactory = Callable[[Settings], RemotePricePort]


class GatewayRegistry:
    """
    Registry for remote price gateway implementations.

    Usage:
        GatewayRegistry.register("stripe", lambda s: StripePriceGateway(api_key=s.STRIPE_SECRET_KEY))
        gateway = GatewayRegistry.get("stripe", settings)
    """

    _factories: Dict[str, GatewayFactory] = {}

    @classmethod
    def register(cls, gateway_type: str, factory: GatewayFactory) -> None:
        """
        Register a gateway factory.

        Raises:
            ValueError: If gateway_type is empty
            RuntimeError: If gateway_type is already registered
        """
        if not gateway_type or not gateway_type.strip():
            raise ValueError("gateway_type cannot be empty")

        key = gateway_type.strip().lower()
        if key in cls._factories:
            raise RuntimeError(f"Gateway type '{key}' is already registered")
        cls._factories[key] = factory

    @classmethod
    def get(cls, gateway_type: str, settings: Settings) -> RemotePricePort:
        """
        Build a gateway instance for the given type.

        Raises:
            ValueError: If gateway_type is not registered
        """
        key = (gateway_type or "").strip().lower()
        if key not in cls._factories:
            available = ', '.join(sorted(cls._factories)) if cls._factories else 'none'
            raise ValueError(
                f"Unknown price gateway: '{gateway_type}'. "
                f"Available gateways: {available}"
            )
        return cls._factories[key](settings)


GatewayRegistry.register(
    "stripe",
    lambda s: StripePriceGateway(
        api_key=s.STRIPE_SECRET_KEY,
        timeout=s.STRIPE_TIMEOUT_SECONDS,
        max_network_retries=s.STRIPE_MAX_NETWORK_RETRIES,
    ),
)
GatewayRegistry.register("memory", lambda s: InMemoryPriceGateway())


@lru_cache()
def get_price_gateway() -> RemotePricePort:
    """Process-wide gateway selected by the PRICE_GATEWAY setting.

    Cached so the in-memory gateway keeps its state across requests.
    Call get_price_gateway.cache_clear() after changing settings.
    """
    settings = get_settings()
    return GatewayRegistry.get(settings.PRICE_GATEWAY, settings)
