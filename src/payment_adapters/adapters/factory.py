"""
Adapter factory for creating gateway adapter instances.

Configuration-based adapter selection: callers name a processor and get a
ready-to-use adapter built from explicit config or from settings.
"""

from typing import Any

import structlog

from payment_adapters.adapters.base import GatewayAdapter
from payment_adapters.adapters.borgun import BorgunAdapter
from payment_adapters.adapters.commerce_hub import CommerceHubAdapter
from payment_adapters.adapters.mock_adapter import MockAdapter
from payment_adapters.config import settings

logger = structlog.get_logger(__name__)

DEFAULT_ADAPTER = "mock"

# Keys every adapter accepts regardless of processor
_COMMON_KEYS = ("test", "ssl_strict", "timeout_seconds", "transport")


class AdapterFactory:
    """
    Factory for creating gateway adapter instances.

    Supports:
    - Multiple processors behind one interface
    - Per-merchant adapter configuration
    - Registering additional adapters without modifying this file
    """

    # Registry of available adapters
    _ADAPTERS: dict[str, type[GatewayAdapter]] = {
        "borgun": BorgunAdapter,
        "commerce_hub": CommerceHubAdapter,
        "mock": MockAdapter,
    }

    @classmethod
    def create_adapter(
        cls,
        adapter_name: str,
        adapter_config: dict[str, Any] | None = None,
    ) -> GatewayAdapter:
        """
        Create a gateway adapter instance by name.

        Args:
            adapter_name: Name of the adapter (e.g., "borgun", "commerce_hub")
            adapter_config: Optional adapter-specific configuration.
                            If not provided, uses settings from global config.

        Returns:
            GatewayAdapter instance

        Raises:
            ValueError: If adapter_name is not registered or credentials are missing

        Examples:
            # Using global config
            adapter = AdapterFactory.create_adapter("borgun")

            # Using custom config
            adapter = AdapterFactory.create_adapter(
                "commerce_hub",
                adapter_config={
                    "api_key": "...",
                    "api_secret": "...",
                    "merchant_id": "100008000003683",
                    "terminal_id": "10000001",
                },
            )
        """
        adapter_name_lower = adapter_name.lower()

        if adapter_name_lower not in cls._ADAPTERS:
            available = ", ".join(sorted(cls._ADAPTERS.keys()))
            raise ValueError(
                f"Unknown adapter: {adapter_name}. "
                f"Available adapters: {available}"
            )

        adapter_class = cls._ADAPTERS[adapter_name_lower]

        # If no config provided, use settings from environment
        if adapter_config is None:
            adapter_config = cls._get_default_config(adapter_name_lower)

        logger.info(
            "adapter_created",
            adapter_name=adapter_name_lower,
            adapter_class=adapter_class.__name__,
        )

        if adapter_name_lower == "mock":
            config = dict(adapter_config)
            common = {key: config.pop(key) for key in _COMMON_KEYS if key in config}
            return adapter_class(config=config, **common)

        return adapter_class(**adapter_config)

    @classmethod
    def _get_default_config(cls, adapter_name: str) -> dict[str, Any]:
        """
        Get default configuration for an adapter from settings.

        Args:
            adapter_name: Name of the adapter

        Returns:
            Configuration dictionary with adapter settings
        """
        if adapter_name == "borgun":
            return {
                "processor": settings.borgun.processor,
                "merchant_id": settings.borgun.merchant_id,
                "username": settings.borgun.username,
                "password": settings.borgun.password,
                "terminal_id": settings.borgun.terminal_id,
            }
        elif adapter_name == "commerce_hub":
            return {
                "api_key": settings.commerce_hub.api_key,
                "api_secret": settings.commerce_hub.api_secret,
                "merchant_id": settings.commerce_hub.merchant_id,
                "terminal_id": settings.commerce_hub.terminal_id,
            }
        elif adapter_name == "mock":
            return {
                "default_response": settings.mock.default_response,
                "latency_ms": settings.mock.latency_ms,
            }
        else:
            # Registered adapters configure themselves from settings
            return {}

    @classmethod
    def register_adapter(
        cls,
        name: str,
        adapter_class: type[GatewayAdapter],
    ) -> None:
        """
        Register a new adapter type.

        Args:
            name: Name to register the adapter under
            adapter_class: GatewayAdapter subclass to register

        Raises:
            TypeError: If adapter_class is not a GatewayAdapter
        """
        if not isinstance(adapter_class, type) or not issubclass(adapter_class, GatewayAdapter):
            raise TypeError(f"{adapter_class!r} must inherit from GatewayAdapter")

        cls._ADAPTERS[name.lower()] = adapter_class
        logger.info(
            "adapter_registered",
            adapter_name=name.lower(),
            adapter_class=adapter_class.__name__,
        )

    @classmethod
    def list_adapters(cls) -> list[str]:
        """
        Get list of available adapter names.

        Returns:
            List of registered adapter names
        """
        return sorted(cls._ADAPTERS.keys())


def get_adapter(
    adapter_name: str | None = None,
    adapter_config: dict[str, Any] | None = None,
) -> GatewayAdapter:
    """
    Convenience function to create a gateway adapter.

    Args:
        adapter_name: Name of adapter (defaults to "mock")
        adapter_config: Optional adapter-specific config

    Returns:
        GatewayAdapter instance
    """
    if adapter_name is None:
        adapter_name = DEFAULT_ADAPTER

    return AdapterFactory.create_adapter(adapter_name, adapter_config)
