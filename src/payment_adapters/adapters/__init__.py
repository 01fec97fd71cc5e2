"""Gateway adapters."""

from payment_adapters.adapters.base import AmountPolicy, GatewayAdapter
from payment_adapters.adapters.borgun import BorgunAdapter
from payment_adapters.adapters.commerce_hub import CommerceHubAdapter
from payment_adapters.adapters.factory import AdapterFactory, get_adapter
from payment_adapters.adapters.mock_adapter import MockAdapter, MockTransport

__all__ = [
    "AdapterFactory",
    "AmountPolicy",
    "BorgunAdapter",
    "CommerceHubAdapter",
    "GatewayAdapter",
    "MockAdapter",
    "MockTransport",
    "get_adapter",
]
