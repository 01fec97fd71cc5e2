"""Unified payment gateway adapters."""

from payment_adapters.adapters import (
    AdapterFactory,
    BorgunAdapter,
    CommerceHubAdapter,
    GatewayAdapter,
    MockAdapter,
    get_adapter,
)
from payment_adapters.models import (
    Address,
    AuthenticationError,
    CreditCard,
    ErrorKind,
    GatewayError,
    InvalidAmount,
    Money,
    OperationOptions,
    Response,
    StoredToken,
    TransportError,
    UnsupportedCurrency,
    UnsupportedOperation,
)

__version__ = "0.1.0"

__all__ = [
    "AdapterFactory",
    "Address",
    "AuthenticationError",
    "BorgunAdapter",
    "CommerceHubAdapter",
    "CreditCard",
    "ErrorKind",
    "GatewayAdapter",
    "GatewayError",
    "InvalidAmount",
    "MockAdapter",
    "Money",
    "OperationOptions",
    "Response",
    "StoredToken",
    "TransportError",
    "UnsupportedCurrency",
    "UnsupportedOperation",
    "get_adapter",
]
