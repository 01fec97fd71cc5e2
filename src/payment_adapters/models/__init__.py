"""Domain models for the payment adapter framework."""

from payment_adapters.models.exceptions import (
    AuthenticationError,
    GatewayError,
    InvalidAmount,
    MalformedBody,
    ResponseError,
    TransportError,
    TransportFault,
    UnsupportedCurrency,
    UnsupportedOperation,
)
from payment_adapters.models.instrument import CreditCard, PaymentInstrument, StoredToken
from payment_adapters.models.money import Money, MoneyFormat
from payment_adapters.models.options import Address, OperationOptions
from payment_adapters.models.response import ErrorKind, Operation, Response

__all__ = [
    "Address",
    "AuthenticationError",
    "CreditCard",
    "ErrorKind",
    "GatewayError",
    "InvalidAmount",
    "MalformedBody",
    "Money",
    "MoneyFormat",
    "Operation",
    "OperationOptions",
    "PaymentInstrument",
    "Response",
    "ResponseError",
    "StoredToken",
    "TransportError",
    "TransportFault",
    "UnsupportedCurrency",
    "UnsupportedOperation",
]
