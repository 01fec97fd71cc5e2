"""Custom exceptions for the payment adapter framework."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from payment_adapters.wire import RawResponse


class GatewayError(Exception):
    """Base exception for gateway-related errors."""

    pass


class TransportFault(GatewayError):
    """
    Raised by a transport when the round trip itself failed.

    This is the contract exception for Transport implementations. Adapters
    catch it and re-raise it as TransportError after classification; callers
    should never see a TransportFault escape an adapter.
    """

    def __init__(self, message: str, *, timeout: bool = False) -> None:
        super().__init__(message)
        self.timeout = timeout


class TransportError(GatewayError):
    """
    Raised when the processor could not be reached or answered unusably.

    This is a RETRYABLE error from the caller's point of view. The framework
    never retries it internally.

    Examples:
    - Connection reset or refused
    - Network timeout
    - 5xx response with an unparsable body
    """

    def __init__(self, message: str, *, transcript: str = "") -> None:
        super().__init__(message)
        self.transcript = transcript


class ResponseError(GatewayError):
    """Raised when a processor response must be surfaced instead of normalized."""

    def __init__(
        self,
        message: str,
        *,
        response: "RawResponse",
        transcript: str = "",
    ) -> None:
        super().__init__(message)
        self.response = response
        self.transcript = transcript


class AuthenticationError(ResponseError):
    """
    Raised when the processor rejects the adapter's credentials.

    This is a TERMINAL error. The full response body is attached so that
    integration code can diagnose credential problems.
    """

    pass


class UnsupportedOperation(GatewayError, NotImplementedError):
    """Raised when an adapter does not implement the requested operation."""

    pass


class InvalidAmount(GatewayError, ValueError):
    """Raised when an amount is invalid for the requested operation."""

    pass


class UnsupportedCurrency(GatewayError, ValueError):
    """Raised when a currency cannot be represented for a processor."""

    pass


class MalformedBody(GatewayError, ValueError):
    """Raised by body parsers when a payload does not match its content type."""

    pass
