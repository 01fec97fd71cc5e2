"""Canonical response returned by every adapter operation."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Uniform outcome taxonomy across processors."""

    SUCCESS = "SUCCESS"
    DECLINED = "DECLINED"
    PROCESSOR_ERROR = "PROCESSOR_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"


class Operation(str, Enum):
    """Operations of the unified contract."""

    PURCHASE = "purchase"
    AUTHORIZE = "authorize"
    CAPTURE = "capture"
    REFUND = "refund"
    VOID = "void"
    STORE = "store"
    VERIFY = "verify"


@dataclass
class Response:
    """
    Normalized result of an operation.

    This is the unified interface that all adapters return. It is either a
    success or a business-level failure (decline, processor error, malformed
    body), but NOT an integration failure: those raise AuthenticationError
    or TransportError.
    """

    success: bool
    message: str
    params: dict[str, Any] = field(default_factory=dict)

    # Populated on success; None on pure failures such as malformed bodies
    authorization: str | None = None

    # Populated on failure
    error_code: str | None = None

    test: bool = False
    error_kind: ErrorKind = ErrorKind.SUCCESS
    http_status: int | None = None

    def __post_init__(self) -> None:
        """Validate that the flag and the outcome agree."""
        if self.success and self.error_kind != ErrorKind.SUCCESS:
            raise ValueError("successful response must have error_kind SUCCESS")
        if not self.success and self.error_kind == ErrorKind.SUCCESS:
            raise ValueError("failed response requires a failure error_kind")
