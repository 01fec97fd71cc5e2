"""
Error classification.

Maps a processor round trip (transport outcome, HTTP status, parsed body)
onto the uniform ErrorKind taxonomy. The rules are ordered and the first
match wins:

1. the transport failed                              -> TRANSPORT_ERROR
2. 401, or a credential-rejection payload            -> AUTHENTICATION_ERROR
3. body unparsable: 5xx/408/429                      -> TRANSPORT_ERROR
                    anything else                    -> MALFORMED_RESPONSE
4. a declared error payload                          -> PROCESSOR_ERROR
5. the approval indicator is set                     -> SUCCESS
6. 5xx                                               -> PROCESSOR_ERROR
   anything else                                     -> DECLINED
"""

from collections.abc import Mapping
from typing import Any, Protocol

from payment_adapters.models.response import ErrorKind

RETRYABLE_STATUSES = frozenset({408, 429})


class ResponseInspector(Protocol):
    """Processor-specific reading of a parsed response body."""

    def is_approved(self, body: Mapping[str, Any]) -> bool:
        ...

    def declared_errors(self, body: Mapping[str, Any]) -> list[Any]:
        ...

    def credentials_rejected(self, status: int, body: Mapping[str, Any] | None) -> bool:
        ...


def is_retryable_status(status: int | None) -> bool:
    return status is not None and (status >= 500 or status in RETRYABLE_STATUSES)


class ErrorClassifier:
    """Ordered classification rules over an adapter's ResponseInspector."""

    def __init__(self, inspector: ResponseInspector) -> None:
        self.inspector = inspector

    def classify(
        self,
        http_status: int | None,
        body: Mapping[str, Any] | None,
        outcome: BaseException | None = None,
    ) -> ErrorKind:
        """
        Classify one round trip.

        Args:
            http_status: HTTP status code, None when nothing was received
            body: Parsed body, None when the body could not be parsed
            outcome: Transport exception, if the round trip failed

        Returns:
            ErrorKind for the round trip
        """
        if outcome is not None or http_status is None:
            return ErrorKind.TRANSPORT_ERROR

        if http_status == 401 or self.inspector.credentials_rejected(http_status, body):
            return ErrorKind.AUTHENTICATION_ERROR

        if body is None:
            if is_retryable_status(http_status):
                return ErrorKind.TRANSPORT_ERROR
            return ErrorKind.MALFORMED_RESPONSE

        if self.inspector.declared_errors(body):
            return ErrorKind.PROCESSOR_ERROR

        if self.inspector.is_approved(body):
            return ErrorKind.SUCCESS

        if http_status >= 500:
            return ErrorKind.PROCESSOR_ERROR
        return ErrorKind.DECLINED
