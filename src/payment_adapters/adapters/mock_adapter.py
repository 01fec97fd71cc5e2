"""
Mock gateway adapter for integration testing.

MockAdapter is a complete GatewayAdapter speaking form-encoded wire data.
Instead of HTTP it sends through MockTransport, an in-process fake
processor whose behavior is driven by the card number, so every outcome of
the pipeline (approval, decline, processor error, malformed body,
credential rejection, timeout) can be produced without a network.

TEST CARDS:
The card numbers below follow the test cards published by common
processors (https://docs.stripe.com/testing#cards) so that the same numbers
can be used against the mock and against a real sandbox.
"""

import asyncio
import uuid
from collections.abc import Mapping
from typing import Any

import structlog

from payment_adapters import authorization as codec
from payment_adapters.adapters.base import AmountPolicy, GatewayAdapter, Source
from payment_adapters.authorization import AuthorizationToken
from payment_adapters.models import (
    CreditCard,
    ErrorKind,
    Money,
    MoneyFormat,
    Operation,
    OperationOptions,
    StoredToken,
    TransportFault,
)
from payment_adapters.scrubbing import form_field, header
from payment_adapters.wire import (
    RawResponse,
    WireFormat,
    WireRequest,
    WireTranscript,
    encode_form,
    parse_form,
)

logger = structlog.get_logger(__name__)

INVALID_API_KEY = "invalid"

TEST_CARD_BEHAVIORS: dict[str, dict[str, Any]] = {
    # Success scenarios
    "4242424242424242": {
        "type": "success",
        "auth_code": "123456",
        "description": "Generic success - always approves",
    },
    "5555555555554444": {
        "type": "success",
        "auth_code": "789012",
        "description": "Mastercard success",
    },
    "378282246310005": {
        "type": "success",
        "auth_code": "345678",
        "description": "American Express success",
    },
    # Decline scenarios
    "4000000000000002": {
        "type": "decline",
        "code": "card_declined",
        "decline_code": "generic_decline",
        "reason": "Your card was declined",
        "description": "Generic decline",
    },
    "4000000000009995": {
        "type": "decline",
        "code": "card_declined",
        "decline_code": "insufficient_funds",
        "reason": "Your card has insufficient funds",
        "description": "Insufficient funds",
    },
    "4000000000000069": {
        "type": "decline",
        "code": "expired_card",
        "decline_code": "expired_card",
        "reason": "Your card has expired",
        "description": "Expired card",
    },
    "4000000000000127": {
        "type": "decline",
        "code": "incorrect_cvc",
        "decline_code": "incorrect_cvc",
        "reason": "Your card's security code is incorrect",
        "description": "Incorrect CVC",
    },
    # Processor-side failures
    "4000000000000119": {
        "type": "timeout",
        "description": "Processing timeout - the transport never gets an answer",
    },
    "4000000000009987": {
        "type": "rate_limit",
        "description": "Rate limit - 429 with a plain-text body",
    },
    "4000000000000259": {
        "type": "processor_error",
        "description": "Processor error - 500 with an error payload",
    },
    "4000000000000093": {
        "type": "malformed",
        "description": "Malformed response - 200 with a non form-encoded body",
    },
    # 3D Secure / requires_action
    "4000002500003155": {
        "type": "requires_action",
        "description": "Requires 3D Secure authentication",
    },
    # Credential rejection
    "4000000000000044": {
        "type": "invalid_credentials",
        "description": "Processor answers 401 Access Denied",
    },
}


class MockTransport:
    """
    In-process fake processor.

    Stateless: follow-up calls are approved whenever they reference a
    transaction id, so one transport can serve concurrent calls.
    """

    def __init__(
        self,
        default_response: str = "authorized",
        latency_ms: int = 0,
        card_behaviors: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> None:
        self.default_response = default_response
        self.latency_ms = latency_ms
        self.card_behaviors = card_behaviors if card_behaviors is not None else TEST_CARD_BEHAVIORS

    async def send(self, request: WireRequest, transcript: WireTranscript) -> RawResponse:
        transcript.note("opening connection to mock processor...")
        transcript.sent(
            "POST /v1/transactions HTTP/1.1\r\n"
            + "".join(f"{name}: {value}\r\n" for name, value in request.headers.items())
            + "\r\n"
        )
        transcript.sent(request.body)

        # Simulate network latency
        if self.latency_ms > 0:
            await asyncio.sleep(self.latency_ms / 1000.0)

        response = self._respond(request)
        transcript.received(f"HTTP/1.1 {response.status_code}\r\n\r\n")
        transcript.received(response.body)
        transcript.note("Conn close")
        return response

    def _respond(self, request: WireRequest) -> RawResponse:
        fields = parse_form(request.body)
        if request.headers.get("Authorization") == f"Bearer {INVALID_API_KEY}":
            return _form(200, status="error", error_code="invalid_credentials", message="Invalid API key")

        action = fields.get("action", "")
        if action in ("capture", "refund", "void"):
            return self._follow_up(action, fields)

        card_number = fields.get("card_number", "")
        behavior = self.card_behaviors.get(card_number)
        if behavior is None:
            if fields.get("token", "").startswith("mock_pm_"):
                behavior = {"type": "success"}
            else:
                default_type = "decline" if self.default_response == "declined" else "success"
                behavior = {"type": default_type}

        behavior_type = behavior["type"]
        last_four = card_number[-4:]

        if behavior_type == "timeout":
            logger.warning("mock_timeout", card_last_four=last_four)
            raise TransportFault(
                f"Mock processor timeout: {behavior.get('description', 'Simulated timeout')}",
                timeout=True,
            )

        if behavior_type == "rate_limit":
            logger.warning("mock_rate_limited", card_last_four=last_four)
            return RawResponse(status_code=429, body="Too Many Requests")

        if behavior_type == "invalid_credentials":
            return RawResponse(status_code=401, body="<html><body>Access Denied</body></html>")

        if behavior_type == "malformed":
            return RawResponse(status_code=200, body="<html>Service page</html>")

        if behavior_type == "processor_error":
            return _form(500, status="error", error_code="processing_error", message="An error occurred while processing")

        if behavior_type == "requires_action":
            return _form(
                200,
                status="requires_action",
                error_code="requires_action",
                message="Payment requires additional authentication",
                transaction_id=f"mock_pi_{uuid.uuid4().hex[:24]}",
                redirect_url="https://mock.gateway.test/3ds/challenge",
            )

        if behavior_type == "decline":
            logger.info(
                "mock_card_declined",
                card_last_four=last_four,
                decline_code=behavior.get("decline_code"),
            )
            return _form(
                402,
                status="declined",
                error_code=behavior.get("code", "card_declined"),
                decline_code=behavior.get("decline_code"),
                message=behavior.get("reason", "Card was declined"),
            )

        if action == "store":
            return _form(200, status="approved", token=f"mock_pm_{uuid.uuid4().hex[:24]}")

        auth_code = behavior.get("auth_code", f"{uuid.uuid4().int % 1000000:06d}")
        return _form(
            200,
            status="approved",
            transaction_id=f"mock_pi_{uuid.uuid4().hex[:24]}",
            auth_code=auth_code,
            amount=fields.get("amount"),
            currency=fields.get("currency"),
            captured="true" if action == "purchase" else "false",
        )

    def _follow_up(self, action: str, fields: Mapping[str, str]) -> RawResponse:
        if not fields.get("reference"):
            return _form(
                404,
                status="declined",
                error_code="invalid_reference",
                message="No such transaction",
            )
        return _form(
            200,
            status="approved",
            transaction_id=fields["reference"],
            amount=fields.get("amount"),
            currency=fields.get("currency"),
            action=action,
        )


def _form(status_code: int, **fields: Any) -> RawResponse:
    return RawResponse(status_code=status_code, body=encode_form(fields))


class MockAdapter(GatewayAdapter):
    """
    Mock adapter for testing.

    Args:
        config: Optional configuration dict with keys:
            - default_response: Behavior for unknown cards ("authorized" or "declined")
            - latency_ms: Simulated processing latency in milliseconds
            - card_behaviors: Override the default card behaviors
            - api_key: Credential sent to the mock processor
    """

    name = "mock"
    display_name = "Mock Gateway"
    money_format = MoneyFormat.CENTS
    default_currency = "USD"
    over_amount_policy = AmountPolicy.REJECT
    scrub_rules = (
        header("Authorization"),
        form_field("card_number"),
        form_field("cvv"),
    )
    response_format = WireFormat.FORM
    test_url = "https://mock.gateway.test/v1/transactions"
    live_url = "https://mock.gateway.test/v1/transactions"

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        default_response: str = "authorized",
        latency_ms: int = 0,
        **kwargs: Any,
    ) -> None:
        self.config = config or {}
        self.default_response = self.config.get("default_response", default_response)
        self.latency_ms = self.config.get("latency_ms", latency_ms)
        self.api_key = self.config.get("api_key", "mock_key")
        self.card_behaviors = self.config.get("card_behaviors", TEST_CARD_BEHAVIORS)

        kwargs.setdefault(
            "transport",
            MockTransport(
                default_response=self.default_response,
                latency_ms=self.latency_ms,
                card_behaviors=self.card_behaviors,
            ),
        )
        super().__init__(**kwargs)

        logger.info(
            "mock_adapter_initialized",
            default_response=self.default_response,
            latency_ms=self.latency_ms,
            custom_behaviors=self.card_behaviors is not TEST_CARD_BEHAVIORS,
        )

    def build_request(
        self,
        operation: Operation,
        money: Money | None,
        source: Source,
        options: OperationOptions,
    ) -> WireRequest:
        fields: dict[str, Any] = {"action": operation.value}
        if money is not None:
            fields["amount"] = money.render(self.money_format)
            fields["currency"] = money.currency
        sensitive: tuple[str, ...] = ()

        if isinstance(source, AuthorizationToken):
            fields["reference"] = source.transaction_id
        elif isinstance(source, StoredToken):
            fields["token"] = source.token
        elif isinstance(source, CreditCard):
            fields["card_number"] = source.number
            fields["exp"] = source.expiry("MM/YYYY")
            fields["cvv"] = source.verification_value
            sensitive = source.sensitive_values()

        fields["order_id"] = options.order_id
        fields["description"] = options.description

        return WireRequest(
            url=self.url,
            headers={
                "Content-Type": WireFormat.FORM.value,
                "Authorization": f"Bearer {self.api_key}",
            },
            body=encode_form(fields),
            sensitive=sensitive,
        )

    def is_approved(self, body: Mapping[str, Any]) -> bool:
        return body.get("status") == "approved"

    def declared_errors(self, body: Mapping[str, Any]) -> list[Any]:
        if body.get("status") == "error":
            return [body.get("error_code")]
        return []

    def credentials_rejected(self, status: int, body: Mapping[str, Any] | None) -> bool:
        return body is not None and body.get("error_code") == "invalid_credentials"

    def message_from(self, body: Mapping[str, Any], kind: ErrorKind) -> str:
        return body.get("message") or super().message_from(body, kind)

    def error_code_from(self, body: Mapping[str, Any]) -> str | None:
        return body.get("error_code")

    def authorization_from(
        self,
        operation: Operation,
        body: Mapping[str, Any],
        options: OperationOptions,
    ) -> str | None:
        if operation == Operation.STORE:
            return body.get("token")
        if not body.get("transaction_id"):
            return None
        return codec.encode(
            body["transaction_id"],
            body.get("currency") or None,
            amount=body.get("amount") or None,
            auth_code=body.get("auth_code") or None,
        )
