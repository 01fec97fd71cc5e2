"""
CommerceHub adapter.

JSON over HTTPS. Every request is signed: the Authorization header is the
base64 HMAC-SHA256, keyed with the API secret, of
``api_key + client_request_id + timestamp + body``.
"""

import base64
import hashlib
import hmac
import time
import uuid
from collections.abc import Mapping
from typing import Any

import structlog

from payment_adapters import authorization as codec
from payment_adapters.adapters.base import AmountPolicy, GatewayAdapter, Source
from payment_adapters.authorization import AuthorizationToken
from payment_adapters.models import (
    Address,
    CreditCard,
    ErrorKind,
    Money,
    MoneyFormat,
    Operation,
    OperationOptions,
    StoredToken,
)
from payment_adapters.scrubbing import header, json_field
from payment_adapters.wire import WireFormat, WireRequest, encode_json

logger = structlog.get_logger(__name__)

ENDPOINTS = {
    Operation.PURCHASE: "/payments/v1/charges",
    Operation.AUTHORIZE: "/payments/v1/charges",
    Operation.CAPTURE: "/payments/v1/charges",
    Operation.VERIFY: "/payments/v1/charges",
    Operation.REFUND: "/payments/v1/refunds",
    Operation.VOID: "/payments/v1/cancels",
    Operation.STORE: "/payments-vas/v1/tokens",
}

APPROVED = "000"


class CommerceHubAdapter(GatewayAdapter):
    """Adapter for the Fiserv CommerceHub REST API."""

    name = "commerce_hub"
    display_name = "CommerceHub"
    money_format = MoneyFormat.DOLLARS
    default_currency = "USD"
    # CommerceHub enforces its own capture/refund limits
    over_amount_policy = AmountPolicy.PASS_THROUGH
    scrub_rules = (
        header("Authorization"),
        header("Api-Key"),
        json_field("cardData"),
        json_field("securityCode"),
    )
    response_format = WireFormat.JSON
    test_url = "https://cert.api.fiservapps.com/ch"
    live_url = "https://prod.api.fiservapps.com/ch"

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        merchant_id: str,
        terminal_id: str,
        **kwargs: Any,
    ) -> None:
        """
        Initialize the CommerceHub adapter.

        Args:
            api_key: API key sent in the Api-Key header
            api_secret: Secret used to sign requests (never sent)
            merchant_id: Merchant id
            terminal_id: Terminal id
            **kwargs: test, ssl_strict, timeout_seconds, transport

        Raises:
            ValueError: If a credential is missing
        """
        missing = [
            name
            for name, value in (
                ("api_key", api_key),
                ("api_secret", api_secret),
                ("merchant_id", merchant_id),
                ("terminal_id", terminal_id),
            )
            if not value
        ]
        if missing:
            raise ValueError(f"CommerceHub requires {', '.join(missing)}")

        super().__init__(**kwargs)
        self.api_key = api_key
        self.api_secret = api_secret
        self.merchant_id = merchant_id
        self.terminal_id = terminal_id

        logger.info(
            "commerce_hub_adapter_initialized",
            merchant_id=merchant_id,
            test=self.test,
        )

    def build_request(
        self,
        operation: Operation,
        money: Money | None,
        source: Source,
        options: OperationOptions,
    ) -> WireRequest:
        post: dict[str, Any] = {}
        sensitive: tuple[str, ...] = ()

        if operation == Operation.STORE:
            sensitive = self._add_source(post, source)
            self._add_addresses(post, options)
            self._add_merchant_details(post)
        elif isinstance(source, AuthorizationToken):
            self._add_amount(post, money)
            self._add_transaction_details(post, operation, options)
            self._add_reference(post, operation, source, options)
            self._add_merchant_details(post)
        else:
            self._add_amount(post, money)
            self._add_transaction_details(post, operation, options)
            sensitive = self._add_source(post, source)
            self._add_addresses(post, options)
            post["transactionInteraction"] = {
                "origin": "ECOM",
                "eciIndicator": "CHANNEL_ENCRYPTED",
                "posConditionCode": "CARD_NOT_PRESENT_ECOM",
            }
            self._add_merchant_details(post)

        body = encode_json(post)
        headers = self._signed_headers(body, options)
        return WireRequest(
            url=self.url + ENDPOINTS[operation],
            headers=headers,
            body=body,
            sensitive=(*sensitive, headers["Authorization"]),
        )

    def _add_amount(self, post: dict[str, Any], money: Money | None) -> None:
        if money is None:
            return
        post["amount"] = {
            "total": float(money.render(self.money_format)),
            "currency": money.currency,
        }

    def _add_transaction_details(
        self,
        post: dict[str, Any],
        operation: Operation,
        options: OperationOptions,
    ) -> None:
        if operation == Operation.PURCHASE:
            capture_flag: bool | None = True
        elif operation in (Operation.AUTHORIZE, Operation.VERIFY):
            capture_flag = False
        elif operation == Operation.CAPTURE:
            capture_flag = True
        else:
            capture_flag = None

        details: dict[str, Any] = {
            "captureFlag": capture_flag,
            "createToken": options.get("create_token"),
        }
        if options.order_id and operation in (Operation.PURCHASE, Operation.AUTHORIZE):
            details["merchantOrderId"] = options.order_id
            details["merchantTransactionId"] = options.order_id

        if operation != Operation.CAPTURE:
            details["merchantInvoiceNumber"] = (
                options.get("merchant_invoice_number") or f"{uuid.uuid4().int % 10**12:012d}"
            )
            if operation == Operation.VERIFY:
                details["primaryTransactionType"] = "AUTH_ONLY"
                details["accountVerification"] = True
            else:
                details["primaryTransactionType"] = options.get("primary_transaction_type")

        post["transactionDetails"] = details

    def _add_source(self, post: dict[str, Any], source: Source) -> tuple[str, ...]:
        if isinstance(source, StoredToken):
            post["source"] = {
                "sourceType": "PaymentToken",
                "tokenData": source.token,
                "tokenSource": source.source or "TRANSARMOR",
            }
            return ()

        if not isinstance(source, CreditCard):
            raise ValueError("CommerceHub needs a credit card or stored token")

        post["source"] = {
            "sourceType": "PaymentCard",
            "card": {
                "cardData": source.number,
                "expirationMonth": source.two_digit_month(),
                "expirationYear": str(source.year),
                "securityCode": source.verification_value,
                "securityCodeIndicator": "PROVIDED" if source.verification_value else "NOT_PROVIDED",
            },
        }
        return source.sensitive_values()

    def _add_addresses(self, post: dict[str, Any], options: OperationOptions) -> None:
        if options.billing_address:
            post["billingAddress"] = _address(options.billing_address)
        if options.shipping_address:
            post["shippingAddress"] = _address(options.shipping_address)

    def _add_reference(
        self,
        post: dict[str, Any],
        operation: Operation,
        token: AuthorizationToken,
        options: OperationOptions,
    ) -> None:
        reference: dict[str, Any] = {"referenceTransactionId": token.transaction_id}
        if operation != Operation.CAPTURE:
            reference["referenceTransactionType"] = (
                options.get("reference_transaction_type") or "CHARGES"
            )
        post["referenceTransactionDetails"] = reference

    def _add_merchant_details(self, post: dict[str, Any]) -> None:
        post["merchantDetails"] = {
            "terminalId": self.terminal_id,
            "merchantId": self.merchant_id,
        }

    def _signed_headers(self, body: str, options: OperationOptions) -> dict[str, str]:
        timestamp = str(int(time.time() * 1000))
        client_request_id = str(
            options.get("client_request_id") or f"{uuid.uuid4().int % 10**7:07d}"
        )
        return {
            "Client-Request-Id": client_request_id,
            "Api-Key": self.api_key,
            "Timestamp": timestamp,
            "Accept-Language": "application/json",
            "Auth-Token-Type": "HMAC",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Authorization": self.sign(client_request_id, timestamp, body),
        }

    def sign(self, client_request_id: str, timestamp: str, body: str) -> str:
        """Base64 HMAC-SHA256 signature of one request."""
        message = f"{self.api_key}{client_request_id}{timestamp}{body}"
        digest = hmac.new(self.api_secret.encode(), message.encode(), hashlib.sha256).digest()
        return base64.b64encode(digest).decode("ascii")

    def _response_code(self, body: Mapping[str, Any]) -> str | None:
        details = (body.get("paymentReceipt") or {}).get("processorResponseDetails") or body.get(
            "processorResponseDetails"
        )
        if details and details.get("responseCode") is not None:
            return details["responseCode"]
        tokens = body.get("paymentTokens") or []
        if tokens:
            return tokens[0].get("tokenResponseCode")
        return None

    def is_approved(self, body: Mapping[str, Any]) -> bool:
        return self._response_code(body) == APPROVED

    def declared_errors(self, body: Mapping[str, Any]) -> list[Any]:
        return list(body.get("error") or [])

    def message_from(self, body: Mapping[str, Any], kind: ErrorKind) -> str:
        errors = self.declared_errors(body)
        if errors and errors[0].get("message"):
            return errors[0]["message"]
        details = (body.get("paymentReceipt") or {}).get("processorResponseDetails") or {}
        return details.get("responseMessage") or kind.value.replace("_", " ").capitalize()

    def error_code_from(self, body: Mapping[str, Any]) -> str | None:
        errors = self.declared_errors(body)
        if errors:
            return errors[0].get("type")
        return self._response_code(body)

    def authorization_from(
        self,
        operation: Operation,
        body: Mapping[str, Any],
        options: OperationOptions,
    ) -> str | None:
        if operation == Operation.STORE:
            tokens = body.get("paymentTokens") or []
            return tokens[0].get("tokenData") if tokens else None

        transaction_id = (
            (body.get("gatewayResponse") or {})
            .get("transactionProcessingDetails", {})
            .get("transactionId")
        )
        if not transaction_id:
            return None
        approved = (body.get("paymentReceipt") or {}).get("approvedAmount") or {}
        return codec.encode(transaction_id, approved.get("currency") or options.currency)


def _address(address: Address) -> dict[str, Any]:
    first_name, last_name = address.split_name()
    return {
        "firstName": first_name,
        "lastName": last_name,
        "address": {
            "street": address.address1,
            "houseNumberOrName": address.address2,
            "recipientNameOrAddress": address.name,
            "city": address.city,
            "stateOrProvince": address.state,
            "postalCode": address.zip,
            "country": address.country,
        },
        "phone": {"phoneNumber": address.phone},
    }
