"""
Borgun adapter.

Borgun speaks SOAP: the actual request is a small XML document, HTML-escaped
and wrapped as the text of an element inside a SOAP envelope. The reply has
the same shape, so parsing is two passes (envelope, then the embedded reply
document).

Amounts are integer minor units, currencies are ISO 4217 numeric codes and
authentication is HTTP Basic.
"""

import base64
import html
import uuid
from collections.abc import Mapping
from datetime import datetime
from typing import Any

import structlog

from payment_adapters import authorization as codec
from payment_adapters.adapters.base import AmountPolicy, GatewayAdapter, Source
from payment_adapters.authorization import AuthorizationToken, TokenSchema
from payment_adapters.models import (
    CreditCard,
    ErrorKind,
    MalformedBody,
    Money,
    MoneyFormat,
    Operation,
    OperationOptions,
)
from payment_adapters.models.money import is_currency_code, normalize_currency, numeric_currency_code
from payment_adapters.scrubbing import header, xml_element
from payment_adapters.wire import (
    WireFormat,
    WireRequest,
    encode_xml,
    flatten_xml,
    local_name,
    parse_xml_element,
)

logger = structlog.get_logger(__name__)

API_VERSION = "1000"
APPROVED = "000"

TRANS_TYPES = {
    Operation.PURCHASE: "1",
    Operation.AUTHORIZE: "5",
    Operation.CAPTURE: "1",
    Operation.REFUND: "3",
}

SOAP_ENVELOPE = (
    '<soapenv:Envelope xmlns:soapenv="http://schemas.xmlsoap.org/soap/envelope/" '
    'xmlns:aut="http://Borgun/Heimir/pub/ws/Authorization">'
    "<soapenv:Header/>"
    "<soapenv:Body>"
    "<aut:{operation}>"
    "<{payload}>{body}</{payload}>"
    "</aut:{operation}>"
    "</soapenv:Body>"
    "</soapenv:Envelope>"
)


class BorgunAdapter(GatewayAdapter):
    """
    Adapter for the Borgun (Heimir) authorization web service.

    Tokens carry everything a follow-up call must echo back: the original
    date/time, batch, transaction, RRN, auth code, transaction type, amount
    and currency. Store and verify are not offered by Borgun.
    """

    name = "borgun"
    display_name = "Borgun"
    supported_operations = frozenset(
        {Operation.PURCHASE, Operation.AUTHORIZE, Operation.CAPTURE, Operation.REFUND, Operation.VOID}
    )
    money_format = MoneyFormat.CENTS
    default_currency = "ISK"
    token_schema = TokenSchema(
        legacy_layout=("dateandtime", "batch", "transaction", "rrn", "authcode", "transtype", "amount"),
        identifier="transaction",
    )
    over_amount_policy = AmountPolicy.REJECT
    accepted_extensions = frozenset({"passenger_itinerary_data"})
    scrub_rules = (
        header("Authorization"),
        xml_element("PAN"),
        xml_element("CVC2"),
    )
    response_format = WireFormat.XML
    test_url = "https://gatewaytest.borgun.is/ws/Heimir.pub.ws:Authorization"
    live_url = "https://gateway01.borgun.is/ws/Heimir.pub.ws:Authorization"

    def __init__(
        self,
        processor: str,
        merchant_id: str,
        username: str,
        password: str,
        terminal_id: str = "1",
        **kwargs: Any,
    ) -> None:
        """
        Initialize the Borgun adapter.

        Args:
            processor: Borgun processor id
            merchant_id: Borgun merchant id
            username: Basic auth username
            password: Basic auth password
            terminal_id: Terminal id (default: "1")
            **kwargs: test, ssl_strict, timeout_seconds, transport

        Raises:
            ValueError: If a credential is missing
        """
        missing = [
            name
            for name, value in (
                ("processor", processor),
                ("merchant_id", merchant_id),
                ("username", username),
                ("password", password),
            )
            if not value
        ]
        if missing:
            raise ValueError(f"Borgun requires {', '.join(missing)}")

        super().__init__(**kwargs)
        self.processor = str(processor)
        self.merchant_id = str(merchant_id)
        self.username = username
        self.password = password
        self.terminal_id = str(terminal_id or "1")

        logger.info(
            "borgun_adapter_initialized",
            merchant_id=self.merchant_id,
            test=self.test,
            ssl_strict=self.ssl_strict,
        )

    def build_request(
        self,
        operation: Operation,
        money: Money | None,
        source: Source,
        options: OperationOptions,
    ) -> WireRequest:
        three_d_secure = operation == Operation.PURCHASE and options.apply_3d_secure
        fields: dict[str, Any] = {
            "Version": API_VERSION,
            "Processor": self.processor,
            "MerchantID": self.merchant_id,
        }
        sensitive: tuple[str, ...] = ()

        if isinstance(source, AuthorizationToken):
            if operation == Operation.VOID:
                fields["TransType"] = source.get("transtype")
                money = self._original_money(source, options)
            else:
                fields["TransType"] = TRANS_TYPES[operation]
                if money is None:
                    # Full capture or refund: echo the original amount
                    money = self._original_money(source, options)
            self._add_invoice(fields, money, options, three_d_secure=False)
            self._add_reference(fields, source)
        else:
            if not isinstance(source, CreditCard):
                raise ValueError("Borgun only accepts credit cards")
            fields["TransType"] = "5" if three_d_secure else TRANS_TYPES[operation]
            self._add_invoice(fields, money, options, three_d_secure=three_d_secure)
            self._add_card(fields, source)
            sensitive = source.sensitive_values()
            if three_d_secure:
                fields["SaleDescription"] = options.description or ""
                fields["MerchantReturnURL"] = options.get("merchant_return_url")

        itinerary = self.extensions_for(options).get("passenger_itinerary_data")
        if itinerary:
            fields["PassengerItineraryData"] = {"A1": dict(itinerary)}

        if three_d_secure:
            inner = encode_xml("get3DSAuthentication", fields)
            soap_operation, payload = "get3DSAuthentication", "threeDSAuthRequestXML"
        else:
            mode = "cancel" if operation == Operation.VOID else "get"
            inner = encode_xml(f"{mode}Authorization", fields)
            soap_operation, payload = f"{mode}AuthorizationInput", f"{mode}AuthReqXml"

        body = SOAP_ENVELOPE.format(
            operation=soap_operation,
            payload=payload,
            body=html.escape(inner),
        )
        credentials = base64.b64encode(f"{self.username}:{self.password}".encode()).decode("ascii")
        return WireRequest(
            url=self.url,
            headers={
                "Content-Type": "text/xml",
                "Authorization": f"Basic {credentials}",
            },
            body=body,
            sensitive=sensitive,
        )

    def _add_invoice(
        self,
        fields: dict[str, Any],
        money: Money | None,
        options: OperationOptions,
        *,
        three_d_secure: bool,
    ) -> None:
        currency = money.currency if money else (options.currency or self.default_currency)
        numeric = numeric_currency_code(currency)
        fields["TrAmount"] = money.render(self.money_format) if money else None
        fields["TrCurrency"] = numeric
        # ISK goes out with exponent 2 on the 3-D Secure request only
        fields["TrCurrencyExponent"] = 2 if numeric == "352" and three_d_secure else 0
        fields["TerminalID"] = options.get("terminal_id") or self.terminal_id

    def _add_card(self, fields: dict[str, Any], card: CreditCard) -> None:
        fields["PAN"] = card.number
        fields["ExpDate"] = card.expiry("YYMM")
        fields["CVC2"] = card.verification_value
        fields["DateAndTime"] = datetime.now().strftime("%y%m%d%H%M%S")
        fields["RRN"] = f"AMRCNT{uuid.uuid4().int % 1000000:06d}"

    def _add_reference(self, fields: dict[str, Any], token: AuthorizationToken) -> None:
        fields["DateAndTime"] = token.get("dateandtime")
        fields["Transaction"] = token.transaction_id
        fields["RRN"] = token.get("rrn")
        fields["AuthCode"] = token.get("authcode")

    def _original_money(self, token: AuthorizationToken, options: OperationOptions) -> Money | None:
        amount = token.get("amount")
        if amount is None or not amount.isdigit():
            return None
        return Money(int(amount), token.resolve_currency(options.currency, self.default_currency))

    def parse_body(self, text: str) -> dict[str, Any]:
        """
        Parse a SOAP reply into the fields of the embedded reply document.

        Raises:
            MalformedBody: If the envelope or the embedded document is not XML
        """
        envelope = parse_xml_element(text)
        for node in envelope.iter():
            payload = (node.text or "").strip()
            if len(node) == 0 and payload.startswith("<"):
                return flatten_xml(parse_xml_element(payload))
        raise MalformedBody(
            f"No reply document in SOAP envelope <{local_name(envelope.tag)}>"
        )

    def is_approved(self, body: Mapping[str, Any]) -> bool:
        return body.get("actioncode") == APPROVED

    def message_from(self, body: Mapping[str, Any], kind: ErrorKind) -> str:
        return f"Error with ActionCode={body.get('actioncode')}"

    def error_code_from(self, body: Mapping[str, Any]) -> str | None:
        return body.get("actioncode")

    def authorization_from(
        self,
        operation: Operation,
        body: Mapping[str, Any],
        options: OperationOptions,
    ) -> str | None:
        if not body.get("transaction"):
            return None
        currency = body.get("trcurrency")
        return codec.encode(
            body["transaction"],
            normalize_currency(currency) if is_currency_code(currency) else None,
            dateandtime=body.get("dateandtime"),
            batch=body.get("batch"),
            rrn=body.get("rrn"),
            authcode=body.get("authcode"),
            transtype=body.get("transtype"),
            amount=body.get("tramount"),
        )
