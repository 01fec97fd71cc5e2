"""
Base interface for gateway adapters.

Every processor integration (Borgun, CommerceHub, the mock) subclasses
GatewayAdapter and fills in its wire-format specifics: how to build a
request, how to read a response. The operation contract, amount checks,
token decoding, transport error handling, classification and transcript
scrubbing live here once.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Mapping
from enum import Enum
from typing import Any, ClassVar

import structlog

from payment_adapters import authorization as codec
from payment_adapters.authorization import AuthorizationToken, TokenSchema
from payment_adapters.classifier import ErrorClassifier
from payment_adapters.config import settings
from payment_adapters.models import (
    AuthenticationError,
    ErrorKind,
    InvalidAmount,
    MalformedBody,
    Money,
    MoneyFormat,
    Operation,
    OperationOptions,
    PaymentInstrument,
    Response,
    TransportError,
    TransportFault,
    UnsupportedCurrency,
    UnsupportedOperation,
)
from payment_adapters.scrubbing import Scrubber, ScrubRule
from payment_adapters.transport import HttpxTransport, Transport
from payment_adapters.wire import (
    RawResponse,
    WireFormat,
    WireRequest,
    WireTranscript,
    parse_form,
    parse_json,
    parse_xml,
)

logger = structlog.get_logger(__name__)

Source = PaymentInstrument | AuthorizationToken


class AmountPolicy(str, Enum):
    """What an adapter does with a capture/refund larger than the original amount."""

    REJECT = "reject"  # raise InvalidAmount before anything is sent
    PASS_THROUGH = "pass_through"  # the processor enforces its own rule


class GatewayAdapter(ABC):
    """
    Abstract base class for payment processor adapters.

    All adapters expose the same seven operations and return the same
    Response regardless of wire format. Instances hold only configuration
    fixed at construction time; every request, response and transcript is
    local to one call, so a single instance can serve concurrent callers.
    """

    name: ClassVar[str] = ""
    display_name: ClassVar[str] = ""
    supported_operations: ClassVar[frozenset[Operation]] = frozenset(Operation)
    money_format: ClassVar[MoneyFormat] = MoneyFormat.CENTS
    default_currency: ClassVar[str] = "USD"
    # Empty means any currency the processor accepts
    supported_currencies: ClassVar[frozenset[str]] = frozenset()
    token_schema: ClassVar[TokenSchema] = codec.DEFAULT_SCHEMA
    over_amount_policy: ClassVar[AmountPolicy] = AmountPolicy.PASS_THROUGH
    # Token field holding the original amount in minor units (REJECT policy)
    authorized_amount_field: ClassVar[str] = "amount"
    accepted_extensions: ClassVar[frozenset[str]] = frozenset()
    scrub_rules: ClassVar[tuple[ScrubRule, ...]] = ()
    response_format: ClassVar[WireFormat] = WireFormat.JSON
    success_message: ClassVar[str] = "Succeeded"
    test_url: ClassVar[str] = ""
    live_url: ClassVar[str] = ""

    def __init__(
        self,
        *,
        test: bool | None = None,
        ssl_strict: bool | None = None,
        timeout_seconds: float | None = None,
        transport: Transport | None = None,
    ) -> None:
        """
        Initialize the adapter.

        Args:
            test: Use the processor's test endpoint (default: settings.test_mode)
            ssl_strict: Verify TLS certificates (default: settings.ssl_strict)
            timeout_seconds: Request timeout (default: settings.timeout_seconds)
            transport: Transport to send requests with (default: HttpxTransport)
        """
        self.test = settings.test_mode if test is None else test
        self.ssl_strict = settings.ssl_strict if ssl_strict is None else ssl_strict
        self.timeout_seconds = (
            settings.timeout_seconds if timeout_seconds is None else timeout_seconds
        )
        self.transport: Transport = transport or HttpxTransport(
            timeout_seconds=self.timeout_seconds,
            ssl_strict=self.ssl_strict,
        )
        self.scrubber = Scrubber(self.scrub_rules)
        self.classifier = ErrorClassifier(self)

    @property
    def url(self) -> str:
        return self.test_url if self.test else self.live_url

    def supports(self, operation: Operation | str) -> bool:
        return Operation(operation) in self.supported_operations

    @property
    def supports_scrubbing(self) -> bool:
        return bool(self.scrub_rules)

    def scrub(self, transcript: str) -> str:
        """Redact this processor's sensitive fields from a captured transcript."""
        return self.scrubber.scrub(transcript)

    async def aclose(self) -> None:
        close = getattr(self.transport, "aclose", None)
        if close is not None:
            await close()

    # ------------------------------------------------------------------
    # Operation contract
    # ------------------------------------------------------------------

    async def purchase(
        self,
        money: Money | int,
        payment: PaymentInstrument,
        options: OperationOptions | Mapping[str, Any] | None = None,
    ) -> Response:
        """Authorize and capture in one step."""
        return await self._charge(Operation.PURCHASE, money, payment, options)

    async def authorize(
        self,
        money: Money | int,
        payment: PaymentInstrument,
        options: OperationOptions | Mapping[str, Any] | None = None,
    ) -> Response:
        """Place a hold for a later capture."""
        return await self._charge(Operation.AUTHORIZE, money, payment, options)

    async def capture(
        self,
        money: Money | int | None,
        authorization: str | None,
        options: OperationOptions | Mapping[str, Any] | None = None,
    ) -> Response:
        """
        Capture a previous authorization; None captures the full amount.

        Raises:
            InvalidAmount: If the amount exceeds the authorized amount on a
                REJECT-policy adapter
        """
        self._require(Operation.CAPTURE)
        opts = OperationOptions.from_mapping(options)
        token = self._decode(authorization)
        amount = None
        if money is not None:
            amount = self._money(
                money, token.resolve_currency(opts.currency, self.default_currency)
            )
            self._guard_amount(Operation.CAPTURE, amount, token)
        return await self._run(Operation.CAPTURE, amount, token, opts)

    async def refund(
        self,
        money: Money | int | None,
        authorization: str | None,
        options: OperationOptions | Mapping[str, Any] | None = None,
    ) -> Response:
        """
        Refund a settled transaction; None refunds the full amount.

        Raises:
            InvalidAmount: If the amount is zero, or exceeds the original
                amount on a REJECT-policy adapter
        """
        self._require(Operation.REFUND)
        opts = OperationOptions.from_mapping(options)
        token = self._decode(authorization)
        amount = None
        if money is not None:
            amount = self._money(
                money, token.resolve_currency(opts.currency, self.default_currency)
            )
            if amount.amount == 0:
                raise InvalidAmount("refund amount must be positive; pass None for a full refund")
            self._guard_amount(Operation.REFUND, amount, token)
        return await self._run(Operation.REFUND, amount, token, opts)

    async def void(
        self,
        authorization: str | None,
        options: OperationOptions | Mapping[str, Any] | None = None,
    ) -> Response:
        """Cancel an authorization or an unsettled transaction."""
        self._require(Operation.VOID)
        opts = OperationOptions.from_mapping(options)
        token = self._decode(authorization)
        return await self._run(Operation.VOID, None, token, opts)

    async def store(
        self,
        payment: PaymentInstrument,
        options: OperationOptions | Mapping[str, Any] | None = None,
    ) -> Response:
        """Vault a card; the response authorization is the reusable token."""
        self._require(Operation.STORE)
        opts = OperationOptions.from_mapping(options)
        return await self._run(Operation.STORE, None, payment, opts)

    async def verify(
        self,
        payment: PaymentInstrument,
        options: OperationOptions | Mapping[str, Any] | None = None,
    ) -> Response:
        """Check that a card is valid with a zero-amount authorization."""
        self._require(Operation.VERIFY)
        opts = OperationOptions.from_mapping(options)
        amount = self._money(0, opts.currency or self.default_currency)
        return await self._run(Operation.VERIFY, amount, payment, opts)

    # ------------------------------------------------------------------
    # Processor-specific hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def build_request(
        self,
        operation: Operation,
        money: Money | None,
        source: Source,
        options: OperationOptions,
    ) -> WireRequest:
        """
        Build the wire request for an operation.

        Args:
            operation: Operation being performed
            money: Amount to send, None for void/store and full refunds
            source: Card or stored token for purchase/authorize/store/verify,
                decoded authorization token for capture/refund/void
            options: Normalized operation options

        Returns:
            WireRequest with every literal that must be scrubbed listed in
            ``sensitive``
        """

    @abstractmethod
    def is_approved(self, body: Mapping[str, Any]) -> bool:
        """Approval indicator of a parsed response."""

    @abstractmethod
    def authorization_from(
        self,
        operation: Operation,
        body: Mapping[str, Any],
        options: OperationOptions,
    ) -> str | None:
        """Build the authorization token returned to the caller."""

    def declared_errors(self, body: Mapping[str, Any]) -> list[Any]:
        return []

    def credentials_rejected(self, status: int, body: Mapping[str, Any] | None) -> bool:
        return False

    def message_from(self, body: Mapping[str, Any], kind: ErrorKind) -> str:
        return str(body.get("message") or kind.value.replace("_", " ").capitalize())

    def error_code_from(self, body: Mapping[str, Any]) -> str | None:
        return None

    def parse_body(self, text: str) -> dict[str, Any]:
        """
        Parse a response body in the processor's declared content type.

        Raises:
            MalformedBody: If the body does not parse
        """
        if self.response_format == WireFormat.JSON:
            return parse_json(text)
        if self.response_format == WireFormat.FORM:
            return parse_form(text)
        return parse_xml(text)

    def extensions_for(self, options: OperationOptions) -> dict[str, Mapping[str, Any]]:
        """Extension bags this adapter renders; everything else is ignored."""
        accepted = {}
        for name, bag in options.extensions.items():
            if name in self.accepted_extensions:
                accepted[name] = bag
            else:
                logger.debug("gateway_extension_ignored", gateway=self.name, extension=name)
        return accepted

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def commit(
        self,
        operation: Operation,
        request: WireRequest,
        options: OperationOptions,
    ) -> Response:
        """
        Send a built request and normalize the outcome.

        Raises:
            TransportError: If the processor could not be reached
            AuthenticationError: If the processor rejected the credentials
        """
        log = logger.bind(gateway=self.name, operation=operation.value)
        transcript = WireTranscript()

        log.info("gateway_request_starting", url=request.url, test=self.test)

        try:
            raw = await self.transport.send(request, transcript)

        except (TransportFault, OSError, asyncio.TimeoutError) as e:
            kind = self.classifier.classify(None, None, outcome=e)
            scrubbed = self.scrubber.scrub(transcript.render(), request.sensitive)
            self._log_transcript(log, scrubbed)
            log.error("gateway_transport_error", error_kind=kind.value, error=str(e))
            raise TransportError(
                f"{self.display_name} {operation.value} failed: {e}",
                transcript=scrubbed,
            ) from e

        scrubbed = self.scrubber.scrub(transcript.render(), request.sensitive)
        self._log_transcript(log, scrubbed)
        return self.parse(raw, operation, options, transcript=scrubbed)

    def parse(
        self,
        raw: RawResponse,
        operation: Operation,
        options: OperationOptions,
        *,
        transcript: str = "",
    ) -> Response:
        """
        Normalize a raw processor response.

        Declines, processor errors and malformed bodies come back as a failed
        Response. Credential rejections and unusable 5xx/408/429 bodies are
        raised.
        """
        log = logger.bind(gateway=self.name, operation=operation.value)

        body: dict[str, Any] | None
        try:
            body = self.parse_body(raw.body)
        except MalformedBody as e:
            log.warning("gateway_response_malformed", http_status=raw.status_code, error=str(e))
            body = None

        kind = self.classifier.classify(raw.status_code, body)
        log.info("gateway_response_classified", http_status=raw.status_code, error_kind=kind.value)

        if kind == ErrorKind.AUTHENTICATION_ERROR:
            raise AuthenticationError(
                f"Failed with {raw.status_code}: {self.display_name} rejected the credentials",
                response=raw,
                transcript=transcript,
            )

        if kind == ErrorKind.TRANSPORT_ERROR:
            raise TransportError(
                f"{self.display_name} returned HTTP {raw.status_code} with an unusable body",
                transcript=transcript,
            )

        if body is None:
            return Response(
                success=False,
                message=f"Invalid response received from {self.display_name}",
                params={"raw_body": raw.body},
                test=self.test,
                error_kind=kind,
                http_status=raw.status_code,
            )

        success = kind == ErrorKind.SUCCESS
        return Response(
            success=success,
            message=self.success_message if success else self.message_from(body, kind),
            params=body,
            authorization=self.authorization_from(operation, body, options),
            error_code=None if success else self.error_code_from(body),
            test=self.test,
            error_kind=kind,
            http_status=raw.status_code,
        )

    async def _charge(
        self,
        operation: Operation,
        money: Money | int,
        payment: PaymentInstrument,
        options: OperationOptions | Mapping[str, Any] | None,
    ) -> Response:
        self._require(operation)
        opts = OperationOptions.from_mapping(options)
        amount = self._money(money, opts.currency or self.default_currency)
        return await self._run(operation, amount, payment, opts)

    async def _run(
        self,
        operation: Operation,
        money: Money | None,
        source: Source,
        options: OperationOptions,
    ) -> Response:
        request = self.build_request(operation, money, source, options)
        return await self.commit(operation, request, options)

    def _require(self, operation: Operation) -> None:
        if operation not in self.supported_operations:
            raise UnsupportedOperation(
                f"{self.display_name or type(self).__name__} does not support {operation.value}"
            )

    def _decode(self, authorization: str | None) -> AuthorizationToken:
        token = codec.decode(authorization, self.token_schema)
        if token.is_empty:
            logger.warning("authorization_token_empty", gateway=self.name)
        return token

    def _money(self, money: Money | int, currency: str) -> Money:
        if not isinstance(money, Money):
            money = Money(money, currency)
        if self.supported_currencies and money.currency not in self.supported_currencies:
            raise UnsupportedCurrency(
                f"{self.display_name} does not support currency {money.currency}"
            )
        return money

    def _guard_amount(
        self,
        operation: Operation,
        money: Money,
        token: AuthorizationToken,
    ) -> None:
        if self.over_amount_policy != AmountPolicy.REJECT:
            return
        original = token.get(self.authorized_amount_field)
        if original is None or not original.isdigit():
            return
        if money.amount > int(original):
            logger.warning(
                "gateway_amount_rejected",
                gateway=self.name,
                operation=operation.value,
                amount=money.amount,
                original_amount=int(original),
            )
            raise InvalidAmount(
                f"{operation.value} amount {money.amount} exceeds original amount {original}"
            )

    def _log_transcript(self, log: Any, scrubbed: str) -> None:
        if settings.log_wire_transcripts:
            log.debug("gateway_wire_transcript", transcript=scrubbed)
