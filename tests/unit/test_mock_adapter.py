"""Unit tests for MockAdapter."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from payment_adapters import authorization as codec
from payment_adapters.adapters import MockAdapter
from payment_adapters.models import (
    AuthenticationError,
    CreditCard,
    ErrorKind,
    InvalidAmount,
    StoredToken,
    TransportError,
)


def card(number):
    return CreditCard(number=number, month=12, year=2030, verification_value="123", first_name="Test", last_name="User")


@pytest.fixture
def mock_adapter():
    """Create a basic mock adapter instance."""
    return MockAdapter(test=True)


@pytest.mark.asyncio
class TestMockAdapterSuccess:
    """Test successful operations."""

    async def test_purchase_success_visa(self, mock_adapter):
        """Test successful purchase with Visa test card."""
        response = await mock_adapter.purchase(1000, card("4242424242424242"))

        assert response.success is True
        assert response.message == "Succeeded"
        assert response.error_kind == ErrorKind.SUCCESS
        assert response.http_status == 200
        assert response.params["auth_code"] == "123456"
        assert response.params["captured"] == "true"

        token = codec.decode(response.authorization)
        assert token.transaction_id.startswith("mock_pi_")
        assert token.currency == "USD"
        assert token.get("amount") == "1000"
        assert token.get("auth_code") == "123456"

    @pytest.mark.parametrize(
        "number, auth_code",
        [("5555555555554444", "789012"), ("378282246310005", "345678")],
    )
    async def test_authorize_success_other_brands(self, mock_adapter, number, auth_code):
        response = await mock_adapter.authorize(1000, card(number))

        assert response.success is True
        assert response.params["auth_code"] == auth_code
        assert response.params["captured"] == "false"

    async def test_currency_option(self, mock_adapter):
        response = await mock_adapter.purchase(1000, card("4242424242424242"), {"currency": "EUR"})

        assert response.params["currency"] == "EUR"
        assert codec.decode(response.authorization).currency == "EUR"

    async def test_store_then_purchase_with_token(self, mock_adapter):
        """Test that a stored token can be charged."""
        stored = await mock_adapter.store(card("4242424242424242"))

        assert stored.success is True
        assert stored.authorization.startswith("mock_pm_")

        response = await mock_adapter.purchase(500, StoredToken(token=stored.authorization))

        assert response.success is True

    async def test_verify(self, mock_adapter):
        response = await mock_adapter.verify(card("4242424242424242"))

        assert response.success is True
        assert response.params["amount"] == "0"


@pytest.mark.asyncio
class TestMockAdapterFollowUps:
    """Test capture, refund and void."""

    async def test_authorize_and_capture(self, mock_adapter):
        auth = await mock_adapter.authorize(1000, card("4242424242424242"))

        capture = await mock_adapter.capture(1000, auth.authorization)

        assert capture.success is True
        assert capture.params["action"] == "capture"
        assert capture.params["transaction_id"] == codec.decode(auth.authorization).transaction_id

    async def test_partial_capture(self, mock_adapter):
        auth = await mock_adapter.authorize(1000, card("4242424242424242"))

        capture = await mock_adapter.capture(999, auth.authorization)

        assert capture.success is True
        assert capture.params["amount"] == "999"

    async def test_over_capture_rejected(self, mock_adapter):
        auth = await mock_adapter.authorize(1000, card("4242424242424242"))

        with pytest.raises(InvalidAmount):
            await mock_adapter.capture(1001, auth.authorization)

    async def test_full_refund(self, mock_adapter):
        purchase = await mock_adapter.purchase(1000, card("4242424242424242"))

        refund = await mock_adapter.refund(None, purchase.authorization)

        assert refund.success is True
        assert refund.params["action"] == "refund"
        assert "amount" not in refund.params

    async def test_over_refund_rejected(self, mock_adapter):
        purchase = await mock_adapter.purchase(1000, card("4242424242424242"))

        with pytest.raises(InvalidAmount):
            await mock_adapter.refund(1001, purchase.authorization)

    async def test_void(self, mock_adapter):
        auth = await mock_adapter.authorize(1000, card("4242424242424242"))

        void = await mock_adapter.void(auth.authorization)

        assert void.success is True
        assert void.params["action"] == "void"

    async def test_void_empty_authorization(self, mock_adapter):
        """Test that an empty token reaches the processor and comes back declined."""
        response = await mock_adapter.void("")

        assert response.success is False
        assert response.error_kind == ErrorKind.DECLINED
        assert response.error_code == "invalid_reference"
        assert response.http_status == 404


@pytest.mark.asyncio
class TestMockAdapterFailures:
    """Test decline and error scenarios."""

    @pytest.mark.parametrize(
        "number, code, decline_code, message",
        [
            ("4000000000000002", "card_declined", "generic_decline", "Your card was declined"),
            ("4000000000009995", "card_declined", "insufficient_funds", "Your card has insufficient funds"),
            ("4000000000000069", "expired_card", "expired_card", "Your card has expired"),
            ("4000000000000127", "incorrect_cvc", "incorrect_cvc", "Your card's security code is incorrect"),
        ],
    )
    async def test_declines(self, mock_adapter, number, code, decline_code, message):
        response = await mock_adapter.purchase(1000, card(number))

        assert response.success is False
        assert response.error_kind == ErrorKind.DECLINED
        assert response.error_code == code
        assert response.params["decline_code"] == decline_code
        assert response.message == message
        assert response.authorization is None

    async def test_timeout_raises_transport_error(self, mock_adapter):
        """Test that a timeout surfaces as TransportError with a scrubbed transcript."""
        with pytest.raises(TransportError) as exc_info:
            await mock_adapter.purchase(1000, card("4000000000000119"))

        transcript = exc_info.value.transcript
        assert "4000000000000119" not in transcript
        assert "card_number=[FILTERED]" in transcript
        assert "cvv=[FILTERED]" in transcript
        assert "Authorization: Bearer [FILTERED]" in transcript

    async def test_rate_limit_raises_transport_error(self, mock_adapter):
        with pytest.raises(TransportError):
            await mock_adapter.purchase(1000, card("4000000000009987"))

    async def test_processor_error(self, mock_adapter):
        response = await mock_adapter.purchase(1000, card("4000000000000259"))

        assert response.success is False
        assert response.error_kind == ErrorKind.PROCESSOR_ERROR
        assert response.error_code == "processing_error"
        assert response.http_status == 500

    async def test_malformed_response(self, mock_adapter):
        response = await mock_adapter.purchase(1000, card("4000000000000093"))

        assert response.success is False
        assert response.error_kind == ErrorKind.MALFORMED_RESPONSE
        assert response.params == {"raw_body": "<html>Service page</html>"}

    async def test_requires_action(self, mock_adapter):
        response = await mock_adapter.purchase(1000, card("4000002500003155"))

        assert response.success is False
        assert response.error_kind == ErrorKind.DECLINED
        assert response.error_code == "requires_action"
        assert response.params["redirect_url"].startswith("https://")

    async def test_access_denied(self, mock_adapter):
        with pytest.raises(AuthenticationError) as exc_info:
            await mock_adapter.purchase(1000, card("4000000000000044"))

        assert "Access Denied" in exc_info.value.response.body

    async def test_invalid_api_key(self):
        """Test that a credential-rejection payload on HTTP 200 is raised."""
        adapter = MockAdapter(config={"api_key": "invalid"})

        with pytest.raises(AuthenticationError):
            await adapter.purchase(1000, card("4242424242424242"))

    async def test_negative_amount(self, mock_adapter):
        with pytest.raises(InvalidAmount):
            await mock_adapter.purchase(-1, card("4242424242424242"))


@pytest.mark.asyncio
class TestMockAdapterConfiguration:
    """Test configuration options."""

    async def test_custom_latency(self):
        adapter = MockAdapter(config={"latency_ms": 100})

        with patch("payment_adapters.adapters.mock_adapter.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            response = await adapter.purchase(1000, card("4242424242424242"))

        assert response.success is True
        mock_sleep.assert_awaited_once_with(0.1)

    async def test_default_response_authorized(self):
        adapter = MockAdapter(config={"default_response": "authorized"})

        response = await adapter.purchase(1000, card("9999999999999999"))

        assert response.success is True

    async def test_default_response_declined(self):
        adapter = MockAdapter(config={"default_response": "declined"})

        response = await adapter.purchase(1000, card("9999999999999999"))

        assert response.success is False
        assert response.error_kind == ErrorKind.DECLINED

    async def test_custom_card_behaviors(self):
        custom_behaviors = {
            "1111111111111111": {
                "type": "success",
                "auth_code": "CUSTOM123",
                "description": "Custom success card",
            }
        }
        adapter = MockAdapter(config={"card_behaviors": custom_behaviors})

        response = await adapter.purchase(1000, card("1111111111111111"))

        assert response.success is True
        assert response.params["auth_code"] == "CUSTOM123"


@pytest.mark.asyncio
class TestMockAdapterConcurrency:
    """Test that one adapter instance serves concurrent calls."""

    async def test_concurrent_purchases(self, mock_adapter):
        responses = await asyncio.gather(
            *(mock_adapter.purchase(1000 + i, card("4242424242424242")) for i in range(10))
        )

        assert all(response.success for response in responses)
        assert len({response.authorization for response in responses}) == 10
        assert sorted(int(response.params["amount"]) for response in responses) == list(range(1000, 1010))

    async def test_transcripts_are_per_call(self, mock_adapter):
        """Test that a failing call's transcript holds only its own traffic."""
        results = await asyncio.gather(
            mock_adapter.purchase(1000, card("4242424242424242")),
            mock_adapter.purchase(2000, card("4000000000000119")),
            mock_adapter.purchase(3000, card("5555555555554444")),
            return_exceptions=True,
        )

        error = results[1]
        assert isinstance(error, TransportError)
        assert error.transcript.count("opening connection") == 1
        assert "amount=2000" in error.transcript
        assert "amount=1000" not in error.transcript
        assert "amount=3000" not in error.transcript
