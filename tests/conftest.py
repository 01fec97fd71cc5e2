"""Pytest configuration and shared fixtures for all tests.

This module provides shared test fixtures including:
- Test cards
- A stub transport factory that answers with canned responses and records
  what was sent
"""

import sys
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from payment_adapters.models import CreditCard  # noqa: E402
from payment_adapters.wire import RawResponse, WireRequest, WireTranscript  # noqa: E402


@pytest.fixture
def credit_card():
    """Standard approved test card."""
    return CreditCard(
        number="4005550000000019",
        month=2,
        year=2035,
        verification_value="123",
        first_name="Longbob",
        last_name="Longsen",
    )


@pytest.fixture
def stub_transport():
    """
    Factory for a transport returning canned outcomes.

    Usage:
        transport = stub_transport(RawResponse(200, body))
        adapter = SomeAdapter(..., transport=transport)
        ...
        request = sent_request(transport)

    Outcomes are returned in order; the last one repeats. An exception
    instance is raised instead of returned.

    Returns:
        Callable: Function building an AsyncMock transport
    """

    def _make(*outcomes: RawResponse | BaseException) -> AsyncMock:
        queue = list(outcomes)

        async def _send(request: WireRequest, transcript: WireTranscript) -> RawResponse:
            transcript.note("opening connection to processor...")
            transcript.sent(
                f"POST {request.url} HTTP/1.1\r\n"
                + "".join(f"{name}: {value}\r\n" for name, value in request.headers.items())
                + "\r\n"
            )
            transcript.sent(request.body)

            outcome = queue.pop(0) if len(queue) > 1 else queue[0]
            if isinstance(outcome, BaseException):
                raise outcome

            transcript.received(f"HTTP/1.1 {outcome.status_code}\r\n\r\n")
            transcript.received(outcome.body)
            transcript.note("Conn close")
            return outcome

        transport = AsyncMock()
        transport.send.side_effect = _send
        return transport

    return _make


def sent_request(transport: AsyncMock, index: int = -1) -> WireRequest:
    """The WireRequest passed to a stub transport's send()."""
    return transport.send.call_args_list[index].args[0]


def sent_transcript(transport: AsyncMock, index: int = -1) -> str:
    """The rendered transcript of one stub transport call."""
    return transport.send.call_args_list[index].args[1].render()
