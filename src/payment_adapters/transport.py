"""HTTP transport for processor round trips."""

from typing import Protocol

import httpx
import structlog

from payment_adapters.models.exceptions import TransportFault
from payment_adapters.wire import RawResponse, WireRequest, WireTranscript

logger = structlog.get_logger(__name__)


class Transport(Protocol):
    """
    Boundary between adapters and the network.

    Implementations perform exactly one request/response exchange, record it
    on the transcript and raise TransportFault when the exchange itself
    failed. They never retry.
    """

    async def send(self, request: WireRequest, transcript: WireTranscript) -> RawResponse:
        ...


class HttpxTransport:
    """
    Transport built on httpx.AsyncClient.

    One client (and its connection pool) is shared by every call made through
    the transport; per-call state lives in the transcript passed to send().
    """

    def __init__(
        self,
        timeout_seconds: float = 10.0,
        ssl_strict: bool = True,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the transport.

        Args:
            timeout_seconds: Request timeout in seconds (default: 10.0)
            ssl_strict: Verify TLS certificates (default: True)
            client: Preconfigured client, mainly for tests
        """
        self.timeout_seconds = timeout_seconds
        self.ssl_strict = ssl_strict
        self.http_client = client or httpx.AsyncClient(
            timeout=timeout_seconds,
            verify=ssl_strict,
        )

    async def aclose(self) -> None:
        """Close the HTTP client connection pool."""
        await self.http_client.aclose()

    async def send(self, request: WireRequest, transcript: WireTranscript) -> RawResponse:
        """
        POST a built request and return the raw response.

        Raises:
            TransportFault: On timeout or any network-level failure
        """
        url = httpx.URL(request.url)
        port = url.port or (443 if url.scheme == "https" else 80)

        transcript.note(f"opening connection to {url.host}:{port}...")
        transcript.sent(_render_request_head(request, url))
        transcript.sent(request.body)

        try:
            response = await self.http_client.request(
                request.method,
                request.url,
                headers=dict(request.headers),
                content=request.body.encode("utf-8"),
            )

        except httpx.TimeoutException as e:
            transcript.note(f"timeout after {self.timeout_seconds}s")
            logger.error(
                "gateway_transport_timeout",
                host=url.host,
                timeout_seconds=self.timeout_seconds,
                error=str(e),
            )
            raise TransportFault(f"Timed out talking to {url.host}", timeout=True) from e

        except httpx.RequestError as e:
            # Connection refused/reset, TLS failures, DNS, etc.
            transcript.note(f"request error: {type(e).__name__}")
            logger.error(
                "gateway_transport_request_error",
                host=url.host,
                error=str(e),
            )
            raise TransportFault(f"Request to {url.host} failed: {e}") from e

        transcript.received(_render_response_head(response))
        transcript.received(response.text)
        transcript.note("Conn close")

        return RawResponse(
            status_code=response.status_code,
            body=response.text,
            headers=dict(response.headers),
        )

    async def __aenter__(self) -> "HttpxTransport":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


def _render_request_head(request: WireRequest, url: httpx.URL) -> str:
    target = url.raw_path.decode("ascii")
    lines = [f"{request.method} {target} HTTP/1.1"]
    lines.extend(f"{name}: {value}" for name, value in request.headers.items())
    lines.append(f"Host: {url.host}")
    return "\r\n".join(lines) + "\r\n\r\n"


def _render_response_head(response: httpx.Response) -> str:
    lines = [f"HTTP/1.1 {response.status_code} {response.reason_phrase}"]
    lines.extend(f"{name}: {value}" for name, value in response.headers.items())
    return "\r\n".join(lines) + "\r\n\r\n"
