"""HTTP query transport for the eye controller.

Sends each command as a single GET request to the controller's built-in
web server, e.g. ``GET /move?h=90&v=90``.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from eyebridge.domain.models import (
    DispatchResult,
    Failure,
    FailureKind,
    HttpQuery,
    SerialLine,
    Success,
    TransportState,
)
from eyebridge.transport.base import Transport, TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0


class HttpTransport(Transport):
    """Sends commands to the eye controller's HTTP endpoint.

    There is no persistent connection or boot handshake: the transport is
    ready as soon as it knows where the controller lives, and a failed
    request never changes that.
    """

    kind = "http"

    def __init__(
        self,
        base_url: str = "http://192.168.4.1",
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def state(self) -> TransportState:
        return TransportState.READY

    @property
    def base_url(self) -> str:
        return self._base_url

    async def open(self) -> TransportState:
        """Create the HTTP client."""
        self._ensure_client()
        logger.info("Using eye controller at %s", self._base_url)
        return self.state

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Closed HTTP client for %s", self._base_url)

    async def send(self, command: SerialLine | HttpQuery) -> DispatchResult:
        """Issue one GET request for the command."""
        if not isinstance(command, HttpQuery):
            return Failure(
                reason=f"HTTP transport cannot send {command.wire_type} commands",
                kind=FailureKind.CHANNEL_UNAVAILABLE,
            )
        try:
            resp = await self._get(command)
        except TransportError as exc:
            logger.error("HTTP command %s failed: %s", command.url_path, exc)
            return exc.to_failure()
        return Success(echo=resp.text or None)

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def _get(self, command: HttpQuery) -> httpx.Response:
        """Send a GET request to the controller."""
        client = self._ensure_client()
        logger.debug("GET %s %s", command.url_path, dict(command.params))
        try:
            # httpx applies the timeout per phase; bound the whole request too
            resp = await asyncio.wait_for(
                client.get(command.url_path, params=list(command.params)),
                self._timeout,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            raise TransportError(
                f"request to {command.url_path} timed out after {self._timeout:g}s",
                FailureKind.NETWORK_FAILURE,
                backend="http",
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(
                f"request to {command.url_path} failed: {e}",
                FailureKind.NETWORK_FAILURE,
                backend="http",
            ) from e

        if not resp.is_success:
            raise TransportError(
                f"HTTP {resp.status_code} from {command.url_path}: {resp.text.strip()}",
                FailureKind.REMOTE_REJECTED,
                backend="http",
            )
        return resp
