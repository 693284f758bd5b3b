"""Shared test fixtures for the eyebridge test suite.

Provides fake channels for the serial transport, a recording transport
for dispatcher-level tests, and a dispatcher wired to it.
"""

from __future__ import annotations

import asyncio

import pytest

from eyebridge.config.settings import READY_SENTINEL
from eyebridge.dispatcher import Dispatcher
from eyebridge.domain.models import (
    DispatchResult,
    Failure,
    HttpQuery,
    SerialLine,
    Success,
    TransportState,
)
from eyebridge.transport.base import Transport
from eyebridge.transport.serial_backend import SerialTransport


# ---------------------------------------------------------------------------
# Fake serial channel
# ---------------------------------------------------------------------------


class FakeSerialHandle:
    """Stands in for the pyserial ``Serial`` object behind the channel."""

    def __init__(self, on_reset_release=None) -> None:
        self.dtr_history: list[bool] = []
        self._on_reset_release = on_reset_release

    @property
    def dtr(self) -> bool:
        return self.dtr_history[-1] if self.dtr_history else True

    @dtr.setter
    def dtr(self, value: bool) -> None:
        self.dtr_history.append(value)
        if value and self._on_reset_release is not None:
            self._on_reset_release()


class FakeChannel:
    """Minimal asyncio transport recording everything written to it."""

    def __init__(self, protocol: asyncio.Protocol) -> None:
        self.protocol = protocol
        self.serial: FakeSerialHandle | None = None
        self.written: list[bytes] = []
        self.write_error: Exception | None = None
        self._closing = False

    def write(self, data: bytes) -> None:
        # Like pyserial-asyncio: a failed write aborts the channel instead of raising
        if self.write_error is not None:
            self._closing = True
            asyncio.get_running_loop().call_soon(self.protocol.connection_lost, self.write_error)
            return
        self.written.append(data)

    def is_closing(self) -> bool:
        return self._closing

    def close(self) -> None:
        if not self._closing:
            self._closing = True
            self.protocol.connection_lost(None)

    def lose(self, exc: Exception | None = None) -> None:
        """Simulate the device disappearing (unplugged, I/O error)."""
        self._closing = True
        self.protocol.connection_lost(exc)

    def feed(self, data: bytes) -> None:
        self.protocol.data_received(data)


class FakeSerialFactory:
    """Replacement for ``serial_asyncio_fast.create_serial_connection``.

    ``boot_output`` is fed to the protocol on the next loop iteration
    after DTR is released, the way a real board starts printing once
    it comes out of reset.
    """

    def __init__(
        self,
        boot_output: bytes | None = (READY_SENTINEL + "\r\n").encode(),
        open_error: Exception | None = None,
    ) -> None:
        self.boot_output = boot_output
        self.open_error = open_error
        self.calls: list[tuple[str, int]] = []
        self.channel: FakeChannel | None = None

    async def __call__(self, loop, protocol_factory, url, baudrate):
        self.calls.append((url, baudrate))
        if self.open_error is not None:
            raise self.open_error
        protocol = protocol_factory()
        channel = FakeChannel(protocol)
        channel.serial = FakeSerialHandle(on_reset_release=lambda: self._boot(loop, channel))
        protocol.connection_made(channel)
        self.channel = channel
        return channel, protocol

    def _boot(self, loop, channel: FakeChannel) -> None:
        if self.boot_output:
            loop.call_soon(channel.feed, self.boot_output)


@pytest.fixture
def serial_factory() -> FakeSerialFactory:
    return FakeSerialFactory()


@pytest.fixture
def serial_transport(serial_factory: FakeSerialFactory) -> SerialTransport:
    """A serial transport with no real delays, backed by a fake channel."""
    return SerialTransport(
        port="/dev/ttyFAKE0",
        reset_pulse=0,
        boot_delay=0,
        ready_timeout=0.2,
        connection_factory=serial_factory,
    )


# ---------------------------------------------------------------------------
# Recording transport
# ---------------------------------------------------------------------------


class RecordingTransport(Transport):
    """Transport that records commands and answers with a canned result."""

    def __init__(self, kind: str = "serial", result: DispatchResult | None = None) -> None:
        self.kind = kind
        self.result: DispatchResult = result or Success()
        self.sent: list[SerialLine | HttpQuery] = []
        self.opened = False
        self.closed = False
        self._state = TransportState.DISCONNECTED

    @property
    def state(self) -> TransportState:
        return self._state

    async def open(self) -> TransportState:
        self.opened = True
        self._state = TransportState.READY
        return self._state

    async def close(self) -> None:
        self.closed = True
        self._state = TransportState.DISCONNECTED

    async def send(self, command: SerialLine | HttpQuery) -> DispatchResult:
        self.sent.append(command)
        return self.result


@pytest.fixture
def recording_transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def dispatcher(recording_transport: RecordingTransport) -> Dispatcher:
    return Dispatcher(recording_transport)


@pytest.fixture
def failing_transport() -> RecordingTransport:
    return RecordingTransport(result=Failure(reason="channel not ready", kind="channel_unavailable"))


@pytest.fixture
def http_recording_transport() -> RecordingTransport:
    return RecordingTransport(kind="http", result=Success(echo="OK"))
