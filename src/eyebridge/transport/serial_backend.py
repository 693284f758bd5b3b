"""Serial line transport for the eye controller firmware.

Commands are ASCII lines (``MOVE 90 90\\n``) written to a USB serial port
at 115200 baud. The port is driven by pyserial-asyncio-fast through a
plain asyncio Protocol. Protocol callbacks are converted into explicit
``ChannelEvent`` values and delivered to ``SerialTransport.handle_event``,
which is the only place the transport state changes after ``open()``.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import Any, Awaitable, Callable, Literal, Union

import serial_asyncio_fast
from pydantic import BaseModel, ConfigDict

from eyebridge.config.settings import BAUD_RATE, READY_SENTINEL
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
from eyebridge.transport.handshake import HandshakeState, ReadinessHandshake

logger = logging.getLogger(__name__)

LINE_DELIMITER = b"\n"
# Longest line the firmware ever prints; anything longer is line noise
MAX_LINE_BYTES = 256


# ---------------------------------------------------------------------------
# Channel events
# ---------------------------------------------------------------------------


class ChannelOpened(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_type: Literal["opened"] = "opened"


class LineReceived(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_type: Literal["line"] = "line"
    line: str


class LineDecodeError(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_type: Literal["decode_error"] = "decode_error"
    error: str


class ChannelError(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_type: Literal["error"] = "error"
    error: str


class ChannelClosed(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_type: Literal["closed"] = "closed"


ChannelEvent = Union[ChannelOpened, LineReceived, LineDecodeError, ChannelError, ChannelClosed]


# ---------------------------------------------------------------------------
# asyncio Protocol
# ---------------------------------------------------------------------------


class EyesSerialProtocol(asyncio.Protocol):
    """Splits incoming bytes into lines and reports channel events."""

    def __init__(self, deliver: Callable[[ChannelEvent], None]) -> None:
        self._deliver = deliver
        self.transport: asyncio.Transport | None = None
        self._buffer = bytearray()
        self._discarding = False

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self.transport = transport  # type: ignore[assignment]
        self._deliver(ChannelOpened())

    def connection_lost(self, exc: Exception | None) -> None:
        self.transport = None
        if exc is not None:
            self._deliver(ChannelError(error=str(exc) or type(exc).__name__))
        else:
            self._deliver(ChannelClosed())

    def data_received(self, data: bytes) -> None:
        for byte_val in data:
            if byte_val == LINE_DELIMITER[0]:
                if self._discarding:
                    self._discarding = False
                    self._buffer.clear()
                    continue
                self._emit_line(bytes(self._buffer))
                self._buffer.clear()
                continue

            if self._discarding:
                continue

            self._buffer.append(byte_val)
            if len(self._buffer) > MAX_LINE_BYTES:
                self._buffer.clear()
                self._discarding = True
                self._deliver(LineDecodeError(error=f"line longer than {MAX_LINE_BYTES} bytes"))

    def _emit_line(self, raw: bytes) -> None:
        try:
            text = raw.decode("ascii").rstrip("\r")
        except UnicodeDecodeError as exc:
            self._deliver(LineDecodeError(error=str(exc)))
            return
        self._deliver(LineReceived(line=text))

    def write(self, payload: bytes) -> None:
        """Write raw bytes to the port.

        Raises:
            TransportError: If the port is closed or the write fails.
        """
        if self.transport is None or self.transport.is_closing():
            raise TransportError("serial port is closed", FailureKind.CHANNEL_UNAVAILABLE, backend="serial")
        try:
            self.transport.write(payload)
        except (OSError, ValueError, RuntimeError) as exc:
            raise TransportError(str(exc), FailureKind.WRITE_FAILURE, backend="serial") from exc


ConnectionFactory = Callable[..., Awaitable[tuple[asyncio.BaseTransport, asyncio.BaseProtocol]]]


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------


class SerialTransport(Transport):
    """Sends command lines to the eye controller over a serial port.

    ``open()`` resets the board with a DTR pulse, waits for it to boot and
    then runs the readiness handshake. Commands are accepted only once the
    firmware has announced itself. Any error or close reported by the port
    afterwards moves the transport to ``FAILED`` for good; there is no
    reconnection.
    """

    kind = "serial"

    def __init__(
        self,
        port: str,
        baud_rate: int = BAUD_RATE,
        reset_pulse: float = 0.1,
        boot_delay: float = 1.5,
        ready_timeout: float = 10.0,
        ready_sentinel: str = READY_SENTINEL,
        connection_factory: ConnectionFactory | None = None,
    ) -> None:
        self._port = port
        self._baud_rate = baud_rate
        self._reset_pulse = reset_pulse
        self._boot_delay = boot_delay
        self._ready_timeout = ready_timeout
        self._ready_sentinel = ready_sentinel
        self._connection_factory = connection_factory or serial_asyncio_fast.create_serial_connection
        self._state = TransportState.DISCONNECTED
        self._channel: asyncio.Transport | None = None
        self._protocol: EyesSerialProtocol | None = None
        self._handshake: ReadinessHandshake | None = None
        self._settled = asyncio.Event()
        self._closing = False
        self.failure: Failure | None = None

    @property
    def state(self) -> TransportState:
        return self._state

    @property
    def port(self) -> str:
        return self._port

    @property
    def handshake(self) -> ReadinessHandshake | None:
        return self._handshake

    async def open(self) -> TransportState:
        """Open the port, reset the board and wait for the ready sentinel."""
        if self._state is not TransportState.DISCONNECTED or self._closing:
            logger.warning("Serial transport already opened (state=%s)", self._state.value)
            return self._state

        self._set_state(TransportState.CONNECTING)
        self._handshake = ReadinessHandshake(sentinel=self._ready_sentinel, timeout=self._ready_timeout)
        try:
            await self._connect()
            if self._state is TransportState.CONNECTING:
                await self._pulse_reset()
            if self._state is TransportState.CONNECTING:
                self._handshake.arm()
                logger.info("Waiting %.1fs for eye controller to boot...", self._boot_delay)
                await asyncio.sleep(self._boot_delay)
            if self._state is TransportState.CONNECTING:
                await self._await_ready()
        finally:
            self._settled.set()
        return self._state

    async def _connect(self) -> None:
        logger.info("Opening serial port %s at %d baud", self._port, self._baud_rate)
        loop = asyncio.get_running_loop()
        protocol_factory = functools.partial(EyesSerialProtocol, self.handle_event)
        try:
            channel, protocol = await self._connection_factory(
                loop, protocol_factory, self._port, baudrate=self._baud_rate
            )
        except (OSError, ValueError) as exc:
            # serial.SerialException is an OSError
            self._fail(f"cannot open {self._port}: {exc}", FailureKind.CHANNEL_UNAVAILABLE)
            return
        self._channel = channel  # type: ignore[assignment]
        self._protocol = protocol  # type: ignore[assignment]

    async def _pulse_reset(self) -> None:
        """Toggle DTR low then high to force a clean reboot of the board."""
        port: Any = getattr(self._channel, "serial", None)
        if port is None:
            logger.debug("Channel exposes no serial handle; skipping DTR reset")
            return
        logger.info("Resetting eye controller via DTR toggle")
        try:
            port.dtr = False
            await asyncio.sleep(self._reset_pulse)
            port.dtr = True
        except (OSError, ValueError) as exc:
            logger.warning("DTR reset failed, continuing without it: %s", exc)

    async def _await_ready(self) -> None:
        assert self._handshake is not None
        result = await self._handshake.wait()
        if self._state is not TransportState.CONNECTING:
            return
        if result is HandshakeState.READY:
            logger.info("Serial port %s opened and eye controller is ready", self._port)
            self._set_state(TransportState.READY)
        else:
            kind = (
                FailureKind.HANDSHAKE_TIMEOUT
                if result is HandshakeState.TIMED_OUT
                else FailureKind.CHANNEL_UNAVAILABLE
            )
            self._fail(self._handshake.failure_reason or result.value, kind)

    async def close(self) -> None:
        """Close the port. The transport cannot be reopened afterwards."""
        self._closing = True
        if self._channel is not None and not self._channel.is_closing():
            self._channel.close()
            logger.info("Closed serial port %s", self._port)
        self._channel = None
        if self._state is not TransportState.FAILED:
            self._set_state(TransportState.DISCONNECTED)
        self._settled.set()

    def handle_event(self, event: ChannelEvent) -> None:
        """Apply one channel event to the transport state."""
        if isinstance(event, ChannelOpened):
            logger.info("Serial port %s opened", self._port)

        elif isinstance(event, LineReceived):
            if self._handshake is not None and not self._handshake.is_settled:
                self._handshake.feed_line(event.line)
            else:
                logger.debug("[eyes] %s", event.line)

        elif isinstance(event, LineDecodeError):
            if self._handshake is not None and self._handshake.is_pending:
                self._handshake.fail(f"undecodable data from eye controller: {event.error}")
            else:
                logger.warning("Discarding undecodable serial data: %s", event.error)

        elif isinstance(event, ChannelError):
            logger.error("Serial port error: %s", event.error)
            self._lose_channel(f"serial port error: {event.error}")

        elif isinstance(event, ChannelClosed):
            if self._closing:
                return
            logger.warning("Serial port %s closed unexpectedly", self._port)
            self._lose_channel("serial port closed")

    async def send(self, command: SerialLine | HttpQuery) -> DispatchResult:
        """Write one command line to the port."""
        if self._state is TransportState.CONNECTING:
            # Startup barrier: hold sends until the handshake settles
            await self._settled.wait()
        if self._state is not TransportState.READY or self._protocol is None:
            return self.not_ready()
        if not isinstance(command, SerialLine):
            return Failure(
                reason=f"serial transport cannot send {command.wire_type} commands",
                kind=FailureKind.CHANNEL_UNAVAILABLE,
            )

        try:
            payload = command.encode()
        except UnicodeEncodeError as exc:
            logger.error("Command %r is not ASCII: %s", command.line, exc)
            return Failure(reason=f"command is not ASCII: {exc}", kind=FailureKind.WRITE_FAILURE)

        channel = self._channel
        try:
            logger.debug("Sending to eye controller: %s", command.line)
            self._protocol.write(payload)
        except TransportError as exc:
            logger.error("Error writing %r to serial port: %s", command.line, exc)
            return exc.to_failure()

        # pyserial-asyncio reports a failed write by aborting the channel and
        # scheduling connection_lost, never by raising from write()
        await asyncio.sleep(0)
        if self._state is TransportState.FAILED or (channel is not None and channel.is_closing()):
            reason = self.failure.reason if self.failure else "serial port closed during write"
            logger.error("Error writing %r to serial port: %s", command.line, reason)
            return Failure(reason=reason, kind=FailureKind.WRITE_FAILURE)
        return Success()

    def _lose_channel(self, reason: str) -> None:
        if self._handshake is not None and self._handshake.is_pending:
            self._handshake.fail(reason)
        self._fail(reason, FailureKind.CHANNEL_UNAVAILABLE)

    def _fail(self, reason: str, kind: FailureKind) -> None:
        if self.failure is None:
            self.failure = Failure(reason=reason, kind=kind)
        if self._state is not TransportState.FAILED:
            logger.error("Serial transport failed: %s", reason)
            self._set_state(TransportState.FAILED)

    def _set_state(self, state: TransportState) -> None:
        logger.debug("Serial transport state: %s -> %s", self._state.value, state.value)
        self._state = state
