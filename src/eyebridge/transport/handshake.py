"""Boot readiness handshake for the serial eye controller.

Opening the serial port (or pulsing DTR) resets the microcontroller. The
firmware prints a fixed sentinel line once it has finished booting; until
then any command written to the port is lost. The handshake waits for that
line with a bounded timeout.
"""

from __future__ import annotations

import asyncio
import enum
import logging

from eyebridge.config.settings import READY_SENTINEL

logger = logging.getLogger(__name__)


class HandshakeState(str, enum.Enum):
    AWAITING_READY = "awaiting_ready"
    READY = "ready"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


class ReadinessHandshake:
    """Waits for the firmware's boot sentinel line.

    Lines are fed in by the serial transport as they arrive. Lines fed
    before ``arm()`` predate the reset pulse and are discarded. The timeout
    only starts counting when ``wait()`` is called, so a sentinel that
    arrives while the caller is still sleeping through the boot delay is
    not lost.

    Usage::

        handshake = ReadinessHandshake(timeout=10.0)
        handshake.arm()
        ...  # transport calls handshake.feed_line(line) per received line
        state = await handshake.wait()
    """

    def __init__(self, sentinel: str = READY_SENTINEL, timeout: float = 10.0) -> None:
        self._sentinel = sentinel
        self._timeout = timeout
        self._state = HandshakeState.AWAITING_READY
        self._armed = False
        self._settled = asyncio.Event()
        self.failure_reason: str | None = None

    @property
    def state(self) -> HandshakeState:
        return self._state

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def is_armed(self) -> bool:
        return self._armed

    @property
    def is_settled(self) -> bool:
        return self._settled.is_set()

    @property
    def is_pending(self) -> bool:
        """Armed and still waiting for the sentinel."""
        return self._armed and not self._settled.is_set()

    def arm(self) -> None:
        """Start accepting lines as candidates for the sentinel."""
        self._armed = True

    def feed_line(self, line: str) -> bool:
        """Offer one received line. Returns True if it completed the handshake."""
        if not self._armed:
            logger.debug("Discarding pre-reset line: %r", line)
            return False
        if self.is_settled:
            return False

        logger.info("[eyes] %s", line)
        if line.strip() != self._sentinel:
            return False

        logger.info("Received ready sentinel from eye controller")
        self._settle(HandshakeState.READY)
        return True

    def fail(self, reason: str) -> None:
        """Abort the handshake (decode error, channel lost)."""
        if self.is_settled:
            return
        logger.error("Readiness handshake failed: %s", reason)
        self.failure_reason = reason
        self._settle(HandshakeState.FAILED)

    async def wait(self) -> HandshakeState:
        """Wait for the handshake to settle, up to the timeout."""
        try:
            await asyncio.wait_for(self._settled.wait(), timeout=self._timeout)
        except asyncio.TimeoutError:
            if not self.is_settled:
                logger.warning(
                    "Timed out after %.1fs waiting for %r from eye controller",
                    self._timeout, self._sentinel,
                )
                self.failure_reason = f"no ready signal within {self._timeout:g}s"
                self._settle(HandshakeState.TIMED_OUT)
        return self._state

    def _settle(self, state: HandshakeState) -> None:
        self._state = state
        self._settled.set()
