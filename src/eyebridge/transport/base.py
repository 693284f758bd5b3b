"""Abstract base class for eye-controller transports.

All transports conform to this interface, so the dispatcher can swap
between the serial line protocol and the HTTP query protocol without
changing any other code. Unlike most adapters, a transport never raises
from ``send``: every failure comes back as a ``Failure`` value.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from eyebridge.domain.models import (
    DispatchResult,
    Failure,
    FailureKind,
    HttpQuery,
    SerialLine,
    TransportState,
)

logger = logging.getLogger(__name__)

NOT_READY_REASON = "channel not ready"


class Transport(ABC):
    """Abstract interface for delivering wire commands to the eyes.

    Example usage::

        async with SerialTransport(port="/dev/ttyUSB0") as eyes:
            result = await eyes.send(SerialLine(line="BLINK"))
            if not result.ok:
                print(result.reason)
    """

    kind: str = ""
    # Why open() failed, if it did
    failure: Failure | None = None

    @property
    @abstractmethod
    def state(self) -> TransportState:
        """Current lifecycle state of the channel."""
        ...

    @abstractmethod
    async def open(self) -> TransportState:
        """Open the channel and wait until it can accept commands.

        Returns the resulting state (``READY`` or ``FAILED``) instead of
        raising, so callers can decide whether to continue without
        hardware.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release the channel. Safe to call multiple times."""
        ...

    @abstractmethod
    async def send(self, command: SerialLine | HttpQuery) -> DispatchResult:
        """Deliver one wire command with a single attempt."""
        ...

    @property
    def is_ready(self) -> bool:
        return self.state is TransportState.READY

    def not_ready(self) -> Failure:
        """The result returned when a send is refused without touching the channel."""
        logger.warning("%s transport refused command: %s (state=%s)", self.kind, NOT_READY_REASON, self.state.value)
        return Failure(reason=NOT_READY_REASON, kind=FailureKind.CHANNEL_UNAVAILABLE)

    async def __aenter__(self) -> Transport:
        """Async context manager entry -- opens the channel."""
        await self.open()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        """Async context manager exit -- closes the channel."""
        await self.close()


class TransportError(Exception):
    """Raised inside a transport when the channel fails.

    Never escapes ``Transport.send``; converted to a ``Failure`` there.
    """

    def __init__(self, message: str, kind: FailureKind, backend: str = "") -> None:
        super().__init__(message)
        self.kind = kind
        self.backend = backend

    def to_failure(self) -> Failure:
        return Failure(reason=str(self), kind=self.kind)
