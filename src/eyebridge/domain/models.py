"""Core domain models for the eyebridge system.

These models represent the values flowing through the bridge: the state
of the transport channel, the wire commands produced by the catalog, the
per-call dispatch result, and the envelope returned to the caller.
"""

from __future__ import annotations

import enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class TransportState(str, enum.Enum):
    """Lifecycle state of a transport channel."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"  # Opening the channel / waiting for boot
    READY = "ready"  # Commands are accepted
    FAILED = "failed"  # Open failed, handshake failed, or channel lost


class FailureKind(str, enum.Enum):
    """Why a command could not be delivered."""

    CHANNEL_UNAVAILABLE = "channel_unavailable"  # No write was attempted
    WRITE_FAILURE = "write_failure"
    HANDSHAKE_TIMEOUT = "handshake_timeout"
    NETWORK_FAILURE = "network_failure"  # Refused, DNS, timeout
    REMOTE_REJECTED = "remote_rejected"  # Non-2xx HTTP status


class Direction(str, enum.Enum):
    """Symbolic gaze directions accepted by lookAt."""

    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"
    CENTER = "center"


# Servo coordinates (horizontal, vertical) for each direction. The left/right
# and up/down values compensate for how the servos are mounted.
POSITIONS: dict[Direction, tuple[int, int]] = {
    Direction.LEFT: (140, 90),
    Direction.RIGHT: (40, 90),
    Direction.UP: (90, 140),
    Direction.DOWN: (90, 40),
    Direction.CENTER: (90, 90),
}

SERVO_MIN = 0
SERVO_MAX = 180


# ---------------------------------------------------------------------------
# Wire Commands (discriminated union)
# ---------------------------------------------------------------------------


class SerialLine(BaseModel):
    """A single ASCII command line for the serial firmware.

    The line is stored without its terminator; ``encode()`` adds the
    trailing newline expected by the firmware's line parser.
    """

    model_config = ConfigDict(frozen=True)

    wire_type: Literal["serial"] = "serial"
    line: str = Field(description="Command text, e.g. 'MOVE 90 90'")

    def encode(self) -> bytes:
        return (self.line + "\n").encode("ascii")


class HttpQuery(BaseModel):
    """A GET request against the eye controller's web server."""

    model_config = ConfigDict(frozen=True)

    wire_type: Literal["http"] = "http"
    path: str = Field(description="Target path without leading slash, e.g. 'move'")
    params: tuple[tuple[str, str], ...] = Field(
        default=(), description="Ordered query parameters"
    )

    @property
    def url_path(self) -> str:
        return "/" + self.path


WireCommand = Annotated[
    Union[SerialLine, HttpQuery],
    Field(discriminator="wire_type"),
]


# ---------------------------------------------------------------------------
# Dispatch Results
# ---------------------------------------------------------------------------


class Success(BaseModel):
    """The command was handed to the channel."""

    model_config = ConfigDict(frozen=True)

    ok: Literal[True] = True
    echo: str | None = Field(default=None, description="Optional text returned by the device")


class Failure(BaseModel):
    """The command could not be delivered."""

    model_config = ConfigDict(frozen=True)

    ok: Literal[False] = False
    reason: str = Field(description="Human-readable failure reason")
    kind: FailureKind = Field(description="Failure category")


DispatchResult = Union[Success, Failure]


# ---------------------------------------------------------------------------
# Caller Envelope
# ---------------------------------------------------------------------------


class TextContent(BaseModel):
    """One text block of an envelope."""

    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str


class Envelope(BaseModel):
    """The uniform response returned to the caller for every operation.

    Serializes (with ``by_alias=True``) to::

        {"content": [{"type": "text", "text": "..."}], "isError": false}
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    content: list[TextContent] = Field(default_factory=list)
    is_error: bool = Field(default=False, alias="isError")

    @classmethod
    def text_only(cls, text: str, is_error: bool = False) -> Envelope:
        return cls(content=[TextContent(text=text)], is_error=is_error)

    @property
    def text(self) -> str:
        """All text blocks joined by newlines."""
        return "\n".join(block.text for block in self.content)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")
