"""Domain models for eyebridge.

This package contains the core value objects used throughout the
system. All models use Pydantic v2 for validation and serialization.
"""

from eyebridge.domain.models import (
    POSITIONS,
    Direction,
    DispatchResult,
    Envelope,
    Failure,
    FailureKind,
    HttpQuery,
    SerialLine,
    Success,
    TextContent,
    TransportState,
    WireCommand,
)

__all__ = [
    "POSITIONS",
    "Direction",
    "DispatchResult",
    "Envelope",
    "Failure",
    "FailureKind",
    "HttpQuery",
    "SerialLine",
    "Success",
    "TextContent",
    "TransportState",
    "WireCommand",
]
