"""Transport output module for eyebridge.

Delivers wire commands to the eye controller via pluggable backends.

Public API:
    Transport -- Abstract base class
    TransportError -- Channel failure raised inside a backend
    SerialTransport -- Line protocol over a USB serial port
    HttpTransport -- Query-parameter protocol over HTTP
    build_transport -- Construct the backend selected in the settings
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from eyebridge.transport.base import Transport, TransportError

if TYPE_CHECKING:
    from eyebridge.config.settings import Settings

__all__ = ["Transport", "TransportError", "SerialTransport", "HttpTransport", "build_transport"]


def build_transport(settings: Settings) -> Transport:
    """Construct the transport selected by ``settings.transport``."""
    if settings.transport == "http":
        from eyebridge.transport.http_backend import HttpTransport

        return HttpTransport(
            base_url=settings.http.base_url,
            timeout=settings.http.timeout,
        )

    from eyebridge.transport.serial_backend import SerialTransport

    sc = settings.serial
    return SerialTransport(
        port=sc.port,
        baud_rate=sc.baud_rate,
        reset_pulse=sc.reset_pulse,
        boot_delay=sc.boot_delay,
        ready_timeout=sc.ready_timeout,
        ready_sentinel=sc.ready_sentinel,
    )


def __getattr__(name: str) -> type:
    """Lazy import for concrete implementations that require external deps."""
    if name == "HttpTransport":
        from eyebridge.transport.http_backend import HttpTransport
        return HttpTransport
    if name == "SerialTransport":
        from eyebridge.transport.serial_backend import SerialTransport
        return SerialTransport
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
