"""Tests for the Transport abstract base class and factory."""

from __future__ import annotations

import pytest

from eyebridge.config.settings import Settings
from eyebridge.domain.models import FailureKind
from eyebridge.transport import build_transport
from eyebridge.transport.base import Transport, TransportError
from eyebridge.transport.http_backend import HttpTransport
from eyebridge.transport.serial_backend import SerialTransport


class TestTransportInterface:
    def test_cannot_instantiate_abstract_class(self) -> None:
        """Transport should not be instantiable directly."""
        with pytest.raises(TypeError):
            Transport()  # type: ignore[abstract]

    def test_transport_error(self) -> None:
        """TransportError should store kind and backend info."""
        error = TransportError("write failed", FailureKind.WRITE_FAILURE, backend="serial")
        assert str(error) == "write failed"
        assert error.backend == "serial"
        failure = error.to_failure()
        assert failure.reason == "write failed"
        assert failure.kind is FailureKind.WRITE_FAILURE

    @pytest.mark.asyncio
    async def test_context_manager_opens_and_closes(self, recording_transport) -> None:
        async with recording_transport as t:
            assert t.opened
        assert recording_transport.closed


class TestBuildTransport:
    def test_serial_by_default(self) -> None:
        t = build_transport(Settings())
        assert isinstance(t, SerialTransport)
        assert t.kind == "serial"

    def test_http(self) -> None:
        settings = Settings(transport="http", http={"host": "10.0.0.7", "port": 8080})
        t = build_transport(settings)
        assert isinstance(t, HttpTransport)
        assert t.base_url == "http://10.0.0.7:8080"

    def test_lazy_attribute(self) -> None:
        import eyebridge.transport as transport_pkg

        assert transport_pkg.HttpTransport is HttpTransport
        with pytest.raises(AttributeError):
            transport_pkg.UsbTransport  # noqa: B018
