"""Tests for the Dispatcher and the envelopes it returns."""

from __future__ import annotations

import pytest

from eyebridge.dispatcher import Dispatcher
from eyebridge.domain.models import Envelope, HttpQuery, SerialLine


class TestDispatchSuccess:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "name,arguments,line,text",
        [
            ("moveEyes", {"horizontal": 0, "vertical": 0}, "MOVE 0 0",
             "Eyes moved to position: horizontal=0, vertical=0"),
            ("moveEyes", {"horizontal": 180, "vertical": 180}, "MOVE 180 180",
             "Eyes moved to position: horizontal=180, vertical=180"),
            ("setEyelids", {"openness": 0}, "EYELIDS 0", "Eyelids set to 0% open"),
            ("setEyelids", {"openness": 100}, "EYELIDS 100", "Eyelids set to 100% open"),
            ("blink", {}, "BLINK", "Triggered blink animation"),
            ("lookAt", {"target": "left"}, "MOVE 140 90", "Eyes looking left"),
            ("lookAt", {"target": "center"}, "MOVE 90 90", "Eyes looking center"),
            ("randomMovement", {"enable": True}, "RANDOM 1", "Random eye movements enabled"),
            ("randomMovement", {"enable": False}, "RANDOM 0", "Random eye movements disabled"),
        ],
    )
    async def test_serial_operations(self, dispatcher, recording_transport, name, arguments, line, text) -> None:
        envelope = await dispatcher.call(name, arguments)
        assert envelope.is_error is False
        assert envelope.text == text
        assert recording_transport.sent == [SerialLine(line=line)]

    @pytest.mark.asyncio
    async def test_look_at_left_equals_move(self, dispatcher, recording_transport) -> None:
        await dispatcher.call("lookAt", {"target": "left"})
        await dispatcher.call("moveEyes", {"horizontal": 140, "vertical": 90})
        assert recording_transport.sent[0] == recording_transport.sent[1]

    @pytest.mark.asyncio
    async def test_auto_blink_over_http(self, http_recording_transport) -> None:
        envelope = await Dispatcher(http_recording_transport).call("setAutoBlink", {"enable": False})
        assert envelope.is_error is False
        assert envelope.text == "Auto-blink disabled"
        assert http_recording_transport.sent == [HttpQuery(path="autoblink", params=(("enable", "0"),))]

    @pytest.mark.asyncio
    async def test_blink_without_arguments(self, dispatcher, recording_transport) -> None:
        envelope = await dispatcher.call("blink")
        assert envelope.is_error is False
        assert len(recording_transport.sent) == 1


class TestDispatchRejection:
    @pytest.mark.asyncio
    async def test_out_of_range_never_reaches_transport(self, dispatcher, recording_transport) -> None:
        envelope = await dispatcher.call("setEyelids", {"openness": 150})
        assert envelope.is_error is True
        assert envelope.text.startswith("Invalid arguments for setEyelids: openness")
        assert recording_transport.sent == []

    @pytest.mark.asyncio
    async def test_wrong_type(self, dispatcher, recording_transport) -> None:
        envelope = await dispatcher.call("moveEyes", {"horizontal": "left", "vertical": 90})
        assert envelope.is_error is True
        assert recording_transport.sent == []

    @pytest.mark.asyncio
    async def test_non_object_arguments(self, dispatcher, recording_transport) -> None:
        envelope = await dispatcher.call("moveEyes", [90, 90])  # type: ignore[arg-type]
        assert envelope.is_error is True
        assert recording_transport.sent == []

    @pytest.mark.asyncio
    async def test_unknown_operation(self, dispatcher, recording_transport) -> None:
        envelope = await dispatcher.call("wink", {})
        assert envelope.is_error is True
        assert envelope.text == "Unknown operation: wink"
        assert recording_transport.sent == []

    @pytest.mark.asyncio
    async def test_auto_blink_not_on_serial(self, dispatcher, recording_transport) -> None:
        envelope = await dispatcher.call("setAutoBlink", {"enable": True})
        assert envelope.is_error is True
        assert "not supported by the serial transport" in envelope.text
        assert recording_transport.sent == []


class TestDispatchFailure:
    @pytest.mark.asyncio
    async def test_transport_failure_envelope(self, failing_transport) -> None:
        envelope = await Dispatcher(failing_transport).call("blink")
        assert envelope == Envelope.text_only("Failed to send command: channel not ready", is_error=True)
        assert envelope.to_dict()["isError"] is True

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_envelope(self, recording_transport) -> None:
        async def explode(command):
            raise RuntimeError("driver crashed")

        recording_transport.send = explode  # type: ignore[method-assign]
        envelope = await Dispatcher(recording_transport).call("blink")
        assert envelope.is_error is True
        assert "driver crashed" in envelope.text


class TestAvailableOperations:
    def test_serial(self, dispatcher) -> None:
        assert "setAutoBlink" not in [op.name for op in dispatcher.available_operations()]

    def test_http(self, http_recording_transport) -> None:
        names = [op.name for op in Dispatcher(http_recording_transport).available_operations()]
        assert "setAutoBlink" in names
