"""Tests for the serial readiness handshake."""

from __future__ import annotations

import asyncio

import pytest

from eyebridge.transport.handshake import HandshakeState, ReadinessHandshake

SENTINEL = "Animatronic Eyes Ready"


class TestReadinessHandshake:
    @pytest.mark.asyncio
    async def test_sentinel_settles_ready(self) -> None:
        hs = ReadinessHandshake(timeout=1.0)
        hs.arm()
        assert hs.feed_line(SENTINEL) is True
        assert await hs.wait() is HandshakeState.READY

    @pytest.mark.asyncio
    async def test_sentinel_is_trimmed(self) -> None:
        hs = ReadinessHandshake(timeout=1.0)
        hs.arm()
        assert hs.feed_line(f"  {SENTINEL}\r ") is True

    def test_ready_only_once(self) -> None:
        hs = ReadinessHandshake(timeout=1.0)
        hs.arm()
        assert hs.feed_line(SENTINEL) is True
        assert hs.feed_line(SENTINEL) is False
        assert hs.state is HandshakeState.READY

    def test_other_lines_are_ignored(self) -> None:
        hs = ReadinessHandshake(timeout=1.0)
        hs.arm()
        assert hs.feed_line("Servos attached") is False
        assert hs.feed_line("animatronic eyes ready") is False
        assert hs.state is HandshakeState.AWAITING_READY
        assert hs.is_pending

    def test_lines_before_arming_are_discarded(self) -> None:
        hs = ReadinessHandshake(timeout=1.0)
        assert hs.feed_line(SENTINEL) is False
        assert not hs.is_settled

    @pytest.mark.asyncio
    async def test_sentinel_before_wait_is_kept(self) -> None:
        hs = ReadinessHandshake(timeout=0.05)
        hs.arm()
        hs.feed_line(SENTINEL)
        await asyncio.sleep(0.1)
        assert await hs.wait() is HandshakeState.READY

    @pytest.mark.asyncio
    async def test_times_out_not_before_deadline(self) -> None:
        timeout = 0.2
        hs = ReadinessHandshake(timeout=timeout)
        hs.arm()
        loop = asyncio.get_running_loop()
        started = loop.time()
        state = await hs.wait()
        elapsed = loop.time() - started
        assert state is HandshakeState.TIMED_OUT
        assert elapsed >= timeout * 0.95
        assert elapsed < timeout + 1.0
        assert "0.2s" in (hs.failure_reason or "")

    @pytest.mark.asyncio
    async def test_sentinel_mid_wait(self) -> None:
        hs = ReadinessHandshake(timeout=1.0)
        hs.arm()
        asyncio.get_running_loop().call_later(0.05, hs.feed_line, SENTINEL)
        assert await hs.wait() is HandshakeState.READY

    @pytest.mark.asyncio
    async def test_fail_settles_immediately(self) -> None:
        hs = ReadinessHandshake(timeout=5.0)
        hs.arm()
        hs.fail("undecodable data")
        assert await asyncio.wait_for(hs.wait(), timeout=1.0) is HandshakeState.FAILED
        assert hs.failure_reason == "undecodable data"

    def test_fail_after_ready_is_ignored(self) -> None:
        hs = ReadinessHandshake(timeout=1.0)
        hs.arm()
        hs.feed_line(SENTINEL)
        hs.fail("late error")
        assert hs.state is HandshakeState.READY
