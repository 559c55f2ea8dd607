"""Tests for the background keep-alive loop.

The loop is driven with a very short interval so that several ticks run
within a test.  Failures must be logged and counted, never raised, and
the loop must stop promptly when cancelled.
"""

import asyncio
import logging

import pytest

from betfair_session.clients.keep_alive import KeepAliveLoop
from betfair_session.config import SessionConfig
from betfair_session.errors import AuthenticationError
from tests.helpers.fake_transport import FakeAuthenticator, make_session


@pytest.mark.asyncio
async def test_tick_swallows_and_logs_failures(caplog):
    async def failing_keep_alive():
        raise AuthenticationError("NO_SESSION")

    loop = KeepAliveLoop(failing_keep_alive, interval=60)
    with caplog.at_level(logging.WARNING):
        assert await loop.tick() is False
    assert loop.failures == 1
    assert "NO_SESSION" in caplog.text


@pytest.mark.asyncio
async def test_tick_survives_unexpected_errors():
    async def broken():
        raise ValueError("boom")

    loop = KeepAliveLoop(broken, interval=60)
    assert await loop.tick() is False
    assert loop.failures == 1


@pytest.mark.asyncio
async def test_loop_keeps_ticking_after_failure():
    calls = []

    async def flaky():
        calls.append(1)
        if len(calls) == 1:
            raise AuthenticationError("FAIL")
        return True

    loop = KeepAliveLoop(flaky, interval=0.01)
    assert loop.start() is True
    await asyncio.sleep(0.1)
    await loop.stop()
    assert len(calls) >= 3
    assert loop.failures == 1
    assert not loop.running


@pytest.mark.asyncio
async def test_start_is_idempotent():
    async def noop():
        return True

    loop = KeepAliveLoop(noop, interval=60)
    assert loop.start() is True
    assert loop.start() is False
    await loop.stop()
    # Stopped loops are not restarted
    assert loop.start() is False


@pytest.mark.asyncio
async def test_session_loop_calls_keep_alive_endpoint(account, transport):
    config = SessionConfig(keep_alive_interval=0.01)
    transport.add(config.keep_alive_endpoint, {"status": "SUCCESS", "token": "tok"})
    account = account.model_copy(update={"keep_alive": True})
    session = make_session(account, transport, config, authenticator=FakeAuthenticator("tok"))
    await session.get_token()
    await asyncio.sleep(0.08)
    await session.close()
    pings = transport.requests_to(config.keep_alive_endpoint)
    assert len(pings) >= 2
    assert all(p.headers["X-Authentication"] == "tok" for p in pings)
    count = len(pings)
    await asyncio.sleep(0.03)
    assert len(transport.requests_to(config.keep_alive_endpoint)) == count


@pytest.mark.asyncio
async def test_stop_propagates_cancellation_of_its_caller():
    async def slow_to_cancel():
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            await asyncio.sleep(0.1)
            raise

    loop = KeepAliveLoop(slow_to_cancel, interval=0.001)
    loop.start()
    await asyncio.sleep(0.02)
    stopper = asyncio.create_task(loop.stop())
    await asyncio.sleep(0.02)
    stopper.cancel()
    with pytest.raises(asyncio.CancelledError):
        await stopper
    assert not loop.running
