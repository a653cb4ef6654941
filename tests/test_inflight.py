"""Tests for request supersession."""
import asyncio

import pytest

from uema_digital.rag.inflight import InflightRequests, RequestSuperseded


@pytest.mark.asyncio
async def test_newer_request_supersedes_older():
    inflight = InflightRequests()
    started = asyncio.Event()
    older_cancelled = asyncio.Event()

    async def slow():
        started.set()
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            older_cancelled.set()
            raise
        return "old"

    async def fast():
        return "new"

    older = asyncio.create_task(inflight.run("session-1", slow()))
    await started.wait()

    assert await inflight.run("session-1", fast()) == "new"
    with pytest.raises(RequestSuperseded):
        await older
    assert older_cancelled.is_set()
    assert len(inflight) == 0


@pytest.mark.asyncio
async def test_different_keys_do_not_interfere():
    inflight = InflightRequests()
    gate = asyncio.Event()

    async def wait_for_gate(value):
        await gate.wait()
        return value

    first = asyncio.create_task(inflight.run("a", wait_for_gate(1)))
    second = asyncio.create_task(inflight.run("b", wait_for_gate(2)))
    await asyncio.sleep(0)
    assert inflight.is_running("a") and inflight.is_running("b")

    gate.set()
    assert await asyncio.gather(first, second) == [1, 2]


@pytest.mark.asyncio
async def test_cancelling_the_caller_is_not_reported_as_superseded():
    inflight = InflightRequests()
    started = asyncio.Event()

    async def slow():
        started.set()
        await asyncio.sleep(10)

    caller = asyncio.create_task(inflight.run("k", slow()))
    await started.wait()
    caller.cancel()

    with pytest.raises(asyncio.CancelledError):
        await caller
    assert not inflight.is_running("k")


@pytest.mark.asyncio
async def test_explicit_cancel():
    inflight = InflightRequests()
    started = asyncio.Event()

    async def slow():
        started.set()
        await asyncio.sleep(10)

    caller = asyncio.create_task(inflight.run("k", slow()))
    await started.wait()

    assert inflight.cancel("k") is True
    with pytest.raises(RequestSuperseded):
        await caller
    assert inflight.cancel("k") is False
