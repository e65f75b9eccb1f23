import asyncio

import httpx
import pytest

from trip_weather.services.retry import RetryPolicy, retry_async


class Recorder:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def _flaky(failures, exc_factory, value="ok"):
    state = {"calls": 0}

    async def call():
        state["calls"] += 1
        if state["calls"] <= failures:
            raise exc_factory()
        return value

    return call, state


def test_policy_delays_double():
    p = RetryPolicy(attempts=3, base_delay_s=1.0)
    assert [p.delay_for(n) for n in (1, 2, 3)] == [1.0, 2.0, 4.0]


def test_retries_transport_errors_with_backoff():
    sleep = Recorder()
    call, state = _flaky(2, lambda: httpx.ConnectError("down"))
    result = asyncio.run(retry_async(call, RetryPolicy(attempts=3, base_delay_s=1.0), sleep=sleep))
    assert result == "ok"
    assert state["calls"] == 3
    assert sleep.delays == [1.0, 2.0]


def test_gives_up_after_max_attempts():
    sleep = Recorder()
    call, state = _flaky(10, lambda: httpx.ReadTimeout("slow"))
    with pytest.raises(httpx.ReadTimeout):
        asyncio.run(retry_async(call, RetryPolicy(attempts=3), sleep=sleep))
    assert state["calls"] == 3
    assert sleep.delays == [1.0, 2.0]


def test_non_transport_errors_are_not_retried():
    sleep = Recorder()
    call, state = _flaky(1, lambda: ValueError("bad payload"))
    with pytest.raises(ValueError):
        asyncio.run(retry_async(call, RetryPolicy(attempts=3), sleep=sleep))
    assert state["calls"] == 1
    assert sleep.delays == []
