# tests/test_decorators.py
import httpx
import pytest

from shared.decorators.error_handling import handle_errors, handle_network_errors
from shared.decorators.retry import retry
from shared.decorators.timing import time_execution


class Flaky:
    def __init__(self, failures: int, error: Exception):
        self.failures = failures
        self.error = error
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return "done"


def test_retry_recovers():
    flaky = Flaky(2, ConnectionError("down"))
    wrapped = retry(max_attempts=3, delay=0, jitter=False)(flaky)

    assert wrapped() == "done"
    assert flaky.calls == 3


def test_retry_only_listed_exceptions():
    flaky = Flaky(1, KeyError("nope"))
    wrapped = retry(max_attempts=3, delay=0, exceptions=[ConnectionError])(flaky)

    with pytest.raises(KeyError):
        wrapped()
    assert flaky.calls == 1


@pytest.mark.asyncio
async def test_async_retry_gives_up():
    calls = []

    @retry(max_attempts=2, delay=0, jitter=False, exceptions=[httpx.TransportError])
    async def post():
        calls.append(1)
        raise httpx.ReadTimeout("slow")

    with pytest.raises(httpx.ReadTimeout):
        await post()
    assert len(calls) == 2


def test_handle_errors_returns_default():
    @handle_errors(default_return=[])
    def load():
        raise ValueError("bad")

    assert load() == []


def test_handle_errors_reraise():
    @handle_errors(reraise=True)
    def load():
        raise ValueError("bad")

    with pytest.raises(ValueError):
        load()


@pytest.mark.asyncio
async def test_handle_network_errors_async():
    @handle_network_errors(default_return="offline")
    async def fetch():
        raise httpx.ConnectError("refused")

    assert await fetch() == "offline"


@pytest.mark.asyncio
async def test_time_execution_keeps_results():
    @time_execution
    def add(a, b):
        return a + b

    @time_execution
    async def twice(x):
        return x * 2

    assert add(1, 2) == 3
    assert await twice(4) == 8
