# shared/decorators/timing.py
import asyncio
import time
import functools
import logging


def time_execution(func):
    """
    Log the wall-clock duration of a call under the function's module logger.
    Works for plain and coroutine functions.
    """

    def _log(start_time):
        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger = logging.getLogger(func.__module__)
        logger.debug(f"⏱️ {func.__qualname__} executed in {elapsed_ms:.2f} ms")

    if asyncio.iscoroutinefunction(func):
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            try:
                return await func(*args, **kwargs)
            finally:
                _log(start_time)

        return async_wrapper

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            _log(start_time)

    return wrapper
