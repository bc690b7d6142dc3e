# shared/decorators/error_handling.py
import functools
import logging
import traceback
from typing import Any, Callable, Optional, List
import asyncio

import httpx

logger = logging.getLogger(__name__)

def handle_errors(
    default_return: Any = None,
    log_errors: bool = True,
    reraise: bool = False,
    ignored_exceptions: Optional[List[type]] = None,
    custom_handler: Optional[Callable] = None
):
    """
    Decorator that converts exceptions into a default return value

    Args:
        default_return: Value returned when the wrapped call fails
        log_errors: Log the failure
        reraise: Re-raise after logging
        ignored_exceptions: Exception types returned as default without error logging
        custom_handler: Callable(exception, func_name, args, kwargs) producing the return value
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                return _handle_exception(
                    e, func.__name__, args, kwargs,
                    default_return, log_errors, reraise,
                    ignored_exceptions, custom_handler
                )

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                return _handle_exception(
                    e, func.__name__, args, kwargs,
                    default_return, log_errors, reraise,
                    ignored_exceptions, custom_handler
                )

        if asyncio.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator

def _handle_exception(
    exception: Exception,
    func_name: str,
    args: tuple,
    kwargs: dict,
    default_return: Any,
    log_errors: bool,
    reraise: bool,
    ignored_exceptions: Optional[List[type]],
    custom_handler: Optional[Callable]
) -> Any:
    """Internal exception handling logic"""

    if ignored_exceptions and isinstance(exception, tuple(ignored_exceptions)):
        if log_errors:
            logger.debug(f"🔇 Ignored exception in {func_name}: {exception}")
        return default_return

    if custom_handler and not reraise:
        try:
            return custom_handler(exception, func_name, args, kwargs)
        except Exception as handler_error:
            logger.error(f"💥 Custom error handler failed: {handler_error}")

    if log_errors:
        logger.error(f"❌ Error in {func_name}: {type(exception).__name__}: {exception}")
        logger.debug(f"🔍 Traceback: {traceback.format_exc()}")

    if reraise:
        raise exception

    return default_return

def handle_network_errors(default_return: Any = None, timeout: Optional[float] = None):
    """Decorator for calls to external HTTP services"""

    def custom_handler(exception, func_name, args, kwargs):
        if isinstance(exception, httpx.TimeoutException):
            suffix = f" (>{timeout}s)" if timeout else ""
            logger.warning(f"⏰ Network timeout in {func_name}{suffix}")
        elif isinstance(exception, httpx.ConnectError):
            logger.warning(f"🔌 Connection error in {func_name}")
        elif isinstance(exception, httpx.NetworkError):
            logger.warning(f"🌐 Network error in {func_name}: {exception}")
        else:
            logger.warning(f"📡 External call failed in {func_name}: {type(exception).__name__}: {exception}")

        return default_return

    return handle_errors(
        default_return=default_return,
        log_errors=True,
        reraise=False,
        custom_handler=custom_handler
    )
