"""
Async utilities for running blocking operations in an executor.

Usage:
    from core.async_utils import run_blocking

    # Instead of: blocking_function()
    result = await run_blocking(blocking_function, arg1, arg2)
"""

import asyncio
from functools import partial
from typing import Any, Callable, TypeVar

T = TypeVar("T")


async def run_blocking(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """
    Run a blocking function in the default thread pool.

    Used for SMTP delivery, WAV header parsing and upload file writes, none
    of which have an async API.

    Example:
        await run_blocking(server.send_message, msg)
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, partial(func, *args, **kwargs))
