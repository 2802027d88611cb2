"""Invocation of user-supplied setup, validate and hook callables."""

import inspect
from collections.abc import Callable
from typing import Any


async def call_maybe_async(func: Callable[..., Any], *args: Any) -> Any:
    """Call a sync or async function and await the result when needed."""
    result = func(*args)
    if inspect.isawaitable(result):
        result = await result
    return result
