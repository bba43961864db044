"""Value-or-factory configuration slots.

Several options (client id, client secret, fallback token, default
headers, access token) accept either a literal value or a zero-argument
callable producing one. The callable may be a plain function or a
coroutine function. :func:`resolve_value` is the single place that tells
the two apart, so call sites never need to.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from typing import Optional, TypeVar, Union

T = TypeVar("T")

ValueOrFactory = Union[T, Callable[[], Union[T, Awaitable[T]]]]


async def resolve_value(value: Optional[ValueOrFactory[T]]) -> Optional[T]:
    """Return the literal *value*, or call it and await the result if needed.

    Factories are invoked on every call; nothing is cached here.
    """
    if callable(value):
        result = value()
        if inspect.isawaitable(result):
            return await result
        return result
    return value
