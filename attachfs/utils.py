"""Small helpers shared across attachfs."""

import inspect
import json
from typing import Any


async def resolve(value: Any) -> Any:
    """Await *value* if it is awaitable, so callbacks may be sync or async."""
    if inspect.isawaitable(value):
        return await value
    return value


def describe_args(*args: Any) -> str:
    """Serialize call arguments for error messages, JSON where possible."""
    return ", ".join(json.dumps(arg, default=repr) for arg in args)
