from __future__ import annotations

from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from loguru import logger

from position_vaults.core.errors import VaultError

T = TypeVar("T")


def status_tuple(
    fn: Callable[..., T],
) -> Callable[..., tuple[bool, T | str]]:
    """Wrap a method to return ``(True, result)`` or ``(False, error_str)``.

    The decorated function should perform its work and return the result directly.
    Only ``VaultError`` is converted; anything else is a bug and propagates.
    """

    @wraps(fn)
    def wrapper(self: Any, *args: Any, **kwargs: Any) -> tuple[bool, T | str]:
        try:
            result = fn(self, *args, **kwargs)
            return (True, result)
        except VaultError as exc:
            getattr(self, "logger", logger).error(f"Error in {fn.__name__}: {exc}")
            return (False, str(exc))

    return wrapper
