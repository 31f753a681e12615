from __future__ import annotations

import functools
from abc import ABC
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from eth_utils import to_checksum_address
from loguru import logger

from position_vaults.core.errors import Unauthorized

if TYPE_CHECKING:
    from position_vaults.core.chain import LocalChain


def require_owner(fn: Callable) -> Callable:
    """Reject the call unless ``caller`` (first argument) is ``self.state.owner``."""

    @functools.wraps(fn)
    def wrapper(self: BaseAdapter, caller: str, *args: Any, **kwargs: Any) -> Any:
        if to_checksum_address(caller) != self.state.owner:
            raise Unauthorized(caller, "OWNER")
        return fn(self, caller, *args, **kwargs)

    return wrapper


class BaseAdapter(ABC):
    """Base for the local stand-ins of external collaborators.

    Subclasses assign ``self.state`` (a dataclass holding every mutable field)
    before any operation runs; the chain snapshots it for rollback.
    """

    adapter_type: str | None = None
    state: Any

    def __init__(
        self,
        name: str,
        chain: LocalChain,
        config: dict[str, Any] | None = None,
    ):
        self.name = name
        self.chain = chain
        self.config = config or {}
        self.address = chain.register(self, name)
        self.logger = logger.bind(adapter=self.__class__.__name__, name=name)

    def emit(self, event: Any) -> Any:
        return self.chain.emit(self.address, event)
