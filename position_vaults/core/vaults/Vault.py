from __future__ import annotations

import functools
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypedDict

from eth_utils import to_checksum_address
from loguru import logger

from position_vaults.core.errors import Unauthorized

if TYPE_CHECKING:
    from position_vaults.core.chain import LocalChain


class VaultStatus(TypedDict):
    position: str
    tick_range: tuple[int, int] | None
    liquidity: int
    total_supply: int
    vault_value: int
    idle_base: int
    idle_pair: int
    depositors: int


def require_role(role: str) -> Callable[[Callable], Callable]:
    """Reject the call unless ``caller`` (first argument) holds ``role``.

    The check runs before anything else the method does.
    """

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(self: Component, caller: str, *args: Any, **kwargs: Any) -> Any:
            if not self.has_role(role, caller):
                raise Unauthorized(caller, role)
            return fn(self, caller, *args, **kwargs)

        return wrapper

    return decorator


class Component(ABC):
    """A stateful protocol component living on a ``LocalChain``.

    All mutable data sits on ``self.state`` so a chain revert can restore it.
    Role membership, when a component has roles, is ``state.roles``.
    """

    state: Any

    def __init__(
        self,
        chain: LocalChain,
        name: str,
        config: dict[str, Any] | None = None,
    ):
        self.chain = chain
        self.name = name
        self.config: dict[str, Any] = config or {}
        self.address = chain.register(self, name)
        self.logger = logger.bind(vault=self.__class__.__name__, name=name)

    def has_role(self, role: str, account: str) -> bool:
        roles: dict[str, set[str]] = getattr(self.state, "roles", {})
        return to_checksum_address(account) in roles.get(role, set())

    def emit(self, event: Any) -> Any:
        return self.chain.emit(self.address, event)


class Vault(Component):
    @abstractmethod
    def status(self) -> VaultStatus:
        pass
