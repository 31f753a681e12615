from __future__ import annotations

from typing import TYPE_CHECKING, Any

from eth_utils import to_checksum_address

from position_vaults.core.chain import LocalChain, atomic
from position_vaults.core.errors import Unauthorized
from position_vaults.core.vaults import Component

from .types import RegistryState

if TYPE_CHECKING:
    from .manager import ProtocolManager


class DepositorRegistry(Component):
    """Per-vault set of addresses holding a nonzero share balance."""

    def __init__(
        self,
        chain: LocalChain,
        protocol: ProtocolManager,
        name: str = "depositor_registry",
        config: dict[str, Any] | None = None,
    ):
        super().__init__(chain, name, config)
        self.protocol = protocol
        self.state = RegistryState()

    def _vault_only(self, caller: str) -> str:
        caller = to_checksum_address(caller)
        if not self.protocol.is_vault(caller):
            raise Unauthorized(caller, "VAULT")
        return caller

    def users_set(self, vault_key: str) -> frozenset[str]:
        return frozenset(self.state.users.get(to_checksum_address(vault_key), ()))

    def is_registered(self, vault_key: str, depositor: str) -> bool:
        users = self.state.users.get(to_checksum_address(vault_key), set())
        return to_checksum_address(depositor) in users

    @atomic
    def register_deposit(self, caller: str, depositor: str) -> None:
        vault_key = self._vault_only(caller)
        self.state.users.setdefault(vault_key, set()).add(to_checksum_address(depositor))

    @atomic
    def register_withdrawal(self, caller: str, depositor: str) -> None:
        vault_key = self._vault_only(caller)
        users = self.state.users.get(vault_key)
        if not users:
            return
        users.discard(to_checksum_address(depositor))
        if not users:
            del self.state.users[vault_key]
