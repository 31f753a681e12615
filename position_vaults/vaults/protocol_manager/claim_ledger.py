from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from eth_utils import to_checksum_address

from position_vaults.core.adapters.models import RewardCollected
from position_vaults.core.chain import LocalChain, atomic
from position_vaults.core.errors import InsufficientBalance, Unauthorized
from position_vaults.core.vaults import Component

from .types import LedgerState

if TYPE_CHECKING:
    from .manager import ProtocolManager


class ClaimLedger(Component):
    """Accrued, not yet collected rewards per ``(vault_key, depositor)``.

    The ledger's own address custodies the reward tokens backing every entry,
    so ``total_claimable()`` never exceeds its reward-token balance.
    """

    def __init__(
        self,
        chain: LocalChain,
        protocol: ProtocolManager,
        name: str = "claim_ledger",
        config: dict[str, Any] | None = None,
    ):
        super().__init__(chain, name, config)
        self.protocol = protocol
        self.state = LedgerState()

    def claimable(self, vault_key: str, depositor: str) -> int:
        entries = self.state.claimable.get(to_checksum_address(vault_key), {})
        return entries.get(to_checksum_address(depositor), 0)

    def total_claimable(self, vault_key: str | None = None) -> int:
        if vault_key is not None:
            return sum(self.state.claimable.get(to_checksum_address(vault_key), {}).values())
        return sum(sum(entries.values()) for entries in self.state.claimable.values())

    @atomic
    def accrue(self, caller: str, vault_key: str, amounts: Mapping[str, int]) -> int:
        """Credit ``amounts``; only the distributor may call, after funding the ledger."""
        if to_checksum_address(caller) != self.protocol.reward_distributor.address:
            raise Unauthorized(caller, "DISTRIBUTOR")
        vault_key = to_checksum_address(vault_key)
        entries = self.state.claimable.setdefault(vault_key, {})
        total = 0
        for depositor, amount in amounts.items():
            if amount <= 0:
                continue
            depositor = to_checksum_address(depositor)
            entries[depositor] = entries.get(depositor, 0) + amount
            total += amount
        if not entries:
            del self.state.claimable[vault_key]
        return total

    @atomic
    def collect_rewards(self, caller: str, vault_key: str) -> int:
        caller = to_checksum_address(caller)
        vault_key = to_checksum_address(vault_key)
        amount = self.claimable(vault_key, caller)
        if amount == 0:
            raise InsufficientBalance(depositor=caller, vault_key=vault_key)

        entries = self.state.claimable[vault_key]
        del entries[caller]
        if not entries:
            del self.state.claimable[vault_key]
        self.protocol.reward_token.transfer(self.address, caller, amount)

        self.emit(RewardCollected(depositor=caller, vault_key=vault_key, amount=amount))
        self.logger.info(f"{caller} collected {amount} from {vault_key}")
        return amount
