"""
Vault-facing reward entry points. The accounting lives in the protocol's
RewardDistributor / ClaimLedger; the vault address is the key.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from position_vaults.core.chain import atomic
from position_vaults.core.constants import ROLE_MANAGER
from position_vaults.core.vaults import require_role

if TYPE_CHECKING:
    from .manager import PositionManager


class VaultRewardsMixin:
    @atomic
    @require_role(ROLE_MANAGER)
    def distribute_rewards(self: PositionManager, caller: str, min_acceptable: int = 0) -> int:
        return self.protocol.reward_distributor.distribute_rewards(
            self.address, min_acceptable
        )

    @atomic
    @require_role(ROLE_MANAGER)
    def set_receiver_data(
        self: PositionManager,
        caller: str,
        receiver: str,
        percentage: int,
        payout_token: str | None = None,
    ) -> None:
        self.protocol.reward_distributor.set_receiver_data(
            self.address, receiver, percentage, payout_token
        )

    def deposit_rewards(self: PositionManager, sender: str, amount: int) -> None:
        self.protocol.reward_distributor.deposit_rewards(sender, self.address, amount)

    def collect_rewards(self: PositionManager, sender: str) -> int:
        return self.protocol.claim_ledger.collect_rewards(sender, self.address)

    def claimable(self: PositionManager, depositor: str) -> int:
        return self.protocol.claim_ledger.claimable(self.address, depositor)

    def locked_rewards(self: PositionManager) -> int:
        return self.protocol.locker.balance_locked(self.address)
