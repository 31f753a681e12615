"""
Cascading reward split.

For a vault key with ``G`` locked in the Locker:

1. the exclusive manager takes ``G * pct // 1e6`` (skipped for the zero address),
2. the receiver takes ``pct`` of what is left, optionally swapped into its
   payout token,
3. depositors accrue the remainder pro rata to their share balances.

Floor division throughout. Whatever the pro-rata step cannot place (rounding
dust, or everything when the vault has no depositors) stays with the
distributor and is tracked per vault in ``state.retained``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from eth_utils import to_checksum_address

from position_vaults.core.adapters.models import (
    ExclusiveManagerDataSet,
    ReceiverDataSet,
    RewardsDistributed,
)
from position_vaults.core.chain import LocalChain, atomic
from position_vaults.core.constants import MAX_PERCENTAGE, ROLE_ADMIN, ZERO_ADDRESS
from position_vaults.core.errors import (
    InvalidEntry,
    InvalidInput,
    Unauthorized,
    ZeroAddress,
)
from position_vaults.core.utils.units import mul_div, ppm_of
from position_vaults.core.vaults import Component, require_role

from .types import Distribution, DistributorState, ExclusiveManagerData, ReceiverData

if TYPE_CHECKING:
    from position_vaults.vaults.position_manager.manager import PositionManager

    from .manager import ProtocolManager


def _is_zero(address: str) -> bool:
    return address.lower() == ZERO_ADDRESS


class RewardDistributor(Component):
    def __init__(
        self,
        chain: LocalChain,
        protocol: ProtocolManager,
        name: str = "reward_distributor",
        config: dict[str, Any] | None = None,
    ):
        super().__init__(chain, name, config)
        self.protocol = protocol
        self.state = DistributorState()

    def has_role(self, role: str, account: str) -> bool:
        return self.protocol.has_role(role, account)

    def _vault(self, vault_key: str) -> PositionManager:
        return self.protocol.vault(vault_key)

    # ── reads ────────────────────────────────────────────────────────────────

    def receiver_data(self, vault_key: str) -> ReceiverData:
        return self.state.receivers.get(to_checksum_address(vault_key), ReceiverData())

    def exclusive_manager_data(self, vault_key: str) -> ExclusiveManagerData:
        return self.state.exclusive_managers.get(
            to_checksum_address(vault_key), ExclusiveManagerData()
        )

    def retained(self, vault_key: str) -> int:
        return self.state.retained.get(to_checksum_address(vault_key), 0)

    def preview(self, vault_key: str, gross: int) -> Distribution:
        """Split ``gross`` for ``vault_key`` as ``distribute_rewards`` would, without moving funds."""
        vault = self._vault(vault_key)
        exclusive = self.exclusive_manager_data(vault.address)
        exclusive_cut = 0
        if not _is_zero(exclusive.manager):
            exclusive_cut = ppm_of(gross, exclusive.percentage)
        remainder = gross - exclusive_cut

        receiver = self.receiver_data(vault.address)
        receiver_cut = ppm_of(remainder, receiver.percentage)
        distributable = remainder - receiver_cut

        supply = vault.total_supply
        depositors = self.protocol.depositor_registry.users_set(vault.address)
        accrued: dict[str, int] = {}
        if depositors and supply > 0:
            for depositor in depositors:
                share = mul_div(distributable, vault.balance_of(depositor), supply)
                if share > 0:
                    accrued[depositor] = share

        receiver_paid, receiver_swapped = receiver_cut, False
        if receiver_cut > 0 and self._swaps_receiver_cut(receiver):
            quoted = vault.pool.quote(self.protocol.reward_token.address, receiver_cut)
            # a cut too small to trade is paid in the reward token
            if quoted > 0:
                receiver_paid, receiver_swapped = quoted, True

        return Distribution(
            gross=gross,
            exclusive_cut=exclusive_cut,
            receiver_cut=receiver_cut,
            receiver_paid=receiver_paid,
            receiver_swapped=receiver_swapped,
            accrued=accrued,
            retained=distributable - sum(accrued.values()),
        )

    def _swaps_receiver_cut(self, receiver: ReceiverData) -> bool:
        return (
            receiver.payout_token is not None
            and receiver.payout_token != self.protocol.reward_token.address
        )

    # ── distribution ─────────────────────────────────────────────────────────

    @atomic
    def distribute_rewards(self, vault_key: str, min_acceptable: int = 0) -> int:
        """Release everything locked for ``vault_key`` and split it.

        ``min_acceptable`` is the least the receiver may be paid (in its payout
        token); a configured receiver paid less reverts the whole call.
        """
        vault = self._vault(vault_key)
        locker = self.protocol.locker
        gross = locker.balance_locked(vault.address)
        if gross == 0:
            raise InvalidEntry(vault_key=vault.address, amount=0)

        split = self.preview(vault.address, gross)
        receiver = self.receiver_data(vault.address)
        if receiver.percentage > 0 and split.receiver_paid < min_acceptable:
            raise InvalidEntry(
                receiver_paid=split.receiver_paid, min_acceptable=min_acceptable
            )

        self.protocol.claim_ledger.accrue(self.address, vault.address, split.accrued)
        if split.retained:
            self.state.retained[vault.address] = self.retained(vault.address) + split.retained

        reward_token = self.protocol.reward_token
        locker.release(self.address, vault.address, gross, self.address)
        if split.exclusive_cut:
            exclusive = self.exclusive_manager_data(vault.address)
            reward_token.transfer(self.address, exclusive.manager, split.exclusive_cut)
        if split.receiver_cut:
            if split.receiver_swapped:
                vault.pool.swap(
                    self.address,
                    reward_token.address,
                    split.receiver_cut,
                    max(min_acceptable, split.receiver_paid),
                    recipient=receiver.receiver,
                )
            else:
                reward_token.transfer(self.address, receiver.receiver, split.receiver_cut)
        reward_token.transfer(
            self.address, self.protocol.claim_ledger.address, sum(split.accrued.values())
        )

        self.emit(RewardsDistributed(amount=gross))
        self.logger.info(
            f"Distributed {gross} for {vault.address}: exclusive={split.exclusive_cut} "
            f"receiver={split.receiver_cut} depositors={sum(split.accrued.values())} "
            f"retained={split.retained}"
        )
        if not split.accrued:
            self.logger.warning(f"No depositors in {vault.address}; {split.retained} retained")
        return gross

    @atomic
    def deposit_rewards(self, sender: str, vault_key: str, amount: int) -> None:
        vault = self._vault(vault_key)
        self.protocol.locker.deposit(sender, amount, account=vault.address)

    # ── configuration ────────────────────────────────────────────────────────

    @atomic
    def set_receiver_data(
        self,
        caller: str,
        receiver: str,
        percentage: int,
        payout_token: str | None = None,
    ) -> None:
        """Set the receiver of ``caller``'s rewards; ``caller`` is the vault itself."""
        caller = to_checksum_address(caller)
        if not self.protocol.is_vault(caller):
            raise Unauthorized(caller, "VAULT")
        if not 0 <= percentage <= MAX_PERCENTAGE:
            raise InvalidEntry(percentage=percentage)
        if percentage > 0 and _is_zero(receiver):
            raise ZeroAddress(receiver=receiver)
        if payout_token is not None:
            payout_token = self._vault(caller).pool.token(payout_token).address

        self.state.receivers[caller] = ReceiverData(
            receiver=to_checksum_address(receiver),
            percentage=percentage,
            payout_token=payout_token,
        )
        self.emit(
            ReceiverDataSet(
                vault_key=caller, receiver=to_checksum_address(receiver), percentage=percentage
            )
        )

    @atomic
    @require_role(ROLE_ADMIN)
    def set_exclusive_manager_data(
        self, caller: str, vault_key: str, manager: str, percentage: int
    ) -> None:
        vault_key = to_checksum_address(vault_key)
        if not self.protocol.is_vault(vault_key):
            raise InvalidInput("vault_key", vault_key)
        if not 0 <= percentage <= MAX_PERCENTAGE:
            raise InvalidEntry(percentage=percentage)

        self.state.exclusive_managers[vault_key] = ExclusiveManagerData(
            manager=to_checksum_address(manager), percentage=percentage
        )
        self.emit(
            ExclusiveManagerDataSet(
                vault_key=vault_key, manager=to_checksum_address(manager), percentage=percentage
            )
        )
