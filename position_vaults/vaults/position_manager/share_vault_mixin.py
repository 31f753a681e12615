"""
Share accounting for PositionManager.

Deposits mint shares against the base asset; withdrawals burn a depositor's
whole balance and pay out the matching slice of everything the vault holds.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from eth_utils import to_checksum_address

from position_vaults.core.adapters.models import Deposit, Withdraw
from position_vaults.core.chain import atomic
from position_vaults.core.errors import InsufficientBalance, InvalidEntry
from position_vaults.core.utils.units import mul_div, ppm_of

from .types import PositionOpen

if TYPE_CHECKING:
    from .manager import PositionManager


class ShareVaultMixin:
    # ── reads ────────────────────────────────────────────────────────────────

    def balance_of(self: PositionManager, account: str) -> int:
        return self.state.balances.get(to_checksum_address(account), 0)

    @property
    def total_supply(self: PositionManager) -> int:
        return self.state.total_supply

    def idle_balances(self: PositionManager) -> tuple[int, int]:
        """``(base, pair)`` held by the vault outside the position."""
        return (
            self.base_token.balance_of(self.address),
            self.pair_token.balance_of(self.address),
        )

    def vault_value(self: PositionManager) -> int:
        """Principal the vault owns, valued in the base asset.

        Fees still owed by the pool are rewards, not principal, and are left
        out so deposits and withdrawals price shares against the same assets.
        """
        value = self.pool.value_in(
            self.base_token.address, *self._as_pool_order(*self.idle_balances())
        )
        position = self.position
        if position is not None:
            value += position.principal_value()
        return value

    def _shares_for(self: PositionManager, net_amount: int) -> int:
        supply = self.state.total_supply
        if isinstance(self.state.position, PositionOpen) and supply > 0:
            value = self.vault_value()
            if value <= 0:
                raise InvalidEntry(vault_value=value)
            return mul_div(net_amount, supply, value)
        return net_amount * self.oracle.latest_answer()

    # ── operations ───────────────────────────────────────────────────────────

    @atomic
    def deposit(self: PositionManager, sender: str, amount: int) -> int:
        if amount <= 0:
            raise InvalidEntry(amount=amount)
        sender = to_checksum_address(sender)
        fee_cfg = self.state.fee
        fee = ppm_of(amount, fee_cfg.rate_ppm)
        net = amount - fee
        shares = self._shares_for(net)
        if shares <= 0:
            raise InvalidEntry(amount=amount, shares=shares)

        self.state.balances[sender] = self.balance_of(sender) + shares
        self.state.total_supply += shares
        self.protocol.depositor_registry.register_deposit(self.address, sender)

        self.base_token.transfer(sender, self.address, amount)
        self.base_token.transfer(self.address, fee_cfg.recipient, fee)
        if isinstance(self.state.position, PositionOpen):
            self._deploy_idle()

        self.emit(Deposit(depositor=sender, shares=shares, amount_in=net))
        self.logger.info(f"Deposit {sender}: {net} net (+{fee} fee) -> {shares} shares")
        return shares

    @atomic
    def withdraw(self: PositionManager, sender: str) -> tuple[int, int]:
        """Burn ``sender``'s shares; returns ``(base_out, pair_out)``."""
        sender = to_checksum_address(sender)
        shares = self.balance_of(sender)
        if shares == 0:
            raise InsufficientBalance(depositor=sender)
        supply = self.state.total_supply

        del self.state.balances[sender]
        self.state.total_supply -= shares
        self.protocol.depositor_registry.register_withdrawal(self.address, sender)

        if shares == supply:
            # owed fees go through the reward split before the last one out takes the rest
            if isinstance(self.state.position, PositionOpen):
                self._harvest_fees()
                self._close_position()
            base_out, pair_out = self.idle_balances()
        else:
            idle_base, idle_pair = self.idle_balances()
            base_out = mul_div(idle_base, shares, supply)
            pair_out = mul_div(idle_pair, shares, supply)
            if isinstance(self.state.position, PositionOpen):
                burned_base, burned_pair = self._burn_slice(shares, supply)
                base_out += burned_base
                pair_out += burned_pair

        self.base_token.transfer(self.address, sender, base_out)
        self.pair_token.transfer(self.address, sender, pair_out)

        self.emit(Withdraw(depositor=sender, shares=shares))
        self.logger.info(f"Withdraw {sender}: {shares} shares -> {base_out} base, {pair_out} pair")
        return base_out, pair_out
