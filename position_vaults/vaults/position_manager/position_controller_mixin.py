"""
Position lifecycle for PositionManager.

    Closed --add_liquidity--> Open --remove_liquidity--> Closed
    Open --update_position / re_add_liquidity--> Open

Every entry point is manager-only and checks the current state before doing
anything else.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from position_vaults.core.adapters.models import (
    LiquidityAdded,
    LiquidityRemoved,
    RewardsHarvested,
)
from position_vaults.core.chain import atomic
from position_vaults.core.constants import ROLE_MANAGER
from position_vaults.core.errors import InvalidEntry, InvalidPositionState
from position_vaults.core.utils.uniswap_v3_math import slippage_min
from position_vaults.core.utils.units import mul_div
from position_vaults.core.vaults import require_role

from .types import PositionClosed, PositionOpen

if TYPE_CHECKING:
    from .manager import PositionManager


class PositionControllerMixin:
    def tick_range(self: PositionManager) -> tuple[int, int] | None:
        position = self.state.position
        if isinstance(position, PositionOpen):
            return position.tick_lower, position.tick_upper
        return None

    def _expect_open(self: PositionManager) -> PositionOpen:
        position = self.state.position
        if not isinstance(position, PositionOpen):
            raise InvalidPositionState(PositionOpen.kind, position.kind)
        return position

    def _expect_closed(self: PositionManager) -> None:
        position = self.state.position
        if not isinstance(position, PositionClosed):
            raise InvalidPositionState(PositionClosed.kind, position.kind)

    # ── internals ────────────────────────────────────────────────────────────

    def _swap(self: PositionManager, token_in: str, amount_in: int) -> int:
        """Swap through the vault's pool; returns 0 when the amount is too small to trade."""
        quoted = self.pool.quote(token_in, amount_in)
        if quoted <= 0:
            self.logger.debug(f"Skipping swap of {amount_in}: quotes to zero")
            return 0
        return self.pool.swap(
            self.address, token_in, amount_in, slippage_min(quoted, self.slippage_bps)
        )

    def _rebalance(self: PositionManager, tick_lower: int, tick_upper: int) -> None:
        amount0, amount1 = self._as_pool_order(*self.idle_balances())
        token_in, amount_in = self.pool.quote_split(
            tick_lower, tick_upper, amount0, amount1
        )
        if token_in is not None and amount_in > 0:
            self._swap(token_in.address, amount_in)

    def _open(self: PositionManager, tick_lower: int, tick_upper: int) -> int:
        self._rebalance(tick_lower, tick_upper)
        amount0, amount1 = self._as_pool_order(*self.idle_balances())
        if self.pool.liquidity_for_amounts(tick_lower, tick_upper, amount0, amount1) <= 0:
            raise InvalidEntry(idle0=amount0, idle1=amount1, liquidity=0)

        handle, liquidity, used0, used1 = self.pool.mint(
            self.address, tick_lower, tick_upper, amount0, amount1
        )
        self.state.position = PositionOpen(tick_lower, tick_upper, handle)
        self.emit(
            LiquidityAdded(
                tick_lower=tick_lower,
                tick_upper=tick_upper,
                liquidity=liquidity,
                amount0=used0,
                amount1=used1,
            )
        )
        self.logger.info(
            f"Opened [{tick_lower}, {tick_upper}] with L={liquidity} ({used0}, {used1})"
        )
        return liquidity

    def _deploy_idle(self: PositionManager) -> int:
        position = self._expect_open()
        if not any(self.idle_balances()):
            self.logger.warning("Nothing idle to deploy")
            return 0

        self._rebalance(position.tick_lower, position.tick_upper)
        amount0, amount1 = self._as_pool_order(*self.idle_balances())
        if (
            self.pool.liquidity_for_amounts(
                position.tick_lower, position.tick_upper, amount0, amount1
            )
            <= 0
        ):
            self.logger.warning(f"Idle ({amount0}, {amount1}) too small for the range")
            return 0

        liquidity, used0, used1 = self.pool.increase_liquidity(
            self.address, position.handle, amount0, amount1
        )
        self.emit(
            LiquidityAdded(
                tick_lower=position.tick_lower,
                tick_upper=position.tick_upper,
                liquidity=liquidity,
                amount0=used0,
                amount1=used1,
            )
        )
        return liquidity

    def _close_position(self: PositionManager) -> tuple[int, int]:
        """Burn everything and collect principal plus fees; returns ``(base, pair)``."""
        position = self._expect_open()
        liquidity = self.pool.position(position.handle).liquidity
        if liquidity > 0:
            self.pool.burn(self.address, position.handle, liquidity)
        amount0, amount1 = self.pool.collect(self.address, position.handle, self.address)

        self.state.position = PositionClosed()
        self.emit(
            LiquidityRemoved(
                tick_lower=position.tick_lower,
                tick_upper=position.tick_upper,
                liquidity=liquidity,
                amount0=amount0,
                amount1=amount1,
            )
        )
        self.logger.info(
            f"Closed [{position.tick_lower}, {position.tick_upper}], got ({amount0}, {amount1})"
        )
        return self._from_pool_order(amount0, amount1)

    def _burn_slice(self: PositionManager, shares: int, supply: int) -> tuple[int, int]:
        """Burn ``shares / supply`` of the liquidity into the vault; returns ``(base, pair)``."""
        position = self._expect_open()
        liquidity = mul_div(self.pool.position(position.handle).liquidity, shares, supply)
        if liquidity == 0:
            return 0, 0
        burned0, burned1 = self.pool.burn(self.address, position.handle, liquidity)
        # owed fees stay in the position for the next harvest
        collected = self.pool.collect(
            self.address, position.handle, self.address, burned0, burned1
        )
        return self._from_pool_order(*collected)

    def _harvest_fees(self: PositionManager) -> int:
        """Collect owed pool fees, swap the pair side to base and lock the total.

        Returns the amount locked, 0 when nothing was owed or the fees were
        too small to convert.
        """
        position = self._expect_open()
        record = self.pool.position(position.handle)
        if record.tokens_owed0 == 0 and record.tokens_owed1 == 0:
            return 0

        base_in, pair_in = self._from_pool_order(
            *self.pool.collect(self.address, position.handle, self.address)
        )
        amount = base_in
        if pair_in > 0:
            amount += self._swap(self.pair_token.address, pair_in)
        if amount == 0:
            return 0

        self.protocol.locker.deposit(self.address, amount, account=self.address)
        self.emit(RewardsHarvested(vault_key=self.address, amount=amount))
        self.logger.info(f"Harvested {amount} into the locker")
        return amount

    # ── manager operations ───────────────────────────────────────────────────

    @atomic
    @require_role(ROLE_MANAGER)
    def add_liquidity(self: PositionManager, caller: str, tick_lower: int, tick_upper: int) -> int:
        self._expect_closed()
        self.pool.check_range(tick_lower, tick_upper)
        if not any(self.idle_balances()):
            raise InvalidEntry(idle=0)
        return self._open(tick_lower, tick_upper)

    @atomic
    @require_role(ROLE_MANAGER)
    def remove_liquidity(self: PositionManager, caller: str) -> tuple[int, int]:
        self._expect_open()
        return self._close_position()

    @atomic
    @require_role(ROLE_MANAGER)
    def update_position(
        self: PositionManager, caller: str, tick_lower: int, tick_upper: int
    ) -> int:
        self._expect_open()
        self.pool.check_range(tick_lower, tick_upper)
        self._close_position()
        return self._open(tick_lower, tick_upper)

    @atomic
    @require_role(ROLE_MANAGER)
    def re_add_liquidity(self: PositionManager, caller: str) -> int:
        position = self._expect_open()
        self.pool.collect(self.address, position.handle, self.address)
        return self._deploy_idle()

    @atomic
    @require_role(ROLE_MANAGER)
    def harvest(self: PositionManager, caller: str) -> int:
        """Collect pool fees, convert them to base and lock them as rewards."""
        amount = self._harvest_fees()
        if amount == 0:
            raise InvalidEntry(harvested=0)
        return amount
