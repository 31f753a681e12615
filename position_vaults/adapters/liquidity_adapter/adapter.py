from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from eth_utils import to_checksum_address

from position_vaults.core.adapters.BaseAdapter import BaseAdapter, require_owner
from position_vaults.core.adapters.models import Swap
from position_vaults.core.chain import LocalChain, atomic
from position_vaults.core.constants import MAX_PERCENTAGE
from position_vaults.core.constants.base import TICK_SPACING
from position_vaults.core.errors import InvalidEntry, InvalidInput, Unauthorized
from position_vaults.core.utils.uniswap_v3_math import (
    amount0_to_amount1,
    amount1_to_amount0,
    amounts_for_liq_inrange,
    is_valid_tick_range,
    liq_for_amounts,
    sqrt_price_x96_from_tick,
    tick_from_sqrt_price_x96,
)
from position_vaults.core.utils.units import mul_div

if TYPE_CHECKING:
    from position_vaults.adapters.balance_adapter.adapter import ERC20Token

# Large enough that floor rounding does not skew the token ratio of a range.
_REFERENCE_LIQUIDITY = 10**24


@dataclass
class PositionRecord:
    owner: str
    tick_lower: int
    tick_upper: int
    liquidity: int = 0
    tokens_owed0: int = 0
    tokens_owed1: int = 0


@dataclass
class PoolState:
    owner: str
    sqrt_price_x96: int
    positions: dict[int, PositionRecord] = field(default_factory=dict)
    next_position_id: int = 1


class ConcentratedPool(BaseAdapter):
    """Fixed-price concentrated-liquidity pool.

    Positions are tracked per id like the v3 NonfungiblePositionManager: a burn
    credits ``tokens_owed`` and ``collect`` pays them out. Swaps execute at the
    current price minus the pool fee and never move the price; only the owner
    moves it (``set_sqrt_price``). Trading fees for LPs are injected with
    ``donate_fees``.
    """

    adapter_type: str = "LIQUIDITY"

    def __init__(
        self,
        chain: LocalChain,
        token0: ERC20Token,
        token1: ERC20Token,
        fee_ppm: int,
        sqrt_price_x96: int,
        owner: str,
        tick_spacing: int | None = None,
        config: dict[str, Any] | None = None,
    ):
        super().__init__(f"pool:{token0.symbol}/{token1.symbol}:{fee_ppm}", chain, config)
        if token0.address == token1.address:
            raise InvalidInput("token1", token1.address)
        if not 0 <= fee_ppm < MAX_PERCENTAGE:
            raise InvalidInput("fee_ppm", fee_ppm)
        if sqrt_price_x96 <= 0:
            raise InvalidInput("sqrt_price_x96", sqrt_price_x96)
        self.token0 = token0
        self.token1 = token1
        self.fee_ppm = int(fee_ppm)
        self.tick_spacing = int(tick_spacing or TICK_SPACING.get(fee_ppm, 1))
        self.state = PoolState(
            owner=to_checksum_address(owner), sqrt_price_x96=int(sqrt_price_x96)
        )

    # ── reads ────────────────────────────────────────────────────────────────

    @property
    def sqrt_price_x96(self) -> int:
        return self.state.sqrt_price_x96

    @property
    def current_tick(self) -> int:
        return tick_from_sqrt_price_x96(self.state.sqrt_price_x96)

    def token(self, address: str) -> ERC20Token:
        address = to_checksum_address(address)
        if address == self.token0.address:
            return self.token0
        if address == self.token1.address:
            return self.token1
        raise InvalidInput("token", address)

    def other(self, address: str) -> ERC20Token:
        return self.token1 if self.token(address) is self.token0 else self.token0

    def position(self, position_id: int) -> PositionRecord:
        record = self.state.positions.get(position_id)
        if record is None:
            raise InvalidInput("position_id", position_id)
        return copy.copy(record)

    def check_range(self, tick_lower: int, tick_upper: int) -> None:
        if not is_valid_tick_range(tick_lower, tick_upper, self.tick_spacing):
            raise InvalidEntry(
                tick_lower=tick_lower,
                tick_upper=tick_upper,
                tick_spacing=self.tick_spacing,
            )

    def value_in(self, token_address: str, amount0: int, amount1: int) -> int:
        """Mid-price value of ``(amount0, amount1)`` expressed in ``token_address``."""
        p = self.state.sqrt_price_x96
        if self.token(token_address) is self.token0:
            return amount0 + amount1_to_amount0(amount1, p)
        return amount0_to_amount1(amount0, p) + amount1

    def quote(self, token_in: str, amount_in: int) -> int:
        if amount_in <= 0:
            return 0
        after_fee = mul_div(amount_in, MAX_PERCENTAGE - self.fee_ppm, MAX_PERCENTAGE)
        p = self.state.sqrt_price_x96
        if self.token(token_in) is self.token0:
            return amount0_to_amount1(after_fee, p)
        return amount1_to_amount0(after_fee, p)

    def amounts_for_liquidity(
        self, tick_lower: int, tick_upper: int, liquidity: int, *, round_up: bool = False
    ) -> tuple[int, int]:
        return amounts_for_liq_inrange(
            self.state.sqrt_price_x96,
            sqrt_price_x96_from_tick(tick_lower),
            sqrt_price_x96_from_tick(tick_upper),
            liquidity,
            round_up=round_up,
        )

    def liquidity_for_amounts(
        self, tick_lower: int, tick_upper: int, amount0: int, amount1: int
    ) -> int:
        return liq_for_amounts(
            self.state.sqrt_price_x96,
            sqrt_price_x96_from_tick(tick_lower),
            sqrt_price_x96_from_tick(tick_upper),
            amount0,
            amount1,
        )

    def quote_split(
        self, tick_lower: int, tick_upper: int, amount0: int, amount1: int
    ) -> tuple[ERC20Token | None, int]:
        """Swap that brings ``(amount0, amount1)`` to the token ratio of the range.

        Returns ``(token_in, amount_in)``; ``(None, 0)`` when no swap is needed.
        """
        self.check_range(tick_lower, tick_upper)
        p = self.state.sqrt_price_x96
        ref0, ref1 = self.amounts_for_liquidity(
            tick_lower, tick_upper, _REFERENCE_LIQUIDITY
        )
        ref0_in1 = amount0_to_amount1(ref0, p)
        if ref0_in1 + ref1 == 0:
            return None, 0

        total_in1 = amount0_to_amount1(amount0, p) + amount1
        target1 = mul_div(total_in1, ref1, ref0_in1 + ref1)
        if amount1 > target1:
            return self.token1, amount1 - target1
        swap0 = min(amount0, amount1_to_amount0(target1 - amount1, p))
        if swap0 <= 0:
            return None, 0
        return self.token0, swap0

    # ── trading ──────────────────────────────────────────────────────────────

    @atomic
    def swap(
        self,
        sender: str,
        token_in: str,
        amount_in: int,
        min_amount_out: int = 0,
        recipient: str | None = None,
    ) -> int:
        if amount_in <= 0:
            raise InvalidEntry(amount_in=amount_in)
        token_in_ = self.token(token_in)
        token_out = self.other(token_in)
        amount_out = self.quote(token_in, amount_in)
        if amount_out <= 0 or amount_out < min_amount_out:
            raise InvalidEntry(amount_out=amount_out, min_amount_out=min_amount_out)

        token_in_.transfer(sender, self.address, amount_in)
        token_out.transfer(self.address, recipient or sender, amount_out)
        self.emit(
            Swap(
                sender=to_checksum_address(sender),
                token_in=token_in_.symbol,
                token_out=token_out.symbol,
                amount_in=amount_in,
                amount_out=amount_out,
            )
        )
        return amount_out

    @atomic
    @require_owner
    def set_sqrt_price(self, caller: str, sqrt_price_x96: int) -> None:
        if sqrt_price_x96 <= 0:
            raise InvalidInput("sqrt_price_x96", sqrt_price_x96)
        self.state.sqrt_price_x96 = int(sqrt_price_x96)
        self.logger.info(f"Price moved, tick {self.current_tick}")

    @atomic
    def donate_fees(self, sender: str, amount0: int, amount1: int) -> None:
        """Credit trading fees to the in-range positions, pro rata by liquidity."""
        if amount0 < 0 or amount1 < 0 or amount0 + amount1 == 0:
            raise InvalidEntry(amount0=amount0, amount1=amount1)
        tick = self.current_tick
        active = [
            r
            for r in self.state.positions.values()
            if r.liquidity > 0 and r.tick_lower <= tick < r.tick_upper
        ]
        total_liquidity = sum(r.liquidity for r in active)
        if total_liquidity == 0:
            raise InvalidEntry(active_liquidity=0)

        for record in active:
            record.tokens_owed0 += mul_div(amount0, record.liquidity, total_liquidity)
            record.tokens_owed1 += mul_div(amount1, record.liquidity, total_liquidity)
        self.token0.transfer(sender, self.address, amount0)
        self.token1.transfer(sender, self.address, amount1)

    # ── positions ────────────────────────────────────────────────────────────

    def _owned(self, caller: str, position_id: int) -> PositionRecord:
        record = self.state.positions.get(position_id)
        if record is None:
            raise InvalidInput("position_id", position_id)
        if to_checksum_address(caller) != record.owner:
            raise Unauthorized(caller, "POSITION_OWNER")
        return record

    def _add(
        self, sender: str, record: PositionRecord, amount0: int, amount1: int
    ) -> tuple[int, int, int]:
        liquidity = self.liquidity_for_amounts(
            record.tick_lower, record.tick_upper, amount0, amount1
        )
        if liquidity <= 0:
            raise InvalidEntry(amount0=amount0, amount1=amount1, liquidity=liquidity)
        used0, used1 = self.amounts_for_liquidity(
            record.tick_lower, record.tick_upper, liquidity, round_up=True
        )
        used0, used1 = min(used0, amount0), min(used1, amount1)

        record.liquidity += liquidity
        self.token0.transfer(sender, self.address, used0)
        self.token1.transfer(sender, self.address, used1)
        return liquidity, used0, used1

    @atomic
    def mint(
        self,
        sender: str,
        tick_lower: int,
        tick_upper: int,
        amount0_desired: int,
        amount1_desired: int,
    ) -> tuple[int, int, int, int]:
        """Open a position owned by ``sender``.

        Returns ``(position_id, liquidity, amount0, amount1)``; whatever the
        range cannot take stays with the sender.
        """
        self.check_range(tick_lower, tick_upper)
        record = PositionRecord(
            owner=to_checksum_address(sender), tick_lower=tick_lower, tick_upper=tick_upper
        )
        position_id = self.state.next_position_id
        self.state.next_position_id += 1
        self.state.positions[position_id] = record
        liquidity, used0, used1 = self._add(
            sender, record, amount0_desired, amount1_desired
        )
        return position_id, liquidity, used0, used1

    @atomic
    def increase_liquidity(
        self, sender: str, position_id: int, amount0_desired: int, amount1_desired: int
    ) -> tuple[int, int, int]:
        record = self._owned(sender, position_id)
        return self._add(sender, record, amount0_desired, amount1_desired)

    @atomic
    def burn(self, caller: str, position_id: int, liquidity: int) -> tuple[int, int]:
        record = self._owned(caller, position_id)
        if liquidity <= 0 or liquidity > record.liquidity:
            raise InvalidEntry(liquidity=liquidity, available=record.liquidity)
        amount0, amount1 = self.amounts_for_liquidity(
            record.tick_lower, record.tick_upper, liquidity
        )
        record.liquidity -= liquidity
        record.tokens_owed0 += amount0
        record.tokens_owed1 += amount1
        return amount0, amount1

    @atomic
    def collect(
        self,
        caller: str,
        position_id: int,
        recipient: str,
        amount0_max: int | None = None,
        amount1_max: int | None = None,
    ) -> tuple[int, int]:
        record = self._owned(caller, position_id)
        amount0 = record.tokens_owed0 if amount0_max is None else min(amount0_max, record.tokens_owed0)
        amount1 = record.tokens_owed1 if amount1_max is None else min(amount1_max, record.tokens_owed1)
        record.tokens_owed0 -= amount0
        record.tokens_owed1 -= amount1
        if not (record.liquidity or record.tokens_owed0 or record.tokens_owed1):
            del self.state.positions[position_id]

        self.token0.transfer(self.address, recipient, amount0)
        self.token1.transfer(self.address, recipient, amount1)
        return amount0, amount1


class LiquidityPosition:
    """Read handle on one pool position, valued in ``base_token``."""

    def __init__(self, pool: ConcentratedPool, position_id: int, base_token: str):
        self.pool = pool
        self.position_id = position_id
        self.base_token = to_checksum_address(base_token)

    @property
    def record(self) -> PositionRecord:
        return self.pool.position(self.position_id)

    @property
    def liquidity(self) -> int:
        return self.record.liquidity

    def principal(self) -> tuple[int, int]:
        record = self.record
        return self.pool.amounts_for_liquidity(
            record.tick_lower, record.tick_upper, record.liquidity
        )

    def fees_owed(self) -> tuple[int, int]:
        record = self.record
        return record.tokens_owed0, record.tokens_owed1

    def principal_value(self) -> int:
        return self.pool.value_in(self.base_token, *self.principal())

    def current_value(self) -> int:
        amount0, amount1 = self.principal()
        owed0, owed1 = self.fees_owed()
        return self.pool.value_in(self.base_token, amount0 + owed0, amount1 + owed1)
