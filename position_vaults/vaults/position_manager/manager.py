from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from eth_utils import to_checksum_address

from position_vaults.adapters.liquidity_adapter.adapter import (
    ConcentratedPool,
    LiquidityPosition,
)
from position_vaults.adapters.price_feed_adapter.adapter import PriceFeedAdapter
from position_vaults.core.adapters.models import FeeSet
from position_vaults.core.chain import LocalChain, atomic
from position_vaults.core.constants import ZERO_ADDRESS
from position_vaults.core.errors import InvalidEntry, InvalidInput, ZeroAddress
from position_vaults.core.vaults import Vault, VaultStatus, require_role

from .constants import (
    CONFIG_FEE_PPM,
    CONFIG_FEE_RECIPIENT,
    CONFIG_SWAP_SLIPPAGE_BPS,
    MAX_PERCENTAGE,
    ROLE_ADMIN,
    ROLE_MANAGER,
    SWAP_SLIPPAGE_BPS,
)
from .position_controller_mixin import PositionControllerMixin
from .rewards_mixin import VaultRewardsMixin
from .share_vault_mixin import ShareVaultMixin
from .types import FeeConfig, PositionOpen, VaultState

if TYPE_CHECKING:
    from position_vaults.vaults.protocol_manager.manager import ProtocolManager


class PositionManager(
    ShareVaultMixin,
    PositionControllerMixin,
    VaultRewardsMixin,
    Vault,
):
    """Share-accounted vault over one concentrated-liquidity position.

    The vault's address is its key in the protocol's registry, distributor and
    claim ledger. Depositors bring the base asset; the manager decides when and
    where it is deployed.
    """

    def __init__(
        self,
        chain: LocalChain,
        protocol: ProtocolManager,
        pool_id: int,
        base_token: str,
        admin: str,
        managers: Iterable[str] = (),
        *,
        name: str | None = None,
        config: dict[str, Any] | None = None,
    ):
        pool_data = protocol.pool_library.get_pool_data(pool_id)
        pool = chain.resolve(pool_data.main_pool)
        if not isinstance(pool, ConcentratedPool):
            raise InvalidInput("main_pool", pool_data.main_pool)
        oracle = chain.resolve(pool_data.chainlink_data_feed)
        if not isinstance(oracle, PriceFeedAdapter):
            raise InvalidInput("chainlink_data_feed", pool_data.chainlink_data_feed)
        base = pool.token(base_token)

        super().__init__(chain, name or f"position_manager:{pool_id}", config)
        self.protocol = protocol
        self.pool_id = pool_id
        self.pool = pool
        self.oracle = oracle
        self.base_token = base
        self.pair_token = pool.other(base.address)
        self.slippage_bps = int(self.config.get(CONFIG_SWAP_SLIPPAGE_BPS, SWAP_SLIPPAGE_BPS))

        admin = to_checksum_address(admin)
        self.state = VaultState(
            roles={
                ROLE_ADMIN: {admin},
                ROLE_MANAGER: {to_checksum_address(m) for m in managers},
            },
            fee=FeeConfig(
                rate_ppm=int(self.config.get(CONFIG_FEE_PPM, 0)),
                recipient=to_checksum_address(self.config.get(CONFIG_FEE_RECIPIENT, admin)),
            ),
        )

    # ── token order helpers ──────────────────────────────────────────────────

    def _as_pool_order(self, base_amount: int, pair_amount: int) -> tuple[int, int]:
        if self.base_token is self.pool.token0:
            return base_amount, pair_amount
        return pair_amount, base_amount

    def _from_pool_order(self, amount0: int, amount1: int) -> tuple[int, int]:
        """``(amount0, amount1)`` -> ``(base, pair)``; the mapping is its own inverse."""
        return self._as_pool_order(amount0, amount1)

    # ── reads ────────────────────────────────────────────────────────────────

    @property
    def position(self) -> LiquidityPosition | None:
        position = self.state.position
        if isinstance(position, PositionOpen):
            return LiquidityPosition(self.pool, position.handle, self.base_token.address)
        return None

    @property
    def fee(self) -> FeeConfig:
        return self.state.fee

    def status(self) -> VaultStatus:
        idle_base, idle_pair = self.idle_balances()
        position = self.position
        return {
            "position": self.state.position.kind,
            "tick_range": self.tick_range(),
            "liquidity": position.liquidity if position else 0,
            "total_supply": self.total_supply,
            "vault_value": self.vault_value(),
            "idle_base": idle_base,
            "idle_pair": idle_pair,
            "depositors": len(self.protocol.depositor_registry.users_set(self.address)),
        }

    # ── admin ────────────────────────────────────────────────────────────────

    @atomic
    @require_role(ROLE_ADMIN)
    def set_fee(self, caller: str, rate_ppm: int, recipient: str) -> None:
        if not 0 <= rate_ppm <= MAX_PERCENTAGE:
            raise InvalidEntry(rate_ppm=rate_ppm)
        if rate_ppm > 0 and recipient.lower() == ZERO_ADDRESS:
            raise ZeroAddress(recipient=recipient)
        self.state.fee = FeeConfig(rate_ppm=rate_ppm, recipient=to_checksum_address(recipient))
        self.emit(FeeSet(rate_ppm=rate_ppm, recipient=self.state.fee.recipient))
        self.logger.info(f"Deposit fee -> {rate_ppm} ppm to {self.state.fee.recipient}")
