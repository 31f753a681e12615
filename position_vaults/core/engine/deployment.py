"""One-call wiring of a complete local deployment.

Builds tokens and an ASTER/USDT pool, a USD price feed,
a pool library entry, the protocol hub, a locker owned by its distributor and
one vault with a manager.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from position_vaults.adapters.balance_adapter.adapter import ERC20Token
from position_vaults.adapters.liquidity_adapter.adapter import ConcentratedPool
from position_vaults.adapters.locker_adapter.adapter import LockerAdapter
from position_vaults.adapters.pool_library_adapter.adapter import (
    PoolData,
    PoolLibraryAdapter,
)
from position_vaults.adapters.price_feed_adapter.adapter import PriceFeedAdapter
from position_vaults.core.chain import LocalChain
from position_vaults.core.constants import MAX_TICK, MIN_TICK
from position_vaults.core.utils.uniswap_v3_math import (
    price_to_sqrt_price_x96,
    round_tick_to_spacing,
)
from position_vaults.vaults.position_manager.manager import PositionManager
from position_vaults.vaults.protocol_manager.manager import ProtocolManager

ONE = 10**18
USDT_USD_ANSWER = 100_000_000  # 1.00 with 8 decimals
ASTER_PRICE_IN_USDT = 2.0
POOL_FEE_PPM = 500
POOL_RESERVES = 10**30


def full_range(spacing: int) -> tuple[int, int]:
    lower = round_tick_to_spacing(MIN_TICK, spacing)
    if lower < MIN_TICK:
        lower += spacing
    return lower, round_tick_to_spacing(MAX_TICK, spacing)


@dataclass
class LocalProtocol:
    chain: LocalChain
    admin: str
    manager: str
    usdt: ERC20Token
    aster: ERC20Token
    pool: ConcentratedPool
    feed: PriceFeedAdapter
    pool_library: PoolLibraryAdapter
    protocol: ProtocolManager
    locker: LockerAdapter
    vault: PositionManager
    actors: dict[str, str] = field(default_factory=dict)

    def actor(self, label: str) -> str:
        if label not in self.actors:
            self.actors[label] = self.chain.new_address(f"eoa:{label}")
        return self.actors[label]

    def token(self, symbol: str) -> ERC20Token:
        for token in (self.usdt, self.aster):
            if token.symbol == symbol.upper():
                return token
        raise ValueError(f"Unknown token symbol: {symbol}")

    def fund(self, account: str, amount: int, token: ERC20Token | None = None) -> None:
        (token or self.usdt).mint(account, amount)

    def lock_rewards(self, amount: int, vault: PositionManager | None = None) -> None:
        """Fund a sponsor and lock ``amount`` for the vault, as a harvest would."""
        sponsor = self.actor("sponsor")
        self.fund(sponsor, amount)
        (vault or self.vault).deposit_rewards(sponsor, amount)

    @property
    def full_range(self) -> tuple[int, int]:
        return full_range(self.pool.tick_spacing)


def deploy_local_protocol(
    name: str = "local", vault_config: dict[str, Any] | None = None
) -> LocalProtocol:
    chain = LocalChain(name)
    admin = chain.new_address("eoa:admin")
    manager = chain.new_address("eoa:manager")

    usdt = ERC20Token(chain, "USDT")
    aster = ERC20Token(chain, "ASTER")
    pool = ConcentratedPool(
        chain,
        token0=aster,
        token1=usdt,
        fee_ppm=POOL_FEE_PPM,
        sqrt_price_x96=price_to_sqrt_price_x96(ASTER_PRICE_IN_USDT, 18, 18),
        owner=admin,
    )
    aster.mint(pool.address, POOL_RESERVES)
    usdt.mint(pool.address, POOL_RESERVES)

    feed = PriceFeedAdapter(chain, "USDT/USD", USDT_USD_ANSWER, owner=admin)
    pool_library = PoolLibraryAdapter(chain, owner=admin)
    pool_library.add_pool(
        admin,
        PoolData(
            main_pool=pool.address,
            token0_pool=pool.address,
            chainlink_data_feed=feed.address,
            chainlink_time_interval=86_400,
        ),
    )

    protocol = ProtocolManager(chain, admin, usdt, pool_library)
    locker = LockerAdapter(chain, usdt, owner=protocol.reward_distributor.address)
    protocol.set_locker(admin, locker.address)
    vault = protocol.create_vault(admin, 0, [manager], config=vault_config)

    return LocalProtocol(
        chain=chain,
        admin=admin,
        manager=manager,
        usdt=usdt,
        aster=aster,
        pool=pool,
        feed=feed,
        pool_library=pool_library,
        protocol=protocol,
        locker=locker,
        vault=vault,
        actors={"admin": admin, "manager": manager},
    )
